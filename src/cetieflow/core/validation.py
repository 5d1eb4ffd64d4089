"""validation.json: the three-flag approval record gating finalize."""
import json
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, field_validator

from .session import DocumentSession
from cetieflow.config.settings import AppSettings
from cetieflow.graph.client import GraphClient
from cetieflow.utils.exceptions import ValidationError
from cetieflow.utils.logger import get_logger

logger = get_logger()

BOOLEAN_KEYS = ("FP", "PVEE")


class PveaState(str, Enum):
    """State of the automatic acceptance report (PVEA)."""
    VALIDE = "validé"
    NON_NECESSAIRE = "non_necessaire"
    NON_VALIDE = "non_valide"


class ValidationRecord(BaseModel):
    """Schema of validation.json; lenient on read, missing keys take defaults."""
    FP: bool = False
    PVEE: bool = False
    PVEA: PveaState = PveaState.NON_VALIDE

    @field_validator("FP", "PVEE", mode="before")
    @classmethod
    def _lenient_bool(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ("true", "false"):
            return value.lower() == "true"
        return False

    @field_validator("PVEA", mode="before")
    @classmethod
    def _lenient_state(cls, value: Any) -> PveaState:
        try:
            return PveaState(value)
        except ValueError:
            return PveaState.NON_VALIDE

    @property
    def can_finalize(self) -> bool:
        return self.FP and self.PVEE and self.PVEA in (PveaState.VALIDE, PveaState.NON_NECESSAIRE)

    def to_bytes(self) -> bytes:
        return json.dumps(self.model_dump(mode="json"), ensure_ascii=False).encode("utf-8")

    @classmethod
    def from_bytes(cls, content: bytes) -> "ValidationRecord":
        try:
            data = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValidationError(f"validation.json illisible : {e}")
        if not isinstance(data, dict):
            raise ValidationError("validation.json n'est pas un objet JSON")
        return cls.model_validate(data)


class ValidationStore:
    """Loads, creates and persists the validation record of a session."""

    def __init__(self, graph: GraphClient, settings: AppSettings):
        self.graph = graph
        self.settings = settings

    def load(self, session: DocumentSession) -> ValidationRecord:
        """
        Read validation.json from the main folder, creating it when absent.

        Returns:
            The record now held by the session
        """
        file_name = self.settings.validation_file
        children = self.graph.list_children(session.drive_id, session.folder_id)
        existing = next((item for item in children if item.name == file_name), None)

        if existing is not None:
            record = ValidationRecord.from_bytes(self.graph.download(session.drive_id, existing.id))
            logger.info(f"Loaded {file_name}: {record.model_dump(mode='json')}")
            session.validation = record
            return record

        record = ValidationRecord()
        session.validation = record
        logger.info(f"No {file_name}, creating defaults")
        self.persist(session)
        return record

    def persist(self, session: DocumentSession) -> None:
        """Upload the full in-memory record; last write wins."""
        record = self._require(session)
        self.graph.upload(
            session.drive_id,
            session.folder_id,
            self.settings.validation_file,
            record.to_bytes(),
            "application/json"
        )
        logger.debug(f"Persisted {self.settings.validation_file}")

    def set_value(self, session: DocumentSession, key: str, value: Any) -> ValidationRecord:
        """Mutate one key in memory, then persist the whole record."""
        record = self._require(session)
        if key not in ValidationRecord.model_fields:
            raise ValidationError(f"Unknown validation key: {key}")
        if key == "PVEA":
            try:
                value = PveaState(value)
            except ValueError:
                raise ValidationError(f"Unknown PVEA state: {value}")
        elif not isinstance(value, bool):
            raise ValidationError(f"{key} expects a boolean")

        session.validation = record.model_copy(update={key: value})
        logger.info(f"{key} -> {value.value if isinstance(value, PveaState) else value}")
        self.persist(session)
        return session.validation

    def toggle(self, session: DocumentSession, key: str, confirm: Callable[[str], bool]) -> Optional[bool]:
        """
        Flip FP or PVEE after confirmation.

        Returns:
            The new value, or None when the user declined
        """
        if key not in BOOLEAN_KEYS:
            raise ValidationError(f"{key} is not a toggle")
        current = getattr(self._require(session), key)
        action = "retirer la validation" if current else "valider ce document"
        if not confirm(f"Voulez-vous {action} ?"):
            return None
        self.set_value(session, key, not current)
        return not current

    def set_pvea(self, session: DocumentSession, state: PveaState) -> ValidationRecord:
        return self.set_value(session, "PVEA", state)

    @staticmethod
    def _require(session: DocumentSession) -> ValidationRecord:
        if session.validation is None:
            raise ValidationError("validation.json n'est pas chargé")
        return session.validation
