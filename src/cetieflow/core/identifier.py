"""Affaire identifier normalization and validation."""
import re
from typing import NewType

from cetieflow.utils.exceptions import IdentifierValidationError

ProjectIdentifier = NewType("ProjectIdentifier", str)

IDENTIFIER_LENGTH = 8
_IDENTIFIER_PATTERN = re.compile(r"^[A-Z0-9]{8}$")


def normalize_identifier(raw: str, scanned: bool = False) -> str:
    """Trim and uppercase; scanned CODE_39 payloads are cut to the leading 8 characters."""
    value = (raw or "").strip()
    if scanned:
        value = value[:IDENTIFIER_LENGTH]
    return value.upper()


def validate_identifier(raw: str, scanned: bool = False) -> ProjectIdentifier:
    """
    Validate a typed or scanned affaire number.

    Args:
        raw: Input as typed or decoded from the barcode
        scanned: True for scanner input, which may carry trailing data

    Returns:
        The normalized identifier

    Raises:
        IdentifierValidationError: If the normalized value is not 8 of [A-Z0-9]
    """
    value = normalize_identifier(raw, scanned)
    if not is_valid_identifier(value):
        if scanned:
            raise IdentifierValidationError("Code invalide (attendu 8 caractères Code39).")
        raise IdentifierValidationError("Numéro invalide")
    return ProjectIdentifier(value)


def is_valid_identifier(raw: str) -> bool:
    return _IDENTIFIER_PATTERN.match(normalize_identifier(raw)) is not None
