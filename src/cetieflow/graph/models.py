"""Data models for Graph drive operations."""
from dataclasses import dataclass
from typing import Optional

WORD_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


@dataclass(frozen=True)
class FolderHandle:
    """Remote folder address. Ids are opaque file-store handles."""
    drive_id: str
    folder_id: str


@dataclass
class DriveItem:
    """The subset of a Graph driveItem the application reads."""
    id: str
    name: str
    is_folder: bool = False
    mime_type: Optional[str] = None

    @classmethod
    def from_json(cls, item: dict) -> "DriveItem":
        return cls(
            id=item["id"],
            name=item.get("name", ""),
            is_folder="folder" in item,
            mime_type=(item.get("file") or {}).get("mimeType")
        )

    @property
    def extension(self) -> str:
        """Lower-case extension including the dot, empty when none."""
        if "." not in self.name:
            return ""
        return "." + self.name.rsplit(".", 1)[1].lower()

    @property
    def is_word_document(self) -> bool:
        return self.mime_type == WORD_MIME_TYPE
