"""Data models for tracked custom code files."""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from .exceptions import FFSyncConfigError, FFSyncStateError

logger = logging.getLogger(__name__)


class CodeType(str, Enum):
    """Category of a tracked file.

    The category is fixed when a record is created. It decides where the
    file lives on disk and whether it belongs to an index document.
    """

    ACTION = "A"
    """Custom action under lib/custom_code/actions"""

    WIDGET = "W"
    """Custom widget under lib/custom_code/widgets"""

    FUNCTION = "F"
    """The shared custom functions document"""

    DEPENDENCIES = "D"
    """The pubspec.yaml dependency manifest"""

    OTHER = "O"
    """Any other file under lib/custom_code"""

    @property
    def has_index(self) -> bool:
        """Whether files of this category are listed in an index document."""
        return self in (CodeType.ACTION, CodeType.WIDGET)


@dataclass
class FileInfo:
    """Metadata kept for one tracked file."""

    old_identifier_name: str
    """Symbol name as of the last confirmed sync"""

    new_identifier_name: str
    """Symbol name in the current edit session"""

    type: CodeType
    """Category, never reassigned after creation"""

    is_deleted: bool = False
    """Soft delete marker, purged on commit"""

    original_checksum: Optional[str] = None
    """Digest as of the last confirmed sync"""

    current_checksum: Optional[str] = None
    """Digest of the live file"""

    @property
    def is_modified(self) -> bool:
        """Whether the file changed since the last confirmed sync."""
        return self.original_checksum != self.current_checksum

    @property
    def is_renamed(self) -> bool:
        """Whether the exported symbol was renamed since the last sync."""
        return self.old_identifier_name != self.new_identifier_name

    def to_dict(self) -> dict[str, Any]:
        """Convert record to dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "old_identifier_name": self.old_identifier_name,
            "new_identifier_name": self.new_identifier_name,
            "type": self.type.value,
            "is_deleted": self.is_deleted,
        }
        if self.original_checksum is not None:
            data["original_checksum"] = self.original_checksum
        if self.current_checksum is not None:
            data["current_checksum"] = self.current_checksum
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileInfo":
        """Create FileInfo from dictionary.

        Raises:
            FFSyncStateError: If required fields are missing or invalid
        """
        try:
            code_type = CodeType(data["type"])
            return cls(
                old_identifier_name=str(data["old_identifier_name"]),
                new_identifier_name=str(data["new_identifier_name"]),
                type=code_type,
                is_deleted=bool(data.get("is_deleted", False)),
                original_checksum=data.get("original_checksum"),
                current_checksum=data.get("current_checksum"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise FFSyncStateError(
                f"Invalid file map entry: {e}", raw_text=json.dumps(data)
            ) from e


@dataclass
class ProjectMetadata:
    """Identity of the FlutterFlow project a working copy belongs to."""

    project_id: str
    branch_name: str = ""

    @classmethod
    def from_file(cls, path: Path) -> "ProjectMetadata":
        """Load metadata from ``.vscode/ff_metadata.json``.

        Args:
            path: Path to the metadata file

        Returns:
            ProjectMetadata instance

        Raises:
            FFSyncConfigError: If the file is missing or has no project id
        """
        if not path.exists():
            raise FFSyncConfigError(
                f"No ff_metadata.json found at {path}, make sure you are in the "
                "root directory of a downloaded FlutterFlow project."
            )
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise FFSyncConfigError(f"Invalid project metadata in {path}: {e}") from e

        project_id = data.get("project_id") if isinstance(data, dict) else None
        if not project_id:
            raise FFSyncConfigError(f"Project metadata in {path} has no project_id")
        logger.debug(f"Loaded project metadata for {project_id}")
        return cls(project_id=project_id, branch_name=data.get("branch_name") or "")
