"""Persistent file map of tracked custom code files.

This module keeps the authoritative mapping from file map key to
:class:`~ffsync.models.FileInfo`, persists it to ``.vscode/file_map.json``
and notifies registered listeners after each successful change.
"""

import json
import logging
from pathlib import Path
from typing import Callable, Optional

from ..exceptions import FFSyncPolicyError, FFSyncStateError
from ..layout import (
    ACTIONS_DIR,
    CUSTOM_CODE_DIR,
    CUSTOM_FUNCTIONS_FILE,
    CUSTOM_FUNCTIONS_IDENTIFIER,
    FILE_MAP_PATH,
    PUBSPEC_FILE,
    WIDGETS_DIR,
    full_path,
)
from ..models import CodeType, FileInfo
from ..utils import compute_checksum

logger = logging.getLogger(__name__)

FileChangeListener = Callable[[Path, FileInfo], None]


def other_code_files(root: Path) -> list[Path]:
    """Dart files under ``lib/custom_code`` outside the action and widget folders.

    Files nested below ``actions/`` or ``widgets/`` are skipped as well.
    """
    custom_code = root.joinpath(*CUSTOM_CODE_DIR.parts)
    if not custom_code.is_dir():
        return []
    skipped = (ACTIONS_DIR.name, WIDGETS_DIR.name)
    files = []
    for path in sorted(custom_code.rglob("*.dart")):
        relative = path.relative_to(custom_code)
        if relative.parts[0] in skipped:
            continue
        files.append(path)
    return files


def custom_functions_record() -> FileInfo:
    """Record for the shared custom functions document."""
    return FileInfo(
        old_identifier_name=CUSTOM_FUNCTIONS_IDENTIFIER,
        new_identifier_name=CUSTOM_FUNCTIONS_IDENTIFIER,
        type=CodeType.FUNCTION,
    )


def pubspec_record() -> FileInfo:
    """Record for the pubspec.yaml dependency manifest."""
    return FileInfo(
        old_identifier_name=PUBSPEC_FILE,
        new_identifier_name=PUBSPEC_FILE,
        type=CodeType.DEPENDENCIES,
    )


class FileStateStore:
    """Mapping of file map key to file metadata.

    Deletion is staged: :meth:`soft_delete` only marks a record, and the
    record stays until :meth:`commit` purges it. Callers must serialize
    calls; the store does no locking.
    """

    def __init__(self, root: Path, records: Optional[dict[str, FileInfo]] = None):
        """Initialize file state store.

        Args:
            root: Project root directory
            records: Initial records keyed by file map key
        """
        self.root = root
        self._records: dict[str, FileInfo] = dict(records or {})
        self._listeners: list[FileChangeListener] = []
        self.paused = False

    @property
    def snapshot_path(self) -> Path:
        """Location of the persisted file map."""
        return self.root.joinpath(*FILE_MAP_PATH.parts)

    @property
    def file_map(self) -> dict[str, FileInfo]:
        """Shallow copy of the current mapping."""
        return dict(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def items(self) -> list[tuple[str, FileInfo]]:
        """Records as (key, record) pairs in insertion order."""
        return list(self._records.items())

    def full_path(self, key: str, record: FileInfo) -> Path:
        """Absolute location of a record's file."""
        return full_path(self.root, key, record.type)

    # =========================
    # Mutation
    # =========================

    def add(self, key: str, record: FileInfo) -> bool:
        """Insert a record, replacing any record under the same key.

        Returns:
            False if the store is paused and nothing was inserted
        """
        if self.paused:
            logger.debug(f"Store paused, not adding {key}")
            return False
        self._records[key] = record
        logger.debug(f"Added {key} ({record.type.name})")
        return True

    def get(self, key: str) -> Optional[FileInfo]:
        """Look up a record by key."""
        return self._records.get(key)

    def update(
        self, key: str, mutate: Callable[[FileInfo], None]
    ) -> Optional[FileInfo]:
        """Apply ``mutate`` to a record in place.

        Returns:
            The updated record, or None if the key is unknown
        """
        record = self._records.get(key)
        if record is None:
            return None
        mutate(record)
        return record

    def soft_delete(self, key: str) -> Optional[FileInfo]:
        """Mark a record as deleted.

        Returns:
            The marked record, or None if the key is unknown

        Raises:
            FFSyncPolicyError: If the record is the custom functions document
        """
        record = self._records.get(key)
        if record is None:
            return None
        if record.type == CodeType.FUNCTION:
            raise FFSyncPolicyError("Cannot delete the custom functions file")
        record.is_deleted = True
        logger.debug(f"Marked {key} as deleted")
        return record

    def rename(self, old_key: str, new_key: str) -> Optional[FileInfo]:
        """Move a record to a new key without touching its checksums.

        Returns:
            The moved record, or None if ``old_key`` is unknown
        """
        record = self._records.pop(old_key, None)
        if record is None:
            return None
        self._records[new_key] = record
        logger.debug(f"Moved {old_key} -> {new_key}")
        return record

    def commit(self) -> None:
        """Rebase every record to its current state and purge deletions.

        Afterwards ``original_checksum == current_checksum`` and
        ``old_identifier_name == new_identifier_name`` for every surviving
        record. The result is persisted.
        """
        for record in self._records.values():
            record.original_checksum = record.current_checksum
            record.old_identifier_name = record.new_identifier_name
        purged = [k for k, r in self._records.items() if r.is_deleted]
        for key in purged:
            del self._records[key]
        logger.info(
            f"Committed {len(self._records)} record(s), purged {len(purged)} deleted"
        )
        self.persist()

    # =========================
    # Listeners
    # =========================

    def on_file_change(self, listener: FileChangeListener) -> None:
        """Register a listener called with (full path, record) after changes."""
        self._listeners.append(listener)

    def remove_file_change_listener(self, listener: FileChangeListener) -> None:
        """Unregister a listener, ignoring unknown ones."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def clear_file_change_listeners(self) -> None:
        """Unregister all listeners."""
        self._listeners.clear()

    def notify(self, key: str, record: FileInfo) -> None:
        """Call every listener synchronously.

        Listener errors propagate to the caller. State is persisted before
        notification, so a failing listener cannot leave it half written.
        """
        path = self.full_path(key, record)
        for listener in list(self._listeners):
            listener(path, record)

    # =========================
    # Persistence
    # =========================

    def to_dict(self, exclude: tuple[CodeType, ...] = ()) -> dict[str, dict]:
        """Snapshot of the mapping for JSON serialization.

        Args:
            exclude: Categories to leave out
        """
        return {
            key: record.to_dict()
            for key, record in self._records.items()
            if record.type not in exclude
        }

    def persist(self, root: Optional[Path] = None) -> None:
        """Write the mapping as pretty-printed JSON.

        Args:
            root: Project root to write under (defaults to own root)
        """
        path = (root or self.root).joinpath(*FILE_MAP_PATH.parts)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.debug(f"Saved file map with {len(self._records)} record(s) to {path}")

    @classmethod
    def from_json(cls, root: Path, content: str) -> "FileStateStore":
        """Build a store from snapshot text.

        Raises:
            FFSyncStateError: If the text is not a JSON object of records
        """
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise FFSyncStateError(f"Invalid file map: {e}", raw_text=content) from e
        if not isinstance(data, dict):
            raise FFSyncStateError("File map must be a JSON object", raw_text=content)

        records = {}
        for key, entry in data.items():
            if not isinstance(entry, dict):
                raise FFSyncStateError(
                    f"File map entry {key!r} must be an object", raw_text=content
                )
            records[key] = FileInfo.from_dict(entry)
        return cls(root, records)

    @classmethod
    def load(cls, root: Path) -> "FileStateStore":
        """Load the persisted file map.

        A missing snapshot yields an empty store. Missing checksums are
        filled in, see :meth:`backfill_checksums`.

        Raises:
            FFSyncStateError: If the snapshot is malformed
        """
        path = root.joinpath(*FILE_MAP_PATH.parts)
        if not path.exists():
            logger.debug(f"No file map found at {path}")
            return cls(root)
        store = cls.from_json(root, path.read_text(encoding="utf-8"))
        store.backfill_checksums()
        logger.debug(f"Loaded file map with {len(store)} record(s) from {path}")
        return store

    @classmethod
    def bootstrap(
        cls,
        root: Path,
        action_index: dict[str, list[str]],
        widget_index: dict[str, list[str]],
    ) -> "FileStateStore":
        """Build a fresh file map from the index documents and the disk.

        One record is created per index entry (identifier taken from the
        first shown symbol), plus the custom functions and pubspec records
        and one record per other Dart file under ``lib/custom_code``.
        Checksums are computed from disk.
        """
        records: dict[str, FileInfo] = {}
        for code_type, index in (
            (CodeType.ACTION, action_index),
            (CodeType.WIDGET, widget_index),
        ):
            for filename, exports in index.items():
                name = exports[0] if exports else Path(filename).stem
                records[Path(filename).name] = FileInfo(
                    old_identifier_name=name,
                    new_identifier_name=name,
                    type=code_type,
                )
        records[CUSTOM_FUNCTIONS_FILE] = custom_functions_record()
        records[PUBSPEC_FILE] = pubspec_record()

        custom_code = root.joinpath(*CUSTOM_CODE_DIR.parts)
        for path in other_code_files(root):
            key = path.relative_to(custom_code).as_posix()
            records[key] = FileInfo(
                old_identifier_name=key,
                new_identifier_name=key,
                type=CodeType.OTHER,
            )

        store = cls(root, records)
        for key, record in records.items():
            path = store.full_path(key, record)
            checksum = compute_checksum(path) if path.is_file() else None
            record.original_checksum = checksum
            record.current_checksum = checksum
        logger.info(f"Bootstrapped file map with {len(records)} record(s)")
        return store

    def backfill_checksums(self) -> int:
        """Fill in missing checksums.

        A record missing both checksums gets the digest of its file in
        both. A record missing only the current checksum gets it rehashed.
        A record missing only the original checksum was added after the
        last sync and is left alone so it still counts as changed.

        Returns:
            Number of records that were changed
        """
        changed = 0
        for key, record in self._records.items():
            if record.current_checksum:
                continue
            path = self.full_path(key, record)
            if not path.is_file():
                logger.warning(f"Cannot compute checksum, file missing: {path}")
                continue
            checksum = compute_checksum(path)
            record.current_checksum = checksum
            if not record.original_checksum:
                record.original_checksum = checksum
            changed += 1
        return changed

    def reset(self, records: dict[str, FileInfo]) -> None:
        """Replace all records, keeping listeners and the pause flag."""
        self._records = dict(records)
