"""Change detection for custom code files.

The :class:`ChangeDetector` receives file system events (add, update,
delete, rename) for a FlutterFlow project, keeps the file map and the
index documents consistent, and infers renamed symbols from the file
content and the index documents.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Union

from ..dart import get_top_level_names
from ..exceptions import FFSyncPolicyError
from ..layout import (
    ACTIONS_DIR,
    CUSTOM_FUNCTIONS_PATH,
    FUNCTIONS_SNAPSHOT_PATH,
    PUBSPEC_FILE,
    WIDGETS_DIR,
    file_map_key,
    path_to_code_type,
)
from ..models import CodeType, FileInfo
from ..utils import compute_checksum, to_camel_case, to_pascal_case
from .functions import FunctionChange, diff_functions
from .index import IndexStore
from .state import (
    FileStateStore,
    custom_functions_record,
    other_code_files,
    pubspec_record,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def resolve_new_name(
    declarations: list[str], index_exports: list[str], previous_name: str
) -> Optional[str]:
    """Decide whether the exported symbol of a file was renamed.

    Args:
        declarations: Top-level declaration names in the file
        index_exports: Shown symbols recorded in the index for the file
        previous_name: Name the record was known by at the last sync

    Returns:
        The new name, or None if the symbol is unchanged or the state is
        ambiguous
    """
    index_name = index_exports[0] if index_exports else None
    if index_name is not None and index_name in declarations:
        file_name: Optional[str] = index_name
    elif previous_name in declarations:
        file_name = previous_name
    else:
        # Neither name is declared, fall back to the first declaration
        file_name = declarations[0] if declarations else None

    if index_name == file_name and index_name == previous_name:
        return None
    if index_name == file_name:
        # Renamed in the file and the index already follows
        return file_name
    if index_name == previous_name and file_name != previous_name:
        # Renamed in the file, index is stale
        return file_name
    # Index edited independently of the file, or several renames at once.
    # Not guessing here may miss a rename.
    return None


class ChangeDetector:
    """Tracks changes to the custom code of one project."""

    def __init__(
        self,
        root: Path,
        store: FileStateStore,
        indexes: IndexStore,
        functions_code: str = "",
        initial_functions_code: Optional[str] = None,
    ):
        """Initialize change detector.

        Args:
            root: Project root directory
            store: File map of the project
            indexes: Action and widget index documents
            functions_code: Live content of the custom functions document
            initial_functions_code: Content as of the last confirmed sync
                (defaults to ``functions_code``)
        """
        self.root = root
        self.store = store
        self.indexes = indexes
        self.functions_code = functions_code
        self.initial_functions_code = (
            functions_code if initial_functions_code is None else initial_functions_code
        )

    @property
    def file_map(self) -> dict[str, FileInfo]:
        """Shallow copy of the file map."""
        return self.store.file_map

    # =========================
    # Suppression
    # =========================

    def pause(self) -> None:
        """Ignore add/update/delete/rename events until :meth:`resume`."""
        self.store.paused = True

    def resume(self) -> None:
        """Process events again."""
        self.store.paused = False

    @contextmanager
    def paused(self) -> Iterator[None]:
        """Ignore events inside the block, e.g. while applying pulled code.

        Events are dropped, not queued.
        """
        previous = self.store.paused
        self.store.paused = True
        try:
            yield
        finally:
            self.store.paused = previous

    # =========================
    # File events
    # =========================

    def _classify(self, path: PathLike) -> tuple[Path, Optional[CodeType]]:
        file_path = Path(path)
        if not file_path.is_absolute():
            file_path = self.root / file_path
        return file_path, path_to_code_type(self.root, file_path)

    def add_file(self, path: PathLike) -> Optional[FileInfo]:
        """Handle creation of a file.

        Re-adding a file that is already tracked in the same category is
        handled as an update. A soft-deleted record is restored.

        Returns:
            The new or updated record, or None if paused or untracked
        """
        if self.store.paused:
            return None
        file_path, code_type = self._classify(path)
        if code_type is None:
            logger.debug(f"Ignoring untracked file {file_path}")
            return None

        key = file_map_key(self.root, file_path, code_type)
        existing = self.store.get(key)
        if existing is not None and existing.type == code_type:
            if existing.is_deleted:
                return self._restore(key, file_path, existing)
            return self._refresh(key, file_path, existing)

        if code_type == CodeType.FUNCTION:
            record = custom_functions_record()
        elif code_type == CodeType.DEPENDENCIES:
            record = pubspec_record()
        else:
            stem = file_path.stem
            implied_name = (
                to_pascal_case(stem) if code_type == CodeType.WIDGET else to_camel_case(stem)
            )
            record = FileInfo(
                old_identifier_name=implied_name,
                new_identifier_name=implied_name,
                type=code_type,
            )
        if file_path.is_file():
            record.current_checksum = compute_checksum(file_path)

        self.store.add(key, record)
        if code_type.has_index:
            self.indexes.set_exports(code_type, key, [record.new_identifier_name])

        self.store.persist()
        logger.info(f"Tracking new {code_type.name.lower()} file {key}")
        self.store.notify(key, record)
        return record

    def update_file(self, path: PathLike) -> Optional[FileInfo]:
        """Handle modification of a tracked file.

        Returns:
            The record (unchanged when the checksum did not change), or
            None if paused, untracked or unknown
        """
        if self.store.paused:
            return None
        file_path, code_type = self._classify(path)
        if code_type is None:
            return None
        key = file_map_key(self.root, file_path, code_type)
        record = self.store.get(key)
        if record is None:
            logger.debug(f"Update for unknown file {key}")
            return None
        return self._refresh(key, file_path, record)

    def delete_file(self, path: PathLike) -> Optional[FileInfo]:
        """Handle removal of a tracked file.

        The record is only marked as deleted and is purged on commit.

        Returns:
            The marked record, or None if paused, untracked or unknown

        Raises:
            FFSyncPolicyError: If the custom functions document is deleted
        """
        if self.store.paused:
            return None
        file_path, code_type = self._classify(path)
        if code_type is None:
            return None
        if code_type == CodeType.FUNCTION:
            raise FFSyncPolicyError("Cannot delete the custom functions file")

        key = file_map_key(self.root, file_path, code_type)
        record = self.store.soft_delete(key)
        if record is None:
            return None
        if record.type.has_index:
            self.indexes.remove(record.type, key)

        self.store.persist()
        logger.info(f"Marked {key} as deleted")
        self.store.notify(key, record)
        return record

    def rename_file(self, old_path: PathLike, new_path: PathLike) -> Optional[FileInfo]:
        """Handle a file being moved or renamed.

        Only the file map key changes. Checksums and index documents are
        left to a following update event.

        Returns:
            The moved record, or None if paused, untracked or unknown

        Raises:
            FFSyncPolicyError: If the move would change the file's category
        """
        if self.store.paused:
            return None
        old_file, old_type = self._classify(old_path)
        new_file, new_type = self._classify(new_path)
        if old_type is None:
            return None
        old_key = file_map_key(self.root, old_file, old_type)
        record = self.store.get(old_key)
        if record is None:
            return None
        if new_type != record.type:
            target = new_type.name if new_type else "an untracked location"
            raise FFSyncPolicyError(
                f"Cannot move {old_key} from {record.type.name} to {target}"
            )

        new_key = file_map_key(self.root, new_file, new_type)
        self.store.rename(old_key, new_key)
        self.store.persist()
        return record

    def _restore(self, key: str, file_path: Path, record: FileInfo) -> FileInfo:
        """Bring back a soft-deleted record whose file was recreated."""
        record.is_deleted = False
        if record.type.has_index:
            exports = self.indexes.exports(record.type, key)
            if not exports:
                self.indexes.set_exports(record.type, key, [record.new_identifier_name])
        logger.info(f"Restored deleted file {key}")
        return self._refresh(key, file_path, record, force=True)

    def _refresh(
        self, key: str, file_path: Path, record: FileInfo, force: bool = False
    ) -> FileInfo:
        """Recompute the checksum and follow up on a changed file."""
        previous_checksum = record.current_checksum
        record.current_checksum = compute_checksum(file_path)
        if record.type == CodeType.FUNCTION:
            self.functions_code = file_path.read_text(encoding="utf-8")
        if record.current_checksum == record.original_checksum and not force:
            if previous_checksum != record.current_checksum:
                # Edited back to the synced content
                self.store.persist()
            return record

        record.is_deleted = False
        if record.type.has_index:
            self._detect_rename(key, file_path, record)

        self.store.persist()
        self.store.notify(key, record)
        return record

    def _detect_rename(self, key: str, file_path: Path, record: FileInfo) -> None:
        exports = self.indexes.exports(record.type, key)
        if not exports:
            logger.warning(f"No shown exports found in index file for {file_path}")
            return

        declarations = get_top_level_names(file_path.read_text(encoding="utf-8"))
        new_name = resolve_new_name(declarations, exports, record.old_identifier_name)
        if new_name is None:
            return
        if new_name != record.new_identifier_name:
            logger.info(f"Detected rename in {key}: {record.old_identifier_name} -> {new_name}")
        record.new_identifier_name = new_name
        if exports[0] != new_name:
            self.indexes.set_exports(record.type, key, [new_name, *exports[1:]])

    def rescan(self) -> int:
        """Catch up with edits made while no events were delivered.

        Every tracked file is rehashed, records whose file is gone are
        marked as deleted and project files missing from the file map are
        added, all through the regular event handlers.

        Returns:
            Number of files found changed, deleted or added
        """
        changed = 0
        for key, record in self.store.items():
            path = self.store.full_path(key, record)
            before = (record.current_checksum, record.is_deleted)
            if path.is_file():
                if record.is_deleted:
                    self.add_file(path)
                else:
                    self.update_file(path)
            elif record.is_deleted:
                continue
            elif record.type == CodeType.FUNCTION:
                logger.warning(f"Custom functions file is missing: {path}")
                continue
            else:
                self.delete_file(path)
            if (record.current_checksum, record.is_deleted) != before:
                changed += 1

        for path in self._project_files():
            code_type = path_to_code_type(self.root, path)
            if code_type is None:
                continue
            if file_map_key(self.root, path, code_type) not in self.store:
                self.add_file(path)
                changed += 1

        if changed:
            logger.info(f"Found {changed} file(s) changed on disk")
        return changed

    def _project_files(self) -> list[Path]:
        files = [
            self.root / PUBSPEC_FILE,
            self.root.joinpath(*CUSTOM_FUNCTIONS_PATH.parts),
        ]
        for directory in (ACTIONS_DIR, WIDGETS_DIR):
            folder = self.root.joinpath(*directory.parts)
            if folder.is_dir():
                files.extend(sorted(folder.glob("*.dart")))
        files.extend(other_code_files(self.root))
        return [path for path in files if path.is_file()]

    # =========================
    # Functions
    # =========================

    def function_change(self) -> FunctionChange:
        """Functions renamed, deleted and added since the last sync."""
        return diff_functions(self.initial_functions_code, self.functions_code)

    # =========================
    # Sync bookkeeping
    # =========================

    def commit(self) -> None:
        """Mark the current state as synced.

        Rebases checksums and identifier names, purges deleted records and
        advances the custom functions baseline. Call only after a sync
        round was confirmed.
        """
        self.store.commit()
        self.initial_functions_code = self.functions_code
        self._write_functions_snapshot(self.root)

    def _write_functions_snapshot(self, root: Path) -> None:
        path = root.joinpath(*FUNCTIONS_SNAPSHOT_PATH.parts)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.initial_functions_code, encoding="utf-8")

    def serialize(self, root: Optional[Path] = None) -> None:
        """Write the file map, both index documents and the functions baseline.

        Args:
            root: Project root to write under (defaults to own root)
        """
        target = root or self.root
        self.store.persist(target)
        self.indexes.save(CodeType.ACTION, target)
        self.indexes.save(CodeType.WIDGET, target)
        self._write_functions_snapshot(target)

    def refresh(self) -> None:
        """Rebuild all state from disk, e.g. after pulling fresh code.

        The rebuilt state counts as synced.
        """
        self.indexes.reload()
        fresh = FileStateStore.bootstrap(
            self.root,
            self.indexes.document(CodeType.ACTION),
            self.indexes.document(CodeType.WIDGET),
        )
        self.store.reset(fresh.file_map)
        self.functions_code = _read_text(self.root.joinpath(*CUSTOM_FUNCTIONS_PATH.parts))
        self.initial_functions_code = self.functions_code


def _read_text(path: Path, default: str = "") -> str:
    if not path.exists():
        return default
    return path.read_text(encoding="utf-8")


def load_change_detector(project_root: PathLike) -> ChangeDetector:
    """Restore a change detector from the files of a project.

    Index documents and the custom functions document may be missing. When
    there is no persisted file map, one is built from the index documents
    and the files on disk.

    Raises:
        FFSyncIndexError: If an index document is malformed
        FFSyncStateError: If the persisted file map is malformed
    """
    root = Path(project_root).resolve()
    indexes = IndexStore.load(root)

    functions_code = _read_text(root.joinpath(*CUSTOM_FUNCTIONS_PATH.parts))
    initial_functions_code = _read_text(
        root.joinpath(*FUNCTIONS_SNAPSHOT_PATH.parts), default=functions_code
    )

    store = FileStateStore.load(root)
    if store.snapshot_path.exists():
        if PUBSPEC_FILE not in store:
            store.add(PUBSPEC_FILE, pubspec_record())
            store.backfill_checksums()
    else:
        store = FileStateStore.bootstrap(
            root,
            indexes.document(CodeType.ACTION),
            indexes.document(CodeType.WIDGET),
        )
    store.persist()

    detector = ChangeDetector(root, store, indexes, functions_code, initial_functions_code)
    detector.rescan()
    logger.debug(f"Loaded change detector for {root} with {len(store)} record(s)")
    return detector
