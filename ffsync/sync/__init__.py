"""Sync engine for ffsync - change detection, function diffs and packaging."""

from .detector import ChangeDetector, load_change_detector, resolve_new_name
from .functions import (
    MIN_FUNCTION_SIMILARITY,
    FunctionChange,
    RenamedFunction,
    diff_functions,
    function_similarity,
)
from .index import IndexStore, parse_index_file, render_index_file
from .packager import SyncPackager, SyncPayload, SyncResult, build_archive, decode_response
from .state import FileChangeListener, FileStateStore
from .watcher import ProjectEventHandler, start_observer, watch_project

__all__ = [
    "ChangeDetector",
    "load_change_detector",
    "resolve_new_name",
    "FunctionChange",
    "RenamedFunction",
    "MIN_FUNCTION_SIMILARITY",
    "diff_functions",
    "function_similarity",
    "IndexStore",
    "parse_index_file",
    "render_index_file",
    "SyncPackager",
    "SyncPayload",
    "SyncResult",
    "build_archive",
    "decode_response",
    "FileChangeListener",
    "FileStateStore",
    "ProjectEventHandler",
    "start_observer",
    "watch_project",
]
