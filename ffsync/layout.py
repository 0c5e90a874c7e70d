"""Project layout of a downloaded FlutterFlow project.

All knowledge about where a tracked file lives on disk is kept here, so
the rest of the package only deals with file map keys and categories.
"""

from pathlib import Path, PurePosixPath
from typing import Optional, Union

from .models import CodeType

CUSTOM_CODE_DIR = PurePosixPath("lib", "custom_code")
ACTIONS_DIR = CUSTOM_CODE_DIR / "actions"
WIDGETS_DIR = CUSTOM_CODE_DIR / "widgets"
FLUTTER_FLOW_DIR = PurePosixPath("lib", "flutter_flow")

INDEX_FILE_NAME = "index.dart"
ACTION_INDEX_PATH = ACTIONS_DIR / INDEX_FILE_NAME
WIDGET_INDEX_PATH = WIDGETS_DIR / INDEX_FILE_NAME

CUSTOM_FUNCTIONS_FILE = "custom_functions.dart"
CUSTOM_FUNCTIONS_PATH = FLUTTER_FLOW_DIR / CUSTOM_FUNCTIONS_FILE
CUSTOM_FUNCTIONS_IDENTIFIER = "CustomFunctions"
FUNCTIONS_SNAPSHOT_PATH = FLUTTER_FLOW_DIR / "custom_functions_snapshot.txt"

PUBSPEC_FILE = "pubspec.yaml"

FILE_MAP_PATH = PurePosixPath(".vscode", "file_map.json")
METADATA_PATH = PurePosixPath(".vscode", "ff_metadata.json")

_CATEGORY_ROOTS = {
    CodeType.ACTION: ACTIONS_DIR,
    CodeType.WIDGET: WIDGETS_DIR,
    CodeType.FUNCTION: FLUTTER_FLOW_DIR,
    CodeType.OTHER: CUSTOM_CODE_DIR,
    CodeType.DEPENDENCIES: PurePosixPath(),
}

PathLike = Union[str, Path]


def _relative_parts(root: Path, path: PathLike) -> Optional[tuple[str, ...]]:
    candidate = Path(path)
    if not candidate.is_absolute():
        candidate = root / candidate
    try:
        return candidate.relative_to(root).parts
    except ValueError:
        return None


def path_to_code_type(root: Path, path: PathLike) -> Optional[CodeType]:
    """Classify a path inside the project.

    Args:
        root: Project root directory
        path: Absolute path, or path relative to the project root

    Returns:
        The category of the file, or None if the path is not tracked
        (outside the custom code roots, an index document, or not Dart)
    """
    parts = _relative_parts(root, path)
    if not parts:
        return None

    if parts == (PUBSPEC_FILE,):
        return CodeType.DEPENDENCIES
    if parts == CUSTOM_FUNCTIONS_PATH.parts:
        return CodeType.FUNCTION
    if parts[: len(CUSTOM_CODE_DIR.parts)] != CUSTOM_CODE_DIR.parts:
        return None
    if not parts[-1].endswith(".dart"):
        return None

    if len(parts) == len(ACTIONS_DIR.parts) + 1:
        if parts[:-1] == ACTIONS_DIR.parts:
            return None if parts[-1] == INDEX_FILE_NAME else CodeType.ACTION
        if parts[:-1] == WIDGETS_DIR.parts:
            return None if parts[-1] == INDEX_FILE_NAME else CodeType.WIDGET
    return CodeType.OTHER


def is_tracked_path(root: Path, path: PathLike) -> bool:
    """Whether changes to ``path`` should be handed to the change detector."""
    return path_to_code_type(root, path) is not None


def file_map_key(root: Path, path: PathLike, code_type: CodeType) -> str:
    """Compute the file map key for a path.

    Files in the catch-all category are keyed by their POSIX path relative
    to ``lib/custom_code`` so equally named files in different directories
    stay apart. Every other category is keyed by the bare filename.
    """
    if code_type == CodeType.OTHER:
        parts = _relative_parts(root, path) or Path(path).parts
        return PurePosixPath(*parts[len(CUSTOM_CODE_DIR.parts) :]).as_posix()
    return Path(path).name


def full_path(root: Path, key: str, code_type: CodeType) -> Path:
    """Resolve a file map entry to its absolute location.

    Examples:
        >>> full_path(Path("/p"), "do_it.dart", CodeType.ACTION).as_posix()
        '/p/lib/custom_code/actions/do_it.dart'
        >>> full_path(Path("/p"), "pubspec.yaml", CodeType.DEPENDENCIES).as_posix()
        '/p/pubspec.yaml'
    """
    return root.joinpath(*_CATEGORY_ROOTS[code_type].parts, *PurePosixPath(key).parts)


def index_path(root: Path, code_type: CodeType) -> Path:
    """Location of the index document for an indexed category."""
    if code_type == CodeType.ACTION:
        return root.joinpath(*ACTION_INDEX_PATH.parts)
    if code_type == CodeType.WIDGET:
        return root.joinpath(*WIDGET_INDEX_PATH.parts)
    raise ValueError(f"Category {code_type.name} has no index document")
