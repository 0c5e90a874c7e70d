"""Index documents listing the symbol each custom code file exports.

Each of the actions and widgets directories holds an ``index.dart`` made of
statements like::

    export 'my_action.dart' show myAction;

Only the first shown name is used for rename detection. Any further names
are carried through unchanged.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from ..dart import format_dart_code, mask_comments_and_strings
from ..exceptions import FFSyncIndexError
from ..layout import index_path
from ..models import CodeType

logger = logging.getLogger(__name__)

IndexDocument = dict[str, list[str]]

EMPTY_INDEX_PLACEHOLDER = "// No exports"

_IDENT = r"[A-Za-z_$][A-Za-z0-9_$]*"
_EXPORT_RE = re.compile(
    r"export\s+(['\"])(.+?)\1"
    r"((?:\s+(?:show|hide)\s+" + _IDENT + r"(?:\s*,\s*" + _IDENT + r")*)*)\s*;",
    re.DOTALL,
)
_SHOW_RE = re.compile(r"show\s+(" + _IDENT + r"(?:\s*,\s*" + _IDENT + r")*)")


def parse_index_file(content: Optional[str]) -> IndexDocument:
    """Parse an index document.

    Args:
        content: Text of the document. None or blank text yields an
            empty mapping.

    Returns:
        Mapping of filename to the ordered list of shown symbols

    Raises:
        FFSyncIndexError: If the document contains anything other than
            export statements and comments
    """
    if not content or not content.strip():
        return {}

    stripped = mask_comments_and_strings(content, mask_strings=False)
    leftover = _EXPORT_RE.sub("", stripped)
    if leftover.strip():
        raise FFSyncIndexError(
            f"Malformed index document near: {leftover.strip()[:60]!r}",
            raw_text=content,
        )

    index: IndexDocument = {}
    for match in _EXPORT_RE.finditer(stripped):
        filename = match.group(2)
        shown: list[str] = []
        for names in _SHOW_RE.findall(match.group(3)):
            shown.extend(n.strip() for n in names.split(","))
        if filename in index:
            logger.debug(f"Duplicate export of {filename} in index, last one wins")
        index[filename] = shown
    return index


def render_index_file(index: IndexDocument) -> str:
    """Render an index document.

    Emits one export statement per entry and lays the result out with
    :func:`ffsync.dart.format_dart_code`. An empty mapping renders as a
    placeholder comment.
    """
    statements = []
    for filename, names in index.items():
        statement = f"export '{filename}'"
        if names:
            statement += f" show {', '.join(names)}"
        statements.append(statement + ";")
    formatted = format_dart_code("\n".join(statements))
    return formatted or f"{EMPTY_INDEX_PLACEHOLDER}\n"


class IndexStore:
    """Holds the action and widget index documents of a project."""

    def __init__(
        self,
        root: Path,
        action_index: Optional[IndexDocument] = None,
        widget_index: Optional[IndexDocument] = None,
    ):
        """Initialize index store.

        Args:
            root: Project root directory
            action_index: Parsed actions index
            widget_index: Parsed widgets index
        """
        self.root = root
        self._indexes: dict[CodeType, IndexDocument] = {
            CodeType.ACTION: dict(action_index or {}),
            CodeType.WIDGET: dict(widget_index or {}),
        }

    @classmethod
    def load(cls, root: Path) -> "IndexStore":
        """Read both index documents from disk.

        Missing documents are treated as empty.

        Raises:
            FFSyncIndexError: If a document exists but is malformed
        """
        store = cls(root)
        store.reload()
        return store

    def reload(self) -> None:
        """Re-read both index documents from disk."""
        for code_type in self._indexes:
            self._indexes[code_type] = self._read(code_type)

    def _read(self, code_type: CodeType) -> IndexDocument:
        path = index_path(self.root, code_type)
        if not path.exists():
            logger.debug(f"No index document at {path}")
            return {}
        return parse_index_file(path.read_text(encoding="utf-8"))

    def document(self, code_type: CodeType) -> IndexDocument:
        """Return a copy of the index of a category."""
        return {k: list(v) for k, v in self._index(code_type).items()}

    def exports(self, code_type: CodeType, filename: str) -> list[str]:
        """Shown symbols recorded for a file, empty if none."""
        return list(self._index(code_type).get(filename, []))

    def set_exports(self, code_type: CodeType, filename: str, names: list[str]) -> None:
        """Record the shown symbols of a file and rewrite the document."""
        self._index(code_type)[filename] = list(names)
        self.save(code_type)

    def remove(self, code_type: CodeType, filename: str) -> bool:
        """Drop a file from the index and rewrite the document.

        Returns:
            True if the file was listed
        """
        index = self._index(code_type)
        if filename not in index:
            return False
        del index[filename]
        self.save(code_type)
        return True

    def save(self, code_type: CodeType, root: Optional[Path] = None) -> None:
        """Write the index document of a category.

        Args:
            code_type: ACTION or WIDGET
            root: Project root to write under (defaults to own root)
        """
        path = index_path(root or self.root, code_type)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_index_file(self._index(code_type)), encoding="utf-8")
        logger.debug(f"Wrote {len(self._index(code_type))} export(s) to {path}")

    def _index(self, code_type: CodeType) -> IndexDocument:
        try:
            return self._indexes[code_type]
        except KeyError:
            raise ValueError(f"Category {code_type.name} has no index document") from None
