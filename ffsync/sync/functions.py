"""Change detection for the shared custom functions document.

All custom functions live in one file, so a per-file checksum cannot tell
which function was added, removed or renamed. Instead the content at the
last confirmed sync is compared with the live content, and functions that
disappeared are paired with new ones by body similarity.
"""

import difflib
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ..dart import parse_top_level_functions

logger = logging.getLogger(__name__)

# Below this ratio two bodies are treated as unrelated
MIN_FUNCTION_SIMILARITY: float = 0.5

SimilarityFunction = Callable[[str, str], Optional[float]]


@dataclass(frozen=True)
class RenamedFunction:
    """A function inferred to have been renamed."""

    old_function_name: str
    new_function_name: str
    renamed_by_symbol: bool = False
    """True when the rename came from an explicit symbol rename"""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "old_function_name": self.old_function_name,
            "new_function_name": self.new_function_name,
            "renamed_by_symbol": self.renamed_by_symbol,
        }


@dataclass
class FunctionChange:
    """Functions renamed, deleted and added since the last sync."""

    functions_to_rename: list[RenamedFunction] = field(default_factory=list)
    functions_to_delete: list[str] = field(default_factory=list)
    functions_to_add: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Whether no function changed."""
        return not (
            self.functions_to_rename or self.functions_to_delete or self.functions_to_add
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "functions_to_rename": [r.to_dict() for r in self.functions_to_rename],
            "functions_to_delete": list(self.functions_to_delete),
            "functions_to_add": list(self.functions_to_add),
        }

    def to_json(self) -> str:
        """Encode as the ``functions_map`` request field."""
        return json.dumps(self.to_dict())


def _normalize(body: str) -> str:
    return " ".join(body.split())


def function_similarity(a: str, b: str) -> Optional[float]:
    """Score how alike two function bodies are.

    The score is symmetric and deterministic.

    Returns:
        Ratio between 0 and 1, or None if either body is empty or the
        bodies are too different to be compared
    """
    left = _normalize(a)
    right = _normalize(b)
    if not left or not right:
        return None
    # SequenceMatcher is not symmetric, so score in a fixed order
    first, second = sorted((left, right))
    ratio = difflib.SequenceMatcher(None, first, second, autojunk=False).ratio()
    if ratio < MIN_FUNCTION_SIMILARITY:
        return None
    return ratio


def _parse(code: str) -> dict[str, str]:
    # Duplicate names are not supported, the last definition wins
    return {f.name: f.body for f in parse_top_level_functions(code)}


def diff_functions(
    baseline_code: str,
    current_code: str,
    similarity: SimilarityFunction = function_similarity,
) -> FunctionChange:
    """Compare two versions of the custom functions document.

    Functions missing from ``current_code`` are processed in baseline
    order. Each is paired with the remaining added function it scores
    highest against (first one wins on ties), and that candidate is taken
    out of the pool. This greedy pairing is order dependent and not a
    global optimum; the remote side relies on this exact order.

    Args:
        baseline_code: Content as of the last confirmed sync
        current_code: Live content
        similarity: Scoring function for two bodies

    Returns:
        FunctionChange with renames, deletions and additions
    """
    baseline = _parse(baseline_code)
    current = _parse(current_code)

    deleted = [name for name in baseline if name not in current]
    added = [name for name in current if name not in baseline]

    change = FunctionChange()
    for old_name in deleted:
        best_index: Optional[int] = None
        best_score: Optional[float] = None
        for index, new_name in enumerate(added):
            score = similarity(current[new_name], baseline[old_name])
            if score is not None and (best_score is None or score > best_score):
                best_score = score
                best_index = index
        if best_index is None:
            change.functions_to_delete.append(old_name)
            continue
        new_name = added.pop(best_index)
        logger.debug(f"Function {old_name} renamed to {new_name} ({best_score:.2f})")
        change.functions_to_rename.append(
            RenamedFunction(old_function_name=old_name, new_function_name=new_name)
        )

    change.functions_to_add = added
    return change
