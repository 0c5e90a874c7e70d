"""Unit tests for custom function diffing."""

import json
import re

from ffsync.sync.functions import (
    MIN_FUNCTION_SIMILARITY,
    FunctionChange,
    RenamedFunction,
    diff_functions,
    function_similarity,
)

TWICE = "int twice(int x) {\n  return x * 2;\n}\n"

SPLIT_WORDS = """List<String> splitWords(String sentence) {
  final parts = sentence.split(' ');
  parts.removeWhere((p) => p.isEmpty);
  return parts;
}
"""


class TestFunctionSimilarity:
    """Tests for function_similarity."""

    def test_identical(self):
        assert function_similarity("int (int x) => x;", "int (int x) => x;") == 1.0

    def test_whitespace_insensitive(self):
        assert function_similarity("int () {\n  return 1;\n}", "int () { return 1; }") == 1.0

    def test_symmetric(self):
        a = "int (int x) { return x * 2; }"
        b = "int (int y) { return y * 2 + 1; }"
        assert function_similarity(a, b) == function_similarity(b, a)
        assert function_similarity(a, b) >= MIN_FUNCTION_SIMILARITY

    def test_empty_is_incomparable(self):
        assert function_similarity("", "int () => 1;") is None
        assert function_similarity("int () => 1;", "   ") is None

    def test_unrelated_is_incomparable(self):
        score = function_similarity("int (int x) => x * 2;", SPLIT_WORDS)
        assert score is None


class TestDiffFunctions:
    """Tests for diff_functions."""

    def test_no_changes(self):
        assert diff_functions(TWICE, TWICE).is_empty

    def test_idempotent_on_current_state(self):
        current = TWICE + SPLIT_WORDS
        assert diff_functions(current, current) == FunctionChange()

    def test_pure_rename(self):
        change = diff_functions(TWICE, TWICE.replace("twice", "doubled"))
        assert change.functions_to_rename == [RenamedFunction("twice", "doubled")]
        assert change.functions_to_delete == []
        assert change.functions_to_add == []

    def test_add(self):
        change = diff_functions(TWICE, TWICE + SPLIT_WORDS)
        assert change.functions_to_add == ["splitWords"]
        assert change.functions_to_rename == []

    def test_delete(self):
        change = diff_functions(TWICE + SPLIT_WORDS, SPLIT_WORDS)
        assert change.functions_to_delete == ["twice"]

    def test_unrelated_replacement_is_delete_and_add(self):
        change = diff_functions(TWICE, SPLIT_WORDS)
        assert change.functions_to_rename == []
        assert change.functions_to_delete == ["twice"]
        assert change.functions_to_add == ["splitWords"]

    def test_empty_documents(self):
        assert diff_functions("", "").is_empty
        assert diff_functions("", TWICE).functions_to_add == ["twice"]

    def test_greedy_pairing_in_baseline_order(self):
        """Test that each deleted function takes its best remaining candidate."""
        baseline = "int a() { return 1; }\nint b() { return 2; }\n"
        current = "int a2() { return 3; }\nint b2() { return 4; }\n"
        scores = {
            ("3", "1"): 0.9,
            ("4", "1"): 0.95,
            ("3", "2"): 0.8,
            ("4", "2"): 0.99,
        }

        def similarity(new_body, old_body):
            key = (
                re.search(r"return (\d)", new_body).group(1),
                re.search(r"return (\d)", old_body).group(1),
            )
            return scores[key]

        change = diff_functions(baseline, current, similarity=similarity)
        # a claims b2 first, so b is left with a2 despite its better score
        assert change.functions_to_rename == [
            RenamedFunction("a", "b2"),
            RenamedFunction("b", "a2"),
        ]
        assert change.functions_to_delete == []
        assert change.functions_to_add == []

    def test_first_candidate_wins_ties(self):
        baseline = "int a() { return 1; }\n"
        current = "int x() { return 2; }\nint y() { return 3; }\n"
        change = diff_functions(baseline, current, similarity=lambda n, o: 0.7)
        assert change.functions_to_rename == [RenamedFunction("a", "x")]
        assert change.functions_to_add == ["y"]

    def test_incomparable_candidates_skipped(self):
        baseline = "int a() { return 1; }\n"
        current = "int x() { return 2; }\n"
        change = diff_functions(baseline, current, similarity=lambda n, o: None)
        assert change.functions_to_delete == ["a"]
        assert change.functions_to_add == ["x"]


class TestFunctionChange:
    """Tests for FunctionChange serialization."""

    def test_to_json(self):
        change = FunctionChange(
            functions_to_rename=[RenamedFunction("a", "b")],
            functions_to_delete=["c"],
            functions_to_add=["d"],
        )
        assert json.loads(change.to_json()) == {
            "functions_to_rename": [
                {
                    "old_function_name": "a",
                    "new_function_name": "b",
                    "renamed_by_symbol": False,
                }
            ],
            "functions_to_delete": ["c"],
            "functions_to_add": ["d"],
        }
