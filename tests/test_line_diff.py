"""
Unit tests for the line diff engine.

Tests cover:
- Edit scripts for common edits (append, delete, replace)
- Ordering of deletions and insertions
- Block normalization into one entry per row
- Determinism, order preservation and minimality
- Statistics
"""

import random

import pytest

from imagediff.core.diff.line_diff import LineDiffEngine, diff_rows
from imagediff.core.models import DiffEntry, DiffKind


EQUAL = DiffKind.EQUAL
INSERT = DiffKind.INSERT
DELETE = DiffKind.DELETE


@pytest.fixture
def engine():
    return LineDiffEngine()


def as_pairs(script):
    return [(entry.kind, entry.token) for entry in script]


def lcs_length(left, right):
    """Reference longest common subsequence length."""
    table = [[0] * (len(right) + 1) for _ in range(len(left) + 1)]
    for i in range(len(left) - 1, -1, -1):
        for j in range(len(right) - 1, -1, -1):
            if left[i] == right[j]:
                table[i][j] = table[i + 1][j + 1] + 1
            else:
                table[i][j] = max(table[i + 1][j], table[i][j + 1])
    return table[0][0]


class TestBasicEdits:
    """Tests for edit scripts of simple edits."""

    def test_identical(self, engine):
        """Identical sequences should give all EQUAL entries."""
        rows = ["a", "b", "c"]

        script = engine.diff(rows, list(rows))

        assert as_pairs(script) == [(EQUAL, "a"), (EQUAL, "b"), (EQUAL, "c")]

    def test_both_empty(self, engine):
        assert engine.diff([], []) == []

    def test_left_empty(self, engine):
        """Everything should be inserted, in order."""
        assert as_pairs(engine.diff([], ["x", "y"])) == [(INSERT, "x"), (INSERT, "y")]

    def test_right_empty(self, engine):
        """Everything should be deleted, in order."""
        assert as_pairs(engine.diff(["x", "y"], [])) == [(DELETE, "x"), (DELETE, "y")]

    def test_pure_append(self, engine):
        """An appended row should be the single trailing INSERT."""
        script = engine.diff(["a", "b", "c"], ["a", "b", "c", "d"])

        assert as_pairs(script) == [
            (EQUAL, "a"), (EQUAL, "b"), (EQUAL, "c"), (INSERT, "d"),
        ]

    def test_pure_deletion(self, engine):
        """A removed last row should be the single trailing DELETE."""
        script = engine.diff(["a", "b", "c"], ["a", "b"])

        assert as_pairs(script) == [(EQUAL, "a"), (EQUAL, "b"), (DELETE, "c")]

    def test_insert_in_middle(self, engine):
        script = engine.diff(["a", "c"], ["a", "b", "c"])

        assert as_pairs(script) == [(EQUAL, "a"), (INSERT, "b"), (EQUAL, "c")]

    def test_replace_single_row(self, engine):
        """A changed row should be a DELETE followed by an INSERT."""
        script = engine.diff(["a", "b", "c"], ["a", "x", "c"])

        assert as_pairs(script) == [
            (EQUAL, "a"), (DELETE, "b"), (INSERT, "x"), (EQUAL, "c"),
        ]

    def test_deletes_precede_inserts(self, engine):
        """Within a change region all deletions should come first."""
        script = engine.diff(["a", "b", "c", "d"], ["a", "x", "y", "d"])

        assert as_pairs(script) == [
            (EQUAL, "a"),
            (DELETE, "b"), (DELETE, "c"),
            (INSERT, "x"), (INSERT, "y"),
            (EQUAL, "d"),
        ]

    def test_nothing_in_common(self, engine):
        script = engine.diff(["a", "b"], ["c", "d", "e"])

        assert as_pairs(script) == [
            (DELETE, "a"), (DELETE, "b"),
            (INSERT, "c"), (INSERT, "d"), (INSERT, "e"),
        ]

    def test_repeated_rows(self, engine):
        """Duplicate rows should be matched one to one."""
        script = engine.diff(["a", "a", "a"], ["a", "a"])

        assert as_pairs(script) == [(EQUAL, "a"), (EQUAL, "a"), (DELETE, "a")]

    def test_empty_tokens(self, engine):
        """Zero-width rows encode to empty tokens and are still rows."""
        script = engine.diff(["", ""], ["", "", ""])

        assert as_pairs(script) == [(EQUAL, ""), (EQUAL, ""), (INSERT, "")]

    def test_rejects_newline_in_token(self, engine):
        with pytest.raises(ValueError):
            engine.diff(["a\nb"], ["a"])

    def test_module_helper(self):
        assert as_pairs(diff_rows(["a"], ["b"])) == [(DELETE, "a"), (INSERT, "b")]


class TestNormalize:
    """Tests for splitting coalesced blocks into rows."""

    def test_splits_multi_row_blocks(self, engine):
        script = engine.normalize([(EQUAL, "a\nb"), (INSERT, "c"), (DELETE, "d\ne\nf")])

        assert as_pairs(script) == [
            (EQUAL, "a"), (EQUAL, "b"),
            (INSERT, "c"),
            (DELETE, "d"), (DELETE, "e"), (DELETE, "f"),
        ]

    def test_single_row_block(self, engine):
        assert engine.normalize([(EQUAL, "a")]) == [DiffEntry(EQUAL, "a")]

    def test_blank_rows_survive(self, engine):
        """A block of two empty tokens is a single newline."""
        assert as_pairs(engine.normalize([(DELETE, "\n")])) == [(DELETE, ""), (DELETE, "")]


class TestScriptProperties:
    """Property checks over random row sequences."""

    @pytest.mark.parametrize("seed", range(25))
    def test_properties(self, engine, seed):
        rng = random.Random(seed)
        alphabet = "abcd"
        left = [rng.choice(alphabet) for _ in range(rng.randint(0, 30))]
        right = [rng.choice(alphabet) for _ in range(rng.randint(0, 30))]

        script = engine.diff(left, right)

        # Each side can be rebuilt in order
        assert [e.token for e in script if e.kind != INSERT] == left
        assert [e.token for e in script if e.kind != DELETE] == right

        # Length bounds
        assert max(len(left), len(right)) <= len(script) <= len(left) + len(right)

        # Shortest edit script
        changes = sum(1 for e in script if e.kind != EQUAL)
        assert changes == len(left) + len(right) - 2 * lcs_length(left, right)

    def test_deterministic(self, engine):
        rng = random.Random(42)
        left = [rng.choice("xyz") for _ in range(200)]
        right = [rng.choice("xyz") for _ in range(180)]

        assert engine.diff(left, right) == LineDiffEngine().diff(left, right)

    def test_long_distinct_sequences(self, engine):
        """Large inputs should diff without deep recursion."""
        left = [f"row{i}" for i in range(2000)]
        right = [f"row{i}" for i in range(0, 2000, 2)] + ["new"]

        script = engine.diff(left, right)

        assert sum(1 for e in script if e.kind == DELETE) == 1000
        assert sum(1 for e in script if e.kind == INSERT) == 1


class TestStatistics:
    """Tests for edit script statistics."""

    def test_counts(self, engine):
        script = engine.diff(["a", "b", "c"], ["a", "x", "c", "d"])

        stats = engine.statistics(script, 3, 4)

        assert stats.unchanged_rows == 2
        assert stats.removed_rows == 1
        assert stats.added_rows == 2
        assert stats.total_changes == 3
        assert stats.similarity_ratio == pytest.approx(0.5)

    def test_empty_is_fully_similar(self, engine):
        assert engine.statistics([], 0, 0).similarity_ratio == 1.0
