"""
Line diff engine for row tokens.

Compares two sequences of row tokens the way a text diff compares
lines:
- Distinct rows are compressed to integer symbols first
- A Myers shortest-edit-script runs over the symbol sequences
- Runs are expanded back to newline-joined blocks of rows
- Blocks are split again so every entry covers exactly one row
"""

from __future__ import annotations

import logging
from typing import Sequence

from imagediff.core.models import (
    DiffEntry,
    DiffKind,
    DiffStatistics,
    EditScript,
)


ROW_SEPARATOR = '\n'

# A run of consecutive symbols sharing one diff kind
Run = tuple[DiffKind, list[int]]

# A run expanded back to a newline-joined block of row tokens
Block = tuple[DiffKind, str]


class LineDiffEngine:
    """
    Engine for diffing sequences of row tokens.

    Output is deterministic: identical inputs always give an identical
    edit script. Within a change region all deletions come before all
    insertions.
    """

    def diff(self, left_rows: Sequence[str], right_rows: Sequence[str]) -> EditScript:
        """
        Compute the edit script turning left_rows into right_rows.

        Args:
            left_rows: Row tokens of the left/original image
            right_rows: Row tokens of the right/modified image

        Returns:
            One DiffEntry per row, in diff order
        """
        left_symbols, right_symbols, rows = self._rows_to_symbols(left_rows, right_rows)

        runs = self._diff_symbols(left_symbols, right_symbols)
        runs = self._merge_runs(runs)

        blocks = self._symbols_to_rows(runs, rows)
        script = self.normalize(blocks)

        logging.debug(
            f"LineDiffEngine - {len(left_rows)} vs {len(right_rows)} rows, "
            f"{len(rows)} distinct, {len(runs)} runs, {len(script)} entries"
        )
        return script

    def normalize(self, blocks: Sequence[Block]) -> EditScript:
        """
        Split coalesced blocks into one entry per row.

        Each block holds one or more row tokens joined by newlines.
        Tokens never contain a newline, so splitting is lossless.
        """
        script: EditScript = []
        for kind, text in blocks:
            for token in text.split(ROW_SEPARATOR):
                script.append(DiffEntry(kind=kind, token=token))
        return script

    def statistics(
        self,
        script: Sequence[DiffEntry],
        total_left: int,
        total_right: int
    ) -> DiffStatistics:
        """Calculate diff statistics from an edit script."""
        stats = DiffStatistics(
            total_rows_left=total_left,
            total_rows_right=total_right
        )

        for entry in script:
            if entry.kind == DiffKind.EQUAL:
                stats.unchanged_rows += 1
            elif entry.kind == DiffKind.INSERT:
                stats.added_rows += 1
            elif entry.kind == DiffKind.DELETE:
                stats.removed_rows += 1

        return stats

    def _rows_to_symbols(
        self,
        left_rows: Sequence[str],
        right_rows: Sequence[str]
    ) -> tuple[list[int], list[int], list[str]]:
        """
        Map every distinct row to a small integer.

        Returns the two symbol sequences and the table mapping a symbol
        back to its row token. Diff cost then depends on the number of
        distinct rows rather than on token length.
        """
        rows: list[str] = []
        row_index: dict[str, int] = {}

        def to_symbols(tokens: Sequence[str]) -> list[int]:
            symbols = []
            for token in tokens:
                if ROW_SEPARATOR in token:
                    raise ValueError("Row tokens must not contain a newline")
                symbol = row_index.get(token)
                if symbol is None:
                    symbol = len(rows)
                    row_index[token] = symbol
                    rows.append(token)
                symbols.append(symbol)
            return symbols

        return to_symbols(left_rows), to_symbols(right_rows), rows

    def _symbols_to_rows(self, runs: Sequence[Run], rows: Sequence[str]) -> list[Block]:
        """Expand symbol runs back into newline-joined row blocks."""
        return [
            (kind, ROW_SEPARATOR.join(rows[symbol] for symbol in symbols))
            for kind, symbols in runs
        ]

    def _diff_symbols(self, left: list[int], right: list[int]) -> list[Run]:
        """Diff two symbol sequences, trimming the common prefix and suffix first."""
        if left == right:
            return [(DiffKind.EQUAL, left)] if left else []

        prefix = self._common_prefix(left, right)
        left_rest, right_rest = left[prefix:], right[prefix:]

        suffix = self._common_suffix(left_rest, right_rest)
        if suffix:
            middle = self._compute(left_rest[:-suffix], right_rest[:-suffix])
        else:
            middle = self._compute(left_rest, right_rest)

        runs: list[Run] = []
        if prefix:
            runs.append((DiffKind.EQUAL, left[:prefix]))
        runs.extend(middle)
        if suffix:
            runs.append((DiffKind.EQUAL, left_rest[-suffix:]))
        return runs

    def _compute(self, left: list[int], right: list[int]) -> list[Run]:
        """Diff two sequences that share no common prefix or suffix."""
        if not left:
            return [(DiffKind.INSERT, right)]
        if not right:
            return [(DiffKind.DELETE, left)]
        return self._bisect(left, right)

    def _bisect(self, left: list[int], right: list[int]) -> list[Run]:
        """
        Find the middle snake of the Myers edit graph and recurse.

        Walks forward from the top-left and backward from the
        bottom-right at once; where the two paths overlap the problem
        splits in two. Runs in linear space.
        """
        left_len = len(left)
        right_len = len(right)
        max_d = (left_len + right_len + 1) // 2
        v_offset = max_d
        v_length = 2 * max_d + 2
        v1 = [-1] * v_length
        v2 = [-1] * v_length
        v1[v_offset + 1] = 0
        v2[v_offset + 1] = 0

        delta = left_len - right_len
        # Odd delta: the forward path meets the reverse one
        front = delta % 2 != 0

        # Trim k ranges once a path runs off the edit graph
        k1_start = k1_end = 0
        k2_start = k2_end = 0

        for d in range(max_d):
            # Forward path
            for k1 in range(-d + k1_start, d + 1 - k1_end, 2):
                k1_offset = v_offset + k1
                if k1 == -d or (k1 != d and v1[k1_offset - 1] < v1[k1_offset + 1]):
                    x1 = v1[k1_offset + 1]
                else:
                    x1 = v1[k1_offset - 1] + 1
                y1 = x1 - k1
                while x1 < left_len and y1 < right_len and left[x1] == right[y1]:
                    x1 += 1
                    y1 += 1
                v1[k1_offset] = x1

                if x1 > left_len:
                    k1_end += 2
                elif y1 > right_len:
                    k1_start += 2
                elif front:
                    k2_offset = v_offset + delta - k1
                    if 0 <= k2_offset < v_length and v2[k2_offset] != -1:
                        x2 = left_len - v2[k2_offset]
                        if x1 >= x2:
                            return self._bisect_split(left, right, x1, y1)

            # Reverse path
            for k2 in range(-d + k2_start, d + 1 - k2_end, 2):
                k2_offset = v_offset + k2
                if k2 == -d or (k2 != d and v2[k2_offset - 1] < v2[k2_offset + 1]):
                    x2 = v2[k2_offset + 1]
                else:
                    x2 = v2[k2_offset - 1] + 1
                y2 = x2 - k2
                while (x2 < left_len and y2 < right_len and
                       left[left_len - x2 - 1] == right[right_len - y2 - 1]):
                    x2 += 1
                    y2 += 1
                v2[k2_offset] = x2

                if x2 > left_len:
                    k2_end += 2
                elif y2 > right_len:
                    k2_start += 2
                elif not front:
                    k1_offset = v_offset + delta - k2
                    if 0 <= k1_offset < v_length and v1[k1_offset] != -1:
                        x1 = v1[k1_offset]
                        y1 = v_offset + x1 - k1_offset
                        if x1 >= left_len - x2:
                            return self._bisect_split(left, right, x1, y1)

        # No common symbols at all
        return [(DiffKind.DELETE, left), (DiffKind.INSERT, right)]

    def _bisect_split(self, left: list[int], right: list[int], x: int, y: int) -> list[Run]:
        """Diff both halves around a split point and join the results."""
        return (
            self._diff_symbols(left[:x], right[:y]) +
            self._diff_symbols(left[x:], right[y:])
        )

    def _merge_runs(self, runs: Sequence[Run]) -> list[Run]:
        """
        Coalesce adjacent runs.

        Consecutive equal runs are joined and every change region
        between two equal runs becomes one DELETE run followed by one
        INSERT run. Empty runs are dropped.
        """
        merged: list[Run] = []
        deleted: list[int] = []
        inserted: list[int] = []

        def flush_changes() -> None:
            if deleted:
                merged.append((DiffKind.DELETE, list(deleted)))
                deleted.clear()
            if inserted:
                merged.append((DiffKind.INSERT, list(inserted)))
                inserted.clear()

        for kind, symbols in runs:
            if not symbols:
                continue
            if kind == DiffKind.DELETE:
                deleted.extend(symbols)
            elif kind == DiffKind.INSERT:
                inserted.extend(symbols)
            else:
                flush_changes()
                if merged and merged[-1][0] == DiffKind.EQUAL:
                    merged[-1] = (DiffKind.EQUAL, merged[-1][1] + list(symbols))
                else:
                    merged.append((DiffKind.EQUAL, list(symbols)))

        flush_changes()
        return merged

    @staticmethod
    def _common_prefix(left: Sequence[int], right: Sequence[int]) -> int:
        """Length of the common prefix of two sequences."""
        limit = min(len(left), len(right))
        i = 0
        while i < limit and left[i] == right[i]:
            i += 1
        return i

    @staticmethod
    def _common_suffix(left: Sequence[int], right: Sequence[int]) -> int:
        """Length of the common suffix of two sequences."""
        limit = min(len(left), len(right))
        i = 0
        while i < limit and left[-1 - i] == right[-1 - i]:
            i += 1
        return i


def diff_rows(left_rows: Sequence[str], right_rows: Sequence[str]) -> EditScript:
    """Diff two token sequences with a default engine."""
    return LineDiffEngine().diff(left_rows, right_rows)
