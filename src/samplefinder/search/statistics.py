"""Typed view over the per-row statistics blob emitted by a full-text match.

The layout is SQLite FTS4 ``matchinfo(table, 'pcnalx')``: a flat run of
little-endian unsigned 32-bit integers::

    [0]              p  number of matchable phrases in the query
    [1]              c  number of user-defined columns
    [2]              n  number of rows in the table
    [3 .. 3+c)       a  average tokens per column across all rows
    [3+c .. 3+2c)    l  tokens per column in the current row
    [3+2c .. end)    x  3 ints per (column, phrase): hits in this row,
                        hits in all rows, rows with at least one hit
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterable, Tuple

from samplefinder.exceptions import MalformedStatistics

_HEADER = 3
_TRIPLET = 3
_UINT32_MAX = 2**32 - 1


def expected_length(term_count: int, column_count: int) -> int:
    """Number of integers a blob with the given shape must contain."""
    return _HEADER + 2 * column_count + _TRIPLET * column_count * term_count


@dataclass(frozen=True, slots=True)
class MatchStatistics:
    values: Tuple[int, ...]

    def __post_init__(self) -> None:
        if len(self.values) < _HEADER:
            raise MalformedStatistics(
                f"statistics blob holds {len(self.values)} integers, header needs {_HEADER}"
            )
        for index, value in enumerate(self.values):
            if not 0 <= value <= _UINT32_MAX:
                raise MalformedStatistics(
                    f"statistics value {value} at index {index} is not an unsigned 32-bit integer"
                )
        p, c = self.values[0], self.values[1]
        need = expected_length(p, c)
        if len(self.values) != need:
            raise MalformedStatistics(
                f"statistics blob holds {len(self.values)} integers, "
                f"expected {need} for {p} phrase(s) over {c} column(s)"
            )

    @classmethod
    def from_bytes(cls, blob: bytes) -> "MatchStatistics":
        """Decode a little-endian uint32 blob."""
        if len(blob) % 4:
            raise MalformedStatistics(f"statistics blob length {len(blob)} is not a multiple of 4")
        count = len(blob) // 4
        return cls(struct.unpack(f"<{count}I", blob))

    @classmethod
    def from_ints(cls, values: Iterable[int]) -> "MatchStatistics":
        return cls(tuple(int(v) for v in values))

    def to_bytes(self) -> bytes:
        return struct.pack(f"<{len(self.values)}I", *self.values)

    @property
    def term_count(self) -> int:
        return self.values[0]

    @property
    def column_count(self) -> int:
        return self.values[1]

    @property
    def total_docs(self) -> int:
        return self.values[2]

    def _check_column(self, column: int) -> None:
        if not 0 <= column < self.column_count:
            raise IndexError(f"column {column} out of range for {self.column_count} column(s)")

    def _check_phrase(self, phrase: int) -> None:
        if not 0 <= phrase < self.term_count:
            raise IndexError(f"phrase {phrase} out of range for {self.term_count} phrase(s)")

    def avg_length(self, column: int) -> int:
        self._check_column(column)
        return self.values[_HEADER + column]

    def row_length(self, column: int) -> int:
        self._check_column(column)
        return self.values[_HEADER + self.column_count + column]

    def _triplet_offset(self, column: int, phrase: int) -> int:
        self._check_column(column)
        self._check_phrase(phrase)
        base = _HEADER + 2 * self.column_count
        return base + _TRIPLET * (column + phrase * self.column_count)

    def hits(self, column: int, phrase: int) -> int:
        """Occurrences of ``phrase`` in ``column`` of the current row."""
        return self.values[self._triplet_offset(column, phrase)]

    def docs_with_term(self, column: int, phrase: int) -> int:
        """Rows whose ``column`` contains ``phrase`` at least once."""
        return self.values[self._triplet_offset(column, phrase) + 2]
