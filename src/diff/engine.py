"""Clause-level diff that highlights what a revision adds.

Both texts are split into units (newline markers and clauses ending at
a sentence terminator) and aligned with a longest-common-subsequence
table.  Every unit of the revised text comes out as ``kept`` or
``added``; text present only in the original is dropped, because the
result is always rendered as the revised text.
"""

from __future__ import annotations

import logging
import re
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

DEFAULT_MAX_CELLS = 4_000_000

_TERMINATORS = ".!?。！？．"
_UNIT_RE = re.compile(
    rf"\n|[^\n{re.escape(_TERMINATORS)}]*[{re.escape(_TERMINATORS)}]+|[^\n{re.escape(_TERMINATORS)}]+"
)


class SegmentKind(StrEnum):
    KEPT = "kept"
    ADDED = "added"


class DiffSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    kind: SegmentKind


class DiffTooLargeError(ValueError):
    """Raised when the alignment table would exceed the cell limit."""


def segment_units(text: str) -> list[str]:
    """Split *text* into newline markers and terminator-ended clauses.

    Joining the returned units reproduces *text* exactly.
    """
    return _UNIT_RE.findall(text)


def _key(unit: str) -> str:
    return unit if unit == "\n" else unit.strip()


def _coalesce(units: list[str], kinds: list[SegmentKind]) -> list[DiffSegment]:
    segments: list[DiffSegment] = []
    buffer: list[str] = []
    current: SegmentKind | None = None
    for unit, kind in zip(units, kinds, strict=True):
        if kind != current and buffer:
            segments.append(DiffSegment(text="".join(buffer), kind=current))
            buffer = []
        current = kind
        buffer.append(unit)
    if buffer:
        segments.append(DiffSegment(text="".join(buffer), kind=current))
    return segments


def _align_middle(old: list[str], new: list[str]) -> list[SegmentKind]:
    """Mark each unit of *new* as kept or added against *old*.

    ``table[i][j]`` holds the LCS length of ``old[i:]`` and ``new[j:]``,
    which lets the backtrack walk both sequences front to back.
    """
    n, m = len(old), len(new)
    table = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        row, below = table[i], table[i + 1]
        for j in range(m - 1, -1, -1):
            if old[i] == new[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = max(below[j], row[j + 1])

    kinds: list[SegmentKind] = []
    i = j = 0
    while j < m:
        if i < n and old[i] == new[j]:
            kinds.append(SegmentKind.KEPT)
            i += 1
            j += 1
        elif i < n and table[i + 1][j] >= table[i][j + 1]:
            i += 1
        else:
            kinds.append(SegmentKind.ADDED)
            j += 1
    return kinds


def diff(original: str, modified: str, *, max_cells: int = DEFAULT_MAX_CELLS) -> list[DiffSegment]:
    """Segments of *modified*, each marked as carried over or added.

    Raises:
        DiffTooLargeError: If the differing middle of the two texts would
            need more than *max_cells* table cells.
    """
    new_units = segment_units(modified)
    if not new_units:
        return []
    old_keys = [_key(u) for u in segment_units(original)]
    new_keys = [_key(u) for u in new_units]

    start = 0
    while start < len(old_keys) and start < len(new_keys) and old_keys[start] == new_keys[start]:
        start += 1
    end_old, end_new = len(old_keys), len(new_keys)
    while end_old > start and end_new > start and old_keys[end_old - 1] == new_keys[end_new - 1]:
        end_old -= 1
        end_new -= 1

    cells = (end_old - start + 1) * (end_new - start + 1)
    if cells > max_cells:
        raise DiffTooLargeError(f"Diff needs {cells} cells, limit is {max_cells}")
    logger.debug("Aligning %d x %d units", end_old - start, end_new - start)

    kinds = (
        [SegmentKind.KEPT] * start
        + _align_middle(old_keys[start:end_old], new_keys[start:end_new])
        + [SegmentKind.KEPT] * (len(new_keys) - end_new)
    )
    return _coalesce(new_units, kinds)
