"""Clause-level comparison of an original text and its revision."""

from contentops.diff.engine import (
    DiffSegment,
    DiffTooLargeError,
    SegmentKind,
    diff,
    segment_units,
)
from contentops.diff.render import render_html, render_rich

__all__ = [
    "DiffSegment",
    "DiffTooLargeError",
    "SegmentKind",
    "diff",
    "render_html",
    "render_rich",
    "segment_units",
]
