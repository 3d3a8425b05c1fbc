"""Render diff segments as HTML or rich text."""

from __future__ import annotations

import html
from collections.abc import Iterable

from rich.text import Text

from contentops.diff.engine import DiffSegment, SegmentKind

ADDED_STYLE = "bold green"


def render_html(segments: Iterable[DiffSegment]) -> str:
    """Escaped HTML with added text in ``<mark>`` and newlines as ``<br>``."""
    parts: list[str] = []
    for segment in segments:
        escaped = html.escape(segment.text).replace("\n", "<br>")
        if segment.kind == SegmentKind.ADDED:
            escaped = f"<mark>{escaped}</mark>"
        parts.append(escaped)
    return "".join(parts)


def render_rich(segments: Iterable[DiffSegment], *, added_style: str = ADDED_STYLE) -> Text:
    text = Text()
    for segment in segments:
        text.append(segment.text, style=added_style if segment.kind == SegmentKind.ADDED else "")
    return text
