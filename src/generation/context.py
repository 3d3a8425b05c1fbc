"""Context assembly: raw request fields to GenerationContext."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from contentops.generation.models import (
    FileCategory,
    FileDescriptor,
    FileExcerpt,
    GenerationContext,
    Tone,
)

logger = logging.getLogger(__name__)

DEFAULT_EXCERPT_LIMIT = 3000
TRUNCATION_MARKER = "\n...(truncated)"


class ContextError(ValueError):
    """Raised when a request lacks the fields a task needs.

    This is a caller error: it is raised before any prompt is compiled
    and is never routed to the fallback generator.
    """


def truncate_excerpt(text: str, limit: int = DEFAULT_EXCERPT_LIMIT) -> str:
    """Cap *text* at *limit* characters, appending a marker when cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def _coerce_category(raw: Any) -> FileCategory:
    try:
        return FileCategory(str(raw))
    except ValueError:
        return FileCategory.OTHER


def _parse_files(files: Iterable[Mapping[str, Any] | FileDescriptor] | None) -> tuple[FileDescriptor, ...]:
    if not files:
        return ()
    parsed: list[FileDescriptor] = []
    for f in files:
        if isinstance(f, FileDescriptor):
            parsed.append(f)
            continue
        parsed.append(
            FileDescriptor(
                name=str(f.get("name") or ""),
                category=_coerce_category(f.get("category")),
            )
        )
    return tuple(parsed)


def _parse_excerpts(
    contents: Iterable[Mapping[str, Any] | FileExcerpt] | None,
    limit: int,
) -> tuple[FileExcerpt, ...]:
    if not contents:
        return ()
    parsed: list[FileExcerpt] = []
    for fc in contents:
        if isinstance(fc, FileExcerpt):
            name, text = fc.name, fc.text
        else:
            name = str(fc.get("name") or "")
            text = str(fc.get("content") or fc.get("text") or "")
        if not name or not text:
            continue
        parsed.append(FileExcerpt(name=name, text=truncate_excerpt(text, limit)))
    return tuple(parsed)


def _normalize_tone(tone: str | Tone | None) -> str:
    if not tone:
        return ""
    return str(tone).strip()


def assemble_context(
    title: str | None,
    summary: str | None = "",
    *,
    files: Iterable[Mapping[str, Any] | FileDescriptor] | None = None,
    file_contents: Iterable[Mapping[str, Any] | FileExcerpt] | None = None,
    folder_name: str = "",
    direction: str = "",
    tone: str | Tone | None = None,
    custom_instructions: str = "",
    source_text: str = "",
    excerpt_limit: int = DEFAULT_EXCERPT_LIMIT,
    require_title: bool = True,
) -> GenerationContext:
    """Build an immutable GenerationContext from raw request fields.

    Args:
        title: Subject title. Required unless ``require_title`` is False.
        summary: Subject summary; defaults to the title when empty.
        files: ``{name, category}`` descriptors. Unknown categories become
            ``other``.
        file_contents: ``{name, content}`` (or ``{name, text}``) entries.
            Entries missing either field are dropped; text is capped at
            ``excerpt_limit`` characters.
        folder_name: Name of the folder the materials came from.
        direction: Free-text direction from a prior analysis step.
        tone: Tone hint; known tones get a fixed description when compiled.
        custom_instructions: Free-form extra instructions.
        source_text: Body text for proofreading/categorising tasks.
        excerpt_limit: Per-file character cap for excerpts.
        require_title: Reject blank titles.

    Raises:
        ContextError: If a required field is missing.
    """
    clean_title = (title or "").strip()
    if require_title and not clean_title:
        raise ContextError("title is required")

    excerpts = _parse_excerpts(file_contents, excerpt_limit)
    if excerpts:
        logger.info("Context includes %d file excerpt(s)", len(excerpts))

    return GenerationContext(
        title=clean_title,
        summary=(summary or "").strip() or clean_title,
        files=_parse_files(files),
        file_excerpts=excerpts,
        folder_name=folder_name.strip(),
        direction=direction.strip(),
        tone=_normalize_tone(tone),
        custom_instructions=custom_instructions.strip(),
        source_text=source_text,
    )
