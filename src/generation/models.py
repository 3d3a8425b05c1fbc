"""Data models for the generation pipeline."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TaskKind(StrEnum):
    """Every task the prompt compiler and fallback generator support."""

    INSTAGRAM_REELS = "instagram_reels"
    INSTAGRAM_STORIES = "instagram_stories"
    INSTAGRAM_FEED = "instagram_feed"
    EVENT_LP = "event_lp"
    NOTE = "note"
    LINE = "line"
    ANALYZE_MATERIALS = "analyze_materials"
    EXTRACT_KNOWLEDGE = "extract_knowledge"
    PROOFREAD_TEXT = "proofread_text"
    CATEGORIZE_KNOWLEDGE = "categorize_knowledge"
    GENERIC = "generic"


CHANNEL_KINDS: frozenset[TaskKind] = frozenset(
    {
        TaskKind.INSTAGRAM_REELS,
        TaskKind.INSTAGRAM_STORIES,
        TaskKind.INSTAGRAM_FEED,
        TaskKind.EVENT_LP,
        TaskKind.NOTE,
        TaskKind.LINE,
    }
)


class FileCategory(StrEnum):
    MINUTES = "minutes"
    TRANSCRIPT = "transcript"
    PHOTO = "photo"
    OTHER = "other"


class Tone(StrEnum):
    SCIENTIFIC = "scientific"
    CASUAL = "casual"
    PROFESSIONAL = "professional"
    EMOTIONAL = "emotional"


class Provenance(StrEnum):
    MODEL = "model"
    FALLBACK = "fallback"


class FileDescriptor(BaseModel):
    """A reference file known only by name and category."""

    model_config = ConfigDict(frozen=True)

    name: str
    category: FileCategory = FileCategory.OTHER


class FileExcerpt(BaseModel):
    """The (possibly truncated) text of an uploaded reference file."""

    model_config = ConfigDict(frozen=True)

    name: str
    text: str


class GenerationContext(BaseModel):
    """Normalized inputs for one generation request.

    Built by ``assemble_context`` and never mutated afterwards.  Empty
    strings and empty tuples mean "absent"; the prompt compiler skips
    those sections entirely.
    """

    model_config = ConfigDict(frozen=True)

    title: str = ""
    summary: str = ""
    files: tuple[FileDescriptor, ...] = ()
    file_excerpts: tuple[FileExcerpt, ...] = ()
    folder_name: str = ""
    direction: str = ""
    tone: str = ""
    custom_instructions: str = ""
    source_text: str = ""

    def files_in(self, category: FileCategory) -> list[FileDescriptor]:
        return [f for f in self.files if f.category == category]


class GenerationResult(BaseModel):
    """Normalized output of one task plus its provenance.

    A ``model`` result never carries a failure reason.  A ``fallback``
    result carries one only when the backend was configured but failed.
    """

    kind: TaskKind
    body: dict[str, Any] = Field(default_factory=dict)
    source: Provenance
    failure_reason: str | None = None

    @model_validator(mode="after")
    def _check_provenance(self) -> GenerationResult:
        if self.source == Provenance.MODEL and self.failure_reason:
            raise ValueError("model-sourced results cannot carry a failure reason")
        return self

    def to_response(self) -> dict[str, Any]:
        """Shape returned to callers: body, source, optional failure_reason."""
        response: dict[str, Any] = {"body": self.body, "source": str(self.source)}
        if self.failure_reason:
            response["failure_reason"] = self.failure_reason
        return response
