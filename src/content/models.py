"""Content domain models: pure Pydantic v2 data types.

A ContentRecord is the subject that channel variants are generated
for.  A Variant is the stored generation result for one
``(content_id, channel)`` pair, with its own review lifecycle and two
orthogonal soft-deletion flags.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from contentops.generation.models import Provenance


def _now() -> datetime:
    return datetime.now(tz=UTC)


def new_variant_id() -> str:
    return f"var_{uuid.uuid4().hex[:12]}"


class ContentStatus(StrEnum):
    """Lifecycle status of a content record."""

    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class VariantStatus(StrEnum):
    """Review status of a single channel variant."""

    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    REJECTED = "rejected"
    REVISION_REQUESTED = "revision_requested"
    PUBLISHED = "published"


class ContentRecord(BaseModel):
    """A piece of subject matter and the channels it should reach."""

    content_id: str
    title: str
    summary: str = ""
    target_channels: list[str] = Field(default_factory=list)
    status: ContentStatus = ContentStatus.DRAFT
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class Variant(BaseModel):
    """Materialized generation result for one content/channel pair."""

    id: str = Field(default_factory=new_variant_id)
    content_id: str
    channel: str
    status: VariantStatus = VariantStatus.DRAFT
    body: dict[str, Any] = Field(default_factory=dict)
    source: Provenance = Provenance.FALLBACK
    failure_reason: str | None = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    archived: bool = False
    archived_at: datetime | None = None
    trashed: bool = False
    trashed_at: datetime | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.content_id, self.channel)
