"""Variant pipeline: content record → one reviewed variant per channel."""

from __future__ import annotations

import functools
import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from contentops.config import ContentOpsConfig
from contentops.content.models import ContentStatus, Variant, VariantStatus
from contentops.content.store import ContentStore, TaskConfigStore
from contentops.generation import assemble_context, generate_channel_content
from contentops.shared.llm import GeminiBackend
from contentops.variants.lifecycle import transition
from contentops.variants.materializer import VariantMaterializer

logger = logging.getLogger(__name__)


def generate_variants(
    content_id: str,
    *,
    content_store: ContentStore,
    materializer: VariantMaterializer,
    backend: GeminiBackend,
    config: ContentOpsConfig,
    channels: Sequence[str] | None = None,
    context_overrides: Mapping[str, Any] | None = None,
    task_store: TaskConfigStore | None = None,
    now: datetime | None = None,
) -> list[Variant]:
    """Materialize a variant for every channel of a content record.

    Channels default to the record's target channels.  Variants created
    by this call move from ``draft`` to ``review``; variants that already
    existed are returned as stored.  The content record itself is moved
    to ``review``.

    Raises:
        KeyError: If *content_id* is unknown.
        ContextError: If the record has no title.
    """
    record = content_store.get(content_id)
    if record is None:
        raise KeyError(content_id)

    targets = list(channels) if channels else list(record.target_channels)
    if not targets:
        logger.warning("Content %s has no target channels", content_id)
        return []

    ctx = assemble_context(
        record.title,
        record.summary,
        excerpt_limit=config.context.excerpt_limit,
        **dict(context_overrides or {}),
    )
    now = now or datetime.now(tz=UTC)

    variants: list[Variant] = []
    for channel in targets:
        settings = task_store.get(channel) if task_store else config.task_settings(channel)
        thunk = functools.partial(
            generate_channel_content, ctx, channel, backend=backend, settings=settings
        )
        variant, created = materializer.get_or_create(content_id, channel, thunk)
        if created and variant.status == VariantStatus.DRAFT:
            variant = materializer.commit(transition(variant, VariantStatus.REVIEW, now=now))
        variants.append(variant)

    content_store.update(content_id, status=ContentStatus.REVIEW)
    logger.info("Generated %d variant(s) for %s", len(variants), content_id)
    return variants
