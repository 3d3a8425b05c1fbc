"""Generation service: run a task through the model or its fallback.

Every public function here returns a :class:`GenerationResult` whose
body has the same shape whichever path produced it.  Callers tell the
paths apart only by ``source`` and ``failure_reason``.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Any

from contentops.config import ContentOpsConfig, TaskSettings
from contentops.diff.engine import (
    DEFAULT_MAX_CELLS,
    DiffSegment,
    DiffTooLargeError,
    SegmentKind,
    diff,
)
from contentops.generation.models import (
    CHANNEL_KINDS,
    GenerationContext,
    GenerationResult,
    Provenance,
    TaskKind,
)
from contentops.generation.normalize import missing_required, normalize
from contentops.generation.tasks import TaskSpec, get_task, resolve_task_kind
from contentops.shared.llm import (
    BackendUnconfiguredError,
    GeminiBackend,
    GenerationCallError,
)

logger = logging.getLogger(__name__)

FAILURE_PREFIX = "Gemini API error: "


def _default_settings(kind: TaskKind) -> TaskSettings:
    return TaskSpec.from_config(kind, ContentOpsConfig()).settings


def run_task(
    kind: TaskKind,
    ctx: GenerationContext,
    *,
    backend: GeminiBackend,
    settings: TaskSettings | None = None,
) -> GenerationResult:
    """Run one task through the model path, falling back on failure.

    Raises:
        ContextError: If the context lacks what the task needs. This is
            never converted into a fallback result.
    """
    task = get_task(kind)
    task.validate(ctx)
    settings = settings or _default_settings(kind)
    prompt = task.compile(ctx)

    try:
        raw = backend.generate_json(
            prompt,
            model=settings.model,
            temperature=settings.temperature,
            max_output_tokens=settings.max_output_tokens,
            label=str(kind),
        )
        missing = missing_required(kind, raw)
        if missing:
            raise GenerationCallError(f"Response missing required fields: {', '.join(missing)}")
    except BackendUnconfiguredError:
        logger.info("Gemini not configured, using fallback for %s", kind)
        return GenerationResult(
            kind=kind,
            body=normalize(kind, task.fallback(ctx)),
            source=Provenance.FALLBACK,
        )
    except GenerationCallError as exc:
        logger.warning("Gemini call failed for %s, using fallback: %s", kind, exc)
        return GenerationResult(
            kind=kind,
            body=normalize(kind, task.fallback(ctx)),
            source=Provenance.FALLBACK,
            failure_reason=f"{FAILURE_PREFIX}{exc}",
        )

    logger.info("Gemini generation succeeded for %s", kind)
    return GenerationResult(kind=kind, body=normalize(kind, raw), source=Provenance.MODEL)


# ---------------------------------------------------------------------------
# Per-task entry points
# ---------------------------------------------------------------------------


def generate_channel_content(
    ctx: GenerationContext,
    channel: str | TaskKind,
    *,
    backend: GeminiBackend,
    settings: TaskSettings | None = None,
) -> GenerationResult:
    """Generate the body for one channel; unknown channels use the generic schema."""
    kind = resolve_task_kind(channel)
    if kind not in CHANNEL_KINDS:
        kind = TaskKind.GENERIC
    return run_task(kind, ctx, backend=backend, settings=settings)


def analyze_materials(
    ctx: GenerationContext,
    *,
    backend: GeminiBackend,
    settings: TaskSettings | None = None,
) -> GenerationResult:
    return run_task(TaskKind.ANALYZE_MATERIALS, ctx, backend=backend, settings=settings)


def _candidate_prefix(ctx: GenerationContext) -> str:
    seed = "\n".join([ctx.folder_name, *(f.name for f in ctx.files)])
    return hashlib.sha1(seed.encode("utf-8")).hexdigest()[:8]


def extract_knowledge(
    ctx: GenerationContext,
    *,
    backend: GeminiBackend,
    settings: TaskSettings | None = None,
) -> GenerationResult:
    """Extract knowledge candidates and give each a stable id."""
    result = run_task(TaskKind.EXTRACT_KNOWLEDGE, ctx, backend=backend, settings=settings)
    prefix = _candidate_prefix(ctx)
    default_source = ctx.files[0].name if ctx.files else ""
    candidates: list[dict[str, Any]] = []
    for i, candidate in enumerate(result.body["candidates"]):
        candidates.append({
            "id": f"kc_{prefix}_{i}",
            **candidate,
            "source_file": candidate["source_file"] or default_source,
        })
    return result.model_copy(update={"body": {"candidates": candidates}})


def _highlight(original: str, proofread: str, max_cells: int) -> list[DiffSegment]:
    try:
        return diff(original, proofread, max_cells=max_cells)
    except DiffTooLargeError as exc:
        logger.warning("Skipping revision highlighting: %s", exc)
        if not proofread:
            return []
        kind = SegmentKind.KEPT if original == proofread else SegmentKind.ADDED
        return [DiffSegment(text=proofread, kind=kind)]


def proofread_text(
    ctx: GenerationContext,
    *,
    backend: GeminiBackend,
    settings: TaskSettings | None = None,
    max_cells: int = DEFAULT_MAX_CELLS,
) -> GenerationResult:
    """Proofread ``ctx.source_text`` and attach the highlighted revision.

    Texts too large to align come back as a single segment covering the
    whole revision.
    """
    result = run_task(TaskKind.PROOFREAD_TEXT, ctx, backend=backend, settings=settings)
    original = ctx.source_text
    proofread = result.body["proofread"]
    segments = [
        seg.model_dump(mode="json") for seg in _highlight(original, proofread, max_cells)
    ]
    body = {
        **result.body,
        "original": original,
        "changes_made": original != proofread,
        "segments": segments,
    }
    return result.model_copy(update={"body": body})


def categorize_knowledge(
    ctx: GenerationContext,
    *,
    backend: GeminiBackend,
    settings: TaskSettings | None = None,
) -> GenerationResult:
    return run_task(TaskKind.CATEGORIZE_KNOWLEDGE, ctx, backend=backend, settings=settings)
