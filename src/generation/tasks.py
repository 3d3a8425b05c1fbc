"""Task registry mapping each task kind to its pipeline parts.

Each ``TaskKind`` maps to exactly one schema description, prompt
builder, fallback function and rule set.  The mapping is checked for
totality when this module is imported.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from contentops.config import ContentOpsConfig, TaskSettings
from contentops.generation.context import ContextError
from contentops.generation.fallback import FALLBACKS
from contentops.generation.models import GenerationContext, TaskKind
from contentops.generation.normalize import RULES, FieldRule
from contentops.generation.prompts import PROMPT_BUILDERS, SCHEMAS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskDefinition:
    kind: TaskKind
    schema: str
    build_prompt: Callable[[GenerationContext, TaskKind], str]
    fallback: Callable[[GenerationContext], dict[str, Any]]
    rules: tuple[FieldRule, ...]
    requires_files: bool = False
    requires_source_text: bool = False

    def compile(self, ctx: GenerationContext) -> str:
        return self.build_prompt(ctx, self.kind)

    def validate(self, ctx: GenerationContext) -> None:
        """Reject contexts that lack what this task needs.

        Raises:
            ContextError: On a missing title, files or source text.
        """
        if self.requires_source_text:
            if not ctx.source_text.strip():
                raise ContextError(f"{self.kind}: text is required")
        elif self.requires_files:
            if not ctx.files:
                raise ContextError(f"{self.kind}: files array is required")
        elif not ctx.title:
            raise ContextError(f"{self.kind}: title is required")


@dataclass(frozen=True)
class TaskSpec:
    """A task kind plus the model parameters to run it with."""

    kind: TaskKind
    settings: TaskSettings

    @classmethod
    def from_config(cls, kind: TaskKind, config: ContentOpsConfig) -> TaskSpec:
        return cls(kind=kind, settings=config.task_settings(str(kind)))


_FILE_TASKS = {TaskKind.ANALYZE_MATERIALS, TaskKind.EXTRACT_KNOWLEDGE}
_TEXT_TASKS = {TaskKind.PROOFREAD_TEXT, TaskKind.CATEGORIZE_KNOWLEDGE}


def _build_registry() -> dict[TaskKind, TaskDefinition]:
    missing = [
        kind
        for kind in TaskKind
        if kind not in SCHEMAS
        or kind not in PROMPT_BUILDERS
        or kind not in FALLBACKS
        or kind not in RULES
    ]
    if missing:
        raise RuntimeError(f"Task kinds without a complete definition: {missing}")

    return {
        kind: TaskDefinition(
            kind=kind,
            schema=SCHEMAS[kind],
            build_prompt=PROMPT_BUILDERS[kind],
            fallback=FALLBACKS[kind],
            rules=RULES[kind],
            requires_files=kind in _FILE_TASKS,
            requires_source_text=kind in _TEXT_TASKS,
        )
        for kind in TaskKind
    }


REGISTRY: dict[TaskKind, TaskDefinition] = _build_registry()


def resolve_task_kind(raw: str | TaskKind) -> TaskKind:
    """Map a raw identifier to a TaskKind, failing closed to GENERIC."""
    try:
        return TaskKind(str(raw))
    except ValueError:
        logger.warning("Unknown task kind %r, using the generic schema", raw)
        return TaskKind.GENERIC


def get_task(kind: TaskKind) -> TaskDefinition:
    return REGISTRY[kind]
