"""Generation domain: context assembly, prompt compilation and fallback.

Public entry points are the per-task service functions; every one of
them returns a ``GenerationResult`` whose body shape does not depend on
whether the model or the local fallback produced it.
"""

from contentops.generation.context import ContextError, assemble_context
from contentops.generation.models import (
    CHANNEL_KINDS,
    FileCategory,
    FileDescriptor,
    FileExcerpt,
    GenerationContext,
    GenerationResult,
    Provenance,
    TaskKind,
    Tone,
)
from contentops.generation.prompts import compile_prompt
from contentops.generation.services import (
    analyze_materials,
    categorize_knowledge,
    extract_knowledge,
    generate_channel_content,
    proofread_text,
    run_task,
)
from contentops.generation.tasks import get_task, resolve_task_kind

__all__ = [
    "CHANNEL_KINDS",
    "ContextError",
    "FileCategory",
    "FileDescriptor",
    "FileExcerpt",
    "GenerationContext",
    "GenerationResult",
    "Provenance",
    "TaskKind",
    "Tone",
    "analyze_materials",
    "assemble_context",
    "categorize_knowledge",
    "compile_prompt",
    "extract_knowledge",
    "generate_channel_content",
    "get_task",
    "proofread_text",
    "resolve_task_kind",
    "run_task",
]
