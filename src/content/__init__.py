"""Content records, variants and their stores."""

from contentops.content.models import (
    ContentRecord,
    ContentStatus,
    Variant,
    VariantStatus,
)
from contentops.content.store import (
    ContentStore,
    InMemoryVariantStore,
    JsonVariantStore,
    TaskConfigStore,
    VariantStore,
)

__all__ = [
    "ContentRecord",
    "ContentStatus",
    "ContentStore",
    "InMemoryVariantStore",
    "JsonVariantStore",
    "TaskConfigStore",
    "Variant",
    "VariantStatus",
    "VariantStore",
]
