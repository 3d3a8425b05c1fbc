"""Variant materialization and the review lifecycle."""

from contentops.variants.lifecycle import (
    InvalidTransitionError,
    RetentionExpiredError,
    archive,
    days_until_deletion,
    restore,
    transition,
    trash,
    unarchive,
)
from contentops.variants.materializer import VariantMaterializer

__all__ = [
    "InvalidTransitionError",
    "RetentionExpiredError",
    "VariantMaterializer",
    "archive",
    "days_until_deletion",
    "restore",
    "transition",
    "trash",
    "unarchive",
]
