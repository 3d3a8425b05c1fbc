"""Variant review lifecycle and soft-deletion flags.

Status moves follow a fixed transition table; ``published`` is
terminal.  Archiving and trashing are flags kept beside the status.
Every function returns a new Variant and takes ``now`` explicitly.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta

from contentops.content.models import Variant, VariantStatus

DEFAULT_RETENTION_DAYS = 30

ALLOWED_TRANSITIONS: dict[VariantStatus, frozenset[VariantStatus]] = {
    VariantStatus.DRAFT: frozenset({VariantStatus.REVIEW}),
    VariantStatus.REVIEW: frozenset(
        {VariantStatus.APPROVED, VariantStatus.REJECTED, VariantStatus.REVISION_REQUESTED}
    ),
    VariantStatus.REVISION_REQUESTED: frozenset({VariantStatus.REVIEW}),
    VariantStatus.REJECTED: frozenset({VariantStatus.DRAFT}),
    VariantStatus.APPROVED: frozenset({VariantStatus.PUBLISHED}),
    VariantStatus.PUBLISHED: frozenset(),
}


class LifecycleError(Exception):
    """Base class for variant lifecycle errors."""


class InvalidTransitionError(LifecycleError):
    """Raised for a status move or flag change the lifecycle forbids."""


class RetentionExpiredError(LifecycleError):
    """Raised when restoring a variant whose trash window has passed."""


def can_transition(current: VariantStatus, target: VariantStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def transition(variant: Variant, target: VariantStatus, *, now: datetime) -> Variant:
    """Move *variant* to *target* status.

    Raises:
        InvalidTransitionError: If the move is not in the transition table
            or the variant is in the trash.
    """
    target = VariantStatus(target)
    if variant.trashed:
        raise InvalidTransitionError(f"Variant {variant.id} is in the trash")
    if not can_transition(variant.status, target):
        raise InvalidTransitionError(
            f"Cannot move variant {variant.id} from {variant.status} to {target}"
        )
    return variant.model_copy(update={"status": target, "updated_at": now})


def _require_mutable(variant: Variant, action: str) -> None:
    if variant.status == VariantStatus.PUBLISHED:
        raise InvalidTransitionError(f"Cannot {action} published variant {variant.id}")
    if variant.trashed:
        raise InvalidTransitionError(f"Cannot {action} trashed variant {variant.id}")


def archive(variant: Variant, *, now: datetime) -> Variant:
    _require_mutable(variant, "archive")
    if variant.archived:
        raise InvalidTransitionError(f"Variant {variant.id} is already archived")
    return variant.model_copy(update={"archived": True, "archived_at": now, "updated_at": now})


def unarchive(variant: Variant, *, now: datetime) -> Variant:
    _require_mutable(variant, "unarchive")
    if not variant.archived:
        raise InvalidTransitionError(f"Variant {variant.id} is not archived")
    return variant.model_copy(update={"archived": False, "archived_at": None, "updated_at": now})


def trash(variant: Variant, *, now: datetime) -> Variant:
    _require_mutable(variant, "trash")
    return variant.model_copy(update={"trashed": True, "trashed_at": now, "updated_at": now})


def _deadline(variant: Variant, retention_days: int) -> datetime | None:
    if not variant.trashed or variant.trashed_at is None:
        return None
    return variant.trashed_at + timedelta(days=retention_days)


def days_until_deletion(
    variant: Variant, *, now: datetime, retention_days: int = DEFAULT_RETENTION_DAYS
) -> int | None:
    """Whole days left before a trashed variant becomes unrecoverable.

    Returns None for variants that are not in the trash, and 0 once the
    window has passed.
    """
    deadline = _deadline(variant, retention_days)
    if deadline is None:
        return None
    remaining = (deadline - now).total_seconds() / 86400
    return max(0, math.ceil(remaining))


def is_expired(
    variant: Variant, *, now: datetime, retention_days: int = DEFAULT_RETENTION_DAYS
) -> bool:
    deadline = _deadline(variant, retention_days)
    return deadline is not None and now >= deadline


def restore(
    variant: Variant, *, now: datetime, retention_days: int = DEFAULT_RETENTION_DAYS
) -> Variant:
    """Take a variant out of the trash.

    Raises:
        InvalidTransitionError: If the variant is not trashed.
        RetentionExpiredError: If the retention window has passed.
    """
    if not variant.trashed:
        raise InvalidTransitionError(f"Variant {variant.id} is not in the trash")
    if is_expired(variant, now=now, retention_days=retention_days):
        raise RetentionExpiredError(
            f"Variant {variant.id} was trashed more than {retention_days} days ago"
        )
    return variant.model_copy(update={"trashed": False, "trashed_at": None, "updated_at": now})
