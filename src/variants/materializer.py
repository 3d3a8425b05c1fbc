"""Variant materializer: at most one stored variant per content/channel.

The existence check and the store write for a key run under one lock
per ``(content_id, channel)``, so concurrent callers for the same key
invoke the generation thunk at most once.  Callers always receive deep
copies and can never alias store state.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from contentops.content.models import Variant
from contentops.content.store import VariantStore
from contentops.generation.models import GenerationResult

logger = logging.getLogger(__name__)

GenerationThunk = Callable[[], GenerationResult]


class _KeyLock:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0


class VariantMaterializer:
    """Return the stored variant for a key, generating it only once."""

    def __init__(self, store: VariantStore) -> None:
        self._store = store
        # Only keys with a caller inside or waiting have an entry.
        self._locks: dict[tuple[str, str], _KeyLock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _lock_for(self, key: tuple[str, str]) -> Iterator[None]:
        with self._locks_guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _KeyLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[key]

    def get_or_create(
        self, content_id: str, channel: str, thunk: GenerationThunk
    ) -> tuple[Variant, bool]:
        """Like :meth:`materialize`, also reporting whether the variant is new."""
        key = (content_id, channel)
        with self._lock_for(key):
            existing = self._store.get(content_id, channel)
            if existing is not None:
                logger.debug("Variant %s already exists for %s/%s", existing.id, *key)
                return existing.model_copy(deep=True), False

            result = thunk()
            variant = Variant(
                content_id=content_id,
                channel=channel,
                body=copy.deepcopy(result.body),
                source=result.source,
                failure_reason=result.failure_reason,
            )
            self._store.put(variant)
            logger.info("Created variant %s for %s/%s (%s)", variant.id, *key, variant.source)
            return variant.model_copy(deep=True), True

    def materialize(self, content_id: str, channel: str, thunk: GenerationThunk) -> Variant:
        """Return the variant for ``(content_id, channel)``.

        The thunk runs only when no variant is stored for the key; its
        result becomes a new ``draft`` variant.
        """
        variant, _ = self.get_or_create(content_id, channel, thunk)
        return variant

    def commit(self, variant: Variant) -> Variant:
        """Persist a lifecycle change to an existing variant.

        Raises:
            KeyError: If no variant is stored for the key.
            ValueError: If the id or body differs from the stored variant.
        """
        with self._lock_for(variant.key):
            stored = self._store.get(variant.content_id, variant.channel)
            if stored is None:
                raise KeyError(variant.key)
            if stored.id != variant.id or stored.body != variant.body:
                raise ValueError(f"Variant {variant.id} does not match the stored variant")
            self._store.put(variant.model_copy(deep=True))
            return variant.model_copy(deep=True)
