"""JSON-backed stores for content records, task settings and variants.

Each store persists to a single JSON file under the output directory,
loaded on init and saved after every write operation.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, Field

from contentops.config import ContentOpsConfig, TaskSettings
from contentops.content.models import ContentRecord, ContentStatus, Variant
from contentops.generation.models import TaskKind

logger = logging.getLogger(__name__)

STORE_FILENAME = ".contentops-content-store.json"
TASK_CONFIG_FILENAME = ".contentops-task-config.json"
VARIANT_STORE_FILENAME = ".contentops-variants.json"

# Alias to avoid shadowing by the stores' list methods
_list = list


def _read_json(path: Path) -> Any:
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        logger.warning("Corrupt store at %s, starting fresh", path)
        return None


def _write(path: Path, payload: BaseModel) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload.model_dump_json(indent=2), encoding="utf-8")


# ── Content records ──────────────────────────────────────────────


class _StoreData(BaseModel):
    """Internal wrapper for JSON serialization."""

    records: list[ContentRecord] = Field(default_factory=list)


class ContentStore:
    """JSON-backed CRUD store for content records."""

    def __init__(self, output_dir: Path) -> None:
        self._path = output_dir / STORE_FILENAME
        self._data = self._load()

    def _load(self) -> _StoreData:
        raw = _read_json(self._path)
        if raw is None:
            return _StoreData()
        try:
            return _StoreData.model_validate(raw)
        except ValueError:
            logger.warning("Corrupt content store at %s, starting fresh", self._path)
            return _StoreData()

    def _save(self) -> None:
        _write(self._path, self._data)

    def _find(self, content_id: str) -> ContentRecord | None:
        for record in self._data.records:
            if record.content_id == content_id:
                return record
        return None

    def _require(self, content_id: str) -> ContentRecord:
        record = self._find(content_id)
        if record is None:
            raise KeyError(content_id)
        return record

    def create(self, record: ContentRecord) -> ContentRecord:
        """Add a new record.

        Raises ValueError if a record with the same id already exists.
        """
        if self._find(record.content_id) is not None:
            raise ValueError(f"Content already exists: {record.content_id}")
        self._data.records.append(record)
        self._save()
        return record

    def update(
        self,
        content_id: str,
        *,
        title: str | None = None,
        summary: str | None = None,
        target_channels: _list[str] | None = None,
        status: ContentStatus | None = None,
    ) -> ContentRecord:
        """Update fields of a record and bump ``updated_at``.

        Raises KeyError if the id does not exist.
        """
        record = self._require(content_id)
        if title is not None:
            record.title = title
        if summary is not None:
            record.summary = summary
        if target_channels is not None:
            record.target_channels = _list(target_channels)
        if status is not None:
            record.status = status
        record.updated_at = datetime.now(tz=UTC)
        self._save()
        return record

    def get(self, content_id: str) -> ContentRecord | None:
        """Return a record by id, or None if not found."""
        return self._find(content_id)

    def list(self, status: ContentStatus | None = None) -> _list[ContentRecord]:
        """Return records, optionally filtered by status."""
        results = self._data.records
        if status is not None:
            results = [r for r in results if r.status == status]
        return _list(results)


# ── Task configuration ───────────────────────────────────────────


class _TaskConfigData(BaseModel):
    tasks: dict[str, TaskSettings] = Field(default_factory=dict)


class TaskConfigStore:
    """Per-task model settings, seeded from config and editable at runtime.

    Stored overrides win over the ``[tasks.<kind>]`` tables of the
    config they were seeded from.
    """

    def __init__(self, output_dir: Path, config: ContentOpsConfig | None = None) -> None:
        self._path = output_dir / TASK_CONFIG_FILENAME
        self._config = config or ContentOpsConfig()
        self._data = self._load()

    def _load(self) -> _TaskConfigData:
        raw = _read_json(self._path)
        if raw is None:
            return _TaskConfigData()
        try:
            return _TaskConfigData.model_validate(raw)
        except ValueError:
            logger.warning("Corrupt task config store at %s, starting fresh", self._path)
            return _TaskConfigData()

    def get(self, kind: TaskKind | str) -> TaskSettings:
        key = str(kind)
        stored = self._data.tasks.get(key)
        resolved = self._config.task_settings(key)
        if stored is None:
            return resolved
        return stored.model_copy(update={"model": stored.model or resolved.model})

    def list(self) -> dict[str, TaskSettings]:
        return {str(kind): self.get(kind) for kind in TaskKind}

    def update(
        self,
        kind: TaskKind | str,
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_output_tokens: int | None = None,
    ) -> TaskSettings:
        """Persist an override for one task kind and return the result."""
        current = self.get(kind)
        changes: dict[str, Any] = {
            "model": model,
            "temperature": temperature,
            "max_output_tokens": max_output_tokens,
        }
        updated = current.model_copy(
            update={k: v for k, v in changes.items() if v is not None}
        )
        self._data.tasks[str(kind)] = updated
        _write(self._path, self._data)
        return updated


# ── Variants ─────────────────────────────────────────────────────


class VariantStore(Protocol):
    """Keyed storage for variants, one per ``(content_id, channel)``."""

    def get(self, content_id: str, channel: str) -> Variant | None: ...

    def put(self, variant: Variant) -> None: ...

    def list(self, content_id: str | None = None) -> _list[Variant]: ...


class InMemoryVariantStore:
    """Dict-backed VariantStore for tests and one-shot runs."""

    def __init__(self) -> None:
        self._variants: dict[tuple[str, str], Variant] = {}

    def get(self, content_id: str, channel: str) -> Variant | None:
        return self._variants.get((content_id, channel))

    def put(self, variant: Variant) -> None:
        self._variants[variant.key] = variant

    def list(self, content_id: str | None = None) -> _list[Variant]:
        return [
            v for v in self._variants.values()
            if content_id is None or v.content_id == content_id
        ]


class _VariantData(BaseModel):
    variants: list[Variant] = Field(default_factory=list)


class JsonVariantStore:
    """VariantStore persisted to a JSON file under the output directory."""

    def __init__(self, output_dir: Path) -> None:
        self._path = output_dir / VARIANT_STORE_FILENAME
        self._lock = threading.Lock()
        self._variants: dict[tuple[str, str], Variant] = {
            v.key: v for v in self._load().variants
        }

    def _load(self) -> _VariantData:
        raw = _read_json(self._path)
        if raw is None:
            return _VariantData()
        try:
            return _VariantData.model_validate(raw)
        except ValueError:
            logger.warning("Corrupt variant store at %s, starting fresh", self._path)
            return _VariantData()

    def get(self, content_id: str, channel: str) -> Variant | None:
        return self._variants.get((content_id, channel))

    def put(self, variant: Variant) -> None:
        with self._lock:
            self._variants[variant.key] = variant
            _write(self._path, _VariantData(variants=_list(self._variants.values())))

    def list(self, content_id: str | None = None) -> _list[Variant]:
        return [
            v for v in self._variants.values()
            if content_id is None or v.content_id == content_id
        ]
