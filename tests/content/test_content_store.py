"""Tests for the JSON-backed content, task config and variant stores."""

import json
from pathlib import Path

import pytest

from contentops.config import ContentOpsConfig, TaskSettings
from contentops.content.models import ContentRecord, ContentStatus, Variant, VariantStatus
from contentops.content.store import (
    STORE_FILENAME,
    TASK_CONFIG_FILENAME,
    ContentStore,
    InMemoryVariantStore,
    JsonVariantStore,
    TaskConfigStore,
)
from contentops.generation.models import TaskKind


def _make_record(content_id: str = "c1", **kwargs: object) -> ContentRecord:
    defaults: dict[str, object] = {
        "title": "Hydration",
        "summary": "Drinking before races",
        "target_channels": ["note", "line"],
    }
    defaults.update(kwargs)
    return ContentRecord(content_id=content_id, **defaults)  # type: ignore[arg-type]


class TestContentStore:
    def test_create_and_get(self, tmp_path: Path):
        store = ContentStore(tmp_path)
        store.create(_make_record())

        fetched = store.get("c1")
        assert fetched is not None
        assert fetched.title == "Hydration"
        assert fetched.status == ContentStatus.DRAFT

    def test_get_missing(self, tmp_path: Path):
        assert ContentStore(tmp_path).get("nope") is None

    def test_duplicate_create_rejected(self, tmp_path: Path):
        store = ContentStore(tmp_path)
        store.create(_make_record())
        with pytest.raises(ValueError, match="already exists"):
            store.create(_make_record())

    def test_persists_to_disk(self, tmp_path: Path):
        ContentStore(tmp_path).create(_make_record())

        data = json.loads((tmp_path / STORE_FILENAME).read_text(encoding="utf-8"))
        assert data["records"][0]["content_id"] == "c1"
        assert ContentStore(tmp_path).get("c1") is not None

    def test_update(self, tmp_path: Path):
        store = ContentStore(tmp_path)
        created = store.create(_make_record())
        before = created.updated_at

        updated = store.update("c1", status=ContentStatus.REVIEW, target_channels=["note"])
        assert updated.status == ContentStatus.REVIEW
        assert updated.target_channels == ["note"]
        assert updated.title == "Hydration"
        assert updated.updated_at >= before

    def test_update_missing_raises(self, tmp_path: Path):
        with pytest.raises(KeyError):
            ContentStore(tmp_path).update("nope", title="x")

    def test_list_filters_by_status(self, tmp_path: Path):
        store = ContentStore(tmp_path)
        store.create(_make_record("a"))
        store.create(_make_record("b", status=ContentStatus.REVIEW))

        assert {r.content_id for r in store.list()} == {"a", "b"}
        assert [r.content_id for r in store.list(status=ContentStatus.REVIEW)] == ["b"]

    def test_corrupt_file_starts_fresh(self, tmp_path: Path):
        (tmp_path / STORE_FILENAME).write_text("{not json", encoding="utf-8")
        assert ContentStore(tmp_path).list() == []


class TestTaskConfigStore:
    def test_defaults_come_from_config(self, tmp_path: Path):
        config = ContentOpsConfig.model_validate(
            {"tasks": {"note": {"model": "gemini-pro", "temperature": 0.9}}}
        )
        store = TaskConfigStore(tmp_path, config)

        assert store.get(TaskKind.NOTE).model == "gemini-pro"
        assert store.get(TaskKind.NOTE).temperature == 0.9
        assert store.get("extract_knowledge").max_output_tokens == 8192

    def test_list_covers_every_kind(self, tmp_path: Path):
        assert set(TaskConfigStore(tmp_path).list()) == {str(k) for k in TaskKind}

    def test_update_persists(self, tmp_path: Path):
        store = TaskConfigStore(tmp_path)
        updated = store.update("line", temperature=0.4)

        assert updated.temperature == 0.4
        assert updated.max_output_tokens == 4096
        assert (tmp_path / TASK_CONFIG_FILENAME).exists()

        reloaded = TaskConfigStore(tmp_path)
        assert reloaded.get("line") == TaskSettings(
            model="gemini-2.5-flash", temperature=0.4, max_output_tokens=4096
        )


class TestVariantStores:
    @pytest.fixture(params=["memory", "json"])
    def store(self, request: pytest.FixtureRequest, tmp_path: Path):
        if request.param == "memory":
            return InMemoryVariantStore()
        return JsonVariantStore(tmp_path)

    def test_put_and_get(self, store):
        variant = Variant(content_id="c1", channel="note", body={"title_option1": "T"})
        store.put(variant)

        assert store.get("c1", "note") == variant
        assert store.get("c1", "line") is None

    def test_put_replaces_by_key(self, store):
        first = Variant(content_id="c1", channel="note")
        store.put(first)
        store.put(first.model_copy(update={"status": VariantStatus.REVIEW}))

        assert len(store.list("c1")) == 1
        assert store.get("c1", "note").status == VariantStatus.REVIEW

    def test_list_filters_by_content(self, store):
        store.put(Variant(content_id="c1", channel="note"))
        store.put(Variant(content_id="c2", channel="note"))

        assert len(store.list()) == 2
        assert [v.content_id for v in store.list("c2")] == ["c2"]

    def test_json_store_reloads(self, tmp_path: Path):
        variant = Variant(content_id="c1", channel="line", body={"message_text": "hi"})
        JsonVariantStore(tmp_path).put(variant)

        assert JsonVariantStore(tmp_path).get("c1", "line") == variant


class TestVariantModel:
    def test_id_format(self):
        variant = Variant(content_id="c1", channel="note")
        assert variant.id.startswith("var_")
        assert len(variant.id) == len("var_") + 12
