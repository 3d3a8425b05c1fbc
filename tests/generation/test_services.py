"""Tests for the generation service functions."""

from typing import Any
from unittest.mock import patch

import pytest

from contentops.config import TaskSettings
from contentops.generation.context import ContextError, assemble_context
from contentops.generation.models import GenerationContext, Provenance, TaskKind
from contentops.generation.services import (
    analyze_materials,
    categorize_knowledge,
    extract_knowledge,
    generate_channel_content,
    proofread_text,
    run_task,
)
from contentops.shared.llm import (
    BackendUnconfiguredError,
    GeminiBackend,
    GenerationCallError,
)


class FakeBackend:
    """Stands in for GeminiBackend; records every call."""

    def __init__(
        self,
        response: dict[str, Any] | None = None,
        error: Exception | None = None,
        configured: bool = True,
    ) -> None:
        self.response = response or {}
        self.error = error
        self.is_configured = configured
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def generate_json(self, prompt: str, **kwargs: Any) -> dict[str, Any]:
        self.calls.append((prompt, kwargs))
        if not self.is_configured:
            raise BackendUnconfiguredError("GEMINI_API_KEY is not set")
        if self.error is not None:
            raise self.error
        return self.response


_REELS = {
    "hook": "**Stop** skipping breakfast",
    "caption": "Why breakfast matters",
    "hashtags": ["nutrition"],
}


def _ctx(**kwargs: Any) -> GenerationContext:
    return assemble_context("Breakfast for athletes", **kwargs)


class TestRunTask:
    def test_model_path(self):
        backend = FakeBackend(_REELS)
        result = run_task(TaskKind.INSTAGRAM_REELS, _ctx(), backend=backend)
        assert result.source == Provenance.MODEL
        assert result.failure_reason is None
        assert result.body["hook"] == "Stop skipping breakfast"
        assert len(backend.calls) == 1

    def test_unconfigured_falls_back_without_reason(self):
        result = run_task(TaskKind.INSTAGRAM_REELS, _ctx(), backend=FakeBackend(configured=False))
        assert result.source == Provenance.FALLBACK
        assert result.failure_reason is None
        assert "failure_reason" not in result.to_response()

    def test_call_failure_keeps_message_verbatim(self):
        backend = FakeBackend(error=GenerationCallError("503 UNAVAILABLE: model overloaded"))
        result = run_task(TaskKind.INSTAGRAM_REELS, _ctx(), backend=backend)
        assert result.source == Provenance.FALLBACK
        assert result.failure_reason == "Gemini API error: 503 UNAVAILABLE: model overloaded"
        assert result.to_response()["failure_reason"] == result.failure_reason

    def test_missing_required_keys_fall_back(self):
        backend = FakeBackend({"hook": "only a hook"})
        result = run_task(TaskKind.INSTAGRAM_REELS, _ctx(), backend=backend)
        assert result.source == Provenance.FALLBACK
        assert "caption" in (result.failure_reason or "")
        assert result.body["hook"].startswith("Breakfast for athletes")

    def test_paths_share_shape(self):
        model = run_task(TaskKind.INSTAGRAM_REELS, _ctx(), backend=FakeBackend(_REELS))
        fallback = run_task(
            TaskKind.INSTAGRAM_REELS, _ctx(), backend=FakeBackend(configured=False)
        )
        assert set(model.body) == set(fallback.body)

    def test_context_error_is_not_routed_to_fallback(self):
        backend = FakeBackend(_REELS)
        with pytest.raises(ContextError):
            run_task(TaskKind.INSTAGRAM_REELS, GenerationContext(), backend=backend)
        assert backend.calls == []

    def test_settings_are_forwarded(self):
        backend = FakeBackend(_REELS)
        settings = TaskSettings(model="gemini-x", temperature=0.1, max_output_tokens=99)
        run_task(TaskKind.INSTAGRAM_REELS, _ctx(), backend=backend, settings=settings)
        _, kwargs = backend.calls[0]
        assert kwargs["model"] == "gemini-x"
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_output_tokens"] == 99

    def test_default_settings_per_kind(self):
        backend = FakeBackend({"proofread": "ok", "notes": []})
        run_task(TaskKind.PROOFREAD_TEXT, _ctx(source_text="ok"), backend=backend)
        _, kwargs = backend.calls[0]
        assert kwargs["temperature"] == 0.2

    def test_unconfigured_real_backend_never_builds_client(self):
        with patch("contentops.shared.llm.genai.Client") as client_cls:
            result = run_task(TaskKind.NOTE, _ctx(), backend=GeminiBackend(""))
        client_cls.assert_not_called()
        assert result.source == Provenance.FALLBACK
        assert result.failure_reason is None


class TestGenerateChannelContent:
    def test_known_channel(self):
        result = generate_channel_content(_ctx(), "line", backend=FakeBackend(configured=False))
        assert result.kind == TaskKind.LINE
        assert result.body["delivery_type"] == "broadcast"

    def test_unknown_channel_uses_generic_schema(self):
        backend = FakeBackend(configured=False)
        result = generate_channel_content(_ctx(), "x", backend=backend)
        assert result.kind == TaskKind.GENERIC
        assert result.body == {"text": "Breakfast for athletes"}
        assert '"text"' in backend.calls[0][0]

    def test_pipeline_kind_is_not_a_channel(self):
        result = generate_channel_content(
            _ctx(), "proofread_text", backend=FakeBackend(configured=False)
        )
        assert result.kind == TaskKind.GENERIC


class TestAnalyzeMaterials:
    def test_fallback(self):
        ctx = assemble_context(
            "", files=[{"name": "m.txt", "category": "minutes"}], require_title=False
        )
        result = analyze_materials(ctx, backend=FakeBackend(configured=False))
        assert len(result.body["steps"]) == 3
        assert result.body["steps"][0]["status"] == "done"

    def test_requires_files(self):
        with pytest.raises(ContextError):
            analyze_materials(_ctx(), backend=FakeBackend(configured=False))


class TestExtractKnowledge:
    def _ctx(self) -> GenerationContext:
        return assemble_context(
            "",
            files=[
                {"name": "minutes.txt", "category": "minutes"},
                {"name": "talk.txt", "category": "transcript"},
            ],
            folder_name="Camp",
            require_title=False,
        )

    def test_ids_are_stable(self):
        first = extract_knowledge(self._ctx(), backend=FakeBackend(configured=False))
        second = extract_knowledge(self._ctx(), backend=FakeBackend(configured=False))
        ids = [c["id"] for c in first.body["candidates"]]
        assert ids == [c["id"] for c in second.body["candidates"]]
        assert all(i.startswith("kc_") for i in ids)
        assert ids[0].endswith("_0") and ids[1].endswith("_1")

    def test_source_file_defaults_to_first_file(self):
        backend = FakeBackend({"candidates": [{"title": "Lesson", "source_file": ""}]})
        result = extract_knowledge(self._ctx(), backend=backend)
        assert result.source == Provenance.MODEL
        assert result.body["candidates"][0]["source_file"] == "minutes.txt"


class TestProofreadText:
    def test_reports_changes_and_segments(self):
        ctx = assemble_context(
            None, source_text="今日は晴れです。。散歩に行きます。", require_title=False
        )
        result = proofread_text(ctx, backend=FakeBackend(configured=False))
        body = result.body
        assert body["original"] == "今日は晴れです。。散歩に行きます。"
        assert body["proofread"] == "今日は晴れです。散歩に行きます。"
        assert body["changes_made"] is True
        assert "".join(s["text"] for s in body["segments"]) == body["proofread"]

    def test_no_changes(self):
        ctx = assemble_context(None, source_text="Fine as is.", require_title=False)
        backend = FakeBackend({"proofread": "Fine as is.", "notes": []})
        body = proofread_text(ctx, backend=backend).body
        assert body["changes_made"] is False
        assert body["segments"] == [{"text": "Fine as is.", "kind": "kept"}]

    def test_supplement_is_highlighted_as_added(self):
        ctx = assemble_context(None, source_text="業務の効率を上げました。", require_title=False)
        body = proofread_text(ctx, backend=FakeBackend(configured=False)).body
        assert body["segments"][0] == {"text": "業務の効率を上げました。", "kind": "kept"}
        assert body["segments"][-1]["kind"] == "added"
        assert "💡 ポイント" in body["segments"][-1]["text"]

    def test_large_text_falls_back_to_single_segment(self, caplog):
        text = "".join(f"なので、項目{i}です。\n" for i in range(1500))
        ctx = assemble_context(None, source_text=text, require_title=False)
        with caplog.at_level("WARNING"):
            result = proofread_text(ctx, backend=GeminiBackend(""))
        body = result.body
        assert body["changes_made"] is True
        assert body["segments"] == [{"text": body["proofread"], "kind": "added"}]
        assert "Skipping revision highlighting" in caplog.text

    def test_cell_limit_is_configurable(self):
        ctx = assemble_context(None, source_text="One. Two. Three.", require_title=False)
        backend = FakeBackend({"proofread": "One. Two. Four.", "notes": []})
        body = proofread_text(ctx, backend=backend, max_cells=1).body
        assert body["segments"] == [{"text": "One. Two. Four.", "kind": "added"}]

        same = FakeBackend({"proofread": "One. Two. Three.", "notes": []})
        body = proofread_text(ctx, backend=same, max_cells=1).body
        assert body["segments"] == [{"text": "One. Two. Three.", "kind": "kept"}]

    def test_body_shape_is_the_same_on_both_paths(self):
        ctx = assemble_context(None, source_text="Text.", require_title=False)
        model = proofread_text(ctx, backend=FakeBackend({"proofread": "Text!", "notes": ["x"]}))
        fallback = proofread_text(ctx, backend=FakeBackend(configured=False))
        assert set(model.body) == set(fallback.body)


class TestCategorizeKnowledge:
    def test_marketing_becomes_other(self):
        ctx = assemble_context("Post", source_text="Body", require_title=False)
        backend = FakeBackend({"category": "marketing", "tags": ["ads"]})
        result = categorize_knowledge(ctx, backend=backend)
        assert result.source == Provenance.MODEL
        assert result.body["category"] == "other"
