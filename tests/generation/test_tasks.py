"""Tests for the task registry."""

import logging

import pytest

from contentops.config import ContentOpsConfig
from contentops.generation.context import ContextError, assemble_context
from contentops.generation.models import GenerationContext, TaskKind
from contentops.generation.tasks import REGISTRY, TaskSpec, get_task, resolve_task_kind


class TestRegistry:
    def test_covers_every_kind(self):
        assert set(REGISTRY) == set(TaskKind)

    @pytest.mark.parametrize("kind", list(TaskKind))
    def test_definition_matches_kind(self, kind: TaskKind):
        task = get_task(kind)
        assert task.kind == kind
        assert task.schema
        assert task.rules


class TestResolveTaskKind:
    def test_known_kind(self):
        assert resolve_task_kind("note") == TaskKind.NOTE
        assert resolve_task_kind(TaskKind.LINE) == TaskKind.LINE

    def test_unknown_kind_fails_closed(self, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.WARNING):
            assert resolve_task_kind("tiktok_shorts") == TaskKind.GENERIC
        assert "tiktok_shorts" in caplog.text


class TestValidate:
    def test_channel_requires_title(self):
        with pytest.raises(ContextError, match="title is required"):
            get_task(TaskKind.NOTE).validate(GenerationContext())

    def test_file_tasks_require_files(self):
        ctx = assemble_context("T")
        for kind in (TaskKind.ANALYZE_MATERIALS, TaskKind.EXTRACT_KNOWLEDGE):
            with pytest.raises(ContextError, match="files array is required"):
                get_task(kind).validate(ctx)

    def test_text_tasks_require_source_text(self):
        ctx = assemble_context("T", source_text="   ")
        for kind in (TaskKind.PROOFREAD_TEXT, TaskKind.CATEGORIZE_KNOWLEDGE):
            with pytest.raises(ContextError, match="text is required"):
                get_task(kind).validate(ctx)

    def test_file_tasks_do_not_need_title(self):
        ctx = assemble_context(
            None, files=[{"name": "m.txt", "category": "minutes"}], require_title=False
        )
        get_task(TaskKind.ANALYZE_MATERIALS).validate(ctx)


class TestTaskSpec:
    def test_from_config_uses_task_defaults(self):
        spec = TaskSpec.from_config(TaskKind.ANALYZE_MATERIALS, ContentOpsConfig())
        assert spec.settings.temperature == 0.3
        assert spec.settings.max_output_tokens == 2048
        assert spec.settings.model == "gemini-2.5-flash"

    def test_channel_defaults(self):
        spec = TaskSpec.from_config(TaskKind.NOTE, ContentOpsConfig())
        assert spec.settings.temperature == 0.7
        assert spec.settings.max_output_tokens == 4096
