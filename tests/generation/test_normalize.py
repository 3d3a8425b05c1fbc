"""Tests for the result normalizer."""

import pytest

from contentops.generation.context import assemble_context
from contentops.generation.fallback import fallback_for
from contentops.generation.models import TaskKind
from contentops.generation.normalize import (
    CONTINUATION_MARKER,
    ICON_GLYPHS,
    RULES,
    clamp_enum,
    cap_list,
    missing_required,
    normalize,
    strip_markup,
    truncate_text,
)


class TestStripMarkup:
    def test_inline_markers(self):
        assert strip_markup("**bold** and *it* ~~gone~~ __under__") == "bold and it gone under"

    def test_headings(self):
        assert strip_markup("## Heading\nbody") == "Heading\nbody"

    def test_label_bullets(self):
        assert strip_markup("- Point: detail\n- plain item") == "- detail\n- plain item"

    def test_plain_text_untouched(self):
        assert strip_markup("3 * 4 = 12") == "3 * 4 = 12"


class TestHelpers:
    def test_truncate_text(self):
        assert truncate_text("abcdef", 3) == "ab" + CONTINUATION_MARKER
        assert len(truncate_text("abcdef", 3)) == 3
        assert truncate_text("abc", 3) == "abc"

    def test_clamp_enum_marketing_to_other(self):
        assert clamp_enum("marketing", ("tips", "howto", "other"), "other") == "other"
        assert clamp_enum("tips", ("tips", "howto", "other"), "other") == "tips"
        assert clamp_enum(None, ("a",), "a") == "a"

    def test_cap_list(self):
        assert cap_list([1, 2, 3], 2) == [1, 2]
        assert cap_list("not a list", 2) == []
        assert cap_list([1, 2], None) == [1, 2]


class TestNormalize:
    def test_categorize_clamps_unknown_category(self):
        body = normalize(
            TaskKind.CATEGORIZE_KNOWLEDGE,
            {"category": "marketing", "tags": ["a", "b"]},
        )
        assert body == {"category": "other", "tags": ["a", "b"]}

    def test_drops_unknown_keys_and_fills_defaults(self):
        body = normalize(TaskKind.INSTAGRAM_REELS, {"hook": "Hi", "surprise": 1})
        assert set(body) == {rule.name for rule in RULES[TaskKind.INSTAGRAM_REELS]}
        assert body["hook"] == "Hi"
        assert body["caption"] == ""
        assert body["hashtags"] == []

    def test_text_limits(self):
        body = normalize(
            TaskKind.INSTAGRAM_REELS,
            {"caption": "c" * 400, "thumbnail_text": "t" * 30},
        )
        assert body["caption"] == "c" * 299 + CONTINUATION_MARKER
        assert body["thumbnail_text"] == "t" * 19 + CONTINUATION_MARKER
        assert len(body["caption"]) == 300
        assert len(body["thumbnail_text"]) == 20

    def test_plain_fields_lose_markup(self):
        body = normalize(TaskKind.LINE, {"message_text": "**Big** news"})
        assert body["message_text"] == "Big news"

    def test_markdown_field_keeps_markup(self):
        body = normalize(TaskKind.NOTE, {"body_markdown": "## Intro\n**bold**"})
        assert body["body_markdown"] == "## Intro\n**bold**"

    def test_list_bounds(self):
        body = normalize(TaskKind.NOTE, {"tags": [f"t{i}" for i in range(8)]})
        assert body["tags"] == ["t0", "t1", "t2", "t3", "t4"]

    def test_list_drops_non_text_entries(self):
        body = normalize(TaskKind.NOTE, {"tags": ["ok", {"x": 1}, None, 7]})
        assert body["tags"] == ["ok", "7"]

    def test_nested_objects(self):
        slides = [{"text": "a very long slide text here", "sticker": "balloon"}] * 7
        body = normalize(TaskKind.INSTAGRAM_STORIES, {"slides": slides, "story_type": "quiz"})
        assert body["story_type"] == "step_learning"
        assert len(body["slides"]) == 5
        assert body["slides"][0] == {
            "text": "a very long sl" + CONTINUATION_MARKER,
            "sticker": "none",
            "image_note": "",
        }

    def test_analysis_icons_become_glyphs(self):
        body = normalize(
            TaskKind.ANALYZE_MATERIALS,
            {"steps": [{"label": "x", "icon": "mic", "status": "done"}], "direction": "d"},
        )
        assert body["steps"][0]["icon"] == ICON_GLYPHS["mic"]

    def test_extraction_candidates(self):
        raw = {
            "candidates": [
                {"title": "**T**", "category": "marketing", "tags": ["a"] * 9}
            ] * 7
        }
        candidates = normalize(TaskKind.EXTRACT_KNOWLEDGE, raw)["candidates"]
        assert len(candidates) == 5
        assert candidates[0]["title"] == "T"
        assert candidates[0]["category"] == "other"
        assert len(candidates[0]["tags"]) == 5


class TestMissingRequired:
    def test_reports_missing_keys(self):
        assert missing_required(TaskKind.INSTAGRAM_REELS, {"hook": "x"}) == ["caption"]

    def test_empty_values_count_as_missing(self):
        assert missing_required(TaskKind.PROOFREAD_TEXT, {"proofread": ""}) == ["proofread"]

    def test_complete_body(self):
        assert missing_required(TaskKind.GENERIC, {"text": "ok"}) == []


class TestSchemaParity:
    @pytest.mark.parametrize("kind", list(TaskKind))
    def test_model_and_fallback_share_keys(self, kind: TaskKind):
        ctx = assemble_context(
            "Parity check",
            files=[{"name": "m.txt", "category": "minutes"}],
            source_text="Some text.",
        )
        model_like = {"unexpected": True}
        fallback_body = normalize(kind, fallback_for(kind, ctx))
        model_body = normalize(kind, model_like)
        assert set(fallback_body) == set(model_body)
        for key, value in fallback_body.items():
            assert type(value) is type(model_body[key])
