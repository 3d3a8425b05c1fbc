"""Result normalizer with one set of field rules per task kind.

The same rules run over model output and fallback output, so the two
paths can only be told apart by the provenance tag.  Normalized bodies
contain exactly the keys the rules name: missing keys get a default of
the right type and unknown keys are dropped.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from contentops.generation.models import TaskKind
from contentops.generation.prompts import KNOWLEDGE_CATEGORIES

CONTINUATION_MARKER = "…"

FieldType = Literal["text", "enum", "list", "objects"]


@dataclass(frozen=True)
class FieldRule:
    """Constraint for one key of a result body."""

    name: str
    type: FieldType = "text"
    required: bool = False
    plain: bool = False
    max_chars: int | None = None
    choices: tuple[str, ...] = ()
    default: str = ""
    max_items: int | None = None
    items: tuple[FieldRule, ...] = ()
    mapping: Mapping[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Text transforms
# ---------------------------------------------------------------------------

_MARKUP_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\*\*(.+?)\*\*"), r"\1"),
    (re.compile(r"__(.+?)__"), r"\1"),
    (re.compile(r"\*(.+?)\*"), r"\1"),
    (re.compile(r"~~(.+?)~~"), r"\1"),
    (re.compile(r"^#{1,6}\s+", re.MULTILINE), ""),
    # "- Label: text" bullets lose the label
    (re.compile(r"^(-\s+)[^:：\n]{2,20}[:：]\s*", re.MULTILINE), r"\1"),
)


def strip_markup(text: str) -> str:
    """Remove bold, italic, strikethrough and heading markers."""
    for pattern, replacement in _MARKUP_RULES:
        text = pattern.sub(replacement, text)
    return text


def truncate_text(text: str, max_chars: int) -> str:
    """Cut *text* so that, marker included, it fits in *max_chars*."""
    if len(text) <= max_chars:
        return text
    return text[: max(max_chars - 1, 0)] + CONTINUATION_MARKER


def clamp_enum(value: Any, choices: tuple[str, ...], default: str) -> str:
    """Return *value* if it is one of *choices*, else *default*."""
    if isinstance(value, str) and value in choices:
        return value
    return default


def cap_list(value: Any, max_items: int | None) -> list[Any]:
    """Coerce to a list and keep the first *max_items* entries."""
    if not isinstance(value, list):
        return []
    if max_items is None:
        return list(value)
    return value[:max_items]


# ---------------------------------------------------------------------------
# Rule application
# ---------------------------------------------------------------------------


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, bool)):
        return str(value)
    return ""


def _apply_text(rule: FieldRule, value: Any) -> str:
    text = _as_text(value)
    text = rule.mapping.get(text, text)
    if rule.plain:
        text = strip_markup(text)
    if rule.max_chars is not None:
        text = truncate_text(text, rule.max_chars)
    return text


def _apply(rule: FieldRule, value: Any) -> Any:
    if rule.type == "enum":
        return clamp_enum(value, rule.choices, rule.default)
    if rule.type == "list":
        items = [_apply_text(rule, v) for v in cap_list(value, None)]
        return [v for v in items if v][: rule.max_items]
    if rule.type == "objects":
        objects = [v for v in cap_list(value, None) if isinstance(v, dict)]
        return [_apply_rules(rule.items, obj) for obj in objects[: rule.max_items]]
    return _apply_text(rule, value)


def _apply_rules(rules: tuple[FieldRule, ...], body: Mapping[str, Any]) -> dict[str, Any]:
    return {rule.name: _apply(rule, body.get(rule.name)) for rule in rules}


def missing_required(kind: TaskKind, body: Mapping[str, Any]) -> list[str]:
    """Names of required keys that are absent or empty in *body*."""
    missing: list[str] = []
    for rule in RULES[kind]:
        if not rule.required:
            continue
        value = body.get(rule.name)
        if value is None or value == "" or value == []:
            missing.append(rule.name)
    return missing


def normalize(kind: TaskKind, body: Mapping[str, Any]) -> dict[str, Any]:
    """Enforce the field rules for *kind* on a raw result body."""
    return _apply_rules(RULES[kind], body)


# ---------------------------------------------------------------------------
# Per-kind rules
# ---------------------------------------------------------------------------

ICON_GLYPHS: dict[str, str] = {
    "doc": "\U0001F4C4",
    "mic": "\U0001F3A4",
    "image": "\U0001F5BC",
}

_HASHTAGS = FieldRule("hashtags", "list", max_items=10)
_DISCLAIMER = FieldRule("disclaimer", plain=True)

RULES: dict[TaskKind, tuple[FieldRule, ...]] = {
    TaskKind.INSTAGRAM_REELS: (
        FieldRule("hook", required=True, plain=True),
        FieldRule("problem", plain=True),
        FieldRule("evidence", plain=True),
        FieldRule("evidence_source", plain=True),
        FieldRule("practice", plain=True),
        FieldRule("cta", plain=True),
        FieldRule("thumbnail_text", plain=True, max_chars=20),
        FieldRule("caption", required=True, plain=True, max_chars=300),
        _HASHTAGS,
        _DISCLAIMER,
    ),
    TaskKind.INSTAGRAM_STORIES: (
        FieldRule(
            "story_type", "enum",
            choices=("step_learning", "poll", "announcement"),
            default="step_learning",
        ),
        FieldRule("poll_question", plain=True),
        FieldRule(
            "slides", "objects", required=True, max_items=5,
            items=(
                FieldRule("text", plain=True, max_chars=15),
                FieldRule(
                    "sticker", "enum",
                    choices=("question", "countdown", "link", "none"),
                    default="none",
                ),
                FieldRule("image_note", plain=True),
            ),
        ),
    ),
    TaskKind.INSTAGRAM_FEED: (
        FieldRule("slide1_cover", required=True, plain=True),
        FieldRule("slide2_misconception", plain=True),
        FieldRule("slide3_truth", plain=True),
        FieldRule("slide4_practice", plain=True),
        FieldRule("slide5_cta", plain=True),
        FieldRule("caption", required=True, plain=True, max_chars=2200),
        _HASHTAGS,
        _DISCLAIMER,
    ),
    TaskKind.EVENT_LP: (
        FieldRule("title", required=True, plain=True),
        FieldRule("subtitle", plain=True),
        FieldRule("event_date", plain=True),
        FieldRule("event_location", plain=True),
        FieldRule("event_price", plain=True),
        FieldRule("cta_text", required=True, plain=True),
        FieldRule("benefits", "list", plain=True, max_items=5),
        FieldRule(
            "faqs", "objects", max_items=10,
            items=(FieldRule("q", plain=True), FieldRule("a", plain=True)),
        ),
        FieldRule("meta_title", plain=True, max_chars=60),
        FieldRule("meta_description", plain=True, max_chars=120),
        _DISCLAIMER,
    ),
    TaskKind.NOTE: (
        FieldRule("title_option1", required=True, plain=True),
        FieldRule("title_option2", plain=True),
        FieldRule("lead", plain=True, max_chars=100),
        FieldRule("body_markdown", required=True),
        FieldRule("tags", "list", max_items=5),
        FieldRule("og_text", plain=True, max_chars=25),
        FieldRule("cta_label", plain=True),
        _DISCLAIMER,
    ),
    TaskKind.LINE: (
        FieldRule("delivery_type", "enum", choices=("broadcast", "step"), default="broadcast"),
        FieldRule(
            "segment", "enum",
            choices=("all", "b2b_team", "b2c_subscriber", "academy_student"),
            default="all",
        ),
        FieldRule("message_text", required=True, plain=True),
        FieldRule("cta_label", plain=True),
        FieldRule(
            "step_messages", "objects", max_items=5,
            items=(FieldRule("timing", plain=True), FieldRule("content", plain=True)),
        ),
    ),
    TaskKind.ANALYZE_MATERIALS: (
        FieldRule(
            "steps", "objects", required=True, max_items=3,
            items=(
                FieldRule("label", plain=True),
                FieldRule("icon", mapping=ICON_GLYPHS),
                FieldRule("status", "enum", choices=("done", "skipped"), default="skipped"),
                FieldRule("detail", plain=True, max_chars=100),
            ),
        ),
        FieldRule("direction", required=True, plain=True, max_chars=150),
    ),
    TaskKind.EXTRACT_KNOWLEDGE: (
        FieldRule(
            "candidates", "objects", required=True, max_items=5,
            items=(
                FieldRule("title", plain=True, max_chars=50),
                FieldRule("summary", plain=True),
                FieldRule("body", plain=True),
                FieldRule("tags", "list", max_items=5),
                FieldRule("category", "enum", choices=KNOWLEDGE_CATEGORIES, default="other"),
                FieldRule("speakers", "list"),
                FieldRule("source_file"),
            ),
        ),
    ),
    TaskKind.PROOFREAD_TEXT: (
        FieldRule("proofread", required=True),
        FieldRule("notes", "list", plain=True, max_items=10),
    ),
    TaskKind.CATEGORIZE_KNOWLEDGE: (
        FieldRule("category", "enum", required=True, choices=KNOWLEDGE_CATEGORIES, default="other"),
        FieldRule("tags", "list", max_items=5),
    ),
    TaskKind.GENERIC: (FieldRule("text", required=True),),
}
