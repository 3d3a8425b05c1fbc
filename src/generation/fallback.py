"""Deterministic fallback generators, one per task kind.

Used when the backend is unconfigured or a call fails.  Each function
builds an object with the same keys and value types the model is asked
for, from fixed templates and simple conditionals over the context.
None of them perform I/O, read the clock, or use randomness, and none of
them raise for a minimal context (including an empty title).
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

from contentops.generation.models import FileCategory, GenerationContext, TaskKind

FallbackFn = Callable[[GenerationContext], dict[str, Any]]


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------


def _reels(ctx: GenerationContext) -> dict[str, Any]:
    t = ctx.title
    return {
        "hook": f"{t}: did you know?",
        "problem": "There is a point most people overlook.",
        "evidence": "Research data suggests it can make a difference.",
        "evidence_source": "References",
        "practice": "Three steps you can start tomorrow",
        "cta": "More via the link in our profile",
        "thumbnail_text": t[:20],
        "caption": f"{t}\n\nAn evidence-based explainer.\n\n*Individual results vary.",
        "hashtags": ["sportsnutrition", "famacademy"],
        "disclaimer": "*Individual results vary. Please consult a professional.",
    }


def _stories(ctx: GenerationContext) -> dict[str, Any]:
    return {
        "story_type": "step_learning",
        "poll_question": "",
        "slides": [
            {"text": ctx.title[:15], "sticker": "countdown", "image_note": "Image matching the theme"},
            {"text": "Here is the key point", "sticker": "none", "image_note": "Explainer image"},
            {"text": "Details via the link", "sticker": "link", "image_note": "CTA image"},
        ],
    }


def _feed(ctx: GenerationContext) -> dict[str, Any]:
    t = ctx.title
    return {
        "slide1_cover": f"Don't miss out:\n{t[:15]}",
        "slide2_misconception": "There is a common misconception",
        "slide3_truth": "Research shows it works",
        "slide4_practice": "Steps you can start tomorrow",
        "slide5_cta": "More via the link in our profile",
        "caption": f"{t}\n\nA science-based approach in 5 slides",
        "hashtags": ["sportsnutrition"],
        "disclaimer": "*Individual results vary.",
    }


def _event_lp(ctx: GenerationContext) -> dict[str, Any]:
    t = ctx.title
    return {
        "title": t,
        "subtitle": "A hands-on seminar grounded in scientific evidence",
        "event_date": "TBD",
        "event_location": "Online (Zoom)",
        "event_price": "Free",
        "cta_text": "Apply now",
        "benefits": [
            "Knowledge based on the latest evidence",
            "Know-how you can apply right away",
            "A chance to ask the experts",
        ],
        "faqs": [{"q": "Can I join without prior knowledge?", "a": "Yes, it is aimed at beginners."}],
        "meta_title": f"{t[:50]} | FAM",
        "meta_description": f"An evidence-based seminar on {t}.",
        "disclaimer": "*Contents may change without notice.",
    }


def _note(ctx: GenerationContext) -> dict[str, Any]:
    t = ctx.title
    return {
        "title_option1": t,
        "title_option2": f"{t}, explained scientifically",
        "lead": f"A look at {t} based on the latest research.",
        "body_markdown": (
            f"## Introduction\n\nThis article explains {t}.\n\n"
            "## The evidence\n\n...\n\n"
            "## How to practise it\n\n...\n\n"
            "## Summary\n\n*Individual results vary."
        ),
        "tags": ["sportsnutrition", "science"],
        "og_text": t[:25],
        "cta_label": "Sign up for a free trial",
        "disclaimer": "*General information only.",
    }


def _line(ctx: GenerationContext) -> dict[str, Any]:
    return {
        "delivery_type": "broadcast",
        "segment": "all",
        "message_text": f"[NEW] {ctx.title}\n\nDetails below ▼",
        "cta_label": "See details",
        "step_messages": [
            {"timing": "7 days before", "content": "Event announcement"},
            {"timing": "1 day before", "content": "Reminder"},
            {"timing": "1 day after", "content": "Thanks + survey"},
        ],
    }


def _generic(ctx: GenerationContext) -> dict[str, Any]:
    return {"text": ctx.title}


# ---------------------------------------------------------------------------
# Material analysis
# ---------------------------------------------------------------------------


def _analysis(ctx: GenerationContext) -> dict[str, Any]:
    minutes = ctx.files_in(FileCategory.MINUTES)
    transcripts = ctx.files_in(FileCategory.TRANSCRIPT)
    photos = ctx.files_in(FileCategory.PHOTO)

    steps: list[dict[str, str]] = []

    if minutes:
        names = ", ".join(f.name for f in minutes)
        steps.append({
            "label": "Overview from meeting minutes",
            "icon": "doc",
            "status": "done",
            "detail": f"Analysed {len(minutes)} minutes file(s) ({names}). Captured the plan's direction and theme.",
        })
    else:
        steps.append({
            "label": "Overview from meeting minutes",
            "icon": "doc",
            "status": "skipped",
            "detail": "No minutes found. Direction will be inferred from the other materials.",
        })

    if transcripts:
        steps.append({
            "label": "Details from transcripts",
            "icon": "mic",
            "status": "done",
            "detail": f"Read {len(transcripts)} transcript(s). Extracted key phrases and specialist insight.",
        })
    else:
        steps.append({
            "label": "Details from transcripts",
            "icon": "mic",
            "status": "skipped",
            "detail": "No transcripts. Proceeding from the minutes.",
        })

    if photos:
        steps.append({
            "label": "Photo usage and context",
            "icon": "image",
            "status": "done",
            "detail": f"Checked {len(photos)} photo(s). Usable as thumbnails, carousel slides or backgrounds.",
        })
    else:
        steps.append({
            "label": "Photo usage and context",
            "icon": "image",
            "status": "skipped",
            "detail": "No photos. Text-based visual directions will be used instead.",
        })

    if minutes and transcripts and photos:
        direction = (
            "Combine the plan from the minutes, the expertise in the transcripts and the photos"
            " for credible, visual content. Instagram Reels, note and LINE work well together."
        )
    elif minutes and transcripts:
        direction = (
            "Build text-led content on the minutes and transcripts."
            " note articles and LINE delivery work well."
        )
    elif minutes and photos:
        direction = (
            "Pair the plan from the minutes with the photos for visual appeal."
            " Instagram Reels, Feed and an event landing page work well."
        )
    elif minutes:
        direction = "Set the direction from the plan in the minutes. Every channel is an option."
    else:
        direction = (
            "Direction is inferred from the available materials."
            " Adding meeting minutes will sharpen the output."
        )

    return {"steps": steps, "direction": direction}


# ---------------------------------------------------------------------------
# Knowledge extraction
# ---------------------------------------------------------------------------

_KNOWLEDGE_THEMES: tuple[dict[str, Any], ...] = (
    {
        "title": "Planning decisions",
        "summary": "The key decisions about the plan for {folder}.",
        "body": (
            "The planning meeting for {folder} decided the following.\n\n"
            "- Clarify and prioritise the target audience\n"
            "- Delivery channels and frequency\n"
            "- Outline of the production schedule"
        ),
        "tags": ["planning", "policy"],
        "category": "process",
    },
    {
        "title": "Audience analysis findings",
        "summary": "Findings about the target audience from the minutes.",
        "body": (
            "Results of the audience analysis shared in the meeting.\n\n"
            "- Behaviour patterns and touchpoints of the main audience\n"
            "- Response rates of existing campaigns\n"
            "- Improvements for the next campaign"
        ),
        "tags": ["analysis", "marketing"],
        "category": "insight",
    },
    {
        "title": "Production workflow improvements",
        "summary": "What was discussed about improving the production process.",
        "body": (
            "The following improvements to the production flow were proposed.\n\n"
            "- Save time with templates\n"
            "- Simplify the review process\n"
            "- Use tools to work more efficiently"
        ),
        "tags": ["efficiency", "workflow"],
        "category": "process",
    },
)


def _extraction(ctx: GenerationContext) -> dict[str, Any]:
    sources = [
        f for f in ctx.files
        if f.category in (FileCategory.MINUTES, FileCategory.TRANSCRIPT)
    ] or list(ctx.files)
    folder = ctx.folder_name or ctx.title or "this project"

    candidates: list[dict[str, Any]] = []
    for i, f in enumerate(sources[:3]):
        theme = _KNOWLEDGE_THEMES[i % len(_KNOWLEDGE_THEMES)]
        candidates.append({
            "title": theme["title"],
            "summary": theme["summary"].format(folder=folder),
            "body": theme["body"].format(folder=folder),
            "tags": list(theme["tags"]),
            "category": theme["category"],
            "speakers": ["Attending members"],
            "source_file": f.name,
        })
    return {"candidates": candidates}


# ---------------------------------------------------------------------------
# Proofreading
# ---------------------------------------------------------------------------

_PUNCTUATION_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"、、"), "、"),
    (re.compile(r"。。"), "。"),
    (re.compile(r"、\s*。"), "。"),
)

_SIMPLIFICATIONS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"することができます"), "できます"),
    (re.compile(r"することが可能です"), "できます"),
    (re.compile(r"ということ(?:です|になります)"), "です"),
    (re.compile(r"といった形で"), "として"),
    (re.compile(r"を行う(?:こと)?"), "する"),
    (re.compile(r"させていただきます"), "します"),
    (re.compile(r"いただければと思います"), "ください"),
    (re.compile(r"という風に"), "のように"),
    (re.compile(r"の方が"), "が"),
    (re.compile(r"てしまいました"), "ました"),
    (re.compile(r"なのですが"), "ですが"),
    (re.compile(r"というのは"), "は"),
    (re.compile(r"\bin order to\b"), "to"),
    (re.compile(r"\bis able to\b"), "can"),
    (re.compile(r"\bat this point in time\b"), "now"),
)

_BLANK_LINES_RE = re.compile(r"\n{3,}")
_BULLET_RE = re.compile(r"^([ \t]*)(?:・[ \t]*|[-*][ \t]+)", re.MULTILINE)
_CONNECTIVE_RE = re.compile(r"^なので、", re.MULTILINE)
_FULLWIDTH_DIGIT_RE = re.compile(r"[０-９]")

# Only the first matching keyword adds its supplement.
SUPPLEMENTS: tuple[tuple[str, str], ...] = (
    ("効率", "💡 ポイント: 効率化を進める際は、まず現状の課題を明確にすることが重要です。"),
    ("Instagram", "📱 補足: Instagramの最新アルゴリズム動向も参考にしてみてください。"),
    ("テンプレート", "📋 Tip: テンプレートは定期的に見直し、改善を続けることが大切です。"),
    ("AI", "🤖 補足: AIツールの活用は日々進化しています。最新情報のキャッチアップも忘れずに。"),
)


def _add_supplement(text: str) -> str:
    if any(supplement in text for _, supplement in SUPPLEMENTS):
        return text
    for keyword, supplement in SUPPLEMENTS:
        if keyword in text:
            return f"{text}\n\n{supplement}"
    return text


def proofread_locally(text: str) -> tuple[str, list[str]]:
    """Apply local proofreading rules; return (text, notes)."""
    if not text.strip():
        return text, []

    notes: list[str] = []

    def _apply(result: str, rules: tuple[tuple[re.Pattern[str], str], ...], note: str) -> str:
        updated = result
        for pattern, replacement in rules:
            updated = pattern.sub(replacement, updated)
        if updated != result:
            notes.append(note)
        return updated

    result = _apply(text, _PUNCTUATION_RULES, "Collapsed doubled punctuation")
    result = _apply(result, _SIMPLIFICATIONS, "Simplified redundant phrasing")
    result = _apply(result, ((_BLANK_LINES_RE, "\n\n"),), "Collapsed extra blank lines")
    result = _apply(result, ((_BULLET_RE, r"\1- "),), "Unified bullet markers")
    result = _apply(result, ((_CONNECTIVE_RE, "そのため、"),), "Rewrote sentence-initial connective")

    digits = _FULLWIDTH_DIGIT_RE.sub(lambda m: chr(ord(m.group(0)) - 0xFEE0), result)
    if digits != result:
        notes.append("Converted full-width digits to half-width")
    result = digits.strip()

    supplemented = _add_supplement(result)
    if supplemented != result:
        notes.append("Added a supplementary tip")

    return supplemented, notes


def _proofread(ctx: GenerationContext) -> dict[str, Any]:
    proofread, notes = proofread_locally(ctx.source_text)
    return {"proofread": proofread, "notes": notes}


# ---------------------------------------------------------------------------
# Knowledge categorisation
# ---------------------------------------------------------------------------

_CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("tips", ("tips", "コツ", "ポイント")),
    ("howto", ("how to", "how-to", "step", "方法", "やり方", "手順", "ステップ")),
    ("tool", ("tool", "app", "service", "ツール", "アプリ", "サービス")),
    ("process", ("process", "efficiency", "improve", "workflow", "プロセス", "効率", "改善", "フロー")),
    ("insight", ("analysis", "result", "learned", "分析", "結果", "気づき", "わかった")),
    ("resource", ("template", "resource", "reference", "テンプレート", "リソース", "参考", "共有")),
    ("announcement", ("announce", "launch", "change", "お知らせ", "導入", "変更", "開始")),
)

TAG_KEYWORDS: tuple[str, ...] = (
    "Instagram", "LINE", "note", "Twitter", "TikTok",
    "Reels", "Stories", "Feed",
    "ChatGPT", "AI", "Prompt",
    "Design", "Canva", "Figma",
    "Review", "Content", "Marketing",
    "Analysis", "Efficiency", "Automation",
    "Template", "Checklist",
    "Image", "Video", "Writing",
)


def _mentions(text: str, keyword: str) -> bool:
    """Word match for ASCII keywords, substring match otherwise."""
    keyword = keyword.lower()
    if keyword.isascii():
        return re.search(rf"\b{re.escape(keyword)}\b", text) is not None
    return keyword in text


def _categorize(ctx: GenerationContext) -> dict[str, Any]:
    text = f"{ctx.title} {ctx.source_text}".lower()

    category = "other"
    for candidate, keywords in _CATEGORY_KEYWORDS:
        if any(_mentions(text, kw) for kw in keywords):
            category = candidate
            break

    tags = [kw for kw in TAG_KEYWORDS if _mentions(text, kw)]
    return {"category": category, "tags": tags[:5]}


FALLBACKS: dict[TaskKind, FallbackFn] = {
    TaskKind.INSTAGRAM_REELS: _reels,
    TaskKind.INSTAGRAM_STORIES: _stories,
    TaskKind.INSTAGRAM_FEED: _feed,
    TaskKind.EVENT_LP: _event_lp,
    TaskKind.NOTE: _note,
    TaskKind.LINE: _line,
    TaskKind.ANALYZE_MATERIALS: _analysis,
    TaskKind.EXTRACT_KNOWLEDGE: _extraction,
    TaskKind.PROOFREAD_TEXT: _proofread,
    TaskKind.CATEGORIZE_KNOWLEDGE: _categorize,
    TaskKind.GENERIC: _generic,
}


def fallback_for(kind: TaskKind, ctx: GenerationContext) -> dict[str, Any]:
    """Build the deterministic fallback body for *kind*."""
    return FALLBACKS[kind](ctx)
