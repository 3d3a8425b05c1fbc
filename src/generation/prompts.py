"""Prompt compiler: GenerationContext + task kind → one instruction string.

Every compiled prompt has four parts, in order: a role/goal preamble, a
context block (only the fields that are present), task-specific rules,
and an output-schema example.  Compilation is pure: the same inputs
always give the same string.
"""

from __future__ import annotations

from collections.abc import Callable

from contentops.generation.models import (
    FileCategory,
    GenerationContext,
    TaskKind,
)

KNOWLEDGE_CATEGORIES: tuple[str, ...] = (
    "tips",
    "howto",
    "tool",
    "process",
    "insight",
    "resource",
    "announcement",
    "other",
)

TONE_DESCRIPTIONS: dict[str, str] = {
    "scientific": "Scientific and evidence-based. Lean on research data and expert opinion.",
    "casual": "Casual and friendly. Everyday words that stay close to the reader.",
    "professional": "Professional and trustworthy. Use industry terms accurately to build authority.",
    "emotional": "Emotionally engaging. Prioritise storytelling and empathy.",
}

_JSON_ONLY = "Return ONLY the JSON object, no other text."

_CHANNEL_PREAMBLE = (
    "You are a professional multi-channel content operator.\n"
    "Using the information below, generate content for the specified channel."
)

_PLAIN_TEXT_RULES = (
    "## Style rules\n\n"
    "Be brief. Keep sentences short, in the natural voice of a senior colleague"
    " explaining to a junior one.\n"
    "Do not use abstract filler such as \"a multifaceted approach\" or"
    " \"a comprehensive strategy\".\n"
    "Do not use the \"**Label:** explanation\" form.\n"
    "Do not use any Markdown symbols (** * # etc.)."
)

# ---------------------------------------------------------------------------
# Output schema examples
# ---------------------------------------------------------------------------

SCHEMAS: dict[TaskKind, str] = {
    TaskKind.INSTAGRAM_REELS: """{
  "hook": "Line that grabs attention in the first 3 seconds",
  "problem": "Problem statement (10 seconds)",
  "evidence": "Evidence and rationale (20 seconds)",
  "evidence_source": "Citation",
  "practice": "Practical example or concrete action (15 seconds)",
  "cta": "Call to action (7 seconds)",
  "thumbnail_text": "Thumbnail text (20 characters max)",
  "caption": "Full caption (300 characters max)",
  "hashtags": ["tag1", "tag2"],
  "disclaimer": "Disclaimer"
}""",
    TaskKind.INSTAGRAM_STORIES: """{
  "story_type": "step_learning | poll | announcement",
  "poll_question": "Poll question (poll only)",
  "slides": [
    { "text": "Slide text (15 characters max)", "sticker": "question | countdown | link | none", "image_note": "Background image direction" }
  ]
}""",
    TaskKind.INSTAGRAM_FEED: """{
  "slide1_cover": "Cover text",
  "slide2_misconception": "Common misconception",
  "slide3_truth": "Correct understanding (with evidence)",
  "slide4_practice": "How to put it into practice",
  "slide5_cta": "CTA",
  "caption": "Full caption",
  "hashtags": ["tag1", "tag2"],
  "disclaimer": "Disclaimer"
}""",
    TaskKind.EVENT_LP: """{
  "title": "Landing page title",
  "subtitle": "Sub copy",
  "event_date": "Suggested date and time",
  "event_location": "Suggested venue",
  "event_price": "Suggested price",
  "cta_text": "CTA button text",
  "benefits": ["Benefit 1", "Benefit 2", "Benefit 3"],
  "faqs": [{ "q": "Question", "a": "Answer" }],
  "meta_title": "Meta title (60 characters max)",
  "meta_description": "Meta description (120 characters max)",
  "disclaimer": "Disclaimer"
}""",
    TaskKind.NOTE: """{
  "title_option1": "Title option 1 (number-driven)",
  "title_option2": "Title option 2 (question form)",
  "lead": "Lead paragraph (100 characters max)",
  "body_markdown": "Body in Markdown with 3-5 h2 headings",
  "tags": ["tag1", "tag2"],
  "og_text": "OG image text (25 characters max)",
  "cta_label": "CTA",
  "disclaimer": "Disclaimer"
}""",
    TaskKind.LINE: """{
  "delivery_type": "broadcast",
  "segment": "all | b2b_team | b2c_subscriber | academy_student",
  "message_text": "Message body (line breaks and CTA included)",
  "cta_label": "CTA text",
  "step_messages": [
    { "timing": "7 days before", "content": "Message" },
    { "timing": "1 day before", "content": "Message" },
    { "timing": "1 day after", "content": "Message" }
  ]
}""",
    TaskKind.ANALYZE_MATERIALS: """{
  "steps": [
    { "label": "Overview from meeting minutes", "icon": "doc", "status": "done | skipped", "detail": "Brief analysis (100 characters max)" },
    { "label": "Details from transcripts", "icon": "mic", "status": "done | skipped", "detail": "Brief analysis (100 characters max)" },
    { "label": "Photo usage and context", "icon": "image", "status": "done | skipped", "detail": "Brief analysis (100 characters max)" }
  ],
  "direction": "Overall judgement: which channel mix will work best (150 characters max)"
}""",
    TaskKind.EXTRACT_KNOWLEDGE: """{
  "candidates": [
    {
      "title": "...",
      "summary": "...",
      "body": "...",
      "tags": ["..."],
      "category": "...",
      "speakers": ["..."],
      "source_file": "..."
    }
  ]
}""",
    TaskKind.PROOFREAD_TEXT: """{
  "proofread": "The full corrected text",
  "notes": ["One short note per change"]
}""",
    TaskKind.CATEGORIZE_KNOWLEDGE: """{
  "category": "tips | howto | tool | process | insight | resource | announcement | other",
  "tags": ["tag1", "tag2"]
}""",
    TaskKind.GENERIC: """{ "text": "Generated content text" }""",
}

_CHANNEL_RULES: dict[TaskKind, str] = {
    TaskKind.INSTAGRAM_REELS: (
        "## Channel: Instagram Reels\n\n"
        "Script structure: Hook (3s) → Problem (10s) → Evidence (20s)"
        " → Practice (15s) → CTA (7s)"
    ),
    TaskKind.INSTAGRAM_STORIES: (
        "## Channel: Instagram Stories\n\n"
        "A 3-5 slide step sequence that delivers one lesson."
    ),
    TaskKind.INSTAGRAM_FEED: (
        "## Channel: Instagram Feed (5-slide carousel)\n\n"
        "Slide 1: Cover (problem or number hook)\n"
        "Slide 2: Common misconception\n"
        "Slide 3: Correct understanding (with evidence)\n"
        "Slide 4: How to practise it\n"
        "Slide 5: CTA + disclaimer"
    ),
    TaskKind.EVENT_LP: (
        "## Channel: Event landing page\n\n"
        "Generate the hero, value proposition, FAQ and SEO fields."
    ),
    TaskKind.NOTE: (
        "## Channel: note article\n\n"
        "Three title options, a lead, a Markdown body, tags and a CTA."
    ),
    TaskKind.LINE: (
        "## Channel: LINE delivery\n\n"
        "Message body, target segment and step-delivery messages."
    ),
    TaskKind.GENERIC: "",
}


# ---------------------------------------------------------------------------
# Context block
# ---------------------------------------------------------------------------


def _render_file_list(ctx: GenerationContext) -> str:
    return "\n".join(f"- {f.name} ({f.category})" for f in ctx.files)


def _render_materials(ctx: GenerationContext) -> str:
    folder = f"Folder: {ctx.folder_name}\n" if ctx.folder_name else ""
    return f"{folder}Files:\n{_render_file_list(ctx)}"


def _render_excerpts(ctx: GenerationContext, lead: str) -> str:
    parts = [f"## Uploaded file contents\n\n{lead}\n"]
    for fc in ctx.file_excerpts:
        parts.append(f"### {fc.name}\n```\n{fc.text}\n```\n")
    return "\n".join(parts)


def render_context_block(ctx: GenerationContext) -> str:
    """Render only the context fields that are present."""
    sections = [f"## Content\nTitle: {ctx.title}\nSummary: {ctx.summary or ctx.title}"]

    if ctx.files:
        sections.append(
            "## Reference files\n"
            f"{_render_file_list(ctx)}\n\n"
            "Use the reference materials to produce concrete, practical content.\n"
            "Make the most of the themes that can be inferred from the file names."
        )

    if ctx.file_excerpts:
        sections.append(
            _render_excerpts(
                ctx,
                "Generate accurate, concrete content based on the file contents below."
                " Use the actual content rather than guessing from file names;"
                " it takes priority over the file list above.",
            )
        )

    if ctx.direction:
        sections.append(f"## Direction from material analysis\n{ctx.direction}")

    if ctx.tone:
        sections.append(f"## Tone\n{TONE_DESCRIPTIONS.get(ctx.tone, ctx.tone)}")

    if ctx.custom_instructions:
        sections.append(f"## Additional instructions\n{ctx.custom_instructions}")

    return "\n\n".join(sections)


def _output_section(kind: TaskKind) -> str:
    return f"## Output JSON format\n{SCHEMAS[kind]}\n\n{_JSON_ONLY}"


# ---------------------------------------------------------------------------
# Task builders
# ---------------------------------------------------------------------------


def _compile_channel(ctx: GenerationContext, kind: TaskKind) -> str:
    parts = [_CHANNEL_PREAMBLE, render_context_block(ctx)]
    rules = _CHANNEL_RULES.get(kind, "")
    if rules:
        parts.append(rules)
    parts.append(_output_section(kind))
    return "\n\n".join(parts)


def _compile_analysis(ctx: GenerationContext, kind: TaskKind) -> str:
    minutes = ctx.files_in(FileCategory.MINUTES)
    transcripts = ctx.files_in(FileCategory.TRANSCRIPT)
    photos = ctx.files_in(FileCategory.PHOTO)
    source = "from the file contents" if ctx.file_excerpts else "from the file names"

    parts = [
        "You are a senior director on a multi-channel content operations team.\n"
        "Analyse the uploaded material files and decide the direction for content generation.",
        "## Materials\n\n"
        f"{_render_materials(ctx)}\n\n"
        f"Meeting minutes: {len(minutes)}\n"
        f"Transcripts: {len(transcripts)}\n"
        f"Photos: {len(photos)}",
    ]
    if ctx.file_excerpts:
        parts.append(
            _render_excerpts(
                ctx,
                "Base the analysis on these file contents, not only on the file names.",
            )
        )
    parts.append(
        "## Thinking process\n\n"
        "Analyse in three steps:\n\n"
        "Step 1: Overview from meeting minutes\n"
        f"- If there are minutes, infer the plan's direction and theme {source}\n"
        "- Otherwise mark the step as skipped\n\n"
        "Step 2: Details from transcripts\n"
        f"- If there are transcripts, infer specialist content and key phrases {source}\n"
        "- Otherwise skip\n\n"
        "Step 3: Photo usage\n"
        "- If there are photos, judge from the file names which channels can use them\n"
        "- Otherwise skip"
    )
    parts.append(_PLAIN_TEXT_RULES)
    parts.append(_output_section(kind))
    return "\n\n".join(parts)


def _compile_extraction(ctx: GenerationContext, kind: TaskKind) -> str:
    categories = " / ".join(KNOWLEDGE_CATEGORIES)
    parts = [
        "You are the team's knowledge management specialist.\n"
        "Extract the knowledge worth sharing with the team from meeting minutes and transcripts.",
        f"## Input\n\n{_render_materials(ctx)}",
    ]
    if ctx.file_excerpts:
        parts.append(
            _render_excerpts(ctx, "Extract from these contents rather than from the file names.")
        )
    parts.append(
        "## Task\n\n"
        "Analyse these files and extract 1 to 5 knowledge items for the team.\n\n"
        "Each item should be:\n"
        "- An insight, lesson or decision other members would benefit from knowing\n"
        "- Something that contains a concrete action or method\n"
        "- One theme per item (never pack several themes into one)"
    )
    parts.append(
        "## Fields for each item\n\n"
        "1. title: short title (about 20 characters)\n"
        "2. summary: one or two sentences on what the reader learns\n"
        "3. body: practical knowledge text grounded in the minutes. Plain text only (no Markdown)\n"
        "4. tags: 1 to 3 related tags\n"
        f"5. category: one of {categories}\n"
        "6. speakers: speaker names; if unknown, infer the attending members\n"
        "7. source_file: the main source file name"
    )
    parts.append(
        "## Formatting rules\n\n"
        "- body is plain text only. **bold**, # headings and \"Label: text\" lines are forbidden\n"
        "- Simple \"- \" bullets are allowed\n"
        "- Keep the voice of the minutes. Avoid abstract AI-sounding phrasing"
    )
    parts.append(_output_section(kind))
    return "\n\n".join(parts)


def _compile_proofread(ctx: GenerationContext, kind: TaskKind) -> str:
    parts = [
        "You are a careful copy editor.\n"
        "Proofread the text below without changing its meaning or voice.",
        "## Rules\n\n"
        "- Fix typos, doubled punctuation and inconsistent bullet markers\n"
        "- Simplify redundant phrasing\n"
        "- Keep paragraph breaks; collapse runs of blank lines into one\n"
        "- Do not add new facts or headings",
        f"## Text\n```\n{ctx.source_text}\n```",
        _output_section(kind),
    ]
    return "\n\n".join(parts)


def _compile_categorize(ctx: GenerationContext, kind: TaskKind) -> str:
    categories = ", ".join(KNOWLEDGE_CATEGORIES)
    parts = [
        "You classify knowledge-sharing posts for a content team.",
        f"## Post\nTitle: {ctx.title}\n\n{ctx.source_text}",
        "## Rules\n\n"
        f"- category must be exactly one of: {categories}\n"
        "- Use \"other\" when nothing fits\n"
        "- Give at most 5 short tags",
        _output_section(kind),
    ]
    return "\n\n".join(parts)


PROMPT_BUILDERS: dict[TaskKind, Callable[[GenerationContext, TaskKind], str]] = {
    TaskKind.INSTAGRAM_REELS: _compile_channel,
    TaskKind.INSTAGRAM_STORIES: _compile_channel,
    TaskKind.INSTAGRAM_FEED: _compile_channel,
    TaskKind.EVENT_LP: _compile_channel,
    TaskKind.NOTE: _compile_channel,
    TaskKind.LINE: _compile_channel,
    TaskKind.ANALYZE_MATERIALS: _compile_analysis,
    TaskKind.EXTRACT_KNOWLEDGE: _compile_extraction,
    TaskKind.PROOFREAD_TEXT: _compile_proofread,
    TaskKind.CATEGORIZE_KNOWLEDGE: _compile_categorize,
    TaskKind.GENERIC: _compile_channel,
}


def compile_prompt(ctx: GenerationContext, kind: TaskKind) -> str:
    """Compile the instruction string for *kind*."""
    return PROMPT_BUILDERS[kind](ctx, kind)
