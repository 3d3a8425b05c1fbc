"""CLI interface for contentops."""

import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from contentops.config import ContentOpsConfig, load_config, merge_cli_overrides
from contentops.content.models import ContentRecord, VariantStatus
from contentops.content.store import ContentStore, JsonVariantStore, TaskConfigStore
from contentops.diff import DiffSegment, DiffTooLargeError, diff, render_html, render_rich
from contentops.generation import (
    CHANNEL_KINDS,
    ContextError,
    GenerationResult,
    analyze_materials,
    assemble_context,
    categorize_knowledge,
    extract_knowledge,
    generate_channel_content,
    proofread_text,
)
from contentops.pipeline.variants import generate_variants
from contentops.shared.llm import GeminiBackend
from contentops.variants import lifecycle
from contentops.variants.materializer import VariantMaterializer

app = typer.Typer(
    name="contentops",
    help="Generate channel content from source materials with Gemini or local fallbacks.",
)
variants_app = typer.Typer(help="Manage stored channel variants.")
app.add_typer(variants_app, name="variants")

console = Console()

# Image files are listed by name only; their bytes are never read as text
_BINARY_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".heic", ".pdf"}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from contentops import __version__

        console.print(f"contentops {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    level = logging.DEBUG if verbose else logging.WARNING
    handler: logging.Handler
    if verbose:
        handler = RichHandler(console=Console(stderr=True), show_path=False)
    else:
        handler = logging.StreamHandler(sys.stderr)
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", help="Path to a .contentops.toml file."),
    ] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Directory for the JSON stores."),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", help="Gemini model for every task."),
    ] = None,
    timeout: Annotated[
        int | None,
        typer.Option("--timeout", help="Gemini request timeout in seconds."),
    ] = None,
) -> None:
    """contentops - multi-channel content generation."""
    _setup_logging(verbose)
    config = load_config(config_path)
    ctx.obj = merge_cli_overrides(
        config,
        output_directory=str(output_dir) if output_dir else None,
        model=model,
        timeout=timeout,
    )


def _config(ctx: typer.Context) -> ContentOpsConfig:
    return ctx.obj if isinstance(ctx.obj, ContentOpsConfig) else load_config()


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
    raise typer.Exit(1)


def _print_response(result: GenerationResult) -> None:
    response = result.to_response()
    console.print_json(data=response)
    if result.failure_reason:
        console.print(f"[yellow]Fallback used:[/yellow] {escape(result.failure_reason)}", highlight=False)


def _parse_file_specs(
    specs: list[str] | None,
) -> tuple[list[dict[str, str]], list[dict[str, str]]]:
    """Turn ``PATH[:CATEGORY]`` specs into file descriptors and contents."""
    files: list[dict[str, str]] = []
    contents: list[dict[str, str]] = []
    for spec in specs or []:
        raw_path, _, category = spec.partition(":")
        path = Path(raw_path)
        files.append({"name": path.name, "category": category or "other"})
        if path.is_file() and path.suffix.lower() not in _BINARY_SUFFIXES:
            contents.append({
                "name": path.name,
                "content": path.read_text(encoding="utf-8", errors="replace"),
            })
    return files, contents


def _read_text(source: str) -> str:
    """Read text from a file path, or stdin when *source* is ``-``."""
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.is_file():
        _fail(f"File not found: {source}")
    return path.read_text(encoding="utf-8")


FileOption = Annotated[
    list[str] | None,
    typer.Option(
        "--file",
        "-f",
        help="Reference file as PATH[:CATEGORY] (minutes, transcript, photo, other).",
    ),
]


@app.command()
def generate(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Subject title.")],
    channel: Annotated[
        list[str] | None,
        typer.Option("--channel", "-c", help="Channel to generate for (repeatable)."),
    ] = None,
    summary: Annotated[str, typer.Option("--summary", "-s", help="Subject summary.")] = "",
    files: FileOption = None,
    tone: Annotated[str | None, typer.Option("--tone", help="Tone hint.")] = None,
    direction: Annotated[str, typer.Option("--direction", help="Direction from analysis.")] = "",
    instructions: Annotated[
        str, typer.Option("--instructions", help="Custom instructions.")
    ] = "",
) -> None:
    """Generate channel content for a subject without storing it."""
    config = _config(ctx)
    descriptors, contents = _parse_file_specs(files)
    try:
        gen_ctx = assemble_context(
            title,
            summary,
            files=descriptors,
            file_contents=contents,
            tone=tone,
            direction=direction,
            custom_instructions=instructions,
            excerpt_limit=config.context.excerpt_limit,
        )
    except ContextError as exc:
        _fail(str(exc))

    backend = GeminiBackend.from_config(config)
    channels = channel or sorted(str(k) for k in CHANNEL_KINDS)
    for name in channels:
        console.print(f"[bold]{name}[/bold]")
        result = generate_channel_content(
            gen_ctx, name, backend=backend, settings=config.task_settings(name)
        )
        _print_response(result)


@app.command()
def analyze(
    ctx: typer.Context,
    files: FileOption = None,
    folder: Annotated[str, typer.Option("--folder", help="Source folder name.")] = "",
) -> None:
    """Summarize what a set of reference files contains."""
    config = _config(ctx)
    descriptors, contents = _parse_file_specs(files)
    try:
        gen_ctx = assemble_context(
            folder,
            files=descriptors,
            file_contents=contents,
            folder_name=folder,
            excerpt_limit=config.context.excerpt_limit,
            require_title=False,
        )
        result = analyze_materials(
            gen_ctx,
            backend=GeminiBackend.from_config(config),
            settings=config.task_settings("analyze_materials"),
        )
    except ContextError as exc:
        _fail(str(exc))
    _print_response(result)


@app.command()
def extract(
    ctx: typer.Context,
    files: FileOption = None,
    folder: Annotated[str, typer.Option("--folder", help="Source folder name.")] = "",
) -> None:
    """Extract knowledge candidates from reference files."""
    config = _config(ctx)
    descriptors, contents = _parse_file_specs(files)
    try:
        gen_ctx = assemble_context(
            folder,
            files=descriptors,
            file_contents=contents,
            folder_name=folder,
            excerpt_limit=config.context.excerpt_limit,
            require_title=False,
        )
        result = extract_knowledge(
            gen_ctx,
            backend=GeminiBackend.from_config(config),
            settings=config.task_settings("extract_knowledge"),
        )
    except ContextError as exc:
        _fail(str(exc))
    _print_response(result)


@app.command()
def proofread(
    ctx: typer.Context,
    source: Annotated[str, typer.Argument(help="Text file to proofread, or - for stdin.")],
) -> None:
    """Proofread text and highlight what the revision adds."""
    config = _config(ctx)
    text = _read_text(source)
    try:
        gen_ctx = assemble_context("", source_text=text, require_title=False)
        result = proofread_text(
            gen_ctx,
            backend=GeminiBackend.from_config(config),
            settings=config.task_settings("proofread_text"),
            max_cells=config.diff.max_cells,
        )
    except ContextError as exc:
        _fail(str(exc))

    body = result.body
    if not body["changes_made"]:
        console.print("[green]No changes needed.[/green]")
    else:
        console.print(render_rich(DiffSegment.model_validate(s) for s in body["segments"]))
    for note in body["notes"]:
        console.print(f"  - {note}", markup=False)
    if result.failure_reason:
        console.print(f"[yellow]Fallback used:[/yellow] {escape(result.failure_reason)}", highlight=False)


@app.command()
def categorize(
    ctx: typer.Context,
    source: Annotated[str, typer.Argument(help="Text file to categorize, or - for stdin.")],
    title: Annotated[str, typer.Option("--title", "-t", help="Knowledge title.")] = "",
) -> None:
    """Assign a knowledge category and tags to a text."""
    config = _config(ctx)
    text = _read_text(source)
    try:
        gen_ctx = assemble_context(title, source_text=text, require_title=False)
        result = categorize_knowledge(
            gen_ctx,
            backend=GeminiBackend.from_config(config),
            settings=config.task_settings("categorize_knowledge"),
        )
    except ContextError as exc:
        _fail(str(exc))
    _print_response(result)


@app.command(name="diff")
def diff_cmd(
    ctx: typer.Context,
    original: Annotated[Path, typer.Argument(help="Original text file.")],
    modified: Annotated[Path, typer.Argument(help="Revised text file.")],
    as_html: Annotated[bool, typer.Option("--html", help="Print HTML instead.")] = False,
) -> None:
    """Highlight the clauses a revision adds to an original."""
    config = _config(ctx)
    for path in (original, modified):
        if not path.is_file():
            _fail(f"File not found: {path}")
    try:
        segments = diff(
            original.read_text(encoding="utf-8"),
            modified.read_text(encoding="utf-8"),
            max_cells=config.diff.max_cells,
        )
    except DiffTooLargeError as exc:
        _fail(str(exc))

    if as_html:
        console.print(render_html(segments), markup=False, highlight=False, soft_wrap=True)
    else:
        console.print(render_rich(segments))


@app.command()
def health(ctx: typer.Context) -> None:
    """Check whether Gemini is configured and reachable."""
    status = GeminiBackend.from_config(_config(ctx)).check_health()
    console.print_json(data=status)
    if not status["is_available"]:
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# variants sub-commands
# ---------------------------------------------------------------------------


def _stores(config: ContentOpsConfig) -> tuple[ContentStore, JsonVariantStore]:
    return ContentStore(config.output_dir), JsonVariantStore(config.output_dir)


@variants_app.command("add")
def variants_add(
    ctx: typer.Context,
    content_id: Annotated[str, typer.Argument(help="Content id.")],
    title: Annotated[str, typer.Option("--title", "-t", help="Subject title.")],
    summary: Annotated[str, typer.Option("--summary", "-s", help="Subject summary.")] = "",
    channel: Annotated[
        list[str] | None,
        typer.Option("--channel", "-c", help="Target channel (repeatable)."),
    ] = None,
) -> None:
    """Register a content record and its target channels."""
    content_store, _ = _stores(_config(ctx))
    try:
        content_store.create(
            ContentRecord(
                content_id=content_id,
                title=title,
                summary=summary,
                target_channels=channel or [],
            )
        )
    except ValueError as exc:
        _fail(str(exc))
    console.print(f"[green]Added[/green] {content_id}")


@variants_app.command("generate")
def variants_generate(
    ctx: typer.Context,
    content_id: Annotated[str, typer.Argument(help="Content id.")],
    channel: Annotated[
        list[str] | None,
        typer.Option("--channel", "-c", help="Limit to these channels."),
    ] = None,
    files: FileOption = None,
) -> None:
    """Generate one variant per channel and move them to review."""
    config = _config(ctx)
    content_store, variant_store = _stores(config)
    descriptors, contents = _parse_file_specs(files)
    try:
        variants = generate_variants(
            content_id,
            content_store=content_store,
            materializer=VariantMaterializer(variant_store),
            backend=GeminiBackend.from_config(config),
            config=config,
            channels=channel,
            context_overrides={"files": descriptors, "file_contents": contents},
            task_store=TaskConfigStore(config.output_dir, config),
        )
    except KeyError as exc:
        _fail(f"Unknown content: {exc.args[0]}")
    except ContextError as exc:
        _fail(str(exc))

    for variant in variants:
        console.print(f"{variant.channel}: {variant.id} ({variant.status}, {variant.source})")


@variants_app.command("list")
def variants_list(
    ctx: typer.Context,
    content_id: Annotated[str | None, typer.Argument(help="Only this content.")] = None,
) -> None:
    """List stored variants."""
    config = _config(ctx)
    _, variant_store = _stores(config)
    now = datetime.now(tz=UTC)
    retention = config.variants.trash_retention_days

    table = Table(title="Variants")
    for column in ("id", "content", "channel", "status", "source", "flags"):
        table.add_column(column)
    for variant in variant_store.list(content_id):
        flags: list[str] = []
        if variant.archived:
            flags.append("archived")
        if variant.trashed:
            days = lifecycle.days_until_deletion(variant, now=now, retention_days=retention)
            flags.append(f"trashed ({days}d left)")
        table.add_row(
            variant.id,
            variant.content_id,
            variant.channel,
            str(variant.status),
            str(variant.source),
            ", ".join(flags),
        )
    console.print(table)


@variants_app.command("show")
def variants_show(
    ctx: typer.Context,
    content_id: Annotated[str, typer.Argument(help="Content id.")],
    channel: Annotated[str, typer.Argument(help="Channel.")],
) -> None:
    """Print one variant as JSON."""
    _, variant_store = _stores(_config(ctx))
    variant = variant_store.get(content_id, channel)
    if variant is None:
        _fail(f"No variant for {content_id}/{channel}")
    console.print_json(variant.model_dump_json())


_ACTIONS = ("archive", "unarchive", "trash", "restore")


@variants_app.command("set")
def variants_set(
    ctx: typer.Context,
    content_id: Annotated[str, typer.Argument(help="Content id.")],
    channel: Annotated[str, typer.Argument(help="Channel.")],
    target: Annotated[
        str,
        typer.Argument(help="New status, or one of archive/unarchive/trash/restore."),
    ],
) -> None:
    """Move a variant through the review lifecycle."""
    config = _config(ctx)
    _, variant_store = _stores(config)
    materializer = VariantMaterializer(variant_store)
    variant = variant_store.get(content_id, channel)
    if variant is None:
        _fail(f"No variant for {content_id}/{channel}")

    now = datetime.now(tz=UTC)
    retention = config.variants.trash_retention_days
    try:
        if target in _ACTIONS:
            kwargs: dict[str, Any] = {"now": now}
            if target == "restore":
                kwargs["retention_days"] = retention
            updated = getattr(lifecycle, target)(variant, **kwargs)
        else:
            try:
                status = VariantStatus(target)
            except ValueError:
                _fail(f"Unknown status or action: {target}")
            updated = lifecycle.transition(variant, status, now=now)
    except lifecycle.LifecycleError as exc:
        _fail(str(exc))

    updated = materializer.commit(updated)
    flags = [name for name in ("archived", "trashed") if getattr(updated, name)]
    suffix = f" ({', '.join(flags)})" if flags else ""
    console.print(f"{updated.id}: {updated.status}{suffix}")


@variants_app.command("tasks")
def variants_tasks(ctx: typer.Context) -> None:
    """Show the model settings each task runs with."""
    config = _config(ctx)
    store = TaskConfigStore(config.output_dir, config)
    data: dict[str, Any] = {k: v.model_dump() for k, v in store.list().items()}
    console.print_json(data=data)


if __name__ == "__main__":
    app()
