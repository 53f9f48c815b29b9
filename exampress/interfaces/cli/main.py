"""
CLI Main - Typer-based command-line interface.

Usage:
    exampress format path/to/exam.pdf -o exam.json
    exampress parse-text questions.txt
    exampress generate --grade 三年级 --subject 数学 --topic "两位数加减法"
    exampress serve
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from exampress.config import ExamPressError, get_settings
from exampress.domains.orchestration import (
    CompleteEvent,
    ErrorEvent,
    ExtractionPipeline,
    FragmentEvent,
    PhaseEvent,
    ProviderOverrides,
)

app = typer.Typer(
    name="exampress",
    help="ExamPress - Exam paper formatting",
    add_completion=False,
)
console = Console()


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Configure logging."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _overrides(
    provider: str | None,
    base_url: str | None,
    api_key: str | None,
    model: str | None,
) -> ProviderOverrides:
    return ProviderOverrides(
        provider=provider,
        openai_base_url=base_url,
        openai_api_key=api_key,
        openai_model=model,
    )


@app.command("format")
def format_exam(
    path: Path = typer.Argument(..., help="PDF, DOCX or PPTX exam file"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output JSON path"),
    provider: str | None = typer.Option(None, "--provider", help="gemini or openai"),
    openai_base_url: str | None = typer.Option(None, "--openai-base-url"),
    openai_api_key: str | None = typer.Option(None, "--openai-api-key", envvar="OPENAI_API_KEY"),
    openai_model: str | None = typer.Option(None, "--openai-model"),
) -> None:
    """Format an exam file into a structured exam document."""
    if not path.exists():
        console.print(f"[red]Error:[/red] File not found: {path}")
        raise typer.Exit(1)

    overrides = _overrides(provider, openai_base_url, openai_api_key, openai_model)
    asyncio.run(_format_async(path, output, overrides))


async def _format_async(path: Path, output: Path | None, overrides: ProviderOverrides) -> None:
    """Async formatting implementation."""
    from exampress.domains.extraction import SourceDocument

    pipeline = ExtractionPipeline(get_settings())
    document = SourceDocument(data=path.read_bytes(), filename=path.name)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Starting...", total=None)
        fragments = 0
        received = 0

        async for event in pipeline.run_file(document, overrides):
            if isinstance(event, PhaseEvent):
                progress.update(task, description=event.message)
            elif isinstance(event, FragmentEvent):
                fragments += 1
                received += len(event.chunk)
                progress.update(
                    task, description=f"Receiving model output ({received} chars)..."
                )
            elif isinstance(event, ErrorEvent):
                progress.stop()
                console.print(f"[red]Error:[/red] {event.message} [dim]({event.code})[/dim]")
                raise typer.Exit(1)
            elif isinstance(event, CompleteEvent):
                progress.stop()
                _show_result(event.data, output)

    console.print(f"[dim]{fragments} fragments[/dim]")


@app.command("parse-text")
def parse_text(
    source: str = typer.Argument(..., help="Text file, or - for stdin"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output JSON path"),
    provider: str | None = typer.Option(None, "--provider", help="gemini or openai"),
    openai_base_url: str | None = typer.Option(None, "--openai-base-url"),
    openai_api_key: str | None = typer.Option(None, "--openai-api-key", envvar="OPENAI_API_KEY"),
    openai_model: str | None = typer.Option(None, "--openai-model"),
) -> None:
    """Parse pasted exam text into a structured exam document."""
    if source == "-":
        text = sys.stdin.read()
    else:
        text_path = Path(source)
        if not text_path.exists():
            console.print(f"[red]Error:[/red] File not found: {text_path}")
            raise typer.Exit(1)
        text = text_path.read_text(encoding="utf-8")

    overrides = _overrides(provider, openai_base_url, openai_api_key, openai_model)
    asyncio.run(_parse_text_async(text, output, overrides))


async def _parse_text_async(text: str, output: Path | None, overrides: ProviderOverrides) -> None:
    """Async text parsing implementation."""
    pipeline = ExtractionPipeline(get_settings())

    with console.status("Parsing exam text..."):
        try:
            data = await pipeline.extract_text(text, overrides)
        except ExamPressError as e:
            console.print(f"[red]Error:[/red] {e.message} [dim]({e.code.value})[/dim]")
            raise typer.Exit(1)

    _show_result(data, output)


@app.command()
def generate(
    subject: str = typer.Option(..., "--subject", "-s", help="Subject, e.g. 数学"),
    grade: str = typer.Option(..., "--grade", "-g", help="Grade, e.g. 三年级"),
    topic: str = typer.Option(..., "--topic", "-t", help="Knowledge points to cover"),
    level: str = typer.Option("小学", "--level", "-l", help="School level"),
    difficulty: str = typer.Option("medium", "--difficulty", "-d", help="easy, medium or hard"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output JSON path"),
) -> None:
    """Generate an exam from a topic description."""
    from exampress.domains.generation import Difficulty, ExamRequest

    try:
        request = ExamRequest(
            level=level,
            grade_spec=grade,
            subject=subject,
            topic_description=topic,
            difficulty=Difficulty(difficulty),
        )
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    asyncio.run(_generate_async(request, output))


async def _generate_async(request: Any, output: Path | None) -> None:
    """Async generation implementation."""
    from exampress.adapters.gemini import GeminiClient, GeminiConfig
    from exampress.domains.generation import ExamGenerator

    settings = get_settings()
    generator = ExamGenerator(GeminiClient(GeminiConfig.from_settings(settings)), settings)

    with console.status("Generating exam..."):
        try:
            data = await generator.generate_exam(request)
        except ExamPressError as e:
            console.print(f"[red]Error:[/red] {e.message} [dim]({e.code.value})[/dim]")
            raise typer.Exit(1)

    _show_result(data, output)


def _show_result(data: dict[str, Any], output: Path | None) -> None:
    """Print a summary table and write or print the document."""
    sections = data.get("sections") or []

    table = Table(title=data.get("title") or "Exam")
    table.add_column("Section", style="cyan")
    table.add_column("Questions", style="green", justify="right")
    table.add_column("Score", style="green", justify="right")
    for section in sections:
        table.add_row(
            str(section.get("title", "")),
            str(len(section.get("questions") or [])),
            str(section.get("totalScore", "")),
        )
    console.print(table)

    rendered = json.dumps(data, ensure_ascii=False, indent=2)
    if output:
        output.write_text(rendered, encoding="utf-8")
        console.print(f"\n[green]Saved to:[/green] {output}")
    else:
        console.print_json(rendered)


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print("\n[green]Starting ExamPress API server[/green]")
    console.print(f"[dim]http://{host}:{port}[/dim]\n")

    uvicorn.run(
        "exampress.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from exampress import __version__

    console.print(f"ExamPress v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
