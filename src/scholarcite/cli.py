"""CLI interface for ScholarCite."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.text import Text

from scholarcite.config import get_settings
from scholarcite.documents.importer import extract_text_from_path
from scholarcite.exceptions import ScholarCiteError
from scholarcite.logging import setup_logging
from scholarcite.models.source import Source
from scholarcite.references.detector import find_citations
from scholarcite.references.styles import CITATION_STYLES, short_names
from scholarcite.session import EditingSession, ExportFormat, create_session

app = typer.Typer(
    name="scholarcite",
    help="Find sources for your writing, insert citations and keep the bibliography in order",
)
console = Console()


def _run_async(coro):
    """Run async coroutine in sync context."""
    return asyncio.run(coro)


def _fail(error: Exception) -> None:
    console.print(f"[red]Error: {error}[/red]")
    raise typer.Exit(1)


def _open_session(file: Path, style: Optional[str] = None) -> EditingSession:
    """Create a session with the document at ``file`` loaded."""
    session = create_session(get_settings())
    try:
        if style:
            session.set_style(style)
        session.import_path(file)
    except ScholarCiteError as e:
        _fail(e)
    return session


def _select_passage(session: EditingSession, passage: str) -> None:
    """Select the first occurrence of ``passage`` in the session text."""
    start = session.text.find(passage)
    if start < 0:
        _fail(ValueError(f"Passage not found in document: {passage!r}"))
    anchor = session.select(start, start + len(passage))
    if anchor is None:
        _fail(
            ValueError(
                f"Selection is too short; select more than "
                f"{session.settings.min_selection_chars} characters"
            )
        )


def _sources_table(title: str, sources: list[Source], offset: int = 0) -> Table:
    table = Table(title=title)
    table.add_column("#", style="dim", width=3)
    table.add_column("Title", max_width=50)
    table.add_column("Author", max_width=30)
    table.add_column("Year", width=6)
    table.add_column("Publication", max_width=30)

    for i, source in enumerate(sources, offset + 1):
        table.add_row(str(i), source.title, source.author, source.year or "?", source.publication)
    return table


def _search(session: EditingSession):
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task("Searching for sources...", total=None)
        try:
            outcome = _run_async(session.search_sources())
        except ScholarCiteError as e:
            _fail(e)

    if outcome.error:
        _fail(RuntimeError(outcome.error))
    return outcome.results


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", help="Also write logs to this file"
    ),
    log_format: Optional[str] = typer.Option(
        None, "--log-format", help="Log format: standard or json"
    ),
):
    """ScholarCite command line."""
    settings = get_settings()
    file_path = log_file or settings.log_file
    try:
        setup_logging(
            level="DEBUG" if verbose or settings.debug else settings.log_level,
            log_file=str(file_path) if file_path else None,
            format_style=log_format or settings.log_format,
        )
    except (ValueError, OSError) as e:
        _fail(e)


@app.command()
def styles():
    """List the supported citation styles."""
    table = Table(title="Citation Styles")
    table.add_column("Style", style="cyan")
    table.add_column("Short names", style="magenta")

    for style in CITATION_STYLES:
        table.add_row(style.value, ", ".join(short_names(style)))

    console.print(table)


@app.command()
def markers(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Document to scan"),
):
    """List the (Author, Year) citation markers found in a document."""
    try:
        text = extract_text_from_path(file)
    except ScholarCiteError as e:
        _fail(e)

    found = find_citations(text)
    if not found:
        console.print("[yellow]No citation markers found.[/yellow]")
        return

    table = Table(title=f"Citation markers in {file.name}")
    table.add_column("#", style="dim", width=3)
    table.add_column("Marker", style="cyan")
    table.add_column("Start", style="magenta")
    table.add_column("End", style="magenta")

    for i, marker in enumerate(found, 1):
        table.add_row(str(i), marker.matched_text, str(marker.start), str(marker.end))

    console.print(table)
    console.print(f"\n[bold]Total:[/bold] {len(found)} citation(s)")


@app.command()
def extract(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Document to read"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write text to this file"),
):
    """Extract the plain text of a .txt, .docx, .doc, .pdf or .pptx document."""
    try:
        text = extract_text_from_path(file)
    except ScholarCiteError as e:
        _fail(e)

    if output:
        output.write_text(text, encoding="utf-8")
        console.print(f"[green]Text saved to:[/green] {output}")
    else:
        console.print(text, markup=False, highlight=False)


@app.command()
def search(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Document to cite in"),
    select: str = typer.Option(..., "--select", "-s", help="Passage to find sources for"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output file for results (JSON)"
    ),
):
    """Search for sources supporting a passage of a document."""
    session = _open_session(file)
    _select_passage(session, select)

    console.print(Panel.fit(Text(select), title="Selected Text"))
    results = _search(session)

    if results.is_empty:
        console.print("[yellow]No sources found.[/yellow]")
    else:
        console.print(_sources_table("Suggested Sources", list(results.suggested)))
        console.print(
            _sources_table("Related Sources", list(results.related), offset=len(results.suggested))
        )

    if output:
        output_data = {
            "selected_text": select,
            "suggested": [s.to_dict() for s in results.suggested],
            "related": [s.to_dict() for s in results.related],
        }
        with open(output, "w", encoding="utf-8") as f:
            json.dump(output_data, f, indent=2, ensure_ascii=False)
        console.print(f"\n[green]Results saved to:[/green] {output}")


@app.command()
def cite(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Document to cite in"),
    select: str = typer.Option(..., "--select", "-s", help="Passage to cite"),
    pick: int = typer.Option(1, "--pick", "-p", help="Number of the source to cite (1 = best)"),
    style: Optional[str] = typer.Option(None, "--style", help="Citation style"),
    fmt: Optional[ExportFormat] = typer.Option(
        None, "--format", "-f", help="Export the result (word, pdf or slides)"
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Export file path"),
):
    """Find a source for a passage, insert its citation and show the result."""
    session = _open_session(file, style)
    _select_passage(session, select)

    candidates = _search(session).all_sources
    if not candidates:
        _fail(RuntimeError("No sources found for the selected text."))
    if not 1 <= pick <= len(candidates):
        _fail(ValueError(f"--pick must be between 1 and {len(candidates)}"))

    source = candidates[pick - 1]
    try:
        outcome = _run_async(session.cite(source))
    except ScholarCiteError as e:
        _fail(e)

    if outcome.used_fallback:
        console.print("[yellow]Formatter unavailable; used a basic citation.[/yellow]")
    if not outcome.inserted:
        console.print("[yellow]Bibliography already contains this entry.[/yellow]")

    console.print(Panel(Text(outcome.text), title="Document"))
    console.print(Panel(Text(session.copy_bibliography()), title=f"Bibliography ({session.style.value})"))

    if fmt:
        try:
            path = session.export(fmt, output)
        except ScholarCiteError as e:
            _fail(e)
        console.print(f"\n[green]Exported to:[/green] {path}")


@app.command()
def export(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Document to export"),
    fmt: ExportFormat = typer.Option(..., "--format", "-f", help="word, pdf or slides"),
    style: Optional[str] = typer.Option(None, "--style", help="Citation style"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Export file path"),
):
    """Export a document to Word, PDF or slides."""
    session = _open_session(file, style)
    try:
        path = session.export(fmt, output)
    except ScholarCiteError as e:
        _fail(e)
    console.print(f"[green]Exported to:[/green] {path}")


@app.command()
def version():
    """Show version information."""
    from scholarcite import __version__

    console.print(f"ScholarCite v{__version__}")


if __name__ == "__main__":
    app()
