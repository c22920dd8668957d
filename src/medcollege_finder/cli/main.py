"""
CLI Main - Typer command-line interface.
========================================

Commands:
- search: Ranked flat search
- grouped: Search grouped into one card per college
- suggest: Auto-complete suggestions
- stats: Catalog statistics
- college: Show one college with its courses
- info: Show configuration and catalog status
"""

import json
from typing import Any, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from medcollege_finder.shared.logging import get_console, get_logger, setup_logging_from_settings

logger = get_logger(__name__)

app = typer.Typer(
    name="collegefinder",
    help="""🩺 MedCollege Finder - Ranked search over medical, dental and DNB colleges

Finds colleges and courses from free text: names, abbreviations ("AJ",
"GOVT"), course codes ("MD General Medicine") and places ("DNB in Karnataka").

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

COMMANDS OVERVIEW:

  search   Ranked (college, course) results
           -s, --stream       medical / dental / dnb
           -c, --course       Course name contains
           --state            Exact state
           -n, --limit        Maximum results

  grouped  Same search, one card per college

  suggest  Auto-complete suggestions for partial input

  stats    Colleges and seats per stream

  college  One college with all its courses

  info     Configuration and catalog database status

All result commands accept --json to print the API payload.
""",
    add_completion=False,
    rich_markup_mode="rich",
)

console = get_console()


@app.callback()
def main():
    """Configure logging from settings before running a command."""
    setup_logging_from_settings()


def _open_engine():
    """Open the engine from settings, exiting with a message on failure."""
    from medcollege_finder.search.engine import SearchEngine
    from medcollege_finder.shared.exceptions import ConfigurationError

    try:
        return SearchEngine.from_settings()
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def _filters(
    stream: Optional[str], course: Optional[str], state: Optional[str], limit: Optional[int]
) -> dict[str, Any]:
    return {"stream": stream, "course": course, "state": state, "limit": limit}


def _verbosity(verbose: bool):
    from contextlib import nullcontext

    from medcollege_finder.shared.logging import LogContext

    return LogContext("DEBUG", "medcollege_finder") if verbose else nullcontext()


# ─────────────────────────────────────────────────────────────────────────────
# Search Commands
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def search(
    query: str = typer.Argument("", help="Search text (wrap in quotes)."),
    stream: Optional[str] = typer.Option(None, "--stream", "-s", help="medical, dental or dnb."),
    course: Optional[str] = typer.Option(None, "--course", "-c", help="Course name contains."),
    state: Optional[str] = typer.Option(None, "--state", help="Exact state name."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum results."),
    as_json: bool = typer.Option(False, "--json", help="Print the API payload as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
):
    """
    🔍 Ranked search over colleges and courses.

    Examples:
        collegefinder search "AJ"
        collegefinder search "MD General Medicine" -s medical
        collegefinder search "DNB in Karnataka" -n 20
        collegefinder search "" --state Karnataka -s dental
    """
    engine = _open_engine()
    with engine, _verbosity(verbose):
        response = engine.search(query, _filters(stream, course, state, limit))

    if as_json:
        _print_json(response.to_api_dict())
        raise typer.Exit(1 if response.error else 0)

    if response.error:
        console.print(f"[red]Error:[/red] {response.error}")
        raise typer.Exit(1)

    header = f"[bold]Query:[/bold] {query or '(filters only)'}"
    if response.course_type:
        header += f"   [bold]Course type:[/bold] {response.course_type}"
    console.print(f"\n{header}\n")

    if not response.data:
        console.print("[yellow]No results found.[/yellow]")
        return

    table = Table(show_header=True)
    table.add_column("Score", justify="right", style="green")
    table.add_column("College", style="cyan")
    table.add_column("Course")
    table.add_column("State")
    table.add_column("Stream")
    table.add_column("Seats", justify="right")
    table.add_column("Strategy", style="dim")

    for hit in response.data:
        table.add_row(
            str(hit.search_score),
            hit.name,
            hit.course,
            hit.state,
            hit.type,
            str(hit.seats),
            hit.search_strategy,
        )

    console.print(table)
    console.print(f"\n[dim]{response.total} result(s)[/dim]")
    for warning in response.warnings:
        console.print(f"[yellow]⚠ {warning}[/yellow]")


@app.command()
def grouped(
    query: str = typer.Argument("", help="Search text (wrap in quotes)."),
    stream: Optional[str] = typer.Option(None, "--stream", "-s", help="medical, dental or dnb."),
    course: Optional[str] = typer.Option(None, "--course", "-c", help="Course name contains."),
    state: Optional[str] = typer.Option(None, "--state", help="Exact state name."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum colleges."),
    as_json: bool = typer.Option(False, "--json", help="Print the API payload as JSON."),
):
    """
    🏫 Search, grouped into one card per college.

    Examples:
        collegefinder grouped "AJ"
        collegefinder grouped "DNB in Karnataka" --json
    """
    engine = _open_engine()
    with engine:
        response = engine.search_grouped(query, _filters(stream, course, state, limit))

    if as_json:
        _print_json(response.to_api_dict())
        raise typer.Exit(1 if response.error else 0)

    if response.error:
        console.print(f"[red]Error:[/red] {response.error}")
        raise typer.Exit(1)

    if not response.grouped_results:
        console.print("[yellow]No results found.[/yellow]")
        return

    for group in response.grouped_results:
        lines = [
            f"  {entry.course_name}  [dim]({entry.seats} seats, score {entry.search_score})[/dim]"
            for entry in group.courses
        ]
        console.print(
            Panel(
                "\n".join(lines),
                title=f"{group.college_name} [dim]{group.state}[/dim]",
                subtitle=(
                    f"{group.type} · {group.course_count} course(s) · "
                    f"{group.total_seats} seats · score {group.search_score}"
                ),
                border_style="cyan",
            )
        )

    console.print(
        f"\n[dim]{response.total_groups} college(s) from {response.total} result(s)[/dim]"
    )


@app.command()
def suggest(
    query: str = typer.Argument(..., help="Partial input."),
    stream: Optional[str] = typer.Option(None, "--stream", "-s", help="medical, dental or dnb."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum suggestions."),
    as_json: bool = typer.Option(False, "--json", help="Print as JSON."),
):
    """
    💡 Auto-complete suggestions.

    Examples:
        collegefinder suggest aj
        collegefinder suggest "dnb apollo"
    """
    engine = _open_engine()
    with engine:
        suggestions = engine.suggest(query, {"stream": stream, "limit": limit})

    if as_json:
        _print_json([s.model_dump(mode="json") for s in suggestions])
        return

    if not suggestions:
        console.print("[yellow]No suggestions.[/yellow]")
        return

    table = Table(show_header=True)
    table.add_column("Category", style="cyan")
    table.add_column("Suggestion")
    for item in suggestions:
        table.add_row(item.category, item.display)
    console.print(table)


# ─────────────────────────────────────────────────────────────────────────────
# Catalog Commands
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def stats(
    as_json: bool = typer.Option(False, "--json", help="Print as JSON."),
):
    """
    📊 Colleges and seats per stream.
    """
    engine = _open_engine()
    with engine:
        catalog_stats = engine.get_stats()

    if as_json:
        _print_json(catalog_stats.model_dump(mode="json", by_alias=True))
        return

    table = Table(show_header=True)
    table.add_column("Stream", style="cyan")
    table.add_column("Colleges", justify="right")
    table.add_column("Seats", justify="right")
    for row in catalog_stats.by_type:
        table.add_row(row.type.upper(), str(row.count), str(row.seats))
    table.add_row(
        "[bold]TOTAL[/bold]",
        f"[bold]{catalog_stats.total_colleges}[/bold]",
        f"[bold]{catalog_stats.total_seats}[/bold]",
    )
    console.print(table)
    for warning in catalog_stats.warnings:
        console.print(f"[yellow]⚠ {warning}[/yellow]")


@app.command()
def college(
    college_id: int = typer.Argument(..., help="College id."),
    as_json: bool = typer.Option(False, "--json", help="Print as JSON."),
):
    """
    🏥 Show one college with all its courses.
    """
    engine = _open_engine()
    with engine:
        detail = engine.get_college_by_id(college_id)

    if detail is None:
        console.print(f"[red]No college with id {college_id}[/red]")
        raise typer.Exit(1)

    if as_json:
        _print_json(detail.model_dump(mode="json"))
        return

    console.print(
        Panel(
            f"[bold]{detail.name}[/bold]\n"
            f"{detail.city}, {detail.state}\n"
            f"Type: {detail.type}   Management: {detail.management_type or '-'}\n"
            f"University: {detail.university or '-'}   "
            f"Established: {detail.establishment_year or '-'}",
            title=f"🏥 College #{detail.id}",
        )
    )

    table = Table(show_header=True)
    table.add_column("Course", style="cyan")
    table.add_column("Type")
    table.add_column("Seats", justify="right")
    for course_row in detail.courses:
        table.add_row(course_row.name, course_row.course_type, str(course_row.seats))
    console.print(table)


@app.command()
def info():
    """
    ℹ️ Show configuration and catalog database status.
    """
    from medcollege_finder import __version__
    from medcollege_finder.shared.config import get_settings

    settings = get_settings()

    console.print(Panel(
        f"[bold]MedCollege Finder[/bold]\n"
        f"Version: {__version__}\n"
        f"Config: config/settings.yaml",
        title="ℹ️ Info",
    ))

    console.print("\n[bold]Search Settings:[/bold]")
    table = Table()
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("default limit", str(settings.get_effective_limit()))
    table.add_row("max workers", str(settings.search.max_workers))
    table.add_row("time budget (s)", f"{settings.search.time_budget_seconds:g}")
    table.add_row("short circuit", str(settings.search.short_circuit))
    console.print(table)

    console.print("\n[bold]Catalog Databases:[/bold]")
    for name, path in settings.catalog_paths.items():
        exists = "✓" if path.exists() else "✗"
        console.print(f"  {name}: {path} [{exists}]")


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def cli():
    """CLI entry point."""
    app()


if __name__ == "__main__":
    cli()
