"""CLI interface for cyclejournal."""

import logging
from datetime import date
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from cyclejournal.config import CycleJournalConfig, load_config, merge_cli_overrides
from cyclejournal.cycle import CycleDate
from cyclejournal.errors import CycleJournalError, GenerationReport
from cyclejournal.llm import ClaudeGenerator
from cyclejournal.personalization import load_personalization
from cyclejournal.prompts import load_prompt_templates
from cyclejournal.scheduler import GenerationRequest, GenerationScheduler, prompt_type_for
from cyclejournal.store import ArtifactKind, FileContentStore

app = typer.Typer(
    name="cyclejournal",
    help="Private journaling on a 364-day cycle calendar with generated prompts.",
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from cyclejournal import __version__

        console.print(f"cyclejournal {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


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
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a .cyclejournal.toml file."),
    ] = None,
    directory: Annotated[
        Optional[Path],
        typer.Option("--dir", "-d", help="Journal directory."),
    ] = None,
    model: Annotated[
        Optional[str],
        typer.Option("--model", help="Claude model (haiku, sonnet, opus, or a model ID)."),
    ] = None,
) -> None:
    """Cycle Journal - entries, summaries, and daily prompts on a cycle calendar."""
    _configure_logging(verbose)
    config = load_config(config_path)
    ctx.obj = merge_cli_overrides(
        config,
        directory=str(directory) if directory is not None else None,
        model=model,
    )


def _config(ctx: typer.Context) -> CycleJournalConfig:
    return ctx.obj if isinstance(ctx.obj, CycleJournalConfig) else load_config()


def _build_scheduler(config: CycleJournalConfig) -> GenerationScheduler:
    journal_dir = config.journal.path
    store = FileContentStore(journal_dir)
    store.ensure_directories()
    return GenerationScheduler(
        store=store,
        generator=ClaudeGenerator(
            model=config.llm.model,
            timeout=config.llm.timeout,
            temperature=config.llm.temperature,
        ),
        personalization=load_personalization(journal_dir),
        templates=load_prompt_templates(journal_dir),
        config=config,
    )


def _parse_code(code: str) -> CycleDate:
    try:
        return CycleDate.decode(code)
    except CycleJournalError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc


def _resolve_code(code: Optional[str], config: CycleJournalConfig) -> CycleDate:
    if code is None:
        return CycleDate.from_real_date(date.today(), config.calendar.epoch)
    return _parse_code(code)


def _print_report(report: GenerationReport) -> None:
    for outcome in report.generated:
        console.print(f"  [green]generated[/green] {outcome.label}")
    for outcome in report.skipped:
        console.print(f"  [dim]exists[/dim]    {outcome.label}")
    for outcome in report.errors:
        console.print(f"  [red]failed[/red]    {outcome.label}: {outcome.message}")
    console.print(report.summary_line())


@app.command()
def today(ctx: typer.Context) -> None:
    """Show today's cycle date."""
    config = _config(ctx)
    real = date.today()
    cycle_date = CycleDate.from_real_date(real, config.calendar.epoch)
    console.print(
        f"[bold]{cycle_date}[/bold]  {real.isoformat()}  "
        f"({cycle_date.role}, {prompt_type_for(cycle_date).display_name})"
    )


@app.command()
def encode(
    ctx: typer.Context,
    real_date: Annotated[str, typer.Argument(help="Calendar date (YYYY-MM-DD).")],
) -> None:
    """Convert a calendar date to its cycle code."""
    config = _config(ctx)
    try:
        real = date.fromisoformat(real_date)
    except ValueError as exc:
        console.print(f"[red]Error:[/red] Invalid date format: {real_date}")
        console.print("Use YYYY-MM-DD format (e.g., 2024-01-15)")
        raise typer.Exit(1) from exc
    console.print(str(CycleDate.from_real_date(real, config.calendar.epoch)))


@app.command()
def decode(
    ctx: typer.Context,
    code: Annotated[str, typer.Argument(help="Five-character cycle code, e.g. 03B25.")],
) -> None:
    """Show the calendar date and components of a cycle code."""
    config = _config(ctx)
    cycle_date = _parse_code(code)

    table = Table(show_header=False, box=None)
    table.add_row("Code", str(cycle_date))
    table.add_row("Date", cycle_date.to_real_date(config.calendar.epoch).isoformat())
    table.add_row("Year cycle", str(cycle_date.year_cycle))
    table.add_row("Month", str(cycle_date.month))
    table.add_row("Week", str(cycle_date.week))
    table.add_row("Day", str(cycle_date.day))
    table.add_row("Role", str(cycle_date.role))
    console.print(table)


@app.command()
def context(
    ctx: typer.Context,
    code: Annotated[str, typer.Argument(help="Cycle code to build context for.")],
) -> None:
    """Print the enriched context a prompt for CODE would receive."""
    cycle_date = _parse_code(code)
    scheduler = _build_scheduler(_config(ctx))
    console.print(scheduler.build_context(cycle_date), markup=False, highlight=False)


@app.command()
def generate(
    ctx: typer.Context,
    code: Annotated[str, typer.Argument(help="Cycle code to generate prompts for.")],
    number: Annotated[
        Optional[int],
        typer.Option("--number", "-n", help="Generate only this prompt number."),
    ] = None,
) -> None:
    """Generate missing prompts for CODE (or a single prompt with --number)."""
    cycle_date = _parse_code(code)
    scheduler = _build_scheduler(_config(ctx))
    try:
        if number is None:
            report = scheduler.run_generation_pass(
                GenerationRequest(target=cycle_date, skip_checks=True)
            )
        else:
            report = scheduler.generate_on_demand(cycle_date, number)
    except CycleJournalError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc
    _print_report(report)
    if report.has_errors:
        raise typer.Exit(1)


@app.command()
def write(
    ctx: typer.Context,
    code: Annotated[
        Optional[str], typer.Argument(help="Cycle code (default: today).")
    ] = None,
    text: Annotated[
        Optional[str],
        typer.Option("--text", "-t", help="Entry text. Read from stdin when omitted."),
    ] = None,
) -> None:
    """Save the journal entry for CODE, replacing any earlier entry."""
    config = _config(ctx)
    cycle_date = _resolve_code(code, config)
    content = text if text is not None else typer.get_text_stream("stdin").read()
    if not content.strip():
        console.print("[red]Error:[/red] Entry text is empty")
        raise typer.Exit(1)

    store = FileContentStore(config.journal.path)
    try:
        store.write(cycle_date, ArtifactKind.ENTRY, content.strip())
    except CycleJournalError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc
    console.print(f"[green]Saved entry for {cycle_date}[/green] ({len(content.strip())} chars)")


@app.command()
def show(
    ctx: typer.Context,
    code: Annotated[
        Optional[str], typer.Argument(help="Cycle code (default: today).")
    ] = None,
) -> None:
    """Show the entry, summary, and prompts stored for CODE."""
    config = _config(ctx)
    cycle_date = _resolve_code(code, config)
    store = FileContentStore(config.journal.path)

    try:
        entry = store.read(cycle_date, ArtifactKind.ENTRY)
        summary = store.read(cycle_date, ArtifactKind.SUMMARY)
        prompts: list[str] = []
        number = 1
        while (prompt := store.read(cycle_date, ArtifactKind.PROMPT, number)) is not None:
            prompts.append(prompt)
            number += 1
    except CycleJournalError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc

    console.print(f"[bold]{cycle_date}[/bold]  {cycle_date.to_real_date(config.calendar.epoch)}")
    console.print()
    console.print("[bold]Entry[/bold]")
    if entry is None:
        console.print("[dim]No entry yet.[/dim]")
    else:
        console.print(entry, markup=False, highlight=False)
    if summary is not None:
        console.print()
        console.print("[bold]Summary[/bold]")
        console.print(summary, markup=False, highlight=False)
    for index, prompt in enumerate(prompts, start=1):
        console.print()
        console.print(f"[bold]Prompt {index}[/bold]")
        console.print(prompt, markup=False, highlight=False)


@app.command(name="catch-up")
def catch_up(ctx: typer.Context) -> None:
    """Write missing summaries and statuses for every stored entry."""
    scheduler = _build_scheduler(_config(ctx))
    try:
        report = scheduler.catch_up()
    except CycleJournalError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc
    _print_report(report)


@app.command()
def status(ctx: typer.Context) -> None:
    """Show the rolling status and upcoming holidays."""
    config = _config(ctx)
    personalization = load_personalization(config.journal.path)
    console.print("[bold]Current status[/bold]")
    console.print(personalization.get_current_status(), markup=False)
    upcoming = personalization.upcoming_holidays()
    if upcoming:
        console.print()
        console.print("[bold]Upcoming[/bold]")
        for item in upcoming:
            console.print(item.render(), markup=False)


@app.command()
def run(ctx: typer.Context) -> None:
    """Run the scheduler in the foreground until interrupted."""
    config = _config(ctx)
    scheduler = _build_scheduler(config)
    console.print(
        f"Journal: {config.journal.path}  "
        f"(processing {config.journal.processing_time}, "
        f"prompts {config.journal.prompt_generation_time})"
    )
    scheduler.start()
    try:
        while not scheduler.wait(timeout=1.0):
            pass
    except KeyboardInterrupt:
        console.print("[yellow]Stopping...[/yellow]")
    finally:
        # Let an in-flight pass finish before the process exits.
        scheduler.stop()
