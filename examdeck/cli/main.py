"""
Typer CLI for examdeck.

Commands:
    examdeck ingest [DIR]          - Import or update exam documents from DIR
    examdeck exams                 - List known exams with latest-attempt progress
    examdeck attempts FILE_NAME    - Show the attempt history of one exam

Usage:
    examdeck --help
    examdeck ingest exams/
    examdeck --data-dir /tmp/examdeck exams
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from config import Settings, get_settings
from examdeck.context import AppContext
from examdeck.core.errors import StoreOpenError

app = typer.Typer(
    help="examdeck: local exam practice with versioned question banks",
    no_args_is_help=True,
)
console = Console()


def configure_logging(settings: Settings) -> None:
    """Route loguru output to stderr (and an optional rotating log file)."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB", retention=5)


@app.callback()
def main_callback(
    ctx: typer.Context,
    data_dir: Optional[Path] = typer.Option(
        None, "--data-dir", help="Directory holding the catalog and exam stores"
    ),
) -> None:
    settings = get_settings()
    if data_dir is not None:
        settings = settings.model_copy(update={"data_dir": data_dir})
    ctx.obj = settings


def _open_context(ctx: typer.Context) -> AppContext:
    try:
        return AppContext(ctx.obj)
    except StoreOpenError as e:
        console.print(f"[red]Cannot open catalog:[/red] {e}")
        raise typer.Exit(code=1)


@app.command()
def ingest(
    ctx: typer.Context,
    directory: Optional[Path] = typer.Argument(None, help="Directory of exam JSON documents"),
) -> None:
    """Import new exams and apply newer versions of known ones."""
    with _open_context(ctx) as app_ctx:
        report = app_ctx.ingest(directory)

    console.print(
        f"[green]{len(report.inserted)} inserted[/green], "
        f"[cyan]{len(report.updated)} updated[/cyan], "
        f"{len(report.unchanged)} unchanged, "
        f"[red]{len(report.errors)} errors[/red]"
    )
    for error in report.errors:
        console.print(f"  [red]x[/red] {error}")
    if report.errors:
        raise typer.Exit(code=1)


@app.command()
def exams(ctx: typer.Context) -> None:
    """List known exams with progress of their latest attempt."""
    with _open_context(ctx) as app_ctx:
        catalog = app_ctx.refresh_exams()
        if not catalog:
            console.print("[yellow]No exams imported yet.[/yellow] Run 'examdeck ingest DIR'.")
            return

        table = Table(title="Exams")
        table.add_column("File", style="cyan")
        table.add_column("Name")
        table.add_column("Version")
        table.add_column("Questions", justify="right")
        table.add_column("Progress", justify="right")
        for exam in catalog:
            progress = app_ctx.session.get_progress_percentage(exam)
            table.add_row(
                exam.file_name,
                exam.name,
                exam.version,
                str(exam.question_amount),
                f"{progress:.0%}",
            )
    console.print(table)


@app.command()
def attempts(
    ctx: typer.Context,
    file_name: str = typer.Argument(..., help="Exam file name (document name without .json)"),
) -> None:
    """Show every attempt of one exam, newest first."""
    with _open_context(ctx) as app_ctx:
        exam = app_ctx.find_exam(file_name)
        if exam is None:
            console.print(f"[red]Unknown exam:[/red] {file_name}")
            raise typer.Exit(code=1)

        app_ctx.exam_store.activate(exam.file_name)
        history = app_ctx.exam_store.list_attempt_histories(exam)

    if not history:
        console.print(f"No attempts yet for {exam.name}.")
        return

    table = Table(title=f"{exam.name} v{exam.version}")
    table.add_column("#", justify="right")
    table.add_column("Version")
    table.add_column("Finished", justify="right")
    table.add_column("Status")
    table.add_column("Score", justify="right")
    for attempt in history:
        table.add_row(
            str(attempt.attempt_id),
            attempt.version,
            f"{attempt.finished_question_amount}/{exam.question_amount}",
            attempt.status(exam.question_amount).value,
            "-" if attempt.score < 0 else f"{attempt.score:.0%}",
        )
    console.print(table)


def main() -> None:
    """CLI entry point."""
    configure_logging(get_settings())
    app()


if __name__ == "__main__":
    main()
