"""zmem command line entry point."""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from zmem.config import load_settings
from zmem.errors import ConfigError
from zmem.monitor import take_report
from zmem.procfs import SmapsSource
from zmem.report import print_report

app = typer.Typer(
    name="zmem",
    help="Show detailed Linux memory usage, host-wide and per process.",
    add_completion=False,
)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


@app.command()
def main(
    summary: bool = typer.Option(False, "--summary", "-s", help="Show the host memory summary"),
    per_process: bool = typer.Option(False, "--per-process", "-p", help="Show per-process memory usage"),
    tui: bool = typer.Option(False, "--tui", help="Browse the snapshot in an interactive viewer"),
    proc_root: Optional[Path] = typer.Option(None, "--proc-root", help="Process table mount point"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Max scan threads"),
    source: Optional[SmapsSource] = typer.Option(None, "--source", help="Memory map file to read per process"),
    prefilter: bool = typer.Option(True, "--prefilter/--no-prefilter", help="Skip unreadable processes before scanning"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
):
    """
    Take one memory snapshot and print it.

    Without --summary or --per-process both are shown.
    """
    console = Console(no_color=no_color, highlight=False)
    try:
        settings = load_settings().override(
            proc_root=proc_root,
            max_workers=workers,
            source=source,
            prefilter=prefilter,
            log_level=log_level,
        )
    except ConfigError as e:
        console.print(f"[bold red]error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=2)

    _setup_logging(settings.log_level)

    if not summary and not per_process:
        summary = per_process = True

    report = take_report(settings, host=summary, processes=per_process)

    if tui:
        from zmem.app import ZmemApp

        ZmemApp(report).run()
    else:
        print_report(report, console)

    if not report.ok:
        raise typer.Exit(code=1)


def run() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    run()
