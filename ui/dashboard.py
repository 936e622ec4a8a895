"""
Rich-based terminal dashboard for speed trial runs.

All formatting helpers live in ``netbench.stats`` -- this module only does
presentation via the ``rich`` library.  The measurement core reports through
``StatusEvent`` objects and ``ProgressSnapshot`` objects; nothing in here
feeds back into it.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from netbench.config import RunConfig
from netbench.events import EventKind, StatusEvent
from netbench.grading import verdict_style
from netbench.progress import ProgressSnapshot
from netbench.stats import compute_speed_mbps, format_latency, format_size, format_speed
from netbench.trials import RunSummary

console = Console()


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------

def print_header(config: RunConfig) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Speed Trial[/bold cyan]\n"
            "[dim]Latency, download and upload over plain HTTP[/dim]",
            border_style="cyan",
        )
    )
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(style="dim")
    table.add_column(style="bold")
    table.add_row("Date:", datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S %Z"))
    table.add_row("Download server:", f"[cyan]{config.download_url}[/cyan]")
    table.add_row("Upload endpoint:", f"[cyan]{config.upload_url}[/cyan]")
    table.add_row("Trials:", str(config.iterations))
    console.print(table)
    console.print()


def print_event(event: StatusEvent) -> None:
    """Render one status event from the measurement core."""
    kind = event.kind

    if kind is EventKind.TRIAL_STARTED:
        console.print(f"\n[bright_blue]┌──── Test {event.trial}/{event.total_trials} ─────┐[/bright_blue]")
    elif kind is EventKind.PING_MEASURED:
        console.print(f"  [bright_white]Ping:[/bright_white] [bright_green]{format_latency(event.value)}[/bright_green]")
    elif kind is EventKind.DOWNLOAD_STARTED:
        console.print("  [yellow]Downloading test file...[/yellow]")
    elif kind is EventKind.DOWNLOAD_RETRY:
        console.print(
            f"  [bright_yellow]{event.message}... retrying "
            f"{event.attempt}/{event.max_attempts}[/bright_yellow]"
        )
    elif kind is EventKind.DOWNLOAD_MEASURED:
        console.print(f"  [bright_white]Download:[/bright_white] [bright_green]{format_speed(event.value)}[/bright_green]")
    elif kind is EventKind.UPLOAD_STARTED:
        console.print("  [yellow]Uploading test data (10 MB)...[/yellow]")
    elif kind is EventKind.UPLOAD_MEASURED:
        console.print(f"  [bright_white]Upload:[/bright_white]   [bright_green]{format_speed(event.value)}[/bright_green]")
    elif kind is EventKind.TRIAL_FINISHED:
        console.print("[bright_blue]└──────────────────────┘[/bright_blue]")


def print_final_results(summary: RunSummary) -> None:
    color, message = verdict_style(summary.verdict)

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(style="bold white")
    table.add_column(justify="right")
    table.add_row("Average Ping:", f"[bold yellow]{format_latency(summary.average_ping_ms)}[/bold yellow]")
    table.add_row("Average Download:", f"[bold green]{format_speed(summary.average_download_mbps)}[/bold green]")
    table.add_row("Average Upload:", f"[bold green]{format_speed(summary.average_upload_mbps)}[/bold green]")
    table.add_row("Verdict:", f"[bold {color}]{summary.verdict.value}[/bold {color}]")

    console.print()
    console.print(Panel.fit(table, title="[bold]FINAL RESULTS[/bold]", border_style="bright_magenta"))
    console.print(f"\n[bold {color}]{message}[/bold {color}]\n")


def print_error(message: str) -> None:
    console.print(f"\n[red]Error: {message}[/red]")


# ---------------------------------------------------------------------------
# Progress display
# ---------------------------------------------------------------------------

class TransferProgressBar:
    """``ProgressRenderer`` drawing a ``rich`` bar for one transfer.

    Redraws happen only when the reporter's tick calls :meth:`update`, so
    the bar's automatic refresh thread is disabled.
    """

    def __init__(self, description: str, console: Console = console) -> None:
        self.description = description
        self.progress = Progress(
            SpinnerColumn(style="green"),
            TimeElapsedColumn(),
            BarColumn(bar_width=40, complete_style="cyan", finished_style="blue"),
            TextColumn("{task.fields[size]}"),
            TextColumn("[bold cyan]{task.fields[speed]}[/bold cyan]"),
            TextColumn("[dim]{task.fields[eta]}[/dim]"),
            TextColumn("{task.fields[message]}"),
            console=console,
            auto_refresh=False,
        )
        self._task_id = None

    def _ensure_task(self, snapshot: ProgressSnapshot) -> None:
        if self._task_id is not None:
            return
        self.progress.start()
        self._task_id = self.progress.add_task(
            self.description,
            total=snapshot.total_bytes,
            size="",
            speed="",
            eta="",
            message="",
        )

    def _apply(self, snapshot: ProgressSnapshot, message: str = "") -> None:
        self._ensure_task(snapshot)
        speed = compute_speed_mbps(snapshot.bytes_transferred, snapshot.elapsed) if snapshot.elapsed > 0 else 0.0
        size = format_size(snapshot.bytes_transferred)
        if snapshot.total_bytes:
            size = f"{size}/{format_size(snapshot.total_bytes)}"
        self.progress.update(
            self._task_id,
            completed=snapshot.bytes_transferred,
            size=size,
            speed=format_speed(speed) if speed > 0 else "...",
            eta=_format_eta(snapshot.eta),
            message=message,
        )
        self.progress.refresh()

    def update(self, snapshot: ProgressSnapshot) -> None:
        self._apply(snapshot)

    def close(self, snapshot: ProgressSnapshot, message: str, ok: bool) -> None:
        style = "green" if ok else "bright_red"
        self._apply(snapshot, f"[{style}]{message}[/{style}]")
        self.progress.stop()


def _format_eta(seconds: Optional[float]) -> str:
    if seconds is None:
        return ""
    minutes, secs = divmod(int(seconds), 60)
    return f"ETA {minutes:d}:{secs:02d}"
