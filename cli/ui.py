"""
Terminal rendering for the CLI: scan header, live progress bar, summary
and banner panels.
"""

import threading
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from core.models import Result
from core.progress import QueueProgress


def format_ports(ports: List[int]) -> str:
    return ", ".join(str(p) for p in ports)


def print_header(target: str, ports: List[int], console: Optional[Console] = None):
    console = console or Console()
    console.print(Panel(f"[bold cyan]SCAN START: {escape(target)}[/bold cyan]", border_style="cyan"))
    console.print(f"[dim]Scanning ports:[/dim] {format_ports(ports)}")


def print_summary(result: Result, ports: List[int], console: Optional[Console] = None):
    console = console or Console()
    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="bold")
    grid.add_column()
    grid.add_row("Target", escape(result.target))
    grid.add_row("Ports Scanned", format_ports(ports))
    grid.add_row("Open Ports", format_ports(result.open_port_numbers()) or "[dim]none[/dim]")
    taken = result.duration_display
    if result.cancelled:
        taken += " [yellow](cancelled)[/yellow]"
    grid.add_row("Time Taken", taken)
    console.print(Panel(grid, title="SCAN SUMMARY", border_style="green"))


def print_banners(result: Result, console: Optional[Console] = None):
    console = console or Console()
    table = Table(title="BANNERS", show_lines=False)
    table.add_column("Port", justify="right", style="cyan")
    table.add_column("Banner")
    for pr in result.open_ports:
        table.add_row(str(pr.port), escape(pr.banner) if pr.banner else "[dim]<no banner>[/dim]")
    console.print(table)


class ProgressBar:
    """Advances a rich progress task once per QueueProgress tick, on its own thread."""

    def __init__(self, sink: QueueProgress, description: str = "Scanning", console: Optional[Console] = None):
        self.sink = sink
        self.current = 0
        self.progress = Progress(
            TextColumn("[cyan]{task.description}[/cyan]"),
            BarColumn(),
            TaskProgressColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console or Console(),
        )
        self.task = self.progress.add_task(escape(description), total=sink.total)
        self._thread: Optional[threading.Thread] = None

    def _run(self):
        with self.progress:
            for tick in self.sink:
                self.current += tick
                self.progress.advance(self.task, tick)
            self.progress.update(self.task, completed=self.current)

    @property
    def finished(self) -> bool:
        return self.progress.tasks[0].finished

    def start(self) -> "ProgressBar":
        self._thread = threading.Thread(target=self._run, name="progress-bar", daemon=True)
        self._thread.start()
        return self

    def join(self, timeout: Optional[float] = None):
        if self._thread:
            self._thread.join(timeout)
