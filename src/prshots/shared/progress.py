"""Rich progress display for a capture run."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

console = Console()


class CaptureProgress:
    """Overall bar for the run plus persistent per-pull-request log lines."""

    def __init__(self, console: Console = console) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
        )
        self._task_id: TaskID | None = None

    def __enter__(self) -> "CaptureProgress":
        self._progress.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        self._progress.__exit__(*args)

    def start(self, total: int) -> None:
        """Register the overall task once the number of pull requests is known."""
        self._task_id = self._progress.add_task("[cyan]Capturing[/]", total=total)

    def _advance(self) -> None:
        if self._task_id is not None:
            self._progress.advance(self._task_id)

    def start_batch(self, index: int, size: int) -> None:
        if self._task_id is not None:
            self._progress.update(
                self._task_id, description=f"[cyan]Capturing[/] — batch {index + 1} ({size} PRs)",
            )

    def finish_pr(self, number: int, title: str) -> None:
        """Mark a pull request as captured."""
        self._progress.console.print(f"  [green]✓[/] PR #{number} [dim]{escape(title)}[/]")
        self._advance()

    def fail_pr(self, number: int, error: str) -> None:
        """Mark a pull request as failed after its retry."""
        self._progress.console.print(f"  [red]✗ PR #{number}: {escape(error)}[/]")
        self._advance()

    def log_event(self, message: str, style: str = "dim") -> None:
        """Print a persistent log line above the bar (not overwritten)."""
        self._progress.console.print(f"  [{style}]{escape(message)}[/]")

    def print_phase(self, label: str) -> None:
        """Print a phase header outside the progress display."""
        self._progress.console.print(Panel(f"[bold]{label}[/bold]", style="blue"))
