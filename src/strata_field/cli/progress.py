"""Progress display for intensity runs.

Provides a rich terminal UI fed by the evaluator's per-batch notifications:
- Progress bar with percentage
- Elapsed time and ETA
- Throughput (points/s)
- Memory usage
"""

import time

import psutil
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from strata_field.core.config import BatchConfig
from strata_field.core.evaluator import BatchProgress
from strata_field.core.points import LensCorrection


def format_time(seconds: float) -> str:
    """Format time duration for display.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string like "1m 23s" or "2h 15m"
    """
    if seconds < 60:
        return f"{seconds:.0f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs:02d}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes:02d}m"


def format_bytes(num_bytes: float) -> str:
    """Format byte count for display, e.g. "1.5 GB"."""
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if abs(num_bytes) < 1024.0:
            return f"{num_bytes:.1f} {unit}"
        num_bytes /= 1024.0
    return f"{num_bytes:.1f} PB"


class IntensityProgress:
    """Live progress bar for a batched intensity run.

    Pass ``update`` as the evaluator's progress callback:

        >>> with IntensityProgress(console, num_nodes) as progress:
        ...     evaluate(nodes, correction, config, field, progress=progress.update)
    """

    def __init__(self, console: Console, num_nodes: int):
        self.console = console
        self.num_nodes = num_nodes
        self.start_time = time.time()
        self.peak_memory = 0.0
        self.last_event: BatchProgress | None = None
        self._finished = False

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("•"),
            TimeRemainingColumn(),
            TextColumn("{task.fields[stats]}", style="dim"),
            console=console,
        )
        self.task = self.progress.add_task("Evaluating", total=num_nodes, stats="")
        self.progress.start()

    def update(self, event: BatchProgress) -> None:
        """Advance the bar to the end of the batch that just completed."""
        self.last_event = event
        completed = event.batch.stop
        elapsed = time.time() - self.start_time
        rate = completed / elapsed if elapsed > 0 else 0.0

        memory = psutil.Process().memory_info().rss
        self.peak_memory = max(self.peak_memory, memory)

        stats = f"{rate:,.0f} pts/s | {format_bytes(memory)} (peak {format_bytes(self.peak_memory)})"
        self.progress.update(self.task, completed=completed, stats=stats)

    def finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        self.progress.stop()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finish()


def print_run_info(
    console: Console,
    num_nodes: int,
    config: BatchConfig,
    correction: LensCorrection,
    field_metadata: dict | None,
    output_path,
) -> None:
    """Print run parameters before evaluation starts."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Nodes", f"{num_nodes:,}")
    table.add_row(
        "Batches",
        f"{config.num_batches(num_nodes)} × {config.step_size} points",
    )
    table.add_row("Threads", str(config.threads))
    table.add_row(
        "Lens correction",
        f"({correction.dx:.3g}, {correction.dy:.3g}, {correction.dz:.3g}) m",
    )

    if field_metadata:
        model = field_metadata.get("model", "custom")
        if "center_frequency" in field_metadata:
            model = f"{model} @ {field_metadata['center_frequency'] / 1e6:.2f} MHz"
        table.add_row("Field", model)

    table.add_row("Output", str(output_path))

    console.print(table)
    console.print()
