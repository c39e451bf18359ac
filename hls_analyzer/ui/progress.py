"""
Progress display for batch probes.

Wraps a Rich progress bar in a context manager whose ``update`` method can be
passed straight to ``SegmentProber.probe_batch`` as its progress callback.
"""

from typing import Any, Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from ..utils import get_logger

logger = get_logger(__name__)


class BatchProgress:
    """Rich progress bar for a batch of segment probes."""

    def __init__(
        self,
        total: int,
        description: str = "Probing segments",
        console: Optional[Console] = None,
        enabled: bool = True,
    ):
        """
        Initialize batch progress.

        Args:
            total: Number of segments in the batch
            description: Label shown next to the bar
            console: Rich console (creates new if None)
            enabled: Render nothing when False (e.g. JSON output)
        """
        self.total = total
        self.description = description
        self.console = console or Console(stderr=True)
        self.enabled = enabled
        self._progress: Optional[Progress] = None
        self._task_id: Optional[TaskID] = None

    def create_progress(self) -> Progress:
        """
        Create Rich progress display.

        Returns:
            Progress object with custom columns
        """
        return Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=None),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )

    def update(self, completed: int, total: int) -> None:
        """Progress callback with (completed, total) counts."""
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, completed=completed, total=total)

    def __enter__(self) -> "BatchProgress":
        if self.enabled:
            self._progress = self.create_progress()
            self._progress.start()
            self._task_id = self._progress.add_task(self.description, total=self.total)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
            self._task_id = None
