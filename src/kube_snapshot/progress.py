"""Progress tracking for backup and restore runs."""
from __future__ import annotations

import logging
import time

from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn

from .types import ProgressCallback


class SilentProgressTracker(ProgressCallback):
    """Progress tracker that only logs to the logger."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.start_time = time.time()
        self._started = False

    def update(self, current: int, total: int, message: str = "") -> None:
        self._started = True
        if total > 0:
            percentage = (current / total) * 100
            self.logger.info("Progress: %d/%d (%.1f%%) %s", current, total, percentage, message)
        else:
            self.logger.info("Processed: %d %s", current, message)

    def finish(self, message: str = "Complete") -> None:
        if self._started:
            self.logger.info("%s (took %.1fs)", message, time.time() - self.start_time)


class RichProgressTracker(ProgressCallback):
    """Progress tracker using rich for a live progress bar."""

    def __init__(self):
        self.progress = Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("({task.completed}/{task.total})"),
            TimeElapsedColumn(),
        )
        self.task_id = None

    def update(self, current: int, total: int, message: str = "") -> None:
        if self.task_id is None:
            self.progress.start()
            self.task_id = self.progress.add_task(message or "Processing...", total=total)

        self.progress.update(self.task_id, completed=current, description=message or "Processing...")

    def finish(self, message: str = "Complete") -> None:
        if self.task_id is not None:
            self.progress.update(self.task_id, description=message)
            self.progress.stop()
            self.task_id = None


def create_progress_tracker(enabled: bool = True, silent: bool = False) -> ProgressCallback:
    """
    Create an appropriate progress tracker.

    Args:
        enabled: Whether to draw a progress bar
        silent: Whether to use log-only progress tracking

    Returns:
        Progress tracker instance
    """
    if not enabled or silent:
        return SilentProgressTracker()

    return RichProgressTracker()
