"""
Cosmetic progress bar for API calls.

The API gives no transfer progress, so the bar creeps forward on a timer
while the request runs and jumps to 100% when it succeeds.
"""

import threading
from typing import Optional

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskID, TextColumn

from valtstorage import terminal

STEP = 5
CEILING = 95
MIN_INTERVAL = 0.01


class SimulatedProgress:
    """
    Context manager that animates a rich progress bar from a ticker thread.

    The ticker is always stopped on exit, whether the block raised or not;
    the bar is only completed when the block finished cleanly.
    """

    def __init__(
        self,
        description: str = "Processing...",
        console: Optional[Console] = None,
        interval: float = 0.5,
    ):
        self.description = description
        self.interval = max(interval, MIN_INTERVAL)
        self.progress = Progress(
            SpinnerColumn(finished_text="[success]✓[/]"),
            BarColumn(bar_width=30, complete_style="primary", finished_style="success"),
            TextColumn("[primary]{task.percentage:>3.0f}%"),
            TextColumn("•"),
            TextColumn("{task.description}"),
            console=console or terminal.console,
            transient=False,
        )
        self.task_id: Optional[TaskID] = None
        self._stop = threading.Event()
        self._ticker: Optional[threading.Thread] = None

    @property
    def completed(self) -> float:
        if self.task_id is None:
            return 0
        return self.progress.tasks[self.task_id].completed

    @property
    def running(self) -> bool:
        return self._ticker is not None and self._ticker.is_alive()

    def _tick(self) -> None:
        while not self._stop.wait(self.interval):
            if self.completed < CEILING:
                self.progress.update(self.task_id, advance=STEP)

    def start(self) -> "SimulatedProgress":
        self.progress.start()
        self.task_id = self.progress.add_task(self.description, total=100)
        self._stop.clear()
        self._ticker = threading.Thread(target=self._tick, name="progress-ticker", daemon=True)
        self._ticker.start()
        return self

    def update_status(self, description: str) -> None:
        if self.task_id is not None:
            self.progress.update(self.task_id, description=description)

    def stop(self, success: bool = True) -> None:
        self._stop.set()
        if self._ticker is not None:
            self._ticker.join()
            self._ticker = None
        if self.task_id is not None:
            if success:
                self.progress.update(self.task_id, completed=100, description="[success]Complete[/]")
            else:
                self.progress.update(self.task_id, description="[error]Failed[/]")
        self.progress.stop()

    def __enter__(self) -> "SimulatedProgress":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.stop(success=exc_type is None)
        return False
