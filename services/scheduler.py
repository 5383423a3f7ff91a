from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Runs ``action`` immediately, then again ``interval`` seconds after each run ends.

    Overruns push later cycles back instead of queueing them. An exception
    from ``action`` is logged and the loop keeps going.
    """

    def __init__(self, name: str, interval: float, action: Callable[[], object]) -> None:
        if interval <= 0:
            raise ValueError(f"Task {name!r} needs a positive interval, got {interval}.")
        self.name = name
        self.interval = interval
        self.action = action
        self.cycles = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=f"task-{self.name}", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def run_once(self) -> None:
        start = time.perf_counter()
        try:
            self.action()
        except Exception:
            logger.exception("Task cycle failed", extra={"task": self.name, "cycle": self.cycles})
        self.cycles += 1
        logger.debug(
            "Task cycle finished",
            extra={
                "task": self.name,
                "cycle": self.cycles,
                "elapsed_ms": int((time.perf_counter() - start) * 1000),
            },
        )

    def _run(self) -> None:
        logger.info("Task started with %.1fs cooldown", self.interval, extra={"task": self.name})
        while not self._stop.is_set():
            self.run_once()
            self._stop.wait(self.interval)
        logger.info("Task stopped", extra={"task": self.name})


class Scheduler:
    """Owns the periodic tasks of the enabled modules."""

    def __init__(self) -> None:
        self.tasks: List[PeriodicTask] = []

    def add(self, name: str, interval: float, action: Callable[[], object]) -> PeriodicTask:
        task = PeriodicTask(name, interval, action)
        self.tasks.append(task)
        return task

    def start(self) -> None:
        for task in self.tasks:
            task.start()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Signal every task, then wait for in-flight cycles to finish."""
        for task in self.tasks:
            task.stop()
        for task in self.tasks:
            task.join(timeout)
