"""Periodic tasks driving the slow feed poll and the fast re-render."""

import logging
import threading
from typing import Callable, Optional, Tuple

logger = logging.getLogger(__name__)


class PeriodicTask:
    """
    Runs a callable on a fixed interval in a background thread.

    The callable runs once immediately, then every interval. An exception
    raised by the callable is logged and the loop carries on. The task is its
    own handle: cancel() stops it, join() waits for the thread to exit.
    """

    def __init__(self, name: str, func: Callable[[], None], interval_ms: int):
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        self.name = name
        self._func = func
        self._interval_seconds = interval_ms / 1000.0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def cancelled(self) -> bool:
        return self._stop_event.is_set()

    def start(self) -> "PeriodicTask":
        """Start the background thread."""
        if self.is_running:
            return self
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name=self.name, daemon=True)
        self._thread.start()
        return self

    def cancel(self) -> None:
        """Signal the task to stop after the current run."""
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> None:
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def run_once(self) -> None:
        """Run the callable a single time, logging any failure."""
        try:
            self._func()
        except Exception:
            logger.exception(f"Task {self.name} failed; will retry in {self._interval_seconds:g}s")

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            self.run_once()
            self._stop_event.wait(timeout=self._interval_seconds)


class RefreshScheduler:
    """
    Owns the two cadences of the board.

    The slow task polls the feed into the store; the fast task re-renders from
    whatever the store holds. They are started together and stopped together.
    """

    def __init__(
        self,
        poll: Callable[[], None],
        render: Callable[[], None],
        poll_interval_ms: int = 30000,
        render_interval_ms: int = 1000,
    ):
        self._poll = poll
        self._render = render
        self._poll_interval_ms = poll_interval_ms
        self._render_interval_ms = render_interval_ms
        self._handles: Optional[Tuple[PeriodicTask, PeriodicTask]] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._handles is not None

    def start(self) -> Tuple[PeriodicTask, PeriodicTask]:
        """
        Start both tasks.

        Returns:
            (slow, fast) task handles. Calling start() again returns the same handles.
        """
        with self._lock:
            if self._handles is not None:
                return self._handles
            slow = PeriodicTask("feed-poll", self._poll, self._poll_interval_ms)
            fast = PeriodicTask("render-tick", self._render, self._render_interval_ms)
            self._handles = (slow, fast)
            slow.start()
            fast.start()
            logger.info(
                f"Started polling every {self._poll_interval_ms}ms, "
                f"rendering every {self._render_interval_ms}ms"
            )
            return self._handles

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Cancel the render task, then the poll task, and wait for both to exit."""
        with self._lock:
            handles = self._handles
            self._handles = None
        if handles is None:
            return

        slow, fast = handles
        fast.cancel()
        fast.join(timeout)
        slow.cancel()
        slow.join(timeout)
        logger.info("Stopped refresh scheduler")
