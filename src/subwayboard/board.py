"""Arrival board: polls a snapshot source and renders a countdown every tick."""

import logging
import time
from datetime import datetime, tzinfo
from typing import Callable, Dict, Optional, Tuple

from .config import BoardConfig
from .countdown import active_arrivals, project
from .errors import IngestError
from .models import ArrivalRow, ArrivalSnapshot, BoardView, LineView
from .scheduler import PeriodicTask, RefreshScheduler
from .store import ArrivalStore
from .track import build_track

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_EMPTY = "empty"
STATUS_UNAVAILABLE = "unavailable"
STATUS_LOADING = "loading"

MESSAGE_EMPTY = "No trains scheduled"
MESSAGE_UNAVAILABLE = "Service unavailable"
MESSAGE_LOADING = "Loading..."


def format_time(epoch: float, tz: Optional[tzinfo] = None) -> str:
    """Format an epoch with seconds, e.g. "3:07:09 PM"."""
    return datetime.fromtimestamp(epoch, tz).strftime("%I:%M:%S %p").lstrip("0")


def format_date(epoch: float, tz: Optional[tzinfo] = None) -> str:
    """Format an epoch as a short date, e.g. "Mon, Oct 19"."""
    value = datetime.fromtimestamp(epoch, tz)
    return f"{value:%a, %b} {value.day}"


class ArrivalBoard:
    """
    Countdown board for the configured station.

    The slow path pulls a snapshot from fetch_snapshot into the board's own
    store. The fast path projects that snapshot against the current clock and
    hands the resulting BoardView to the render target. Only the slow path does
    I/O.
    """

    def __init__(
        self,
        config: BoardConfig,
        fetch_snapshot: Callable[[], ArrivalSnapshot],
        render_target: Optional[Callable[[BoardView], None]] = None,
        clock: Callable[[], float] = time.time,
        tz: Optional[tzinfo] = None,
    ):
        """
        Initialize the board.

        Args:
            config: Board configuration.
            fetch_snapshot: Returns a fresh snapshot; raises IngestError on failure.
            render_target: Receives a BoardView on every tick.
            clock: Time source, injectable for tests.
            tz: Timezone for displayed times. Defaults to local time.
        """
        self.config = config
        self.store = ArrivalStore()
        self._fetch_snapshot = fetch_snapshot
        self._target = render_target
        self._clock = clock
        self._tz = tz
        # (last poll succeeded, when) - replaced as a whole by the poll task
        self._poll_status: Optional[Tuple[bool, float]] = None
        self._last_success: Optional[float] = None
        self._scheduler = RefreshScheduler(
            poll=self.refresh,
            render=self.tick,
            poll_interval_ms=config.poll_interval_ms,
            render_interval_ms=config.render_interval_ms,
        )

    def refresh(self) -> bool:
        """
        Pull a new snapshot into the store.

        Returns:
            True if the snapshot was replaced, False if the poll failed and the
            previous snapshot was kept.
        """
        try:
            snapshot = self._fetch_snapshot()
        except IngestError as e:
            logger.warning(f"Failed to refresh arrivals, keeping previous snapshot: {e}")
            self._poll_status = (False, self._clock())
            return False

        self.store.replace_snapshot(snapshot)
        now = self._clock()
        self._last_success = now
        self._poll_status = (True, now)
        return True

    def render(self, now: Optional[float] = None) -> BoardView:
        """Build the board as it should look at the given instant."""
        if now is None:
            now = self._clock()

        snapshot = self.store.get_snapshot()
        poll_status = self._poll_status
        poll_failed = poll_status is not None and not poll_status[0]

        lines: Dict[str, LineView] = {}
        for line in self.config.lines:
            if snapshot is None:
                if poll_failed:
                    lines[line] = LineView(line=line, status=STATUS_UNAVAILABLE, message=MESSAGE_UNAVAILABLE)
                else:
                    lines[line] = LineView(line=line, status=STATUS_LOADING, message=MESSAGE_LOADING)
                continue
            lines[line] = self._render_line(line, snapshot, now, poll_failed)

        if poll_failed:
            footer = f"Update failed at {format_time(poll_status[1], self._tz)}"
        elif self._last_success is not None:
            footer = f"Updated {format_time(self._last_success, self._tz)}"
        else:
            footer = ""

        return BoardView(
            station=snapshot.station if snapshot and snapshot.station else self.config.station,
            direction=self.config.direction,
            clock=format_time(now, self._tz),
            date=format_date(now, self._tz),
            lines=lines,
            footer=footer,
            snapshot_age=snapshot.age(now) if snapshot else None,
        )

    def _render_line(
        self, line: str, snapshot: ArrivalSnapshot, now: float, poll_failed: bool
    ) -> LineView:
        buffer_seconds = self.config.safety_buffer_seconds
        events = active_arrivals(snapshot.for_line(line), now, buffer_seconds)
        if not events:
            # An empty retained line proves nothing once polling has failed
            if poll_failed:
                return LineView(line=line, status=STATUS_UNAVAILABLE, message=MESSAGE_UNAVAILABLE)
            return LineView(line=line, status=STATUS_EMPTY, message=MESSAGE_EMPTY)

        states = [
            project(event, now, buffer_seconds, self.config.max_minutes, self._tz)
            for event in events
        ]
        rows = [
            ArrivalRow(
                minutes=state.minutes_remaining,
                text=state.text,
                clock=state.clock,
                bucket=state.display_bucket,
            )
            for state in states
        ]
        track = build_track([state.minutes_remaining for state in states], self.config.max_minutes)
        return LineView(line=line, status=STATUS_OK, arrivals=rows, track=track)

    def tick(self) -> None:
        """Render the current snapshot to the target."""
        target = self._target
        if target is None:
            return
        target(self.render())

    def start(self) -> Tuple[PeriodicTask, PeriodicTask]:
        """Start polling and rendering; returns the (poll, render) task handles."""
        return self._scheduler.start()

    def stop(self) -> None:
        """Stop both tasks, then detach the render target."""
        self._scheduler.stop()
        self._target = None
        logger.info("Arrival board stopped")
