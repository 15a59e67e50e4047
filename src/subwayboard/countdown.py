"""Countdown projection of predicted arrivals against the wall clock."""

from datetime import datetime, tzinfo
from typing import Iterable, List, Optional

from .models import ArrivalEvent, BufferedArrival, ProjectedState
from .track import DEFAULT_MAX_MINUTES, map_position


def buffer_arrival(event: ArrivalEvent, buffer_seconds: int) -> BufferedArrival:
    """Apply the safety buffer to a predicted arrival."""
    predicted = event.predicted_epoch_seconds
    return BufferedArrival(
        predicted_epoch_seconds=predicted,
        buffered_epoch_seconds=predicted - buffer_seconds,
    )


def minutes_remaining(buffered_epoch: int, now: float) -> int:
    """Whole minutes until the buffered time, rounded down and never negative."""
    return max(0, int((buffered_epoch - now) // 60))


def has_passed(buffered_epoch: int, now: float) -> bool:
    """A train has passed once its buffered time is strictly in the past."""
    return buffered_epoch < now


def format_countdown(minutes: int) -> str:
    if minutes <= 0:
        return "NOW"
    if minutes == 1:
        return "1 min"
    return f"{minutes} min"


def format_clock(epoch: float, tz: Optional[tzinfo] = None) -> str:
    """Format an epoch as a 12-hour clock time, e.g. "3:07 PM"."""
    value = datetime.fromtimestamp(epoch, tz).strftime("%I:%M %p")
    return value.lstrip("0")


def project(
    event: ArrivalEvent,
    now: float,
    buffer_seconds: int,
    max_minutes: int = DEFAULT_MAX_MINUTES,
    tz: Optional[tzinfo] = None,
) -> ProjectedState:
    """
    Project an arrival onto the board for the current instant.

    The countdown, the clock string and the track position all derive from the
    same buffered time.

    Args:
        event: Arrival to project.
        now: Current epoch seconds.
        buffer_seconds: Safety buffer subtracted from the prediction.
        max_minutes: Track horizon; arrivals beyond it get no track position.
        tz: Timezone for the clock string. Defaults to local time.

    Returns:
        ProjectedState for this tick.
    """
    buffered = buffer_arrival(event, buffer_seconds).buffered_epoch_seconds
    minutes = minutes_remaining(buffered, now)
    position = map_position(minutes, max_minutes)

    return ProjectedState(
        minutes_remaining=minutes,
        is_passed=has_passed(buffered, now),
        display_bucket=position.bucket,
        track_percent=position.percent if minutes <= max_minutes else None,
        text=format_countdown(minutes),
        clock=format_clock(buffered, tz),
    )


def active_arrivals(
    events: Iterable[ArrivalEvent],
    now: float,
    buffer_seconds: int,
) -> List[ArrivalEvent]:
    """Drop arrivals whose buffered time has already passed."""
    return [
        event for event in events
        if not has_passed(buffer_arrival(event, buffer_seconds).buffered_epoch_seconds, now)
    ]
