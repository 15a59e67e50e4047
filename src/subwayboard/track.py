"""Map minutes remaining onto the track drawn beside each line."""

from typing import Iterable, List, Tuple

from .models import TrackPosition, TrackState

ARRIVING = "arriving"
CLOSE = "close"
MID_DISTANCE = "mid-distance"
DISTANT = "distant"

DEFAULT_MAX_MINUTES = 20

# The station sits at the left edge of the track, the horizon at the right.
TRACK_MIN_PERCENT = 5.0
TRACK_MAX_PERCENT = 95.0
TRACK_SPAN_PERCENT = TRACK_MAX_PERCENT - TRACK_MIN_PERCENT


def proximity_bucket(minutes: int) -> str:
    """Classify how close a train is."""
    if minutes <= 1:
        return ARRIVING
    if minutes <= 5:
        return CLOSE
    if minutes <= 10:
        return MID_DISTANCE
    return DISTANT


def track_percent(minutes: float, max_minutes: int = DEFAULT_MAX_MINUTES) -> float:
    """Horizontal position of a minute mark, clamped to the track."""
    if minutes <= 0:
        return TRACK_MIN_PERCENT
    percent = TRACK_MIN_PERCENT + (minutes / max_minutes) * TRACK_SPAN_PERCENT
    return max(TRACK_MIN_PERCENT, min(TRACK_MAX_PERCENT, percent))


def map_position(minutes: int, max_minutes: int = DEFAULT_MAX_MINUTES) -> TrackPosition:
    """Place a train on the track and classify its proximity."""
    return TrackPosition(percent=track_percent(minutes, max_minutes), bucket=proximity_bucket(minutes))


def build_track(minutes: Iterable[int], max_minutes: int = DEFAULT_MAX_MINUTES) -> TrackState:
    """
    Build the track for one line.

    Trains further out than max_minutes are left off the track. Any train in the
    arriving bucket flags the whole track as imminent.
    """
    positions: List[TrackPosition] = []
    for value in minutes:
        if value > max_minutes:
            continue
        positions.append(map_position(value, max_minutes))

    imminent = any(position.bucket == ARRIVING for position in positions)
    return TrackState(positions=tuple(positions), imminent=imminent)


def tick_marks(max_minutes: int = DEFAULT_MAX_MINUTES) -> List[Tuple[float, bool, str]]:
    """Return (percent, is_major, label) for every minute from 0 to max_minutes."""
    marks = []
    for minute in range(max_minutes + 1):
        is_major = minute % 5 == 0
        label = str(minute) if is_major and minute != 0 else ""
        marks.append((track_percent(minute, max_minutes), is_major, label))
    return marks
