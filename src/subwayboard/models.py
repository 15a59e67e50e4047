"""Data models for the subway arrival board."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ArrivalEvent:
    """A predicted arrival of one train at the target stop."""
    route_id: str  # Line letter, e.g. "B"
    stop_id: str
    predicted_epoch_seconds: int  # Unix timestamp


@dataclass(frozen=True)
class ArrivalSnapshot:
    """Aggregated arrivals from a single poll, keyed by line letter."""
    lines: Mapping[str, Tuple[ArrivalEvent, ...]]
    built_at: int  # Unix timestamp of the poll
    stop_id: str
    station: str

    def __post_init__(self):
        frozen = {line: tuple(events) for line, events in self.lines.items()}
        object.__setattr__(self, "lines", MappingProxyType(frozen))

    def for_line(self, line: str) -> Tuple[ArrivalEvent, ...]:
        """Return the events for a line, or an empty tuple."""
        return self.lines.get(line.upper(), ())

    def age(self, now: float) -> float:
        """Seconds elapsed since the snapshot was built."""
        return max(0.0, now - self.built_at)


@dataclass(frozen=True)
class BufferedArrival:
    """A predicted time together with its safety-buffered counterpart."""
    predicted_epoch_seconds: int
    buffered_epoch_seconds: int


@dataclass(frozen=True)
class TrackPosition:
    """Where a train sits on the track and how close it is."""
    percent: float
    bucket: str


@dataclass(frozen=True)
class ProjectedState:
    """Render-time view of one arrival against the current clock."""
    minutes_remaining: int
    is_passed: bool
    display_bucket: str
    track_percent: Optional[float]  # None when beyond the track horizon
    text: str
    clock: str


@dataclass(frozen=True)
class TrackState:
    """Positions drawn on one line's track."""
    positions: Tuple[TrackPosition, ...] = ()
    imminent: bool = False


@dataclass(frozen=True)
class ArrivalRow:
    """One countdown entry in a line's arrival list."""
    minutes: int
    text: str
    clock: str
    bucket: str


@dataclass(frozen=True)
class LineView:
    """Rendered state of a single line."""
    line: str
    status: str  # "ok", "empty", "unavailable" or "loading"
    arrivals: List[ArrivalRow] = field(default_factory=list)
    track: TrackState = field(default_factory=TrackState)
    message: Optional[str] = None


@dataclass(frozen=True)
class BoardView:
    """Complete board for one render tick."""
    station: str
    direction: str
    clock: str
    date: str
    lines: Dict[str, LineView]
    footer: str
    snapshot_age: Optional[float] = None
