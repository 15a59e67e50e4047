"""Order and cap arrivals per line."""

from typing import Dict, Iterable, List, Mapping

from .models import ArrivalEvent

DEFAULT_PER_LINE_CAP = 3


def aggregate(events: Iterable[ArrivalEvent], per_line_cap: int = DEFAULT_PER_LINE_CAP) -> List[ArrivalEvent]:
    """
    Sort arrivals by predicted time and keep the earliest ones.

    The sort is stable, so arrivals predicted for the same second keep their
    feed order.

    Args:
        events: Arrivals for a single line.
        per_line_cap: Maximum number of arrivals to keep.

    Returns:
        At most per_line_cap arrivals in ascending predicted time.
    """
    if per_line_cap < 0:
        raise ValueError(f"per_line_cap must not be negative, got {per_line_cap}")
    ordered = sorted(events, key=lambda event: event.predicted_epoch_seconds)
    return ordered[:per_line_cap]


def aggregate_lines(
    arrivals: Mapping[str, Iterable[ArrivalEvent]],
    per_line_cap: int = DEFAULT_PER_LINE_CAP,
) -> Dict[str, List[ArrivalEvent]]:
    """Apply aggregate() to every line of an ingestion result."""
    return {line: aggregate(events, per_line_cap) for line, events in arrivals.items()}
