"""Extract arrival predictions for one stop from a GTFS-Realtime feed."""

import logging
import time
from typing import Dict, Iterable, List, Optional

from google.protobuf.message import DecodeError as ProtobufDecodeError
from google.transit import gtfs_realtime_pb2

from .errors import DecodeError
from .models import ArrivalEvent

logger = logging.getLogger(__name__)

INT64_MAX = 2 ** 63 - 1


def get_line_letter(route_id: str) -> Optional[str]:
    """Return the display letter for a route id ("B15N" -> "B"), or None if empty."""
    if not route_id:
        return None
    return route_id[0].upper()


def decode_feed(raw_bytes: bytes) -> gtfs_realtime_pb2.FeedMessage:
    """
    Decode raw feed bytes into a FeedMessage.

    Raises:
        DecodeError: If the bytes are not a valid GTFS-Realtime message.
    """
    feed = gtfs_realtime_pb2.FeedMessage()
    try:
        feed.ParseFromString(raw_bytes)
    except (ProtobufDecodeError, TypeError, ValueError) as e:
        raise DecodeError(f"Malformed GTFS-Realtime feed: {e}") from e
    return feed


def _epoch_seconds(value, entity_id: str) -> int:
    """
    Validate a stop-time event's time field.

    int64 times arrive as Python ints regardless of their wire encoding; any
    other shape is rejected instead of being coerced. Negative times are valid
    int64 values and are left for the caller's past-time filter.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(
            f"Entity {entity_id}: unexpected time value {value!r} ({type(value).__name__})"
        )
    if value > INT64_MAX:
        raise DecodeError(f"Entity {entity_id}: time {value} is outside the 64-bit epoch range")
    return int(value)


def _has_field(message, name: str) -> bool:
    try:
        return message.HasField(name)
    except ValueError:
        return False


def _predicted_time(stop_time_update, entity_id: str) -> Optional[int]:
    """Prefer the arrival time, fall back to departure; None when neither is set."""
    for name in ("arrival", "departure"):
        if not _has_field(stop_time_update, name):
            continue
        event = getattr(stop_time_update, name)
        if not _has_field(event, "time"):
            continue
        return _epoch_seconds(event.time, entity_id)
    return None


def extract_arrivals(
    entities: Iterable,
    stop_id: str,
    lines: Iterable[str],
    now: int,
) -> Dict[str, List[ArrivalEvent]]:
    """
    Collect future arrivals at a stop from decoded feed entities.

    Args:
        entities: FeedEntity messages (or objects shaped like them).
        stop_id: Stop ID to keep (e.g., "D21N").
        lines: Line letters to keep (e.g., ["B", "D"]).
        now: Ingestion epoch; predictions at or before it are dropped.

    Returns:
        Dictionary of line letter -> events in feed order. Every requested line is present.
    """
    arrivals: Dict[str, List[ArrivalEvent]] = {line.upper(): [] for line in lines}

    for entity in entities:
        if not _has_field(entity, "trip_update"):
            continue

        trip_update = entity.trip_update
        line = get_line_letter(trip_update.trip.route_id)
        if line not in arrivals:
            continue

        for stop_time_update in trip_update.stop_time_update:
            if stop_time_update.stop_id != stop_id:
                continue

            predicted = _predicted_time(stop_time_update, entity.id)
            if predicted is None or predicted <= now:
                continue

            arrivals[line].append(
                ArrivalEvent(
                    route_id=line,
                    stop_id=stop_id,
                    predicted_epoch_seconds=predicted,
                )
            )

    return arrivals


def ingest(
    raw_bytes: bytes,
    stop_id: str,
    lines: Iterable[str],
    now: Optional[int] = None,
) -> Dict[str, List[ArrivalEvent]]:
    """
    Decode a feed and extract arrivals for the target stop and lines.

    Args:
        raw_bytes: GTFS-Realtime protobuf bytes.
        stop_id: Stop ID to keep.
        lines: Line letters to keep.
        now: Ingestion epoch. Defaults to the current time.

    Returns:
        Dictionary of line letter -> list of ArrivalEvent, unsorted. An empty result is valid.

    Raises:
        DecodeError: If the bytes are malformed or a time field has an unexpected shape.
    """
    if now is None:
        now = int(time.time())

    feed = decode_feed(raw_bytes)
    arrivals = extract_arrivals(feed.entity, stop_id, lines, now)

    logger.debug(
        f"Parsed {len(feed.entity)} entities, kept "
        + ", ".join(f"{line}={len(events)}" for line, events in arrivals.items())
    )
    return arrivals
