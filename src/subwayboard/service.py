"""Server-side arrival pipeline: fetch, ingest, aggregate, store."""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from .aggregator import aggregate_lines
from .config import BoardConfig
from .feed_ingestor import ingest
from .models import ArrivalSnapshot
from .mta_client import MTAClient
from .store import ArrivalStore

logger = logging.getLogger(__name__)


class _Flight:
    """A poll in progress that other callers can wait on."""

    def __init__(self):
        self.done = threading.Event()
        self.snapshot: Optional[ArrivalSnapshot] = None
        self.error: Optional[BaseException] = None


class ArrivalService:
    """
    Polls the MTA feed for the configured stop and keeps the latest snapshot.

    Concurrent polls for the same stop share a single upstream fetch: callers
    arriving while a poll is in flight wait for it and receive its result.
    """

    def __init__(
        self,
        config: BoardConfig,
        mta_client: Optional[MTAClient] = None,
        store: Optional[ArrivalStore] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.mta_client = mta_client or MTAClient(timeout=config.fetch_timeout, cache_ttl=config.cache_ttl)
        self.store = store or ArrivalStore()
        self._clock = clock
        self._flights: Dict[str, _Flight] = {}
        self._flights_lock = threading.Lock()

    def poll(self) -> ArrivalSnapshot:
        """
        Fetch the feed and replace the stored snapshot.

        Returns:
            The freshly built snapshot.

        Raises:
            TransportError: If the feed could not be fetched.
            DecodeError: If the feed could not be decoded.
        """
        stop_id = self.config.stop_id
        with self._flights_lock:
            flight = self._flights.get(stop_id)
            leader = flight is None
            if leader:
                flight = _Flight()
                self._flights[stop_id] = flight

        if not leader:
            logger.debug(f"Joining in-flight poll for {stop_id}")
            flight.done.wait()
            if flight.error is not None:
                raise flight.error
            return flight.snapshot

        try:
            snapshot = self._build_snapshot()
            self.store.replace_snapshot(snapshot)
            flight.snapshot = snapshot
            return snapshot
        except Exception as e:
            flight.error = e
            raise
        finally:
            with self._flights_lock:
                self._flights.pop(stop_id, None)
            flight.done.set()

    def _build_snapshot(self) -> ArrivalSnapshot:
        raw = self.mta_client.fetch_feed(self.config.feed_url)
        now = int(self._clock())
        arrivals = ingest(raw, self.config.stop_id, self.config.lines, now=now)
        lines = aggregate_lines(arrivals, self.config.per_line_cap)
        logger.info(
            f"Polled {self.config.station} ({self.config.stop_id}): "
            + ", ".join(f"{line}={len(events)}" for line, events in lines.items())
        )
        return ArrivalSnapshot(
            lines=lines,
            built_at=now,
            stop_id=self.config.stop_id,
            station=self.config.station,
        )

    def arrivals_payload(self, snapshot: ArrivalSnapshot, now: Optional[int] = None) -> Dict[str, Any]:
        """
        Build the /api/arrivals response body.

        Minutes are whole minutes until the raw prediction; the safety buffer is
        applied only when rendering.
        """
        if now is None:
            now = int(self._clock())

        arrivals = {
            line: [
                {
                    "minutes": (event.predicted_epoch_seconds - now) // 60,
                    "timestamp": event.predicted_epoch_seconds,
                }
                for event in snapshot.for_line(line)
            ]
            for line in self.config.lines
        }

        return {
            "station": snapshot.station,
            "stopId": snapshot.stop_id,
            "timestamp": now,
            "arrivals": arrivals,
        }

    def close(self) -> None:
        """Release the HTTP session."""
        self.mta_client.close()
