"""Holder for the latest arrival snapshot."""

import logging
import threading
from typing import Optional

from .models import ArrivalSnapshot

logger = logging.getLogger(__name__)


class ArrivalStore:
    """
    Keeps the most recent ArrivalSnapshot.

    Snapshots are immutable and swapped in whole, so a reader always sees every
    line from the same poll. A failed poll never reaches the store; the previous
    snapshot stays in place and its age grows.
    """

    def __init__(self):
        self._snapshot: Optional[ArrivalSnapshot] = None
        self._lock = threading.Lock()

    def get_snapshot(self) -> Optional[ArrivalSnapshot]:
        """Return the current snapshot, or None before the first successful poll."""
        with self._lock:
            return self._snapshot

    def replace_snapshot(self, snapshot: ArrivalSnapshot) -> None:
        """Swap in a freshly built snapshot."""
        with self._lock:
            self._snapshot = snapshot
        logger.debug(
            f"Stored snapshot for {snapshot.stop_id} built at {snapshot.built_at} "
            f"({sum(len(events) for events in snapshot.lines.values())} arrivals)"
        )

    def age(self, now: float) -> Optional[float]:
        """Seconds since the current snapshot was built, or None if there is none."""
        snapshot = self.get_snapshot()
        if snapshot is None:
            return None
        return snapshot.age(now)
