"""Client for the board's own /api/arrivals endpoint."""

import logging
from typing import Any, Dict, Iterable, List

import requests

from .errors import DecodeError, TransportError
from .models import ArrivalEvent, ArrivalSnapshot

logger = logging.getLogger(__name__)


class ArrivalsApiClient:
    """Reads arrival snapshots from a running SubwayBoard server."""

    def __init__(self, api_url: str, lines: Iterable[str], timeout: float = 10.0):
        self.api_url = api_url
        self.lines = tuple(line.upper() for line in lines)
        self._timeout = timeout
        self._session = requests.Session()

    def fetch_snapshot(self) -> ArrivalSnapshot:
        """
        Fetch the latest arrivals from the server.

        Returns:
            ArrivalSnapshot built from the response.

        Raises:
            TransportError: If the server is unreachable or responds with an error.
            DecodeError: If the response body is not the expected JSON.
        """
        try:
            response = self._session.get(self.api_url, timeout=self._timeout)
        except requests.RequestException as e:
            raise TransportError(f"Arrivals API request failed: {e}") from e

        if response.status_code != 200:
            detail = f"HTTP error: {response.status_code}"
            try:
                message = response.json().get("message")
            except ValueError:
                message = None
            if message:
                detail = f"{detail}, {message}"
            raise TransportError(detail)

        try:
            payload = response.json()
        except ValueError as e:
            raise DecodeError("Arrivals API response was not valid JSON") from e

        return self._parse_snapshot(payload)

    def _parse_snapshot(self, payload: Dict[str, Any]) -> ArrivalSnapshot:
        try:
            stop_id = payload["stopId"]
            arrivals = payload.get("arrivals") or {}
            lines: Dict[str, List[ArrivalEvent]] = {}
            for line in self.lines:
                lines[line] = [
                    ArrivalEvent(
                        route_id=line,
                        stop_id=stop_id,
                        predicted_epoch_seconds=int(item["timestamp"]),
                    )
                    for item in arrivals.get(line, [])
                ]
            return ArrivalSnapshot(
                lines=lines,
                built_at=int(payload["timestamp"]),
                stop_id=stop_id,
                station=payload.get("station", ""),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DecodeError(f"Unexpected arrivals payload: {e}") from e

    def close(self) -> None:
        self._session.close()
