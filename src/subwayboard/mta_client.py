"""MTA GTFS-Realtime feed fetcher."""

import logging
import time
from typing import Callable, Dict, Tuple

import requests

from .errors import TransportError

logger = logging.getLogger(__name__)

REQUEST_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; SubwayBoard/1.0)",
    "Accept": "application/x-protobuf, application/octet-stream, */*",
}


class MTAClient:
    """Fetches raw GTFS-Realtime feed bytes, caching each feed for a short TTL."""

    def __init__(
        self,
        timeout: float = 10.0,
        cache_ttl: float = 30.0,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the MTA client.

        Args:
            timeout: Seconds to wait for the upstream feed before giving up.
            cache_ttl: Seconds a fetched feed is reused before refetching.
            clock: Time source, injectable for tests.
        """
        self._timeout = timeout
        self._cache: Dict[str, Tuple[bytes, float]] = {}  # feed_url -> (data, timestamp)
        self._cache_ttl = cache_ttl
        self._clock = clock
        self._session = requests.Session()
        self._session.headers.update(REQUEST_HEADERS)

    def fetch_feed(self, feed_url: str) -> bytes:
        """
        Fetch a GTFS-Realtime feed, serving it from cache when fresh.

        Args:
            feed_url: Full URL to the feed.

        Returns:
            Raw protobuf bytes.

        Raises:
            TransportError: If the feed is unreachable, times out, or returns non-2xx.
        """
        now = self._clock()
        if feed_url in self._cache:
            data, timestamp = self._cache[feed_url]
            if now - timestamp < self._cache_ttl:
                logger.debug(f"Using cached data for {feed_url}")
                return data

        # Evict expired entries to prevent unbounded growth
        self._evict_expired_cache(now)

        logger.debug(f"Fetching {feed_url}")
        try:
            response = self._session.get(feed_url, timeout=self._timeout)
        except requests.RequestException as e:
            logger.error(f"Failed to fetch {feed_url}: {e}")
            raise TransportError(f"MTA feed request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.error(f"MTA feed {feed_url} responded with status {response.status_code}")
            raise TransportError(f"MTA API responded with status: {response.status_code}")

        data = response.content
        self._cache[feed_url] = (data, now)
        return data

    def _evict_expired_cache(self, current_time: float) -> None:
        """Remove expired cache entries."""
        expired_keys = [
            url for url, (_, timestamp) in self._cache.items()
            if current_time - timestamp >= self._cache_ttl
        ]
        for key in expired_keys:
            del self._cache[key]

        if expired_keys:
            logger.debug(f"Evicted {len(expired_keys)} expired cache entries")

    def clear_cache(self) -> None:
        """Manually clear the cache."""
        self._cache.clear()

    def close(self) -> None:
        """Release the HTTP session."""
        self.clear_cache()
        self._session.close()
