"""Configuration for the subway arrival board."""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# MTA GTFS-Realtime feed for the B, D, F and M lines
BDFM_FEED_URL = "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-bdfm"

ENV_PREFIX = "SUBWAYBOARD_"


@dataclass(frozen=True)
class BoardConfig:
    """Settings shared by the API server and the board renderer."""

    feed_url: str = BDFM_FEED_URL
    stop_id: str = "D21N"  # Grand St, northbound platform
    station: str = "Grand St"
    direction: str = "Uptown & The Bronx"
    lines: Tuple[str, ...] = ("B", "D")
    per_line_cap: int = 3
    safety_buffer_minutes: int = 2
    max_minutes: int = 20
    poll_interval_ms: int = 30000
    render_interval_ms: int = 1000
    fetch_timeout: float = 10.0
    cache_ttl: float = 30.0
    host: str = "0.0.0.0"
    port: int = 8080
    api_url: str = "http://localhost:8080/api/arrivals"
    layout_path: Optional[str] = None
    log_level: str = "INFO"

    def __post_init__(self):
        lines = tuple(line.strip().upper() for line in self.lines if line.strip())
        object.__setattr__(self, "lines", lines)
        self.validate()

    @property
    def safety_buffer_seconds(self) -> int:
        return self.safety_buffer_minutes * 60

    def validate(self) -> None:
        """Raise ValueError if any setting is out of range."""
        if not self.stop_id:
            raise ValueError("stop_id must not be empty")
        if not self.lines:
            raise ValueError("At least one line letter is required")
        for line in self.lines:
            if len(line) != 1:
                raise ValueError(f"Line '{line}' must be a single character")
        if self.per_line_cap < 0:
            raise ValueError("per_line_cap must not be negative")
        if self.safety_buffer_minutes < 0:
            raise ValueError("safety_buffer_minutes must not be negative")
        if self.max_minutes <= 0:
            raise ValueError("max_minutes must be positive")
        if self.poll_interval_ms <= 0 or self.render_interval_ms <= 0:
            raise ValueError("Poll and render intervals must be positive")
        if self.fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be positive")
        if self.cache_ttl < 0:
            raise ValueError("cache_ttl must be non-negative")


def _get(env: Mapping[str, str], name: str) -> Optional[str]:
    value = env.get(ENV_PREFIX + name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _get_int(env: Mapping[str, str], name: str) -> Optional[int]:
    value = _get(env, name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got '{value}'") from exc


def _get_float(env: Mapping[str, str], name: str) -> Optional[float]:
    value = _get(env, name)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got '{value}'") from exc


def load_config(env: Optional[Mapping[str, str]] = None) -> BoardConfig:
    """
    Resolve the board configuration from environment variables.

    Args:
        env: Mapping to read from. Defaults to os.environ after loading a .env file.

    Returns:
        BoardConfig with defaults for any unset variable.

    Raises:
        ValueError: If a variable cannot be parsed or a setting is out of range.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    overrides = {}

    for name, key in (
        ("FEED_URL", "feed_url"),
        ("STOP_ID", "stop_id"),
        ("STATION", "station"),
        ("DIRECTION", "direction"),
        ("HOST", "host"),
        ("API_URL", "api_url"),
        ("LAYOUT_PATH", "layout_path"),
        ("LOG_LEVEL", "log_level"),
    ):
        value = _get(env, name)
        if value is not None:
            overrides[key] = value

    for name, key in (
        ("PER_LINE_CAP", "per_line_cap"),
        ("SAFETY_BUFFER_MINUTES", "safety_buffer_minutes"),
        ("MAX_MINUTES", "max_minutes"),
        ("POLL_INTERVAL_MS", "poll_interval_ms"),
        ("RENDER_INTERVAL_MS", "render_interval_ms"),
        ("PORT", "port"),
    ):
        value = _get_int(env, name)
        if value is not None:
            overrides[key] = value

    for name, key in (("FETCH_TIMEOUT", "fetch_timeout"), ("CACHE_TTL", "cache_ttl")):
        value = _get_float(env, name)
        if value is not None:
            overrides[key] = value

    lines = _get(env, "LINES")
    if lines is not None:
        overrides["lines"] = tuple(lines.split(","))

    config = BoardConfig(**overrides)
    logger.debug(f"Resolved config for stop {config.stop_id}, lines {', '.join(config.lines)}")
    return config
