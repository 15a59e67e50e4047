"""SubwayBoard - Real-time MTA subway countdown board."""

__version__ = "0.1.0"

from .models import ArrivalEvent, ArrivalSnapshot, BoardView, ProjectedState, TrackPosition
from .config import BoardConfig, load_config
from .errors import IngestError, TransportError, DecodeError
from .feed_ingestor import ingest
from .aggregator import aggregate
from .store import ArrivalStore
from .countdown import project
from .track import map_position
from .scheduler import RefreshScheduler
from .service import ArrivalService
from .board import ArrivalBoard

__all__ = [
    "ArrivalBoard",
    "ArrivalService",
    "ArrivalStore",
    "RefreshScheduler",
    "BoardConfig",
    "load_config",
    "ingest",
    "aggregate",
    "project",
    "map_position",
    "ArrivalEvent",
    "ArrivalSnapshot",
    "BoardView",
    "ProjectedState",
    "TrackPosition",
    "IngestError",
    "TransportError",
    "DecodeError",
]
