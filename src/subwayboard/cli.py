"""Command-line entry points for the API server and the console board."""

import argparse
import dataclasses
import logging
import sys
import threading
from typing import List, Optional

from .api import create_app
from .api_client import ArrivalsApiClient
from .board import ArrivalBoard
from .config import BoardConfig, load_config
from .console import render_text
from .layout_store import FileLayoutStore, MemoryLayoutStore
from .models import BoardView
from .service import ArrivalService

logger = logging.getLogger(__name__)

CLEAR_SCREEN = "\033[2J\033[H"


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def run_server(config: BoardConfig) -> None:
    """Serve /api/arrivals and /api/dashboard-state."""
    service = ArrivalService(config)
    layouts = FileLayoutStore(config.layout_path) if config.layout_path else MemoryLayoutStore()
    app = create_app(service, layouts)
    logger.info(f"Subway board server running at http://{config.host}:{config.port}")
    try:
        app.run(host=config.host, port=config.port, threaded=True)
    finally:
        service.close()


def _print_board(view: BoardView) -> None:
    sys.stdout.write(CLEAR_SCREEN + render_text(view) + "\n")
    sys.stdout.flush()


def run_board(config: BoardConfig, remote: bool) -> None:
    """Show the countdown board in the terminal until interrupted."""
    if remote:
        source = ArrivalsApiClient(config.api_url, config.lines, timeout=config.fetch_timeout)
        fetch_snapshot = source.fetch_snapshot
    else:
        source = ArrivalService(config)
        fetch_snapshot = source.poll

    board = ArrivalBoard(config, fetch_snapshot, render_target=_print_board)
    board.start()
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        board.stop()
        source.close()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="subwayboard", description="Real-time subway arrival board")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the arrivals API server")
    serve.add_argument("--port", type=int, help="Override the configured port")

    board = subparsers.add_parser("board", help="Show the countdown board in the terminal")
    board.add_argument(
        "--remote",
        action="store_true",
        help="Read arrivals from a running server instead of the MTA feed",
    )

    args = parser.parse_args(argv)

    try:
        config = load_config()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    _setup_logging(config.log_level)

    if args.command == "serve":
        if args.port:
            config = dataclasses.replace(config, port=args.port)
        run_server(config)
    else:
        run_board(config, remote=args.remote)
    return 0
