"""HTTP API serving arrivals and the saved dashboard layout."""

import json
import logging
import time
from typing import Callable, Optional

from flask import Flask, jsonify, request

from .errors import IngestError
from .layout_store import LayoutStore, MemoryLayoutStore
from .service import ArrivalService

logger = logging.getLogger(__name__)

LAYOUT_KEY = "dashboard-layout-v1"
LAYOUT_VERSION = 1


def _millis(clock: Callable[[], float]) -> int:
    return int(clock() * 1000)


def create_app(
    service: ArrivalService,
    layout_store: Optional[LayoutStore] = None,
    clock: Callable[[], float] = time.time,
) -> Flask:
    """
    Build the Flask application.

    Args:
        service: Arrival pipeline polled on every /api/arrivals request.
        layout_store: Backend for /api/dashboard-state. Defaults to in-memory.
        clock: Time source for response timestamps.
    """
    app = Flask(__name__)
    layouts = layout_store or MemoryLayoutStore()

    @app.route("/api/arrivals", methods=["GET"])
    def get_arrivals():
        try:
            snapshot = service.poll()
        except IngestError as e:
            logger.error(f"Error fetching MTA data: {e}")
            return jsonify({"error": "Failed to fetch train data", "message": str(e)}), 500
        return jsonify(service.arrivals_payload(snapshot, now=int(clock())))

    @app.route("/api/dashboard-state", methods=["GET", "POST"])
    def dashboard_state():
        if request.method == "GET":
            try:
                raw = layouts.get(LAYOUT_KEY)
                state = json.loads(raw.decode("utf-8")) if raw is not None else None
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load dashboard layout: {e}")
                return jsonify({
                    "success": False,
                    "error": "Internal server error",
                    "message": str(e),
                }), 500
            return jsonify({"success": True, "data": state, "timestamp": _millis(clock)})

        body = request.get_json(silent=True)
        if not isinstance(body, dict) or not body.get("layout"):
            return jsonify({"success": False, "error": "Missing layout data"}), 400

        state = {
            "layout": body["layout"],
            "savedAt": _millis(clock),
            "version": LAYOUT_VERSION,
        }
        if not layouts.set(LAYOUT_KEY, json.dumps(state).encode("utf-8")):
            return jsonify({
                "success": False,
                "error": "Internal server error",
                "message": "Layout could not be saved",
            }), 500

        return jsonify({"success": True, "message": "State saved", "timestamp": _millis(clock)})

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({"success": False, "error": "Method not allowed"}), 405

    return app
