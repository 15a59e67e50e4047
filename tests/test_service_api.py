"""Tests for the arrival service, the HTTP API and the API client."""

import unittest
from unittest.mock import patch, MagicMock
import json
import threading
import sys
import tempfile
from pathlib import Path

import requests

# Add src to path so we can import subwayboard
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from subwayboard.api import create_app
from subwayboard.api_client import ArrivalsApiClient
from subwayboard.config import BoardConfig
from subwayboard.errors import DecodeError, TransportError
from subwayboard.layout_store import FileLayoutStore, MemoryLayoutStore
from subwayboard.service import ArrivalService

from test_feed_ingestor import NOW, STOP_ID, build_feed


def make_service(feed_bytes=None, side_effect=None):
    mta_client = MagicMock()
    if side_effect is not None:
        mta_client.fetch_feed.side_effect = side_effect
    else:
        mta_client.fetch_feed.return_value = feed_bytes
    return ArrivalService(BoardConfig(), mta_client=mta_client, clock=lambda: NOW)


class TestArrivalService(unittest.TestCase):
    """Test the fetch -> ingest -> aggregate -> store pipeline."""

    def test_poll_builds_and_stores_capped_snapshot(self):
        raw = build_feed([
            ("B", [(STOP_ID, NOW + 900, None)]),
            ("B", [(STOP_ID, NOW + 120, None)]),
            ("B", [(STOP_ID, NOW + 1500, None)]),
            ("B", [(STOP_ID, NOW + 300, None)]),
            ("B", [(STOP_ID, NOW + 600, None)]),
            ("D", [(STOP_ID, NOW + 200, None)]),
        ])
        service = make_service(raw)

        snapshot = service.poll()

        self.assertIs(service.store.get_snapshot(), snapshot)
        self.assertEqual(snapshot.built_at, NOW)
        self.assertEqual(
            [e.predicted_epoch_seconds - NOW for e in snapshot.for_line("B")],
            [120, 300, 600],
        )
        self.assertEqual(len(snapshot.for_line("D")), 1)
        service.mta_client.fetch_feed.assert_called_once_with(BoardConfig().feed_url)

    def test_failed_poll_keeps_previous_snapshot(self):
        service = make_service(side_effect=[build_feed([("B", [(STOP_ID, NOW + 300, None)])]),
                                            TransportError("down")])
        first = service.poll()

        with self.assertRaises(TransportError):
            service.poll()

        self.assertIs(service.store.get_snapshot(), first)

    def test_decode_failure_keeps_previous_snapshot(self):
        service = make_service(side_effect=[build_feed([]), b"not a protobuf feed"])
        first = service.poll()

        with self.assertRaises(DecodeError):
            service.poll()

        self.assertIs(service.store.get_snapshot(), first)

    def test_concurrent_polls_share_one_fetch(self):
        release = threading.Event()
        fetching = threading.Event()
        raw = build_feed([("B", [(STOP_ID, NOW + 300, None)])])

        def slow_fetch(url):
            fetching.set()
            release.wait(2)
            return raw

        service = make_service(side_effect=slow_fetch)
        results = []
        leader = threading.Thread(target=lambda: results.append(service.poll()))
        leader.start()
        self.assertTrue(fetching.wait(2))

        # Note when the follower starts waiting on the in-flight poll
        flight = service._flights[STOP_ID]
        follower_waiting = threading.Event()
        original_wait = flight.done.wait

        def tracking_wait(timeout=None):
            follower_waiting.set()
            return original_wait(timeout)

        flight.done.wait = tracking_wait
        follower = threading.Thread(target=lambda: results.append(service.poll()))
        follower.start()
        self.assertTrue(follower_waiting.wait(2))

        release.set()
        leader.join(2)
        follower.join(2)

        self.assertEqual(service.mta_client.fetch_feed.call_count, 1)
        self.assertEqual(len(results), 2)
        self.assertIs(results[0], results[1])
        self.assertEqual(service._flights, {})

    def test_payload_uses_raw_minutes(self):
        raw = build_feed([("B", [(STOP_ID, NOW + 900, None)]), ("D", [(STOP_ID, NOW + 59, None)])])
        service = make_service(raw)

        payload = service.arrivals_payload(service.poll(), now=NOW)

        self.assertEqual(payload, {
            "station": "Grand St",
            "stopId": "D21N",
            "timestamp": NOW,
            "arrivals": {
                "B": [{"minutes": 15, "timestamp": NOW + 900}],
                "D": [{"minutes": 0, "timestamp": NOW + 59}],
            },
        })


class TestArrivalsApi(unittest.TestCase):
    """Test the Flask endpoints."""

    def _client(self, service, layout_store=None):
        app = create_app(service, layout_store, clock=lambda: NOW)
        app.config["TESTING"] = True
        return app.test_client()

    def test_get_arrivals(self):
        raw = build_feed([("B15N", [(STOP_ID, NOW + 900, None)])])
        client = self._client(make_service(raw))

        response = client.get("/api/arrivals")

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body["stopId"], "D21N")
        self.assertEqual(body["timestamp"], NOW)
        self.assertEqual(body["arrivals"]["B"], [{"minutes": 15, "timestamp": NOW + 900}])
        self.assertEqual(body["arrivals"]["D"], [])

    def test_get_arrivals_failure_returns_500(self):
        client = self._client(make_service(side_effect=TransportError("MTA API responded with status: 503")))

        response = client.get("/api/arrivals")

        self.assertEqual(response.status_code, 500)
        body = response.get_json()
        self.assertEqual(body["error"], "Failed to fetch train data")
        self.assertIn("503", body["message"])

    def test_dashboard_state_round_trip(self):
        client = self._client(make_service(build_feed([])))

        empty = client.get("/api/dashboard-state").get_json()
        self.assertTrue(empty["success"])
        self.assertIsNone(empty["data"])

        layout = [{"id": "subway", "x": 0, "y": 0, "w": 6, "h": 4}]
        saved = client.post("/api/dashboard-state", json={"layout": layout})
        self.assertEqual(saved.status_code, 200)
        self.assertEqual(saved.get_json()["message"], "State saved")

        loaded = client.get("/api/dashboard-state").get_json()
        self.assertEqual(loaded["data"], {"layout": layout, "savedAt": NOW * 1000, "version": 1})

    def test_dashboard_state_corrupt_file_returns_json_500(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "layout.json"
            path.write_text("{not json", encoding="utf-8")
            client = self._client(make_service(build_feed([])), FileLayoutStore(str(path)))

            response = client.get("/api/dashboard-state")

        self.assertEqual(response.status_code, 500)
        body = response.get_json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"], "Internal server error")
        self.assertTrue(body["message"])

    def test_dashboard_state_missing_layout(self):
        client = self._client(make_service(build_feed([])))

        response = client.post("/api/dashboard-state", json={"widgets": []})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "Missing layout data")

    def test_dashboard_state_method_not_allowed(self):
        client = self._client(make_service(build_feed([])))

        response = client.put("/api/dashboard-state", json={"layout": []})

        self.assertEqual(response.status_code, 405)
        self.assertFalse(response.get_json()["success"])


class TestLayoutStores(unittest.TestCase):
    """Test the layout key/value backends."""

    def test_memory_store(self):
        store = MemoryLayoutStore()
        self.assertIsNone(store.get("missing"))
        self.assertTrue(store.set("k", b"value"))
        self.assertEqual(store.get("k"), b"value")

    def test_file_store_persists(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = str(Path(tmp) / "layout.json")
            self.assertTrue(FileLayoutStore(path).set("k", b'{"a": 1}'))
            self.assertEqual(FileLayoutStore(path).get("k"), b'{"a": 1}')
            self.assertIsNone(FileLayoutStore(path).get("other"))


class TestArrivalsApiClient(unittest.TestCase):
    """Test reading snapshots back from the API."""

    @staticmethod
    def _response(status_code, body):
        response = MagicMock()
        response.status_code = status_code
        response.json.return_value = body
        return response

    @patch.object(requests.Session, "get")
    def test_fetch_snapshot(self, mock_get):
        mock_get.return_value = self._response(200, {
            "station": "Grand St",
            "stopId": "D21N",
            "timestamp": NOW,
            "arrivals": {"B": [{"minutes": 5, "timestamp": NOW + 300}], "D": []},
        })

        snapshot = ArrivalsApiClient("http://board/api/arrivals", ["B", "D"]).fetch_snapshot()

        self.assertEqual(snapshot.built_at, NOW)
        self.assertEqual(snapshot.station, "Grand St")
        self.assertEqual(snapshot.for_line("B")[0].predicted_epoch_seconds, NOW + 300)
        self.assertEqual(snapshot.for_line("D"), ())

    @patch.object(requests.Session, "get")
    def test_server_error_raises_transport_error(self, mock_get):
        mock_get.return_value = self._response(500, {"error": "Failed", "message": "timeout"})

        with self.assertRaises(TransportError) as ctx:
            ArrivalsApiClient("http://board/api/arrivals", ["B"]).fetch_snapshot()

        self.assertIn("timeout", str(ctx.exception))

    @patch.object(requests.Session, "get")
    def test_bad_payload_raises_decode_error(self, mock_get):
        mock_get.return_value = self._response(200, {"arrivals": {}})

        with self.assertRaises(DecodeError):
            ArrivalsApiClient("http://board/api/arrivals", ["B"]).fetch_snapshot()

    @patch.object(requests.Session, "get")
    def test_connection_error(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("refused")

        with self.assertRaises(TransportError):
            ArrivalsApiClient("http://board/api/arrivals", ["B"]).fetch_snapshot()


if __name__ == "__main__":
    unittest.main()
