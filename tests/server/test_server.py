"""
Tests for the WebSocket server.

Connections are simulated with an in-memory websocket so no ports are opened.
"""

import asyncio
import json

import pytest

from cardroom.server import CardroomServer, build_parser, build_service


class FakeWebSocket:
    """Yields scripted frames and records what the server sends back."""

    def __init__(self, frames):
        self._frames = list(frames)
        self.sent = []

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._frames:
            raise StopAsyncIteration
        return self._frames.pop(0)

    async def send(self, message):
        self.sent.append(json.loads(message))

    def of_type(self, message_type):
        return [m for m in self.sent if m["type"] == message_type]


@pytest.fixture
def server(service):
    server = CardroomServer(service, workers=2)
    yield server
    server.executor.shutdown(wait=True)


async def drain():
    """Let callbacks scheduled from worker threads run."""
    for _ in range(5):
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_request_response_over_connection(server):
    websocket = FakeWebSocket(
        [
            json.dumps({"type": "request", "id": 1, "operation": "createMatch"}),
            json.dumps({"type": "request", "id": 2, "operation": "listMatches"}),
        ]
    )

    await server.handle_client(websocket)
    await drain()

    responses = websocket.of_type("response")
    assert [r["id"] for r in responses] == [1, 2]
    assert responses[1]["data"] == [responses[0]["data"]]
    assert websocket.of_type("connected")
    assert server.ws_handler.clients == {}


@pytest.mark.asyncio
async def test_subscribed_client_receives_events(server, cards):
    websocket = FakeWebSocket(
        [
            json.dumps({"type": "subscribe", "data": {"event_types": ["*"]}}),
            json.dumps({"type": "request", "id": 1, "operation": "createMatch"}),
        ]
    )

    await server.handle_client(websocket)
    await drain()

    assert websocket.of_type("subscriptions")[0]["data"]["subscriptions"] == ["*"]
    events = [m["data"]["event_type"] for m in websocket.of_type("event")]
    assert "MATCH_CREATED" in events


@pytest.mark.asyncio
async def test_malformed_frames(server):
    websocket = FakeWebSocket(["not json", json.dumps([1, 2, 3])])

    await server.handle_client(websocket)
    await drain()

    errors = websocket.of_type("error")
    assert len(errors) == 2
    assert all(e["data"]["code"] == "BAD_REQUEST" for e in errors)


@pytest.mark.asyncio
async def test_handle_message_runs_requests(server):
    client_id = await server.ws_handler.connect_client()

    response = await server.handle_message(
        client_id, json.dumps({"operation": "getMatch", "params": {"id": "nope"}})
    )

    assert response["type"] == "response"
    assert response["data"] is None


def test_build_service_from_arguments():
    args = build_parser().parse_args(
        ["--starting-balance", "500", "--legacy-double-debit", "--seed", "1"]
    )
    service = build_service(args)

    rules = service.registry.rules
    assert rules.starting_balance == 500
    assert rules.debit_lost_bets_twice
    assert rules.dealer_stands_on == 17

    match = service.create_match()
    assert service.add_player(match.id).balance == 500


def test_build_service_rejects_bad_configuration():
    args = build_parser().parse_args(["--dealer-stands-on", "30"])
    with pytest.raises(ValueError):
        build_service(args)


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.host == "localhost"
    assert args.port == 8765
    assert args.log_level == "INFO"
    assert args.seed is None
