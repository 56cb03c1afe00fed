"""Tests for the request dispatcher."""

from unittest.mock import MagicMock

import pytest

from cardroom.server import RequestDispatcher


@pytest.fixture
def dispatcher(service):
    return RequestDispatcher(service)


def request(operation, params=None, request_id=1):
    return {"type": "request", "id": request_id, "operation": operation, "params": params}


def test_operations_listed(dispatcher):
    assert dispatcher.operations == sorted(
        [
            "listMatches",
            "getMatch",
            "createMatch",
            "deleteMatch",
            "addPlayer",
            "placeBet",
            "act",
            "stand",
            "rematch",
        ]
    )


def test_create_and_get_match(dispatcher):
    created = dispatcher.handle(request("createMatch", request_id="r1"))

    assert created["type"] == "response"
    assert created["id"] == "r1"
    assert created["operation"] == "createMatch"
    match = created["data"]
    assert match["players"] == []
    assert match["dealerHand"] == []
    assert match["status"] == "IN_PROGRESS"

    fetched = dispatcher.handle(request("getMatch", {"id": match["id"]}))
    assert fetched["data"] == match

    listed = dispatcher.handle(request("listMatches"))
    assert listed["data"] == [match]


def test_get_unknown_match_is_null(dispatcher):
    response = dispatcher.handle(request("getMatch", {"id": "missing"}))
    assert response["type"] == "response"
    assert response["data"] is None


def test_delete_match_messages(dispatcher):
    match_id = dispatcher.handle(request("createMatch"))["data"]["id"]

    first = dispatcher.handle(request("deleteMatch", {"id": match_id}))
    second = dispatcher.handle(request("deleteMatch", {"id": match_id}))

    assert first["data"] == {"deleted": True, "message": "deleted"}
    assert second["data"] == {"deleted": False, "message": "not found"}


def test_play_through_protocol(dispatcher, cards):
    match_id = dispatcher.handle(request("createMatch"))["data"]["id"]
    player = dispatcher.handle(request("addPlayer", {"matchId": match_id}))["data"]
    assert player["balance"] == 100
    assert player["currentBet"] == 0
    assert player["active"] is True

    bet = dispatcher.handle(
        request("placeBet", {"matchId": match_id, "playerId": player["id"], "amount": 50})
    )
    assert bet["data"]["balance"] == 50
    assert bet["data"]["currentBet"] == 50

    cards.push_cards(8)
    drawn = dispatcher.handle(
        request(
            "act", {"matchId": match_id, "playerId": player["id"], "move": "DRAW_CARD"}
        )
    )
    assert drawn["data"]["players"][0]["hand"] == [8]

    cards.push_cards(10, 10)
    stood = dispatcher.handle(
        request("stand", {"matchId": match_id, "playerId": player["id"]})
    )
    assert stood["data"]["status"] == "FINISHED"
    assert stood["data"]["dealerHand"] == [10, 10]
    assert stood["data"]["players"][0]["result"] == "LOSE"

    rematch = dispatcher.handle(request("rematch", {"matchId": match_id}))
    assert rematch["data"]["rematchOf"] == match_id
    assert rematch["data"]["players"][0]["balance"] == 50

    again = dispatcher.handle(request("rematch", {"matchId": match_id}))
    assert again["data"]["code"] == "INVALID_STATE"
    finished = dispatcher.handle(request("getMatch", {"id": match_id}))
    assert finished["data"]["rematchedAs"] == rematch["data"]["id"]


@pytest.mark.parametrize(
    "message,code",
    [
        (request("fly"), "UNKNOWN_OPERATION"),
        ({"type": "bogus", "operation": "createMatch"}, "BAD_REQUEST"),
        (request("getMatch"), "BAD_REQUEST"),
        (request("getMatch", ["not", "an", "object"]), "BAD_REQUEST"),
        (request("addPlayer", {"matchId": "missing"}), "NOT_FOUND"),
        (
            request("act", {"matchId": "m", "playerId": "p", "move": "PEDIR_CARTA"}),
            "INVALID_MOVE",
        ),
    ],
)
def test_error_codes(dispatcher, message, code):
    response = dispatcher.handle(message)

    assert response["type"] == "error"
    assert response["data"]["code"] == code
    assert response["data"]["message"]


def test_rule_violations_map_to_codes(dispatcher):
    match_id = dispatcher.handle(request("createMatch"))["data"]["id"]
    player_id = dispatcher.handle(request("addPlayer", {"matchId": match_id}))["data"]["id"]

    over = dispatcher.handle(
        request("placeBet", {"matchId": match_id, "playerId": player_id, "amount": 500})
    )
    assert over["data"]["code"] == "INVALID_BET"

    early = dispatcher.handle(request("rematch", {"matchId": match_id}))
    assert early["data"]["code"] == "INVALID_STATE"


def test_unexpected_errors_become_internal():
    service = MagicMock()
    service.create_match.side_effect = RuntimeError("boom")
    dispatcher = RequestDispatcher(service)

    response = dispatcher.handle(request("createMatch", request_id=9))

    assert response["id"] == 9
    assert response["data"] == {"code": "INTERNAL", "message": "Internal error"}


def test_type_defaults_to_request(dispatcher):
    response = dispatcher.handle({"operation": "listMatches"})
    assert response["type"] == "response"
    assert response["data"] == []
