"""
Request dispatch for the Cardroom wire protocol.

Turns decoded request messages into GameService calls and the results into
response or error messages. Independent of the socket layer, so it can be
driven directly in tests or bound to another transport.

Request:  {"type": "request", "id": 1, "operation": "placeBet",
           "params": {"matchId": "...", "playerId": "...", "amount": 10}}
Response: {"type": "response", "id": 1, "operation": "placeBet", "data": {...}}
Error:    {"type": "error", "id": 1, "operation": "placeBet",
           "data": {"code": "INVALID_BET", "message": "..."}}
"""

import logging
from typing import Any, Callable, Dict, List

from cardroom.api import GameService
from cardroom.errors import CardroomError
from cardroom.events import ServerMessage

logger = logging.getLogger("cardroom.server.protocol")

REQUEST = "request"


class BadRequest(CardroomError):
    """Raised when a request is malformed or missing a parameter."""

    code = "BAD_REQUEST"


class UnknownOperation(CardroomError):
    """Raised when a request names an operation the server does not offer."""

    code = "UNKNOWN_OPERATION"


def error_message(code: str, message: str, request_id: Any = None, operation: Any = None) -> Dict[str, Any]:
    """Build an error message."""
    return {
        "type": ServerMessage.ERROR,
        "id": request_id,
        "operation": operation,
        "data": {"code": code, "message": message},
    }


class RequestDispatcher:
    """Map operation names to GameService calls."""

    def __init__(self, service: GameService):
        self.service = service
        self._operations: Dict[str, Callable[[Dict[str, Any]], Any]] = {
            "listMatches": self._list_matches,
            "getMatch": self._get_match,
            "createMatch": self._create_match,
            "deleteMatch": self._delete_match,
            "addPlayer": self._add_player,
            "placeBet": self._place_bet,
            "act": self._act,
            "stand": self._stand,
            "rematch": self._rematch,
        }

    @property
    def operations(self) -> List[str]:
        return sorted(self._operations)

    def handle(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """
        Handle one decoded request.

        Args:
            message: The request message

        Returns:
            A response or error message. Never raises.
        """
        request_id = message.get("id")
        operation = message.get("operation")

        try:
            if message.get("type", REQUEST) != REQUEST:
                raise BadRequest(f"Unknown message type {message.get('type')!r}")

            handler = self._operations.get(operation)
            if handler is None:
                raise UnknownOperation(f"Unknown operation {operation!r}")

            params = message.get("params") or {}
            if not isinstance(params, dict):
                raise BadRequest("params must be an object")

            data = handler(params)
        except CardroomError as e:
            logger.warning(f"Request {request_id} ({operation}) rejected: {e}")
            return error_message(e.code, str(e), request_id, operation)
        except Exception as e:
            logger.error(f"Request {request_id} ({operation}) failed: {e}", exc_info=True)
            return error_message(CardroomError.code, "Internal error", request_id, operation)

        return {
            "type": ServerMessage.RESPONSE,
            "id": request_id,
            "operation": operation,
            "data": data,
        }

    def _list_matches(self, params):
        return [match.to_dict() for match in self.service.list_matches()]

    def _get_match(self, params):
        match = self.service.get_match(_require(params, "id"))
        return match.to_dict() if match else None

    def _create_match(self, params):
        return self.service.create_match().to_dict()

    def _delete_match(self, params):
        deleted = self.service.delete_match(_require(params, "id"))
        return {"deleted": deleted, "message": "deleted" if deleted else "not found"}

    def _add_player(self, params):
        return self.service.add_player(_require(params, "matchId")).to_dict()

    def _place_bet(self, params):
        player = self.service.place_bet(
            _require(params, "matchId"),
            _require(params, "playerId"),
            _require(params, "amount"),
        )
        return player.to_dict()

    def _act(self, params):
        match = self.service.act(
            _require(params, "matchId"),
            _require(params, "playerId"),
            _require(params, "move"),
        )
        return match.to_dict()

    def _stand(self, params):
        match = self.service.stand(
            _require(params, "matchId"), _require(params, "playerId")
        )
        return match.to_dict()

    def _rematch(self, params):
        return self.service.rematch(_require(params, "matchId")).to_dict()


def _require(params: Dict[str, Any], name: str) -> Any:
    if params.get(name) is None:
        raise BadRequest(f"Missing parameter {name!r}")
    return params[name]
