"""Exceptions raised by the Cardroom engine."""


class CardroomError(Exception):
    """Base class for every request-scoped game error."""

    code = "INTERNAL"


class NotFound(CardroomError):
    """Raised when a match or player identifier does not resolve."""

    code = "NOT_FOUND"


class MatchNotFound(NotFound):
    """Raised when no live match has the given identifier."""

    def __init__(self, match_id):
        self.match_id = match_id
        super().__init__(f"Match {match_id} not found")


class PlayerNotFound(NotFound):
    """Raised when a match has no player with the given identifier."""

    def __init__(self, player_id, match_id=None):
        self.player_id = player_id
        self.match_id = match_id
        super().__init__(f"Player {player_id} not found in match {match_id}")


class InvalidOperation(CardroomError):
    """Raised when an operation breaks a rule of the game."""

    code = "INVALID_OPERATION"


class InvalidBet(InvalidOperation):
    """Raised when a bet is not a positive whole amount covered by the balance."""

    code = "INVALID_BET"


class InvalidMove(InvalidOperation):
    """Raised when a move is not one of the defined moves."""

    code = "INVALID_MOVE"


class InvalidState(InvalidOperation):
    """Raised when acting on a finished match or an inactive player."""

    code = "INVALID_STATE"
