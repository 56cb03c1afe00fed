"""
Cardroom: a server-resident blackjack match engine.

Matches, players, betting and dealer play are kept in memory and exposed
through the GameService and its WebSocket server.
"""

from cardroom.api import GameService
from cardroom.engine import Match, MatchRegistry, TableRules
from cardroom.errors import (
    CardroomError,
    InvalidBet,
    InvalidMove,
    InvalidOperation,
    InvalidState,
    MatchNotFound,
    NotFound,
    PlayerNotFound,
)
from cardroom.state import HandResult, MatchState, MatchStatus, Move, PlayerState

__version__ = "0.1.0"

__all__ = [
    "GameService",
    "Match",
    "MatchRegistry",
    "TableRules",
    "CardroomError",
    "InvalidBet",
    "InvalidMove",
    "InvalidOperation",
    "InvalidState",
    "MatchNotFound",
    "NotFound",
    "PlayerNotFound",
    "HandResult",
    "MatchState",
    "MatchStatus",
    "Move",
    "PlayerState",
]
