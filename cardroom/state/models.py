"""
Immutable state models for the Cardroom engine.

This module provides dataclasses for representing the state of a match in an
immutable manner. A Match publishes a new MatchState after each operation, so
any snapshot handed out stays exactly as it was when it was taken.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from cardroom.errors import InvalidMove


class MatchStatus(Enum):
    """Lifecycle of a match. FINISHED is terminal."""

    IN_PROGRESS = "IN_PROGRESS"
    FINISHED = "FINISHED"


class Move(Enum):
    """Decisions a player can make on their turn."""

    DRAW_CARD = "DRAW_CARD"
    STAND = "STAND"

    @classmethod
    def parse(cls, value: Any) -> "Move":
        """
        Convert a wire value into a Move.

        Args:
            value: A Move, or its name in any letter case

        Returns:
            The matching Move

        Raises:
            InvalidMove: If the value does not name a move
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        raise InvalidMove(f"Invalid move: {value!r}")


class HandResult(Enum):
    """Outcome of a player's hand against the dealer."""

    WIN = "WIN"
    LOSE = "LOSE"
    PUSH = "PUSH"


@dataclass(frozen=True)
class PlayerState:
    """
    Immutable representation of a player's seat in a match.

    Attributes:
        id: Unique identifier, scoped to the match
        hand: Card values drawn so far, in order
        balance: Chips the player owns
        current_bet: Stake placed in this match
        active: Whether the player is still deciding
        result: Settlement result, None until the match finishes
    """

    id: str
    hand: Tuple[int, ...] = ()
    balance: int = 100
    current_bet: int = 0
    active: bool = True
    result: Optional[HandResult] = None

    @property
    def total(self) -> int:
        return sum(self.hand)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "hand": list(self.hand),
            "balance": self.balance,
            "currentBet": self.current_bet,
            "active": self.active,
            "result": self.result.value if self.result else None,
        }


@dataclass(frozen=True)
class MatchState:
    """
    Immutable representation of a match.

    Attributes:
        id: Unique identifier for this match
        players: Players in seating order
        dealer_hand: Card values drawn by the dealer
        status: IN_PROGRESS until settlement, then FINISHED
        rematch_of: Id of the finished match this one was seeded from
        rematched_as: Id of the match this one was rematched into, set at
            most once after it finishes
    """

    id: str
    players: Tuple[PlayerState, ...] = ()
    dealer_hand: Tuple[int, ...] = ()
    status: MatchStatus = MatchStatus.IN_PROGRESS
    rematch_of: Optional[str] = None
    rematched_as: Optional[str] = None

    @property
    def dealer_total(self) -> int:
        return sum(self.dealer_hand)

    @property
    def is_finished(self) -> bool:
        return self.status == MatchStatus.FINISHED

    @property
    def all_players_done(self) -> bool:
        """True once every seated player has stopped deciding."""
        return all(not player.active for player in self.players)

    def find_player(self, player_id: str) -> Optional[PlayerState]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the match to a dictionary suitable for serialization.

        Returns:
            Dictionary in the wire format
        """
        return {
            "id": self.id,
            "players": [player.to_dict() for player in self.players],
            "dealerHand": list(self.dealer_hand),
            "status": self.status.value,
            "rematchOf": self.rematch_of,
            "rematchedAs": self.rematched_as,
        }
