"""
Game service for the Cardroom server.

The service is the single entry point for external operations. It resolves
match and player ids, turns absence into NotFound errors, and delegates to the
Match, which enforces the game rules under its own lock. Every operation
returns an immutable snapshot.
"""

import logging
from typing import List, Optional, Union

from cardroom.engine import Match, MatchRegistry
from cardroom.errors import MatchNotFound
from cardroom.state import MatchState, Move, PlayerState

logger = logging.getLogger("cardroom.api.service")


class GameService:
    """
    Operations exposed to clients.

    Example:
        ```python
        service = GameService(MatchRegistry())
        match = service.create_match()
        player = service.add_player(match.id)
        service.place_bet(match.id, player.id, 50)
        service.act(match.id, player.id, Move.DRAW_CARD)
        service.stand(match.id, player.id)
        ```
    """

    def __init__(self, registry: Optional[MatchRegistry] = None):
        """
        Initialize the service.

        Args:
            registry: Registry of live matches. A new one is created if omitted.
        """
        self.registry = registry or MatchRegistry()

    def list_matches(self) -> List[MatchState]:
        return [match.state for match in self.registry.list()]

    def get_match(self, match_id: str) -> Optional[MatchState]:
        """Return the match snapshot, or None if no such match exists."""
        match = self.registry.find(match_id)
        return match.state if match else None

    def create_match(self) -> MatchState:
        return self.registry.create().state

    def delete_match(self, match_id: str) -> bool:
        """
        Delete a match.

        Returns:
            True if the match was deleted, False if it did not exist
        """
        return self.registry.remove(match_id)

    def add_player(self, match_id: str) -> PlayerState:
        return self._get(match_id).add_player()

    def place_bet(self, match_id: str, player_id: str, amount: int) -> PlayerState:
        return self._get(match_id).place_bet(player_id, amount)

    def act(
        self, match_id: str, player_id: str, move: Union[Move, str]
    ) -> MatchState:
        """
        Execute a move for a player.

        The move is validated before the match is looked up, so a malformed
        move is reported as InvalidMove even for an unknown match.
        """
        move = Move.parse(move)
        return self._get(match_id).act(player_id, move)

    def stand(self, match_id: str, player_id: str) -> MatchState:
        return self._get(match_id).stand(player_id)

    def rematch(self, match_id: str) -> MatchState:
        """
        Start a new match with the players of a finished one.

        Each player keeps their id and balance and gets a fresh hand. The
        finished match stays in the registry with only its rematchedAs field
        set. A match can be rematched once; its chips move to exactly one
        new match.

        Args:
            match_id: Id of a FINISHED match

        Returns:
            The new match

        Raises:
            MatchNotFound: If the match does not exist
            InvalidState: If the match has not finished or was already rematched
        """
        finished = self._get(match_id)
        with finished.lock:
            state = finished.require_rematch_allowed()
            new_match = self.registry.create(
                players=state.players, rematch_of=state.id
            )
            finished.mark_rematched(new_match.id)

        logger.info(f"Match {new_match.id} started as a rematch of {match_id}")
        return new_match.state

    def _get(self, match_id: str) -> Match:
        match = self.registry.find(match_id)
        if match is None:
            raise MatchNotFound(match_id)
        return match
