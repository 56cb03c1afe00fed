"""
State transition functions for the Cardroom engine.

This module provides pure functions for moving a match from one state to the
next without modifying the original state objects. The functions do not check
game rules; the Match validates a request before asking for a transition.
"""

from dataclasses import replace
from typing import Dict, Iterable, Tuple

from cardroom.state.models import (
    HandResult,
    MatchState,
    MatchStatus,
    PlayerState,
)


class MatchTransitions:
    """
    Pure functions for match state transitions.

    Each method takes a state and returns a new state, leaving the original
    untouched. Requests naming an unknown player return the original state.
    """

    @staticmethod
    def add_player(state: MatchState, player_id: str, balance: int) -> MatchState:
        """
        Seat a new player at the end of the roster.

        Args:
            state: Current match state
            player_id: Identifier for the new player
            balance: Starting chips

        Returns:
            New match state with the player added
        """
        new_player = PlayerState(id=player_id, balance=balance)
        return replace(state, players=state.players + (new_player,))

    @staticmethod
    def place_bet(state: MatchState, player_id: str, amount: int) -> MatchState:
        """
        Move a stake from a player's balance to their current bet.

        Args:
            state: Current match state
            player_id: ID of the player placing the bet
            amount: Amount to bet

        Returns:
            New match state with the bet placed
        """
        return MatchTransitions._update_player(
            state,
            player_id,
            lambda player: replace(
                player,
                balance=player.balance - amount,
                current_bet=amount,
            ),
        )

    @staticmethod
    def deal_to_player(
        state: MatchState, player_id: str, card: int, bust_limit: int = 21
    ) -> MatchState:
        """
        Add a card to a player's hand, retiring the player if the hand busts.

        Args:
            state: Current match state
            player_id: ID of the player receiving the card
            card: Card value dealt
            bust_limit: Highest total that does not bust

        Returns:
            New match state with the card dealt
        """

        def deal(player: PlayerState) -> PlayerState:
            hand = player.hand + (card,)
            return replace(player, hand=hand, active=sum(hand) <= bust_limit)

        return MatchTransitions._update_player(state, player_id, deal)

    @staticmethod
    def stand(state: MatchState, player_id: str) -> MatchState:
        """Retire a player from deciding for the rest of the match."""
        return MatchTransitions._update_player(
            state, player_id, lambda player: replace(player, active=False)
        )

    @staticmethod
    def deal_to_dealer(state: MatchState, card: int) -> MatchState:
        """Add a card to the dealer's hand."""
        return replace(state, dealer_hand=state.dealer_hand + (card,))

    @staticmethod
    def settle(
        state: MatchState, results: Dict[str, Tuple[HandResult, int]]
    ) -> MatchState:
        """
        Apply settlement results and finish the match.

        Args:
            state: Current match state, with the dealer done drawing
            results: Mapping of player id to (result, balance delta)

        Returns:
            New, FINISHED match state
        """
        new_players = []
        for player in state.players:
            if player.id in results:
                result, delta = results[player.id]
                player = replace(
                    player,
                    balance=player.balance + delta,
                    result=result,
                    active=False,
                )
            new_players.append(player)

        return replace(
            state, players=tuple(new_players), status=MatchStatus.FINISHED
        )

    @staticmethod
    def seed_rematch(
        state: MatchState, players: Iterable[PlayerState], rematch_of: str
    ) -> MatchState:
        """
        Seat players carried over from a finished match.

        Each player keeps their id and balance and starts with a fresh hand.
        """
        seated = tuple(PlayerState(id=p.id, balance=p.balance) for p in players)
        return replace(state, players=seated, rematch_of=rematch_of)

    @staticmethod
    def mark_rematched(state: MatchState, new_match_id: str) -> MatchState:
        """Record the match that took over this match's players."""
        return replace(state, rematched_as=new_match_id)

    @staticmethod
    def _update_player(state: MatchState, player_id: str, update) -> MatchState:
        for index, player in enumerate(state.players):
            if player.id == player_id:
                new_players = list(state.players)
                new_players[index] = update(player)
                return replace(state, players=tuple(new_players))

        return state
