"""
Match state machine.

A Match owns one game: its roster, the dealer's hand and settlement. Every
operation runs under the match's own lock, computes the next state from the
current snapshot, and publishes the result in a single assignment. Callers
therefore only ever see complete states, and a rejected request leaves the
match untouched.
"""

import logging
import threading
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from cardroom.common.random_source import DefaultRandomSource, RandomSource
from cardroom.engine.rules import TableRules
from cardroom.engine.settlement import settle
from cardroom.errors import InvalidBet, InvalidState, PlayerNotFound
from cardroom.events import EngineEventType, EventBus, EventEmitter
from cardroom.state import (
    MatchState,
    MatchTransitions,
    Move,
    PlayerState,
)

logger = logging.getLogger("cardroom.engine.match")

PendingEvent = Tuple[EngineEventType, Dict[str, Any]]


class Match:
    """
    One blackjack match.

    Players act independently and in any order while they are active. Once
    the last active player stands or busts, the dealer draws to its stand
    total and every hand is settled before the new state is published.
    """

    def __init__(
        self,
        match_id: str,
        rules: Optional[TableRules] = None,
        random_source: Optional[RandomSource] = None,
        event_bus: Optional[EventEmitter] = None,
        players: Iterable[PlayerState] = (),
        rematch_of: Optional[str] = None,
    ):
        """
        Initialize a match.

        Args:
            match_id: Identifier for the match
            rules: Table rules, defaults to TableRules()
            random_source: Source of cards and player ids
            event_bus: Emitter that receives the match's events
            players: Players carried over from a finished match
            rematch_of: Id of the finished match the players come from
        """
        self.rules = rules or TableRules()
        self.random_source = random_source or DefaultRandomSource(
            min_card=self.rules.min_card, max_card=self.rules.max_card
        )
        self.event_bus = event_bus or EventBus.get_instance()
        self.lock = threading.RLock()

        state = MatchState(id=match_id)
        if rematch_of is not None:
            state = MatchTransitions.seed_rematch(state, players, rematch_of)
        self._state = state

    @property
    def id(self) -> str:
        return self._state.id

    @property
    def state(self) -> MatchState:
        """The latest published snapshot."""
        return self._state

    def add_player(self) -> PlayerState:
        """
        Seat a new player with the table's starting balance.

        Returns:
            The new player

        Raises:
            InvalidState: If the match has finished
        """
        with self.lock:
            state = self._state
            self._require_in_progress(state, "add a player")

            player_id = self.random_source.new_id()
            state = MatchTransitions.add_player(
                state, player_id, self.rules.starting_balance
            )
            player = state.find_player(player_id)

            self._publish(
                state,
                [
                    (
                        EngineEventType.PLAYER_JOINED,
                        {
                            "match_id": state.id,
                            "player_id": player_id,
                            "balance": player.balance,
                        },
                    )
                ],
            )

        logger.info(f"Player {player_id} joined match {state.id}")
        return player

    def place_bet(self, player_id: str, amount: int) -> PlayerState:
        """
        Place a bet for a player.

        Args:
            player_id: ID of the player placing the bet
            amount: Whole number of chips to stake

        Returns:
            The player after the bet

        Raises:
            PlayerNotFound: If the player is not in this match
            InvalidState: If the match has finished, the player is no longer
                active, or the player has already bet
            InvalidBet: If the amount is not positive or exceeds the balance
        """
        with self.lock:
            state = self._state
            player = self._get_player(state, player_id)
            self._require_can_act(state, player)

            if player.current_bet > 0:
                raise InvalidState(f"Player {player_id} has already placed a bet")
            if isinstance(amount, bool) or not isinstance(amount, int):
                raise InvalidBet(f"Bet must be a whole number of chips, got {amount!r}")
            if amount <= 0 or amount > player.balance:
                raise InvalidBet(
                    f"Bet of {amount} is not between 1 and the balance of {player.balance}"
                )

            state = MatchTransitions.place_bet(state, player_id, amount)
            player = state.find_player(player_id)

            self._publish(
                state,
                [
                    (
                        EngineEventType.PLAYER_BET,
                        {
                            "match_id": state.id,
                            "player_id": player_id,
                            "amount": amount,
                            "balance": player.balance,
                        },
                    )
                ],
            )

        logger.debug(f"Player {player_id} bet {amount} in match {state.id}")
        return player

    def act(self, player_id: str, move: Union[Move, str]) -> MatchState:
        """
        Execute a player move.

        Args:
            player_id: ID of the player
            move: DRAW_CARD or STAND, as a Move or its name

        Returns:
            The updated match

        Raises:
            InvalidMove: If the move is not recognised
            PlayerNotFound: If the player is not in this match
            InvalidState: If the match has finished or the player is inactive
        """
        move = Move.parse(move)

        with self.lock:
            state = self._state
            player = self._get_player(state, player_id)
            self._require_can_act(state, player)

            events: List[PendingEvent] = []

            if move == Move.DRAW_CARD:
                card = self.random_source.draw_card()
                state = MatchTransitions.deal_to_player(
                    state, player_id, card, self.rules.bust_limit
                )
                player = state.find_player(player_id)
                events.append(
                    (
                        EngineEventType.CARD_DEALT,
                        {
                            "match_id": state.id,
                            "player_id": player_id,
                            "card": card,
                            "total": player.total,
                        },
                    )
                )
                if self.rules.is_bust(player.total):
                    events.append(
                        (
                            EngineEventType.HAND_BUSTED,
                            {
                                "match_id": state.id,
                                "player_id": player_id,
                                "total": player.total,
                            },
                        )
                    )
            else:
                state = MatchTransitions.stand(state, player_id)
                player = state.find_player(player_id)

            events.append(
                (
                    EngineEventType.PLAYER_ACTION,
                    {
                        "match_id": state.id,
                        "player_id": player_id,
                        "action": move.value,
                        "active": player.active,
                    },
                )
            )

            if not player.active:
                state = self._advance_turn(state, events)

            self._publish(state, events)

        return state

    def stand(self, player_id: str) -> MatchState:
        """Stand for a player. Equivalent to act(player_id, Move.STAND)."""
        return self.act(player_id, Move.STAND)

    def require_rematch_allowed(self) -> MatchState:
        """
        Check that this match can hand its players to a rematch.

        Callers hold the match lock across this check, the creation of the new
        match and mark_rematched(), so a match is rematched at most once.

        Returns:
            The current snapshot

        Raises:
            InvalidState: If the match has not finished or was already rematched
        """
        with self.lock:
            state = self._state
            if not state.is_finished:
                raise InvalidState(f"Match {state.id} has not finished")
            if state.rematched_as is not None:
                raise InvalidState(
                    f"Match {state.id} was already rematched as {state.rematched_as}"
                )
            return state

    def mark_rematched(self, new_match_id: str) -> MatchState:
        """Record that the players moved on to new_match_id."""
        with self.lock:
            self.require_rematch_allowed()
            state = MatchTransitions.mark_rematched(self._state, new_match_id)
            self._publish(state, [])
        return state

    def _advance_turn(self, state: MatchState, events: List[PendingEvent]) -> MatchState:
        """
        Play the dealer and settle once no player is still deciding.

        Runs on a local snapshot inside the caller's critical section.
        """
        if not state.all_players_done:
            return state

        while self.rules.should_dealer_draw(state.dealer_total):
            card = self.random_source.draw_card()
            state = MatchTransitions.deal_to_dealer(state, card)
            events.append(
                (
                    EngineEventType.DEALER_ACTION,
                    {
                        "match_id": state.id,
                        "action": "DRAW_CARD",
                        "card": card,
                        "total": state.dealer_total,
                    },
                )
            )

        events.append(
            (
                EngineEventType.DEALER_ACTION,
                {"match_id": state.id, "action": "STAND", "total": state.dealer_total},
            )
        )

        outcomes = settle(state.dealer_hand, state.players, self.rules)
        state = MatchTransitions.settle(
            state, {o.player_id: (o.result, o.balance_delta) for o in outcomes}
        )

        for outcome in outcomes:
            events.append(
                (
                    EngineEventType.HAND_RESULT,
                    {
                        "match_id": state.id,
                        "player_id": outcome.player_id,
                        "result": outcome.result.value,
                        "player_total": outcome.player_total,
                        "dealer_total": outcome.dealer_total,
                        "bet": outcome.bet,
                    },
                )
            )
            if outcome.balance_delta:
                events.append(
                    (
                        EngineEventType.MONEY_PAYOUT,
                        {
                            "match_id": state.id,
                            "player_id": outcome.player_id,
                            "amount": outcome.balance_delta,
                        },
                    )
                )

        events.append(
            (
                EngineEventType.MATCH_FINISHED,
                {"match_id": state.id, "dealer_total": state.dealer_total},
            )
        )

        logger.info(
            f"Match {state.id} finished, dealer total {state.dealer_total}, "
            f"{len(outcomes)} hands settled"
        )
        return state

    def _publish(self, state: MatchState, events: List[PendingEvent]) -> None:
        self._state = state
        for event_type, data in events:
            data["timestamp"] = time.time()
            self.event_bus.emit(event_type, data)

    @staticmethod
    def _get_player(state: MatchState, player_id: str) -> PlayerState:
        player = state.find_player(player_id)
        if player is None:
            raise PlayerNotFound(player_id, state.id)
        return player

    @staticmethod
    def _require_in_progress(state: MatchState, operation: str) -> None:
        if state.is_finished:
            raise InvalidState(f"Cannot {operation}: match {state.id} has finished")

    @classmethod
    def _require_can_act(cls, state: MatchState, player: PlayerState) -> None:
        cls._require_in_progress(state, f"act for player {player.id}")
        if not player.active:
            raise InvalidState(f"Player {player.id} is no longer active")
