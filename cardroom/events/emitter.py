"""
Event system for the Cardroom engine.

Matches and the registry publish EngineEventType events through an
EventEmitter. Every event payload carries the id of the match it concerns, so
a subscription can ask for particular event types, particular matches, or
both, and the emitter only calls it for events that pass its filter.
"""

from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple, Union
import logging
import threading

logger = logging.getLogger("cardroom.events")

# Delivered to subscribers as (event type name, payload)
Event = Tuple[str, Dict[str, Any]]


class EngineEventType(Enum):
    """Event types published by the Cardroom engine."""

    # Match lifecycle
    MATCH_CREATED = "match_created"
    MATCH_DELETED = "match_deleted"
    MATCH_FINISHED = "match_finished"

    # Player events
    PLAYER_JOINED = "player_joined"
    PLAYER_BET = "player_bet"
    PLAYER_ACTION = "player_action"

    # Card events
    CARD_DEALT = "card_dealt"

    # Hand events
    HAND_BUSTED = "hand_busted"
    HAND_RESULT = "hand_result"

    # Dealer events
    DEALER_ACTION = "dealer_action"

    # Money events
    MONEY_PAYOUT = "money_payout"

    @classmethod
    def from_name(cls, value: Union["EngineEventType", str]) -> "EngineEventType":
        """
        Resolve an event type from a member or its name.

        Raises:
            ValueError: If the name is not an event type
        """
        if isinstance(value, cls):
            return value
        try:
            return cls[value]
        except (KeyError, TypeError):
            raise ValueError(f"Unknown event type: {value!r}") from None


class Subscription:
    """
    One listener and the events it wants.

    A filter of None accepts everything along that axis.
    """

    def __init__(
        self,
        callback: Callable[[Event], None],
        event_types: Optional[Iterable[Union[EngineEventType, str]]] = None,
        match_ids: Optional[Iterable[str]] = None,
    ):
        self.callback = callback
        self.event_types: Optional[FrozenSet[EngineEventType]] = (
            None
            if event_types is None
            else frozenset(EngineEventType.from_name(t) for t in event_types)
        )
        self.match_ids: Optional[FrozenSet[str]] = (
            None if match_ids is None else frozenset(match_ids)
        )

    def matches(self, event_type: EngineEventType, data: Dict[str, Any]) -> bool:
        if self.event_types is not None and event_type not in self.event_types:
            return False
        if self.match_ids is not None and data.get("match_id") not in self.match_ids:
            return False
        return True


class EventEmitter:
    """
    Thread-safe publisher of engine events.

    Matches emit from whichever thread runs the operation. Callbacks run on
    that thread, outside the subscription lock; a failing callback is logged
    and does not stop delivery to the others.

    Example:
        ```python
        emitter = EventEmitter()
        unsubscribe = emitter.subscribe(
            print, event_types=[EngineEventType.HAND_RESULT], match_ids=["m1"]
        )
        ```
    """

    def __init__(self):
        self._subscriptions: List[Subscription] = []
        self._lock = threading.Lock()

    def subscribe(
        self,
        callback: Callable[[Event], None],
        event_types: Optional[Iterable[Union[EngineEventType, str]]] = None,
        match_ids: Optional[Iterable[str]] = None,
    ) -> Callable[[], None]:
        """
        Register a callback.

        Args:
            callback: Called with (event_type_name, data) for each matching event
            event_types: Event types or their names, None for all
            match_ids: Match ids, None for all matches

        Returns:
            Function that removes the subscription

        Raises:
            ValueError: If an event type name is unknown
        """
        subscription = Subscription(callback, event_types, match_ids)
        with self._lock:
            self._subscriptions.append(subscription)

        def unsubscribe():
            with self._lock:
                if subscription in self._subscriptions:
                    self._subscriptions.remove(subscription)

        return unsubscribe

    def emit(self, event_type: EngineEventType, data: Dict[str, Any]) -> None:
        """
        Deliver an event to every subscription whose filter accepts it.

        Args:
            event_type: The type of event
            data: Event payload, including its match_id
        """
        event_type = EngineEventType.from_name(event_type)

        with self._lock:
            targets = [s for s in self._subscriptions if s.matches(event_type, data)]

        for subscription in targets:
            try:
                subscription.callback((event_type.name, data))
            except Exception as e:
                logger.error(
                    f"Error in event handler for {event_type.name}: {e}", exc_info=True
                )


class EventBus:
    """
    Process-wide default emitter.

    Components accept an explicit emitter and fall back to this shared
    instance when none is given.
    """

    _instance = None
    _lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> EventEmitter:
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = EventEmitter()
        return cls._instance
