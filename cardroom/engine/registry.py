"""
Registry of live matches.

The registry is an explicit object owned by whoever runs the process. It
creates matches with its table rules, random source and event bus, and keeps
them until they are removed.
"""

import logging
import threading
from typing import Dict, Iterable, List, Optional

from cardroom.common.random_source import DefaultRandomSource, RandomSource
from cardroom.engine.match import Match
from cardroom.engine.rules import TableRules
from cardroom.events import EngineEventType, EventBus, EventEmitter
from cardroom.state import PlayerState

logger = logging.getLogger("cardroom.engine.registry")


class MatchRegistry:
    """Create, find, list and remove matches by id."""

    def __init__(
        self,
        rules: Optional[TableRules] = None,
        random_source: Optional[RandomSource] = None,
        event_bus: Optional[EventEmitter] = None,
    ):
        self.rules = rules or TableRules()
        self.random_source = random_source or DefaultRandomSource(
            min_card=self.rules.min_card, max_card=self.rules.max_card
        )
        self.event_bus = event_bus or EventBus.get_instance()
        self._matches: Dict[str, Match] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._matches)

    def __contains__(self, match_id: str) -> bool:
        return match_id in self._matches

    def list(self) -> List[Match]:
        """All live matches in creation order."""
        with self._lock:
            return list(self._matches.values())

    def find(self, match_id: str) -> Optional[Match]:
        """Return the match with this id, or None."""
        with self._lock:
            return self._matches.get(match_id)

    def create(
        self,
        players: Iterable[PlayerState] = (),
        rematch_of: Optional[str] = None,
    ) -> Match:
        """
        Create and store a new match.

        Args:
            players: Players to seat, carried over from a finished match
            rematch_of: Id of that finished match

        Returns:
            The new match
        """
        match = Match(
            self.random_source.new_id(),
            rules=self.rules,
            random_source=self.random_source,
            event_bus=self.event_bus,
            players=players,
            rematch_of=rematch_of,
        )

        with self._lock:
            self._matches[match.id] = match

        self.event_bus.emit(
            EngineEventType.MATCH_CREATED,
            {
                "match_id": match.id,
                "rematch_of": rematch_of,
                "player_count": len(match.state.players),
            },
        )
        logger.info(f"Created match {match.id}")
        return match

    def remove(self, match_id: str) -> bool:
        """
        Remove a match.

        Returns:
            True if the match existed and was removed, False otherwise
        """
        with self._lock:
            match = self._matches.pop(match_id, None)

        if match is None:
            logger.debug(f"Match {match_id} not found for removal")
            return False

        self.event_bus.emit(EngineEventType.MATCH_DELETED, {"match_id": match_id})
        logger.info(f"Deleted match {match_id}")
        return True
