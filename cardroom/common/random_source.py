"""
Sources of card values and identifiers for the Cardroom engine.

Matches never call ``random`` or ``uuid`` directly. They ask a RandomSource,
which lets a server run with a seeded generator and lets tests deal a fixed
script of cards.
"""

import random
import uuid
from abc import ABC, abstractmethod
from collections import deque
from typing import Iterable, Optional

MIN_CARD = 1
MAX_CARD = 10


class RandomSource(ABC):
    """Supplies card point values and opaque unique identifiers."""

    @abstractmethod
    def draw_card(self) -> int:
        """
        Draw a single card.

        Returns:
            A point value in the range [1, 10]
        """
        pass

    @abstractmethod
    def new_id(self) -> str:
        """
        Generate a new identifier.

        Returns:
            A token unique for the lifetime of the process
        """
        pass


class DefaultRandomSource(RandomSource):
    """
    Uniform card draws backed by ``random.Random`` and UUID4 identifiers.

    Card values are drawn uniformly from 1-10. This is a flat point model, not
    the probabilities of a real deck.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        min_card: int = MIN_CARD,
        max_card: int = MAX_CARD,
    ):
        """
        Initialize the random source.

        Args:
            seed: Optional seed for reproducible card sequences
            min_card: Lowest card value that can be drawn
            max_card: Highest card value that can be drawn
        """
        if min_card < 1 or max_card < min_card:
            raise ValueError("Card range must satisfy 1 <= min_card <= max_card")

        self.min_card = min_card
        self.max_card = max_card
        self._rng = random.Random(seed)

    def draw_card(self) -> int:
        return self._rng.randint(self.min_card, self.max_card)

    def new_id(self) -> str:
        return str(uuid.uuid4())


class StackedRandomSource(RandomSource):
    """
    Deals a predetermined sequence of cards.

    Identifiers come from ``ids`` while any remain, then fall back to UUID4.
    Drawing past the end of the card script raises IndexError so a test that
    deals more cards than it planned fails loudly.
    """

    def __init__(self, cards: Iterable[int] = (), ids: Iterable[str] = ()):
        self._cards = deque(cards)
        self._ids = deque(ids)

    def push_cards(self, *cards: int) -> None:
        """Append cards to the end of the script."""
        self._cards.extend(cards)

    @property
    def remaining(self) -> int:
        """Number of scripted cards not yet dealt."""
        return len(self._cards)

    def draw_card(self) -> int:
        if not self._cards:
            raise IndexError("No scripted cards left to draw")
        return self._cards.popleft()

    def new_id(self) -> str:
        if self._ids:
            return self._ids.popleft()
        return str(uuid.uuid4())
