"""
Immutable state management for the Cardroom engine.

This package provides immutable state classes and pure transition functions
for managing match state in a predictable and testable way.
"""

from cardroom.state.models import (
    HandResult,
    MatchState,
    MatchStatus,
    Move,
    PlayerState,
)

from cardroom.state.transitions import MatchTransitions

__all__ = [
    "HandResult",
    "MatchState",
    "MatchStatus",
    "Move",
    "PlayerState",
    "MatchTransitions",
]
