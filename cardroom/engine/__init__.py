"""
Core engine for the Cardroom server.

This package holds the match state machine, the registry of live matches,
settlement and the table rules.
"""

from cardroom.engine.rules import TableRules
from cardroom.engine.settlement import Outcome, determine_result, hand_total, settle
from cardroom.engine.match import Match
from cardroom.engine.registry import MatchRegistry

__all__ = [
    "TableRules",
    "Outcome",
    "determine_result",
    "hand_total",
    "settle",
    "Match",
    "MatchRegistry",
]
