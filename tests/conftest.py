"""
Pytest configuration for the Cardroom tests.

Provides a deterministic card source and fresh engine objects for each test.
"""

import pytest

from cardroom.api import GameService
from cardroom.common.random_source import StackedRandomSource
from cardroom.engine import Match, MatchRegistry, TableRules
from cardroom.events import EventBus, EventEmitter


@pytest.fixture(scope="function", autouse=True)
def reset_event_bus():
    """Reset the event bus singleton before each test."""
    EventBus._instance = None
    yield
    EventBus._instance = None


@pytest.fixture
def rules():
    return TableRules()


@pytest.fixture
def cards():
    """A card source with an empty script; tests push the cards they need."""
    return StackedRandomSource()


@pytest.fixture
def emitter():
    return EventEmitter()


@pytest.fixture
def recorded_events(emitter):
    """List of (event_type, data) tuples emitted during the test."""
    events = []
    emitter.subscribe(events.append)
    return events


@pytest.fixture
def match(rules, cards, emitter):
    return Match("match-1", rules=rules, random_source=cards, event_bus=emitter)


@pytest.fixture
def registry(rules, cards, emitter):
    return MatchRegistry(rules=rules, random_source=cards, event_bus=emitter)


@pytest.fixture
def service(registry):
    return GameService(registry)
