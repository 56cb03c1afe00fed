"""
Event system for the Cardroom engine.

This package provides the event emitter that every match publishes to, and the
WebSocket handler that forwards those events to connected clients.
"""

from cardroom.events.emitter import (
    EngineEventType,
    EventBus,
    EventEmitter,
    Subscription,
)
from cardroom.events.websocket import (
    ClientMessage,
    ServerMessage,
    WebSocketClient,
    WebSocketEventHandler,
)

__all__ = [
    "EngineEventType",
    "EventBus",
    "EventEmitter",
    "Subscription",
    "ClientMessage",
    "ServerMessage",
    "WebSocketClient",
    "WebSocketEventHandler",
]
