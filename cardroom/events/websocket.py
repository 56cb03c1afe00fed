"""
WebSocket event handler for the Cardroom engine.

This module bridges the event system and connected clients. Each client owns
one subscription on the event bus, rebuilt whenever it changes what it listens
to, so the emitter does the filtering by event type and match. The handler
knows nothing about sockets; the server hands it a send callback per client.
"""

import asyncio
import logging
import threading
import time
import uuid
from typing import Any, Callable, Dict, List, Optional, Set

from cardroom.events.emitter import Event, EngineEventType, EventBus, EventEmitter

logger = logging.getLogger("cardroom.events.websocket")

ALL_EVENTS = "*"


class ClientMessage:
    """Subscription message types that clients can send to the server."""

    SUBSCRIBE = "subscribe"
    UNSUBSCRIBE = "unsubscribe"
    HEARTBEAT = "heartbeat"

    ALL = (SUBSCRIBE, UNSUBSCRIBE, HEARTBEAT)


class ServerMessage:
    """Message types that the server can send to clients."""

    EVENT = "event"
    RESPONSE = "response"
    ERROR = "error"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    SUBSCRIPTIONS = "subscriptions"
    HEARTBEAT = "heartbeat"


class SubscriptionError(ValueError):
    """Raised when a subscribe or unsubscribe payload is malformed."""


class WebSocketClient:
    """
    A connected client and its event subscription.

    `subscriptions` holds event type names, or "*" for every type; with none
    the client gets no events. `match_ids` narrows events to those matches;
    empty means every match.
    """

    def __init__(self, client_id: str, send_callback: Callable[[Dict[str, Any]], None]):
        self.id = client_id
        self._send = send_callback
        self.subscriptions: Set[str] = set()
        self.match_ids: Set[str] = set()
        self.last_activity = time.time()
        self._unsubscribe: Optional[Callable[[], None]] = None

    def send(self, message_type: str, data: Dict[str, Any]) -> None:
        self._send({"type": message_type, "data": data, "timestamp": time.time()})

    def deliver(self, event: Event) -> None:
        event_type, data = event
        self.send(ServerMessage.EVENT, {"event_type": event_type, "data": data})

    def attach(self, event_bus: EventEmitter) -> None:
        """Replace the bus subscription with one matching the current filters."""
        self.detach()
        if not self.subscriptions:
            return

        event_types = None if ALL_EVENTS in self.subscriptions else self.subscriptions
        self._unsubscribe = event_bus.subscribe(
            self.deliver, event_types, self.match_ids or None
        )

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def idle_for(self, now: float) -> float:
        return now - self.last_activity


class WebSocketEventHandler:
    """
    Tracks connected clients and what each of them listens to.

    Runs a heartbeat loop that pings every client and drops those that have
    been silent for longer than client_timeout.
    """

    def __init__(
        self,
        event_bus: Optional[EventEmitter] = None,
        heartbeat_interval: float = 5.0,
        client_timeout: Optional[float] = 60.0,
    ):
        """
        Initialize the handler.

        Args:
            event_bus: Emitter to listen to, defaults to the shared EventBus
            heartbeat_interval: Seconds between heartbeats
            client_timeout: Seconds without a client message before the client
                is dropped, or None to keep clients indefinitely
        """
        self.event_bus = event_bus or EventBus.get_instance()
        self.heartbeat_interval = heartbeat_interval
        self.client_timeout = client_timeout
        self.clients: Dict[str, WebSocketClient] = {}
        self._client_lock = threading.Lock()
        self.heartbeat_task: Optional[asyncio.Task] = None

    async def start(self):
        """Start the heartbeat loop."""
        self.heartbeat_task = asyncio.create_task(self._heartbeat_loop())

    async def stop(self):
        """Stop the heartbeat loop and detach every client from the bus."""
        if self.heartbeat_task:
            self.heartbeat_task.cancel()
            try:
                await self.heartbeat_task
            except asyncio.CancelledError:
                pass
            self.heartbeat_task = None

        for client in self._snapshot():
            client.detach()

    async def _heartbeat_loop(self):
        while True:
            now = time.time()
            for client in self._snapshot():
                if self._timed_out(client, now):
                    logger.info(f"Client {client.id} timed out")
                    await self.disconnect_client(client.id)
                    continue
                try:
                    client.send(ServerMessage.HEARTBEAT, {"timestamp": now})
                except Exception as e:
                    logger.warning(f"Error sending heartbeat to client {client.id}: {e}")
                    await self.disconnect_client(client.id)

            await asyncio.sleep(self.heartbeat_interval)

    def _timed_out(self, client: WebSocketClient, now: float) -> bool:
        return self.client_timeout is not None and client.idle_for(now) >= self.client_timeout

    def _snapshot(self) -> List[WebSocketClient]:
        with self._client_lock:
            return list(self.clients.values())

    async def connect_client(
        self,
        client_id: Optional[str] = None,
        send_callback: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> str:
        """
        Register a client. It receives no events until it subscribes.

        Args:
            client_id: Optional client ID, generated if omitted
            send_callback: Function to call to send a message to the client

        Returns:
            The client ID
        """
        client_id = client_id or str(uuid.uuid4())
        client = WebSocketClient(client_id, send_callback or (lambda message: None))

        with self._client_lock:
            self.clients[client_id] = client

        client.send(ServerMessage.CONNECTED, {"client_id": client_id})
        logger.info(f"Client {client_id} connected")
        return client_id

    async def disconnect_client(self, client_id: str) -> None:
        with self._client_lock:
            client = self.clients.pop(client_id, None)
        if client is None:
            return

        client.detach()
        try:
            client.send(ServerMessage.DISCONNECTED, {"client_id": client_id})
        except Exception as e:
            logger.debug(f"Could not notify client {client_id} of disconnect: {e}")
        logger.info(f"Client {client_id} disconnected")

    async def handle_client_message(
        self, client_id: str, message: Dict[str, Any]
    ) -> Dict[str, Any]:
        """
        Handle a subscribe, unsubscribe or heartbeat message.

        Subscription payloads look like
        {"event_types": ["CARD_DEALT", ...] or ["*"], "match_ids": ["..."]};
        both keys are optional lists of strings.

        Args:
            client_id: ID of the client sending the message
            message: The decoded message

        Returns:
            Response to send back to the client
        """
        with self._client_lock:
            client = self.clients.get(client_id)

        if client is None:
            logger.warning(f"Received message from unknown client {client_id}")
            return _bad_request("Unknown client")

        client.last_activity = time.time()
        message_type = message.get("type")

        if message_type == ClientMessage.HEARTBEAT:
            return {"type": ServerMessage.HEARTBEAT, "data": {"timestamp": time.time()}}

        if message_type not in (ClientMessage.SUBSCRIBE, ClientMessage.UNSUBSCRIBE):
            logger.warning(f"Unknown message type from client {client_id}: {message_type}")
            return _bad_request("Unknown message type")

        try:
            event_types, match_ids = _parse_subscription(message.get("data"))
        except SubscriptionError as e:
            return _bad_request(str(e))

        if message_type == ClientMessage.SUBSCRIBE:
            client.subscriptions |= event_types
            client.match_ids |= match_ids
        else:
            client.subscriptions -= event_types
            client.match_ids -= match_ids
        client.attach(self.event_bus)

        return {
            "type": ServerMessage.SUBSCRIPTIONS,
            "data": {
                "subscriptions": sorted(client.subscriptions),
                "match_ids": sorted(client.match_ids),
            },
        }

    def touch(self, client_id: str) -> None:
        """Record activity for a client that sent a non-subscription message."""
        with self._client_lock:
            client = self.clients.get(client_id)
        if client:
            client.last_activity = time.time()


def _parse_subscription(data: Any):
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SubscriptionError("Subscription data must be an object")

    event_types = _string_set(data, "event_types")
    for name in event_types - {ALL_EVENTS}:
        try:
            EngineEventType.from_name(name)
        except ValueError as e:
            raise SubscriptionError(str(e)) from None

    return event_types, _string_set(data, "match_ids")


def _string_set(data: Dict[str, Any], key: str) -> Set[str]:
    values = data.get(key, [])
    if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
        raise SubscriptionError(f"{key} must be a list of strings")
    return set(values)


def _bad_request(message: str) -> Dict[str, Any]:
    return {
        "type": ServerMessage.ERROR,
        "data": {"code": "BAD_REQUEST", "message": message},
    }
