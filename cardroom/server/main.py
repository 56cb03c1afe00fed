"""
WebSocket server for the Cardroom engine.

Binds the request protocol and the event stream to a websockets server. Game
operations run on a thread pool so requests for different matches proceed in
parallel; each match's own lock serializes requests against that match.
"""

import argparse
import asyncio
import json
import logging
import signal
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import websockets
from websockets.exceptions import ConnectionClosed

from cardroom.api import GameService
from cardroom.common.random_source import DefaultRandomSource
from cardroom.engine import MatchRegistry, TableRules
from cardroom.events import ClientMessage, EventEmitter, WebSocketEventHandler
from cardroom.server.protocol import RequestDispatcher, error_message

logger = logging.getLogger("cardroom.server")


class CardroomServer:
    """
    WebSocket server for one GameService.

    Each text frame from a client is a JSON message. Subscription messages go
    to the WebSocketEventHandler; everything else is a request for the
    RequestDispatcher.
    """

    def __init__(
        self,
        service: GameService,
        host: str = "localhost",
        port: int = 8765,
        ws_handler: Optional[WebSocketEventHandler] = None,
        workers: int = 8,
    ):
        """
        Initialize the server.

        Args:
            service: Game service handling requests
            host: Host to bind to
            port: Port to bind to
            ws_handler: Event handler, defaults to one listening to the
                service registry's event bus
            workers: Size of the thread pool running game operations
        """
        self.service = service
        self.host = host
        self.port = port
        self.dispatcher = RequestDispatcher(service)
        self.ws_handler = ws_handler or WebSocketEventHandler(
            service.registry.event_bus
        )
        self.executor = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="cardroom"
        )
        self.server = None
        self._stopped: Optional[asyncio.Event] = None

    async def start(self) -> None:
        """Start the event handler and begin accepting connections."""
        self._stopped = asyncio.Event()
        await self.ws_handler.start()
        self.server = await websockets.serve(self.handle_client, self.host, self.port)
        logger.info(f"Cardroom server listening on ws://{self.host}:{self.port}")

    async def serve_forever(self) -> None:
        """Run until stop() is called."""
        await self.start()
        try:
            await self._stopped.wait()
        finally:
            await self.shutdown()

    def stop(self) -> None:
        """Ask serve_forever() to return."""
        if self._stopped is not None:
            self._stopped.set()

    async def shutdown(self) -> None:
        """Close the listener, stop the event handler and the worker pool."""
        logger.info("Shutting down Cardroom server")

        if self.server is not None:
            self.server.close()
            await self.server.wait_closed()
            self.server = None

        await self.ws_handler.stop()
        self.executor.shutdown(wait=False)

    async def handle_client(self, websocket, path=None) -> None:
        """
        Serve one client connection.

        Args:
            websocket: WebSocket connection
            path: Request path, passed by older websockets releases
        """
        loop = asyncio.get_running_loop()
        client_id = await self.ws_handler.connect_client(
            None, self.create_send_callback(websocket, loop)
        )

        try:
            async for raw in websocket:
                response = await self.handle_message(client_id, raw)
                await websocket.send(json.dumps(response))
        except ConnectionClosed as e:
            logger.debug(f"Client {client_id} connection closed: {e}")
        finally:
            await self.ws_handler.disconnect_client(client_id)

    async def handle_message(self, client_id: str, raw: Any) -> Dict[str, Any]:
        """
        Handle one raw frame from a client.

        Args:
            client_id: ID of the sending client
            raw: The frame's payload

        Returns:
            The message to send back
        """
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            return error_message("BAD_REQUEST", "Message is not valid JSON")

        if not isinstance(message, dict):
            return error_message("BAD_REQUEST", "Message must be a JSON object")

        if message.get("type") in ClientMessage.ALL:
            return await self.ws_handler.handle_client_message(client_id, message)

        self.ws_handler.touch(client_id)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self.executor, self.dispatcher.handle, message
        )

    def create_send_callback(self, websocket, loop: asyncio.AbstractEventLoop):
        """
        Create a send callback for a connection.

        Events are emitted on worker threads, so the callback hands the send
        to the event loop instead of awaiting it.

        Args:
            websocket: WebSocket connection
            loop: Loop that owns the connection

        Returns:
            Callback function
        """

        def send_callback(message: Dict[str, Any]):
            asyncio.run_coroutine_threadsafe(
                self._send_message(websocket, message), loop
            )

        return send_callback

    async def _send_message(self, websocket, message: Dict[str, Any]):
        try:
            await websocket.send(json.dumps(message))
        except ConnectionClosed:
            logger.debug("Dropped message for a closed connection")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Cardroom blackjack match server")
    parser.add_argument("--host", type=str, default="localhost", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8765, help="Port to bind to")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument(
        "--starting-balance",
        type=int,
        default=TableRules.starting_balance,
        help="Chips given to each player on joining",
    )
    parser.add_argument(
        "--dealer-stands-on",
        type=int,
        default=TableRules.dealer_stands_on,
        help="Dealer draws while below this total",
    )
    parser.add_argument(
        "--legacy-double-debit",
        action="store_true",
        help="Charge lost bets a second time at settlement",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for card draws")
    parser.add_argument(
        "--workers", type=int, default=8, help="Threads running game operations"
    )
    return parser


def build_service(args: argparse.Namespace) -> GameService:
    """Wire rules, random source, event bus and registry into a service."""
    rules = TableRules.from_dict(
        {
            "starting_balance": args.starting_balance,
            "dealer_stands_on": args.dealer_stands_on,
            "debit_lost_bets_twice": args.legacy_double_debit,
        }
    )
    registry = MatchRegistry(
        rules=rules,
        random_source=DefaultRandomSource(
            seed=args.seed, min_card=rules.min_card, max_card=rules.max_card
        ),
        event_bus=EventEmitter(),
    )
    return GameService(registry)


async def run(server: CardroomServer) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, server.stop)

    await server.serve_forever()


def main(argv: Optional[List[str]] = None) -> int:
    """Console entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        service = build_service(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    server = CardroomServer(service, args.host, args.port, workers=args.workers)
    asyncio.run(run(server))
    return 0
