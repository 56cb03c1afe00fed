"""
Network binding for the Cardroom engine.

This package exposes the game service over WebSockets: a transport-agnostic
request dispatcher and the server that feeds it.
"""

from cardroom.server.protocol import BadRequest, RequestDispatcher, UnknownOperation
from cardroom.server.main import CardroomServer, build_parser, build_service, main

__all__ = [
    "BadRequest",
    "RequestDispatcher",
    "UnknownOperation",
    "CardroomServer",
    "build_parser",
    "build_service",
    "main",
]
