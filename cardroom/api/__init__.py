"""
API module for Cardroom.

This module provides the transport-agnostic service that every client
operation goes through.
"""

from cardroom.api.service import GameService

__all__ = ["GameService"]
