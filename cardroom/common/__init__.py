"""Shared building blocks for the Cardroom engine."""
