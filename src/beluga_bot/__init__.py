"""Beluga Discord interactions service."""

__version__ = "0.1.0"
