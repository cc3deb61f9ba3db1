"""HTTP surface for Discord interactions."""

from .app import create_app

__all__ = ["create_app"]
