"""Core runtime primitives."""

from .result import Err, Ok, ValidationResult

__all__ = ["Err", "Ok", "ValidationResult"]
