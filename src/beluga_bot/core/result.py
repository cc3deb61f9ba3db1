"""Tagged success/failure values used by every validation step.

Expected failures are returned, never raised. Callers branch on ``success``
(or ``isinstance(result, Ok)``) and read either ``data`` or ``error``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    data: T

    @property
    def success(self) -> bool:
        return True

    def map(self, fn: Callable[[T], U]) -> "Ok[U]":
        return Ok(fn(self.data))

    def bind(self, fn: Callable[[T], "ValidationResult[U]"]) -> "ValidationResult[U]":
        return fn(self.data)


@dataclass(frozen=True)
class Err:
    error: str

    @property
    def success(self) -> bool:
        return False

    def map(self, fn: Callable[[object], object]) -> "Err":
        return self

    def bind(self, fn: Callable[[object], object]) -> "Err":
        return self


ValidationResult = Union[Ok[T], Err]

