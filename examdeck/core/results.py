"""
Explicit success/failure values for session operations.

Mutating session calls never raise for expected failures; they return a
Result that the caller must inspect.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .errors import ExamDeckError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an operation: a value on success, an error otherwise."""

    value: T | None = None
    error: ExamDeckError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T | None:
        """Return the value, raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        return self.value

    def __bool__(self) -> bool:
        return self.ok


def Ok(value: Any = None) -> Result:
    return Result(value=value)


def Err(error: ExamDeckError) -> Result:
    return Result(error=error)
