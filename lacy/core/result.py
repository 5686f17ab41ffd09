"""Result type for explicit error handling.

Every fallible step of the install and publish flows returns either
``Ok(value)`` or ``Err(error)``. Callers narrow with ``isinstance`` (or
``match``) and forward the error unchanged when they cannot handle it:

    resolved = resolver.resolve(request)
    if isinstance(resolved, Err):
        return resolved
    record = resolved.value.record
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

__all__ = ["Ok", "Err", "Result"]

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome carrying ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed outcome carrying ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result: TypeAlias = Ok[T] | Err[E]
