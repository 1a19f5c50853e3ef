# sceneflix/result.py
"""
Minimal Ok/Err result used by read paths.

Gateway reads produce ``Ok(value)`` or ``Err(reason)``; the public
boundary collapses ``Err`` with ``unwrap_or`` so the caller always has a
definite value to render while the reason stays available for logging
and tests.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    reason: str
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]


def unwrap_or(result: Result[T], default: T) -> T:
    if isinstance(result, Ok):
        return result.value
    return default
