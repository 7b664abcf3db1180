# src/routine_companion/core/result.py

"""Tiny Ok/Err result type so callers branch on failure explicitly."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    reason: str


Result = Ok[T] | Err
