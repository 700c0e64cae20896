#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Reentrancy guard serialising the ledger's mutating entry points."""

from __future__ import annotations

import functools
import threading
from typing import Any, Callable, Optional, TypeVar

from .errors import ReentrancyError

T = TypeVar("T")


class ReentrancyGuard:
    """Context manager holding the ledger-wide busy flag.

    A second entry from the thread that already holds the guard (an adapter
    calling back into the ledger) raises :class:`ReentrancyError`. Other
    threads wait for the lock, so operations never interleave.
    """

    def __init__(self, name: str = "ledger"):
        self.name = name
        self._lock = threading.Lock()
        self._owner: Optional[int] = None
        self._operation: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self._owner is not None

    def enter(self, operation: str) -> None:
        if self._owner == threading.get_ident():
            raise ReentrancyError(
                f"Reentrant call to {operation} while {self._operation} is in progress on {self.name}",
                operation,
            )
        self._lock.acquire()
        self._owner = threading.get_ident()
        self._operation = operation

    def exit(self) -> None:
        self._owner = None
        self._operation = None
        self._lock.release()

    def __enter__(self) -> "ReentrancyGuard":
        self.enter("operation")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.exit()
        return False


def non_reentrant(func: Callable[..., T]) -> Callable[..., T]:
    """Run a method under ``self._guard``; released on every exit path."""

    @functools.wraps(func)
    def wrapper(self, *args: Any, **kwargs: Any) -> T:
        guard: ReentrancyGuard = self._guard
        guard.enter(func.__name__)
        try:
            return func(self, *args, **kwargs)
        finally:
            guard.exit()

    return wrapper
