#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Structured events emitted by every mutating pool operation."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from .logging_config import get_logger

logger = get_logger(__name__)

EVENT_KINDS = (
    "deposit",
    "withdraw",
    "push",
    "pull",
    "harvest",
    "adapter_registered",
    "adapter_status",
    "reserve_target",
    "operator_changed",
    "ownership_transferred",
    "paused",
    "unpaused",
)

EVENT_COLUMNS = ("kind", "actor", "adapter_id", "amount", "timestamp", "details")


@dataclass
class PoolEvent:
    """One mutating operation as seen by off-system monitoring."""

    kind: str
    actor: str
    adapter_id: Optional[str] = None
    amount: int = 0
    timestamp: float = field(default_factory=time.time)
    details: Dict[str, Any] = field(default_factory=dict)


class EventLog:
    """Append-only event sink with optional subscribers."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._events: List[PoolEvent] = []
        self._subscribers: List[Callable[[PoolEvent], None]] = []

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self):
        return iter(list(self._events))

    def subscribe(self, callback: Callable[[PoolEvent], None]) -> None:
        self._subscribers.append(callback)

    def emit(
        self,
        kind: str,
        actor: str,
        adapter_id: Optional[str] = None,
        amount: int = 0,
        **details: Any,
    ) -> PoolEvent:
        if kind not in EVENT_KINDS:
            raise ValueError(f"Unknown event kind: {kind}")
        event = PoolEvent(
            kind=kind,
            actor=actor,
            adapter_id=adapter_id,
            amount=int(amount),
            timestamp=self._clock(),
            details=details,
        )
        self._events.append(event)
        logger.info(
            "event %s actor=%s adapter=%s amount=%d",
            kind,
            actor,
            adapter_id or "-",
            event.amount,
            extra={"event": asdict(event)},
        )
        for callback in self._subscribers:
            # runs after the mutation committed; failures are only logged
            try:
                callback(event)
            except Exception:
                logger.exception("event subscriber %r failed on %s", callback, kind)
        return event

    def of_kind(self, kind: str) -> List[PoolEvent]:
        return [event for event in self._events if event.kind == kind]

    def last(self, kind: Optional[str] = None) -> Optional[PoolEvent]:
        events = self.of_kind(kind) if kind else self._events
        return events[-1] if events else None

    def to_frame(self) -> pd.DataFrame:
        """Events as a DataFrame indexed by UTC timestamp."""
        rows = [asdict(event) for event in self._events]
        frame = pd.DataFrame(rows, columns=list(EVENT_COLUMNS))
        frame["amount"] = frame["amount"].astype("object")
        frame["time"] = pd.to_datetime(frame["timestamp"], unit="s", utc=True)
        return frame.set_index("time")
