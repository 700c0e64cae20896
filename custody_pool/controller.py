#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Allocation controller: role checks and dispatch onto the ledger.

Roles:
    owner     configuration (adapters, reserve target, operator, pause)
    operator  push/pull/harvest; the owner may always act as operator

While paused every controller mutation except ``unpause`` is rejected, and
ledger deposits are refused. Withdrawals stay open.
"""

from __future__ import annotations

from typing import Optional

from .adapters import get_adapter
from .adapters.base import Adapter
from .config import PoolConfig
from .errors import AuthorizationError, PausedError, ValidationError
from .events import EventLog
from .ledger import AdapterRecord, VaultLedger
from .logging_config import get_logger
from .token import AssetToken
from .validation import normalize_identity

logger = get_logger(__name__)


class AllocationController:
    """Privileged layer deciding when capital moves between the pool and adapters."""

    def __init__(self, ledger: VaultLedger, owner: str, operator: Optional[str] = None):
        self.ledger = ledger
        self.owner = normalize_identity(owner, "owner")
        self.operator = normalize_identity(operator, "operator") if operator else None

    @classmethod
    def from_config(
        cls,
        config: PoolConfig,
        asset: AssetToken,
        owner: str,
        operator: Optional[str] = None,
        events: Optional[EventLog] = None,
        w3=None,
        clock=None,
    ) -> "AllocationController":
        """Build a ledger and register every configured adapter in mapping order."""
        ledger = VaultLedger(
            asset,
            address=config.pool_address,
            reserve_bps=config.reserve_bps,
            strict_partial_fills=config.strict_partial_fills,
            events=events,
        )
        controller = cls(ledger, owner, operator)
        adapter_cfg = config.as_adapter_config()
        for adapter_id in config.adapters:
            adapter, error = get_adapter(adapter_id, adapter_cfg, asset, ledger.address, w3=w3, clock=clock)
            if adapter is None:
                raise ValidationError(f"Cannot build adapter {adapter_id}: {error}", "from_config")
            controller.register_adapter(controller.owner, adapter)
        return controller

    @property
    def paused(self) -> bool:
        return self.ledger.paused

    # Role checks ----------------------------------------------------------
    def is_owner(self, caller: str) -> bool:
        return normalize_identity(caller, "caller") == self.owner

    def is_operator(self, caller: str) -> bool:
        caller = normalize_identity(caller, "caller")
        return caller == self.owner or (self.operator is not None and caller == self.operator)

    def _require_owner(self, caller: str, operation: str) -> str:
        if self.paused:
            raise PausedError(operation)
        if not self.is_owner(caller):
            logger.warning("%s rejected: %s is not owner", operation, caller)
            raise AuthorizationError(caller, "owner", operation)
        return self.owner

    def _require_operator(self, caller: str, operation: str) -> str:
        if self.paused:
            raise PausedError(operation)
        if not self.is_operator(caller):
            logger.warning("%s rejected: %s is neither operator nor owner", operation, caller)
            raise AuthorizationError(caller, "operator", operation)
        return normalize_identity(caller, "caller")

    # Operator actions -----------------------------------------------------
    def push(self, caller: str, adapter_id: str, amount: int) -> int:
        actor = self._require_operator(caller, "push")
        return self.ledger.push_to_adapter(adapter_id, amount, actor=actor)

    def pull(self, caller: str, adapter_id: str, amount: int) -> int:
        actor = self._require_operator(caller, "pull")
        return self.ledger.pull_from_adapter(adapter_id, amount, actor=actor)

    def harvest(self, caller: str, adapter_id: str) -> int:
        actor = self._require_operator(caller, "harvest")
        return self.ledger.harvest(adapter_id, actor=actor)

    # Owner configuration --------------------------------------------------
    def register_adapter(self, caller: str, adapter: Adapter) -> AdapterRecord:
        actor = self._require_owner(caller, "register_adapter")
        return self.ledger.register_adapter(adapter, actor=actor)

    def set_active(self, caller: str, adapter_id: str, active: bool) -> None:
        actor = self._require_owner(caller, "set_active")
        self.ledger.set_active(adapter_id, active, actor=actor)

    def set_reserve_target(self, caller: str, bps: int) -> None:
        actor = self._require_owner(caller, "set_reserve_target")
        self.ledger.set_reserve_target(bps, actor=actor)

    def set_operator(self, caller: str, operator: Optional[str]) -> None:
        actor = self._require_owner(caller, "set_operator")
        previous = self.operator
        self.operator = normalize_identity(operator, "operator") if operator else None
        logger.info("operator %s -> %s", previous, self.operator)
        self.ledger.events.emit("operator_changed", actor, previous=previous, operator=self.operator)

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        actor = self._require_owner(caller, "transfer_ownership")
        self.owner = normalize_identity(new_owner, "owner")
        logger.info("ownership %s -> %s", actor, self.owner)
        self.ledger.events.emit("ownership_transferred", actor, previous=actor, owner=self.owner)

    def pause(self, caller: str) -> None:
        actor = self._require_owner(caller, "pause")
        self.ledger.paused = True
        logger.warning("pool paused by %s", actor)
        self.ledger.events.emit("paused", actor)

    def unpause(self, caller: str) -> None:
        if not self.is_owner(caller):
            raise AuthorizationError(caller, "owner", "unpause")
        if not self.paused:
            return
        self.ledger.paused = False
        logger.info("pool unpaused by %s", self.owner)
        self.ledger.events.emit("unpaused", self.owner)
