#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Vault ledger: share accounting, reserve policy and the liquidity waterfall.

The ledger custodies a single asset under ``address``. Holders deposit the
asset for shares and redeem shares for a pro-rata slice of ``total_assets()``,
which is idle balance plus the value reported by every active adapter.

Rounding always truncates, so deposits never over-credit shares and
withdrawals never over-pay; the remainder stays with the pool.

Every mutating entry point runs under one ledger-wide reentrancy guard and
only updates share balances after all adapter calls it depends on have
returned, so a failure never leaves shares burned without a payout.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from .adapters.base import Adapter
from .errors import (
    AssetMismatchError,
    InactiveAdapterError,
    InsufficientLiquidityError,
    InsufficientSharesError,
    NoFundsReceivedError,
    PartialFillError,
    PausedError,
    PoolError,
    ReserveViolationError,
    UnknownAdapterError,
    ValidationError,
    ZeroAmountError,
    classify_error,
)
from .events import EventLog
from .guard import ReentrancyGuard, non_reentrant
from .logging_config import get_logger
from .safe_math import bps_of, mul_div
from .token import AssetToken
from .validation import normalize_identity, require_positive_amount, validate_reserve_bps

logger = get_logger(__name__)


@dataclass
class AdapterRecord:
    """Registry entry; never removed, only toggled."""

    adapter_id: str
    adapter: Adapter
    position: int
    active: bool = True


class VaultLedger:
    """Share ledger over a single asset with pluggable yield adapters."""

    def __init__(
        self,
        asset: AssetToken,
        address: str = "pool",
        reserve_bps: int = 0,
        strict_partial_fills: bool = False,
        events: Optional[EventLog] = None,
    ):
        self.asset = asset
        self.address = normalize_identity(address, "pool address")
        self.reserve_bps = validate_reserve_bps(reserve_bps)
        self.strict_partial_fills = bool(strict_partial_fills)
        self.events = events if events is not None else EventLog()
        self.paused = False
        self.total_shares = 0
        self._balances: Dict[str, int] = {}
        self._adapters: List[AdapterRecord] = []
        self._by_id: Dict[str, AdapterRecord] = {}
        self._guard = ReentrancyGuard(f"ledger:{self.address}")

    def __repr__(self) -> str:
        return (
            f"VaultLedger({self.address}, shares={self.total_shares}, "
            f"adapters={len(self._adapters)}, reserve_bps={self.reserve_bps})"
        )

    # ------------------------------------------------------------------ #
    # Read-only surface                                                  #
    # ------------------------------------------------------------------ #
    def idle_balance(self) -> int:
        return self.asset.balance_of(self.address)

    def total_assets(self) -> int:
        """Idle balance plus every active adapter's reported value, recomputed on each call."""
        total = self.idle_balance()
        for record in self._adapters:
            if record.active:
                total += record.adapter.total_assets()
        return total

    def share_balance_of(self, holder: str) -> int:
        return self._balances.get(normalize_identity(holder, "holder"), 0)

    def idle_target(self) -> int:
        return bps_of(self.total_assets(), self.reserve_bps)

    def adapter_count(self) -> int:
        return len(self._adapters)

    def is_active_adapter(self, adapter_id: str) -> bool:
        record = self._by_id.get(adapter_id)
        return bool(record and record.active)

    def adapter_records(self) -> Iterator[AdapterRecord]:
        """Registry in waterfall (registration) order."""
        return iter(list(self._adapters))

    def get_adapter(self, adapter_id: str) -> Adapter:
        return self._record(adapter_id, "lookup").adapter

    def holders(self) -> Dict[str, int]:
        return dict(self._balances)

    def shares_conserved(self) -> bool:
        return sum(self._balances.values()) == self.total_shares

    def assets_to_shares(self, assets: int) -> int:
        total = self.total_assets()
        if total == 0 or self.total_shares == 0:
            return assets
        return mul_div(assets, self.total_shares, total)

    def shares_to_assets(self, shares: int) -> int:
        if self.total_shares == 0:
            return 0
        return mul_div(shares, self.total_assets(), self.total_shares)

    def max_withdraw(self, holder: str) -> int:
        """Assets the holder's whole balance currently redeems for."""
        return self.shares_to_assets(self.share_balance_of(holder))

    def snapshot(self) -> Dict[str, object]:
        adapters = [
            {
                "adapter_id": record.adapter_id,
                "type": record.adapter.adapter_type,
                "active": record.active,
                "value": record.adapter.total_assets(),
            }
            for record in self._adapters
        ]
        return {
            "address": self.address,
            "asset": self.asset.address,
            "total_assets": self.total_assets(),
            "total_shares": self.total_shares,
            "idle_balance": self.idle_balance(),
            "idle_target": self.idle_target(),
            "reserve_bps": self.reserve_bps,
            "paused": self.paused,
            "adapters": adapters,
            "holders": self.holders(),
        }

    # ------------------------------------------------------------------ #
    # Holder operations                                                  #
    # ------------------------------------------------------------------ #
    @non_reentrant
    def deposit(self, holder: str, amount: int) -> int:
        """Take ``amount`` of the asset from ``holder`` and credit shares.

        Shares are priced on the valuation before the transfer lands.
        """
        holder = normalize_identity(holder, "holder")
        require_positive_amount(amount)
        if self.paused:
            raise PausedError("deposit")

        shares = self.assets_to_shares(amount)
        if shares == 0:
            raise ZeroAmountError(f"Deposit of {amount} is worth zero shares", "deposit")

        self.asset.transfer_from(self.address, holder, self.address, amount)
        self._balances[holder] = self._balances.get(holder, 0) + shares
        self.total_shares += shares

        logger.info("deposit holder=%s assets=%d shares=%d", holder, amount, shares)
        self.events.emit("deposit", holder, amount=amount, shares=shares)
        return shares

    @non_reentrant
    def withdraw(self, holder: str, shares: int) -> int:
        """Burn ``shares`` and pay out their asset value, reclaiming from adapters if needed."""
        holder = normalize_identity(holder, "holder")
        require_positive_amount(shares, "shares")
        available = self._balances.get(holder, 0)
        if shares > available:
            logger.warning("withdraw rejected: %s holds %d shares, requested %d", holder, available, shares)
            raise InsufficientSharesError(holder, shares, available)

        assets = self.shares_to_assets(shares)
        if assets == 0:
            raise ZeroAmountError(f"{shares} shares currently redeem for zero assets", "withdraw")

        idle = self.idle_balance()
        if idle < assets:
            self._pull_from_adapters(assets - idle, actor=holder)

        remaining = available - shares
        if remaining:
            self._balances[holder] = remaining
        else:
            del self._balances[holder]
        self.total_shares -= shares
        self.asset.transfer(self.address, holder, assets)

        logger.info("withdraw holder=%s shares=%d assets=%d", holder, shares, assets)
        self.events.emit("withdraw", holder, amount=assets, shares=shares)
        return assets

    # ------------------------------------------------------------------ #
    # Allocation (called through the controller)                         #
    # ------------------------------------------------------------------ #
    @non_reentrant
    def push_to_adapter(self, adapter_id: str, amount: int, actor: Optional[str] = None) -> int:
        """Move ``amount`` of idle surplus above the reserve target into an adapter."""
        record = self._active_record(adapter_id, "push")
        require_positive_amount(amount)

        idle = self.idle_balance()
        target = self.idle_target()
        if not (idle > target and idle - target >= amount):
            logger.warning("push to %s rejected: amount=%d idle=%d target=%d", adapter_id, amount, idle, target)
            raise ReserveViolationError(amount, idle, target)

        adapter = record.adapter
        self.asset.approve(self.address, adapter.address, amount)
        try:
            position = self._call_adapter(record, "push", adapter.deposit, self.asset.address, amount)
        finally:
            self.asset.approve(self.address, adapter.address, 0)

        logger.info("push adapter=%s amount=%d position=%d", adapter_id, amount, position)
        self.events.emit("push", actor or self.address, adapter_id, amount, position=position)
        return position

    @non_reentrant
    def pull_from_adapter(self, adapter_id: str, amount: int, actor: Optional[str] = None) -> int:
        """Reclaim up to ``amount`` from an adapter; returns the observed amount received."""
        record = self._active_record(adapter_id, "pull")
        require_positive_amount(amount)
        return self._pull(record, amount, actor or self.address)

    @non_reentrant
    def harvest(self, adapter_id: str, actor: Optional[str] = None) -> int:
        record = self._active_record(adapter_id, "harvest")
        gained = self._call_adapter(record, "harvest", record.adapter.harvest)
        logger.info("harvest adapter=%s gained=%d", adapter_id, gained)
        self.events.emit("harvest", actor or self.address, adapter_id, gained)
        return gained

    def _call_adapter(self, record: AdapterRecord, operation: str, call, *args):
        """Invoke an adapter method, mapping foreign failures onto the pool error taxonomy."""
        try:
            return call(*args)
        except PoolError:
            raise
        except Exception as exc:
            error = classify_error(str(exc))
            if error.operation is None:
                error.operation = operation
            logger.warning("%s on adapter %s failed: %s (%s)", operation, record.adapter_id, exc, type(error).__name__)
            raise error from exc

    def _pull(self, record: AdapterRecord, amount: int, actor: str) -> int:
        before = self.idle_balance()
        self._call_adapter(record, "pull", record.adapter.withdraw, self.asset.address, amount, self.address)
        received = self.idle_balance() - before
        if received <= 0:
            logger.warning("pull from %s returned nothing (requested %d)", record.adapter_id, amount)
            raise NoFundsReceivedError(record.adapter_id, amount)
        if self.strict_partial_fills and received < amount:
            logger.warning("pull from %s partially filled: %d of %d", record.adapter_id, received, amount)
            raise PartialFillError(record.adapter_id, amount, received)

        logger.info("pull adapter=%s requested=%d received=%d", record.adapter_id, amount, received)
        self.events.emit("pull", actor, record.adapter_id, received, requested=amount)
        return received

    def _pull_from_adapters(self, shortfall: int, actor: Optional[str] = None) -> int:
        """Liquidity waterfall: reclaim ``shortfall`` from active adapters in registration order.

        Amounts already pulled stay idle even when the waterfall fails.
        Ordering is by registration only; value and risk are not considered.
        """
        actor = actor or self.address
        remaining = shortfall
        pulled = 0
        for record in self._adapters:
            if remaining == 0:
                break
            if not record.active:
                continue
            value = record.adapter.total_assets()
            if value == 0:
                logger.debug("waterfall skips %s (no value)", record.adapter_id)
                continue
            to_pull = min(remaining, value)
            received = self._pull(record, to_pull, actor)
            pulled += received
            remaining -= min(received, remaining)
            logger.debug("waterfall %s: pulled %d, remaining %d", record.adapter_id, received, remaining)

        if remaining > 0:
            logger.warning("waterfall exhausted: %d of %d still missing", remaining, shortfall)
            raise InsufficientLiquidityError(shortfall, remaining)
        return pulled

    # ------------------------------------------------------------------ #
    # Configuration (called through the controller)                      #
    # ------------------------------------------------------------------ #
    @non_reentrant
    def register_adapter(self, adapter: Adapter, actor: Optional[str] = None) -> AdapterRecord:
        adapter_id = normalize_identity(adapter.adapter_id, "adapter id")
        if adapter_id in self._by_id:
            raise ValidationError(f"Adapter already registered: {adapter_id}", "register_adapter")
        if adapter.asset.address != self.asset.address:
            raise AssetMismatchError(self.asset.address, adapter.asset.address)
        if adapter.owner != self.address:
            raise ValidationError(
                f"Adapter {adapter_id} is owned by {adapter.owner}, not {self.address}",
                "register_adapter",
            )

        record = AdapterRecord(adapter_id, adapter, position=len(self._adapters))
        self._adapters.append(record)
        self._by_id[adapter_id] = record
        logger.info("registered adapter %s (%s) at position %d", adapter_id, adapter.adapter_type, record.position)
        self.events.emit("adapter_registered", actor or self.address, adapter_id, type=adapter.adapter_type)
        return record

    @non_reentrant
    def set_active(self, adapter_id: str, active: bool, actor: Optional[str] = None) -> None:
        record = self._record(adapter_id, "set_active")
        record.active = bool(active)
        logger.info("adapter %s %s", adapter_id, "activated" if record.active else "deactivated")
        self.events.emit("adapter_status", actor or self.address, adapter_id, active=record.active)

    @non_reentrant
    def set_reserve_target(self, bps: int, actor: Optional[str] = None) -> None:
        previous = self.reserve_bps
        self.reserve_bps = validate_reserve_bps(bps)
        logger.info("reserve target %d -> %d bps", previous, self.reserve_bps)
        self.events.emit("reserve_target", actor or self.address, amount=self.reserve_bps, previous=previous)

    def _record(self, adapter_id: str, operation: str) -> AdapterRecord:
        record = self._by_id.get(adapter_id)
        if record is None:
            raise UnknownAdapterError(adapter_id, operation)
        return record

    def _active_record(self, adapter_id: str, operation: str) -> AdapterRecord:
        record = self._record(adapter_id, operation)
        if not record.active:
            raise InactiveAdapterError(adapter_id, operation)
        return record
