#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Adapter supplying the pool asset to an Aave-style lending market."""

from __future__ import annotations

import time
from typing import Callable, Dict, Optional, Tuple

from ..errors import PoolError, TransferError
from ..logging_config import get_logger
from ..rates import WAD, annual_rates_bps, growth_factor
from ..safe_math import mul_div, mul_div_up
from ..token import InMemoryToken
from ..validation import require_positive_amount
from .aave_v3_rates import AaveV3RateSource
from .base import Adapter

logger = get_logger(__name__)


class LendingMarket:
    """In-memory lending reserve with a WAD liquidity index.

    Suppliers hold scaled balances; their value is ``scaled * index / WAD``.
    ``accrue()`` compounds the index per second and mints the interest into
    the market so that redemptions can be paid in full.
    """

    def __init__(
        self,
        asset: InMemoryToken,
        rate_per_second: int = 0,
        clock: Callable[[], float] = time.time,
        rate_source: Optional[Callable[[], int]] = None,
        address: str = "market",
    ):
        self.asset = asset
        self.address = address
        self.rate_per_second = int(rate_per_second)
        self.rate_source = rate_source
        self.clock = clock
        self.liquidity_index = WAD
        self.last_update = int(clock())
        self.total_scaled = 0
        self._scaled: Dict[str, int] = {}

    @property
    def stored_index(self) -> int:
        """Index as of ``last_update``; no accrual is triggered."""
        return self.liquidity_index

    def scaled_balance_of(self, account: str) -> int:
        return self._scaled.get(account, 0)

    def current_rate(self) -> int:
        if self.rate_source is not None:
            self.rate_per_second = int(self.rate_source())
        return self.rate_per_second

    def accrue(self) -> int:
        """Bring the index up to ``clock()`` and return the interest minted."""
        now = int(self.clock())
        elapsed = now - self.last_update
        if elapsed <= 0:
            return 0
        old_value = mul_div(self.total_scaled, self.liquidity_index, WAD)
        factor = growth_factor(self.current_rate(), elapsed)
        self.liquidity_index = mul_div(self.liquidity_index, factor, WAD)
        self.last_update = now
        interest = mul_div(self.total_scaled, self.liquidity_index, WAD) - old_value
        if interest > 0:
            self.asset.mint(self.address, interest)
        logger.debug("market %s accrued %d over %ds (index=%d)", self.address, interest, elapsed, self.liquidity_index)
        return interest

    def supply(self, supplier: str, amount: int) -> int:
        require_positive_amount(amount)
        self.accrue()
        scaled = mul_div(amount, WAD, self.liquidity_index)
        if scaled == 0:
            raise TransferError(f"Supply of {amount} mints no scaled balance")
        self.asset.transfer_from(self.address, supplier, self.address, amount)
        self._scaled[supplier] = self.scaled_balance_of(supplier) + scaled
        self.total_scaled += scaled
        return scaled

    def redeem(self, supplier: str, scaled: int, recipient: str) -> int:
        held = self.scaled_balance_of(supplier)
        if scaled > held:
            raise TransferError(f"{supplier} holds {held} scaled units, cannot redeem {scaled}")
        self.accrue()
        amount = mul_div(scaled, self.liquidity_index, WAD)
        remaining = held - scaled
        if remaining:
            self._scaled[supplier] = remaining
        else:
            self._scaled.pop(supplier, None)
        self.total_scaled -= scaled
        self.asset.transfer(self.address, recipient, amount)
        return amount


class LendingAdapter(Adapter):
    """Supply/withdraw the pool asset on a :class:`LendingMarket`."""

    adapter_type = "lending"

    def __init__(self, adapter_id: str, asset: InMemoryToken, owner: str, market: LendingMarket):
        super().__init__(adapter_id, asset, owner)
        if market.asset is not asset:
            raise ValueError("Lending market manages a different asset")
        self.market = market

    @classmethod
    def from_config(cls, adapter_id, entry, asset, owner, w3=None, clock=time.time) -> "LendingAdapter":
        rate_source = None
        if entry.get("data_provider"):
            if w3 is None:
                raise ValueError("Aave-backed lending adapter requires a web3 connection")
            rate_source = AaveV3RateSource(w3, entry)
        raw_rate = entry.get("rate_per_second")
        market = LendingMarket(
            asset,
            rate_per_second=int(str(raw_rate)) if raw_rate not in (None, "") else 0,
            clock=clock,
            rate_source=rate_source,
            address=str(entry.get("market") or f"market:{adapter_id}"),
        )
        return cls(adapter_id, asset, owner, market)

    def scaled_balance(self) -> int:
        return self.market.scaled_balance_of(self.address)

    def deposit(self, asset: str, amount: int) -> int:
        self._pull_from_owner(asset, amount)
        self.asset.approve(self.address, self.market.address, amount)
        try:
            scaled = self.market.supply(self.address, amount)
        except PoolError:
            self.asset.transfer(self.address, self.owner, amount)
            raise
        finally:
            self.asset.approve(self.address, self.market.address, 0)
        logger.info("lending %s supplied %d (scaled=%d)", self.adapter_id, amount, scaled)
        return scaled

    def withdraw(self, asset: str, amount: int, recipient: str) -> int:
        self._check_asset(asset)
        if amount <= 0:
            return 0
        # Rounded up against the stored index; redeem() accrues first, so proceeds cover amount.
        scaled = mul_div_up(amount, WAD, self.market.stored_index)
        scaled = min(scaled, self.scaled_balance())
        if scaled == 0:
            logger.warning("lending %s has nothing to redeem for %d", self.adapter_id, amount)
            return 0
        received = self.market.redeem(self.address, scaled, recipient)
        logger.info("lending %s redeemed %d scaled for %d", self.adapter_id, scaled, received)
        return received

    def total_assets(self) -> int:
        return mul_div(self.scaled_balance(), self.market.stored_index, WAD)

    def annual_rates(self) -> Tuple[int, int]:
        """``(simple_bps, compounded_bps)`` for the market's live per-second rate."""
        return annual_rates_bps(self.market.current_rate())
