#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Abstract yield-destination adapter."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Callable, Dict

from ..errors import AssetMismatchError
from ..token import AssetToken
from ..validation import require_positive_amount


class Adapter(ABC):
    """Capability set the ledger dispatches through: deposit, withdraw, value, harvest.

    ``owner`` is the account (the ledger) that approves the adapter and whose
    capital it manages. ``address`` is the adapter's own custody account on
    the asset token.
    """

    adapter_type = "base"

    def __init__(self, adapter_id: str, asset: AssetToken, owner: str):
        self.adapter_id = adapter_id
        self.asset = asset
        self.owner = owner
        self.address = f"adapter:{adapter_id}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.adapter_id})"

    @classmethod
    @abstractmethod
    def from_config(
        cls,
        adapter_id: str,
        entry: Dict[str, object],
        asset: AssetToken,
        owner: str,
        w3=None,
        clock: Callable[[], float] = time.time,
    ) -> "Adapter":
        """Build an adapter from one resolved ``adapters`` config entry."""

    def _check_asset(self, asset: str) -> None:
        if asset != self.asset.address:
            raise AssetMismatchError(self.asset.address, asset)

    def _pull_from_owner(self, asset: str, amount: int) -> int:
        """Validate a deposit request and take custody of ``amount`` from the owner."""
        self._check_asset(asset)
        require_positive_amount(amount)
        self.asset.transfer_from(self.address, self.owner, self.address, amount)
        return amount

    @abstractmethod
    def deposit(self, asset: str, amount: int) -> int:
        """Take ``amount`` from the owner, route it, and return the position size received."""

    @abstractmethod
    def withdraw(self, asset: str, amount: int, recipient: str) -> int:
        """Redeem up to ``amount`` (clamped to holdings) and send proceeds to ``recipient``."""

    @abstractmethod
    def total_assets(self) -> int:
        """Position value in asset units from the stored conversion rate. Read-only."""

    def harvest(self) -> int:
        """Claim auxiliary rewards; destinations without any return 0."""
        return 0
