#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""ERC-4626 style adapter: deposit assets for vault shares, redeem shares for assets."""

from __future__ import annotations

from typing import Dict

from ..errors import PoolError, TransferError
from ..logging_config import get_logger
from ..safe_math import mul_div, mul_div_up
from ..token import InMemoryToken
from ..validation import require_positive_amount
from .base import Adapter

logger = get_logger(__name__)


class ShareVault:
    """In-memory tokenised vault with floor-rounded share conversions."""

    def __init__(self, asset: InMemoryToken, address: str = "vault"):
        self.asset = asset
        self.address = address
        self.total_shares = 0
        self._shares: Dict[str, int] = {}

    def total_assets(self) -> int:
        return self.asset.balance_of(self.address)

    def shares_of(self, account: str) -> int:
        return self._shares.get(account, 0)

    def convert_to_shares(self, assets: int) -> int:
        total = self.total_assets()
        if self.total_shares == 0 or total == 0:
            return assets
        return mul_div(assets, self.total_shares, total)

    def preview_withdraw(self, assets: int) -> int:
        """Shares to burn for ``assets``, rounded up so the redemption covers them."""
        total = self.total_assets()
        if self.total_shares == 0 or total == 0:
            return assets
        return mul_div_up(assets, self.total_shares, total)

    def convert_to_assets(self, shares: int) -> int:
        if self.total_shares == 0:
            return 0
        return mul_div(shares, self.total_assets(), self.total_shares)

    def deposit(self, assets: int, receiver: str) -> int:
        require_positive_amount(assets)
        shares = self.convert_to_shares(assets)
        if shares == 0:
            raise TransferError(f"Deposit of {assets} mints no vault shares")
        self.asset.transfer_from(self.address, receiver, self.address, assets)
        self._shares[receiver] = self.shares_of(receiver) + shares
        self.total_shares += shares
        return shares

    def redeem(self, shares: int, receiver: str, owner: str) -> int:
        held = self.shares_of(owner)
        if shares > held:
            raise TransferError(f"{owner} holds {held} vault shares, cannot redeem {shares}")
        assets = self.convert_to_assets(shares)
        remaining = held - shares
        if remaining:
            self._shares[owner] = remaining
        else:
            self._shares.pop(owner, None)
        self.total_shares -= shares
        self.asset.transfer(self.address, receiver, assets)
        return assets

    def report_gain(self, amount: int) -> None:
        """Simulate yield by minting ``amount`` into the vault."""
        self.asset.mint(self.address, amount)

    def report_loss(self, amount: int) -> None:
        """Simulate a loss by burning ``amount`` from the vault."""
        self.asset.burn(self.address, amount)


class ShareVaultAdapter(Adapter):
    """Route capital into a :class:`ShareVault`."""

    adapter_type = "share_vault"

    def __init__(self, adapter_id: str, asset: InMemoryToken, owner: str, vault: ShareVault):
        super().__init__(adapter_id, asset, owner)
        if vault.asset is not asset:
            raise ValueError("Share vault manages a different asset")
        self.vault = vault

    @classmethod
    def from_config(cls, adapter_id, entry, asset, owner, w3=None, clock=None) -> "ShareVaultAdapter":
        vault = ShareVault(asset, address=str(entry.get("vault") or f"vault:{adapter_id}"))
        return cls(adapter_id, asset, owner, vault)

    def deposit(self, asset: str, amount: int) -> int:
        self._pull_from_owner(asset, amount)
        self.asset.approve(self.address, self.vault.address, amount)
        try:
            shares = self.vault.deposit(amount, self.address)
        except PoolError:
            self.asset.transfer(self.address, self.owner, amount)
            raise
        finally:
            self.asset.approve(self.address, self.vault.address, 0)
        logger.info("vault %s deposited %d for %d shares", self.adapter_id, amount, shares)
        return shares

    def withdraw(self, asset: str, amount: int, recipient: str) -> int:
        self._check_asset(asset)
        if amount <= 0:
            return 0
        shares = min(self.vault.preview_withdraw(amount), self.vault.shares_of(self.address))
        if shares == 0:
            logger.warning("vault %s has nothing to redeem for %d", self.adapter_id, amount)
            return 0
        received = self.vault.redeem(shares, recipient, self.address)
        logger.info("vault %s redeemed %d shares for %d", self.adapter_id, shares, received)
        return received

    def total_assets(self) -> int:
        return self.vault.convert_to_assets(self.vault.shares_of(self.address))
