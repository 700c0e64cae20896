#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Fungible asset collaborator consumed by the ledger and the adapters.

The interface mirrors ERC-20 (``balanceOf`` / ``transfer`` / ``transferFrom``
/ ``approve``). There is no implicit ``msg.sender``, so the acting account is
always the first argument.
"""

from __future__ import annotations

from typing import Dict, Protocol, Tuple, runtime_checkable

from web3 import Web3

from .errors import TransferError, ValidationError
from .logging_config import get_logger

logger = get_logger(__name__)


def _account_key(account: str) -> str:
    """Checksum hex addresses so every spelling of an account shares one balance."""
    if isinstance(account, str) and account.lower().startswith("0x") and Web3.is_address(account):
        return Web3.to_checksum_address(account)
    return account


@runtime_checkable
class AssetToken(Protocol):
    address: str
    decimals: int

    def balance_of(self, account: str) -> int:
        ...

    def allowance(self, owner: str, spender: str) -> int:
        ...

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        ...

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        ...


class InMemoryToken:
    """Dictionary-backed ERC-20 used for simulation and tests."""

    def __init__(self, address: str = "asset", symbol: str = "ASSET", decimals: int = 18):
        self.address = address
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = 0
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}

    def __repr__(self) -> str:
        return f"InMemoryToken({self.symbol}@{self.address}, supply={self.total_supply})"

    def balance_of(self, account: str) -> int:
        return self._balances.get(_account_key(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((_account_key(owner), _account_key(spender)), 0)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        if amount < 0:
            raise ValidationError(f"Negative allowance: {amount}")
        owner, spender = _account_key(owner), _account_key(spender)
        if amount == 0:
            self._allowances.pop((owner, spender), None)
        else:
            self._allowances[(owner, spender)] = amount
        return True

    def mint(self, to: str, amount: int) -> None:
        if amount < 0:
            raise ValidationError(f"Negative mint: {amount}")
        to = _account_key(to)
        self._balances[to] = self.balance_of(to) + amount
        self.total_supply += amount

    def burn(self, account: str, amount: int) -> None:
        self._debit(account, amount)
        self.total_supply -= amount

    def _debit(self, account: str, amount: int) -> None:
        account = _account_key(account)
        balance = self.balance_of(account)
        if amount > balance:
            raise TransferError(
                f"{self.symbol}: transfer amount exceeds balance ({account} has {balance}, needs {amount})",
                reason="exceeds balance",
            )
        remaining = balance - amount
        if remaining:
            self._balances[account] = remaining
        else:
            self._balances.pop(account, None)

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        if amount < 0:
            raise ValidationError(f"Negative transfer: {amount}")
        self._debit(sender, amount)
        to = _account_key(to)
        self._balances[to] = self.balance_of(to) + amount
        logger.debug("%s transfer %s -> %s: %d", self.symbol, sender, to, amount)
        return True

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        if amount < 0:
            raise ValidationError(f"Negative transfer: {amount}")
        allowed = self.allowance(owner, spender)
        if amount > allowed:
            raise TransferError(
                f"{self.symbol}: insufficient allowance ({spender} may move {allowed} of {owner}, needs {amount})",
                reason="insufficient allowance",
            )
        self._debit(owner, amount)
        to = _account_key(to)
        self._balances[to] = self.balance_of(to) + amount
        self.approve(owner, spender, allowed - amount)
        logger.debug("%s transferFrom %s -> %s by %s: %d", self.symbol, owner, to, spender, amount)
        return True
