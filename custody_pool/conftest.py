"""Shared fixtures for the custody pool tests."""

from __future__ import annotations

import pytest

from custody_pool.adapters.lending import LendingAdapter, LendingMarket
from custody_pool.adapters.share_vault import ShareVault, ShareVaultAdapter
from custody_pool.controller import AllocationController
from custody_pool.events import EventLog
from custody_pool.ledger import VaultLedger
from custody_pool.token import InMemoryToken

POOL = "pool"
OWNER = "owner"
KEEPER = "keeper"


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def asset():
    return InMemoryToken(address="usdc", symbol="USDC", decimals=6)


@pytest.fixture
def ledger(asset, clock):
    return VaultLedger(asset, address=POOL, events=EventLog(clock=clock))


@pytest.fixture
def controller(ledger):
    return AllocationController(ledger, owner=OWNER, operator=KEEPER)


@pytest.fixture
def fund(asset, ledger):
    """Mint ``amount`` to ``holder`` and approve the ledger, returning a deposit helper."""

    def _fund(holder: str, amount: int, deposit: bool = True) -> int:
        asset.mint(holder, amount)
        asset.approve(holder, ledger.address, amount)
        if deposit:
            return ledger.deposit(holder, amount)
        return 0

    return _fund


def make_vault_adapter(adapter_id: str, asset: InMemoryToken, owner: str = POOL) -> ShareVaultAdapter:
    return ShareVaultAdapter(adapter_id, asset, owner, ShareVault(asset, address=f"vault:{adapter_id}"))


def make_lending_adapter(
    adapter_id: str,
    asset: InMemoryToken,
    clock,
    rate_per_second: int = 0,
    owner: str = POOL,
) -> LendingAdapter:
    market = LendingMarket(asset, rate_per_second=rate_per_second, clock=clock, address=f"market:{adapter_id}")
    return LendingAdapter(adapter_id, asset, owner, market)
