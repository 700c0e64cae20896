#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Liquidity waterfall and pull-path tests."""

import pytest

from custody_pool.adapters.share_vault import ShareVault, ShareVaultAdapter
from custody_pool.conftest import POOL, make_vault_adapter
from custody_pool.errors import (
    InactiveAdapterError,
    InsufficientLiquidityError,
    NoFundsReceivedError,
    PartialFillError,
    PausedError,
    PoolError,
    UnknownAdapterError,
)


class StuckAdapter(ShareVaultAdapter):
    """Reports value but never pays anything out."""

    def withdraw(self, asset, amount, recipient):
        return 0


class HalfFillAdapter(ShareVaultAdapter):
    """Pays out only half of every request."""

    def withdraw(self, asset, amount, recipient):
        return super().withdraw(asset, amount // 2, recipient)


class RevertingAdapter(ShareVaultAdapter):
    """Withdrawals fail with a raw revert reason from the destination."""

    reason = "Pausable: paused"

    def withdraw(self, asset, amount, recipient):
        raise RuntimeError(self.reason)


def _vault(cls, adapter_id, asset):
    return cls(adapter_id, asset, POOL, ShareVault(asset, address=f"vault:{adapter_id}"))


@pytest.fixture
def three_adapters(ledger, asset, fund):
    """Adapters holding [100, 0, 50] with nothing idle."""
    adapters = [make_vault_adapter(name, asset) for name in ("a1", "a2", "a3")]
    for adapter in adapters:
        ledger.register_adapter(adapter)
    fund("alice", 150)
    ledger.push_to_adapter("a1", 100)
    ledger.push_to_adapter("a3", 50)
    assert ledger.idle_balance() == 0
    return adapters


def test_waterfall_walks_registration_order(ledger, three_adapters):
    a1, a2, a3 = three_adapters

    pulled = ledger._pull_from_adapters(120)

    assert pulled == 120
    assert a1.total_assets() == 0
    assert a2.total_assets() == 0
    assert a3.total_assets() == 30
    assert ledger.idle_balance() == 120

    pulls = ledger.events.of_kind("pull")
    assert [(e.adapter_id, e.amount) for e in pulls] == [("a1", 100), ("a3", 20)]


def test_waterfall_shortfall_keeps_pulled_funds_idle(ledger, three_adapters):
    idle_before = ledger.idle_balance()

    with pytest.raises(InsufficientLiquidityError) as excinfo:
        ledger._pull_from_adapters(200)

    assert excinfo.value.remaining == 50
    assert ledger.idle_balance() - idle_before == 150
    assert ledger.total_assets() == 150, "valuation is unchanged by the failed waterfall"


def test_withdraw_drains_adapters(ledger, asset, three_adapters):
    paid = ledger.withdraw("alice", 150)

    assert paid == 150
    assert asset.balance_of("alice") == 150
    assert ledger.total_assets() == 0
    assert ledger.total_shares == 0


def test_partial_withdraw_only_pulls_shortfall(ledger, asset, fund, three_adapters):
    a1, _, a3 = three_adapters
    fund("bob", 30)

    # 150 + 30 assets over 180 shares; 60 shares redeem for 60
    assert ledger.withdraw("alice", 60) == 60
    assert a1.total_assets() == 70
    assert a3.total_assets() == 50
    assert ledger.idle_balance() == 0


def test_inactive_adapter_is_skipped(ledger, three_adapters):
    _, _, a3 = three_adapters
    ledger.set_active("a1", False)

    assert ledger._pull_from_adapters(40) == 40
    assert a3.total_assets() == 10
    assert three_adapters[0].total_assets() == 100


def test_stuck_adapter_aborts_withdraw_without_burning(ledger, asset, fund):
    stuck = _vault(StuckAdapter, "stuck", asset)
    ledger.register_adapter(stuck)
    fund("alice", 100)
    ledger.push_to_adapter("stuck", 100)

    with pytest.raises(NoFundsReceivedError) as excinfo:
        ledger.withdraw("alice", 100)

    assert excinfo.value.adapter_id == "stuck"
    assert ledger.share_balance_of("alice") == 100
    assert ledger.total_shares == 100
    assert asset.balance_of("alice") == 0
    assert not ledger._guard.busy


def test_half_fill_continues_down_the_waterfall(ledger, asset, fund):
    ledger.register_adapter(_vault(HalfFillAdapter, "half", asset))
    ledger.register_adapter(make_vault_adapter("full", asset))
    fund("alice", 150)
    ledger.push_to_adapter("half", 100)
    ledger.push_to_adapter("full", 50)

    with pytest.raises(InsufficientLiquidityError) as excinfo:
        ledger._pull_from_adapters(120)

    # half pays 50 of 100, full pays its 50, 20 still missing
    assert excinfo.value.remaining == 20
    assert ledger.idle_balance() == 100


def test_failed_withdraw_leaves_shares_intact(ledger, asset, fund):
    ledger.register_adapter(_vault(HalfFillAdapter, "half", asset))
    fund("alice", 100)
    ledger.push_to_adapter("half", 100)

    with pytest.raises(InsufficientLiquidityError):
        ledger.withdraw("alice", 100)

    assert ledger.share_balance_of("alice") == 100
    assert ledger.idle_balance() == 50
    assert ledger.total_assets() == 100


def test_direct_pull_reports_observed_amount(ledger, asset, fund):
    adapter = make_vault_adapter("vault-a", asset)
    ledger.register_adapter(adapter)
    fund("alice", 100)
    ledger.push_to_adapter("vault-a", 60)

    # clamped to what the adapter holds
    assert ledger.pull_from_adapter("vault-a", 500, actor="keeper") == 60
    assert ledger.idle_balance() == 100
    event = ledger.events.last("pull")
    assert event.actor == "keeper"
    assert event.details["requested"] == 500


def test_strict_mode_rejects_partial_fill(ledger, asset, fund):
    ledger.strict_partial_fills = True
    ledger.register_adapter(make_vault_adapter("vault-a", asset))
    fund("alice", 100)
    ledger.push_to_adapter("vault-a", 60)

    with pytest.raises(PartialFillError) as excinfo:
        ledger.pull_from_adapter("vault-a", 80)
    assert (excinfo.value.requested, excinfo.value.received) == (80, 60)


def test_pull_with_nothing_held_raises(ledger, asset):
    ledger.register_adapter(make_vault_adapter("vault-a", asset))
    with pytest.raises(NoFundsReceivedError):
        ledger.pull_from_adapter("vault-a", 10)


def test_pull_from_unknown_or_inactive_adapter(ledger, asset):
    ledger.register_adapter(make_vault_adapter("vault-a", asset))
    ledger.set_active("vault-a", False)

    with pytest.raises(UnknownAdapterError):
        ledger.pull_from_adapter("missing", 10)
    with pytest.raises(InactiveAdapterError):
        ledger.pull_from_adapter("vault-a", 10)


@pytest.mark.parametrize(
    "reason,expected",
    [
        ("Pausable: paused", PausedError),
        ("execution reverted", PoolError),
    ],
)
def test_raw_adapter_failure_is_classified(ledger, asset, fund, reason, expected):
    reverting = _vault(RevertingAdapter, "reverting", asset)
    reverting.reason = reason
    ledger.register_adapter(reverting)
    fund("alice", 100)
    ledger.push_to_adapter("reverting", 100)

    with pytest.raises(expected) as excinfo:
        ledger.pull_from_adapter("reverting", 40)
    assert type(excinfo.value) is expected
    assert excinfo.value.operation == "pull"
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert ledger.idle_balance() == 0

    with pytest.raises(expected):
        ledger.withdraw("alice", 100)
    assert ledger.share_balance_of("alice") == 100
    assert not ledger._guard.busy
