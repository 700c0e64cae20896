#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Share accounting tests for the vault ledger."""

import pytest
from web3 import Web3

from custody_pool.conftest import make_vault_adapter
from custody_pool.errors import (
    InsufficientSharesError,
    PausedError,
    TransferError,
    ValidationError,
    ZeroAmountError,
)


def test_bootstrap_deposit_is_one_to_one(ledger, fund):
    shares = fund("alice", 1_000)

    assert shares == 1_000
    assert ledger.total_shares == 1_000
    assert ledger.share_balance_of("alice") == 1_000
    assert ledger.total_assets() == 1_000
    assert ledger.idle_balance() == 1_000


def test_conversions_before_any_deposit(ledger):
    assert ledger.assets_to_shares(123) == 123
    assert ledger.shares_to_assets(123) == 0
    assert ledger.max_withdraw("nobody") == 0


def test_conservation_over_deposits_and_withdrawals(ledger, fund):
    fund("alice", 1_000)
    assert ledger.shares_conserved()
    fund("bob", 250)
    assert ledger.shares_conserved()
    ledger.withdraw("alice", 400)
    assert ledger.shares_conserved()
    fund("carol", 77)
    assert ledger.shares_conserved()
    ledger.withdraw("bob", 250)
    assert ledger.shares_conserved()

    assert sum(ledger.holders().values()) == ledger.total_shares
    assert "bob" not in ledger.holders(), "zeroed balances are removed"


def test_proportional_deposit_after_yield(ledger, asset, fund):
    adapter = make_vault_adapter("vault-a", asset)
    ledger.register_adapter(adapter)
    fund("yolanda", 1_000)
    ledger.push_to_adapter("vault-a", 1_000)
    adapter.vault.report_gain(100)

    valuation = ledger.total_assets()
    supply = ledger.total_shares
    assert (valuation, supply) == (1_100, 1_000)

    shares = fund("xavier", 500)
    assert shares == 500 * supply // valuation == 454
    assert ledger.total_assets() == valuation + 500


def test_round_trip_never_returns_more_than_deposited(ledger, asset, fund):
    adapter = make_vault_adapter("vault-a", asset)
    ledger.register_adapter(adapter)
    fund("yolanda", 1_000)
    ledger.push_to_adapter("vault-a", 1_000)
    adapter.vault.report_gain(100)

    shares = fund("xavier", 500)
    paid = ledger.withdraw("xavier", shares)

    assert paid <= 500
    assert paid == 499
    assert asset.balance_of("xavier") == 499
    assert ledger.share_balance_of("xavier") == 0


def test_plain_round_trip_is_exact(ledger, asset, fund):
    shares = fund("alice", 5_000)
    assert ledger.withdraw("alice", shares) == 5_000
    assert asset.balance_of("alice") == 5_000
    assert ledger.total_shares == 0
    assert ledger.total_assets() == 0


def test_deposit_rejects_zero_amount(ledger, fund):
    fund("alice", 10, deposit=False)
    with pytest.raises(ZeroAmountError):
        ledger.deposit("alice", 0)
    assert ledger.total_shares == 0


def test_deposit_rejects_non_integer_amount(ledger):
    with pytest.raises(ValidationError):
        ledger.deposit("alice", 1.5)


def test_deposit_without_allowance_fails_cleanly(ledger, asset):
    asset.mint("alice", 100)
    with pytest.raises(TransferError):
        ledger.deposit("alice", 100)
    assert ledger.total_shares == 0
    assert asset.balance_of("alice") == 100


def test_deposit_with_insufficient_balance_fails_cleanly(ledger, asset):
    asset.mint("alice", 50)
    asset.approve("alice", ledger.address, 100)
    with pytest.raises(TransferError):
        ledger.deposit("alice", 100)
    assert ledger.share_balance_of("alice") == 0


def test_deposit_worth_zero_shares_is_rejected(ledger, asset, fund):
    adapter = make_vault_adapter("vault-a", asset)
    ledger.register_adapter(adapter)
    fund("whale", 1)
    ledger.push_to_adapter("vault-a", 1)
    adapter.vault.report_gain(1_000)

    fund("minnow", 500, deposit=False)
    with pytest.raises(ZeroAmountError):
        ledger.deposit("minnow", 500)
    assert asset.balance_of("minnow") == 500


def test_withdraw_more_than_held_is_rejected(ledger, fund):
    fund("alice", 100)
    with pytest.raises(InsufficientSharesError) as excinfo:
        ledger.withdraw("alice", 101)
    assert excinfo.value.available == 100
    assert ledger.share_balance_of("alice") == 100


def test_withdraw_rejects_zero_shares(ledger, fund):
    fund("alice", 100)
    with pytest.raises(ZeroAmountError):
        ledger.withdraw("alice", 0)


def test_adapter_loss_lowers_share_price(ledger, asset, fund):
    adapter = make_vault_adapter("vault-a", asset)
    ledger.register_adapter(adapter)
    fund("alice", 1_000)
    ledger.push_to_adapter("vault-a", 600)
    adapter.vault.report_loss(300)

    assert ledger.total_assets() == 700
    assert ledger.max_withdraw("alice") == 700
    assert ledger.withdraw("alice", 1_000) == 700


def test_inactive_adapter_is_excluded_from_valuation(ledger, asset, fund):
    adapter = make_vault_adapter("vault-a", asset)
    ledger.register_adapter(adapter)
    fund("alice", 1_000)
    ledger.push_to_adapter("vault-a", 400)

    ledger.set_active("vault-a", False)
    assert ledger.total_assets() == 600
    assert not ledger.is_active_adapter("vault-a")
    ledger.set_active("vault-a", True)
    assert ledger.total_assets() == 1_000


def test_paused_ledger_refuses_deposits_but_allows_withdrawals(ledger, fund):
    fund("alice", 100)
    fund("bob", 100, deposit=False)
    ledger.paused = True

    with pytest.raises(PausedError):
        ledger.deposit("bob", 100)
    assert ledger.withdraw("alice", 100) == 100


def test_lowercase_hex_holder_round_trip(ledger, asset):
    lower = "0x" + "ab" * 20
    checksummed = Web3.to_checksum_address(lower)
    asset.mint(lower, 10)
    asset.approve(lower, ledger.address, 10)

    assert ledger.deposit(lower, 10) == 10
    assert ledger.share_balance_of(lower) == 10
    assert ledger.holders() == {checksummed: 10}
    assert asset.balance_of(lower) == 0

    assert ledger.withdraw(lower.upper().replace("0X", "0x"), 10) == 10
    assert asset.balance_of(lower) == 10
    assert asset.balance_of(checksummed) == 10
    assert ledger.holders() == {}


def test_malformed_hex_holder_rejected(ledger):
    with pytest.raises(ValidationError):
        ledger.deposit("0x1234", 10)


def test_snapshot_exposes_read_surface(ledger, asset, fund):
    ledger.register_adapter(make_vault_adapter("vault-a", asset))
    fund("alice", 1_000)
    ledger.set_reserve_target(1_000)

    snapshot = ledger.snapshot()
    assert snapshot["total_assets"] == 1_000
    assert snapshot["total_shares"] == 1_000
    assert snapshot["idle_target"] == 100
    assert snapshot["holders"] == {"alice": 1_000}
    assert snapshot["adapters"] == [
        {"adapter_id": "vault-a", "type": "share_vault", "active": True, "value": 0}
    ]
    assert ledger.adapter_count() == 1
