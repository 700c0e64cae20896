#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Deterministic pool simulation.

Two holders deposit, the operator routes the surplus above the reserve into
a lending market and a share vault, yield accrues for ``--days`` days, and a
large withdrawal drains the adapters through the liquidity waterfall.

    python -m custody_pool.demo --days 30
    python -m custody_pool.demo --json
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .config import PoolConfig, load_config
from .controller import AllocationController
from .events import EventLog
from .logging_config import set_log_level
from .report import allocation_frame, format_report
from .safe_math import to_base_units
from .token import InMemoryToken

DAY = 86_400

DEFAULT_CONFIG: Dict[str, object] = {
    "reserve_bps": 1_000,
    "adapters": {
        "lending-main": {"type": "lending", "rate_per_second": "1500000000"},
        "vault-b": {"type": "share_vault"},
    },
}


class SimClock:
    """Manually advanced clock shared by markets and the event log."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


def run_simulation(config: PoolConfig, days: int = 30) -> Dict[str, object]:
    clock = SimClock()
    asset = InMemoryToken(symbol="USDC", decimals=18)
    controller = AllocationController.from_config(
        config, asset, owner="owner", operator="keeper", events=EventLog(clock=clock), clock=clock
    )
    ledger = controller.ledger

    deposits = {"alice": to_base_units("1000"), "bob": to_base_units("500")}
    for holder, amount in deposits.items():
        asset.mint(holder, amount)
        asset.approve(holder, ledger.address, amount)
        ledger.deposit(holder, amount)

    records = [record for record in ledger.adapter_records() if record.active]
    for index, record in enumerate(records):
        surplus = ledger.idle_balance() - ledger.idle_target()
        share = surplus // (len(records) - index)
        if share > 0:
            controller.push("keeper", record.adapter_id, share)

    clock.advance(days * DAY)
    for record in records:
        market = getattr(record.adapter, "market", None)
        if market is not None:
            market.accrue()
        vault = getattr(record.adapter, "vault", None)
        if vault is not None:
            # ~0.5% per 30 days
            vault.report_gain(record.adapter.total_assets() * days // 6_000)

    before = format_report(ledger)
    alice_shares = ledger.share_balance_of("alice")
    paid = ledger.withdraw("alice", alice_shares)

    rates: List[Dict[str, object]] = []
    for record in records:
        market = getattr(record.adapter, "market", None)
        if market is not None:
            simple, compounded = record.adapter.annual_rates()
            rates.append({"adapter_id": record.adapter_id, "simple_bps": simple, "compounded_bps": compounded})

    return {
        "deposits": deposits,
        "alice_paid": paid,
        "rates": rates,
        "report_before_withdraw": before,
        "report_after_withdraw": format_report(ledger),
        "allocation": allocation_frame(ledger).to_dict(orient="records"),
        "events": len(ledger.events),
        "snapshot": ledger.snapshot(),
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Simulate the custody pool with in-memory adapters")
    parser.add_argument("--config", type=Path, default=None, help="JSON pool configuration")
    parser.add_argument("--days", type=int, default=30, help="Days of yield accrual to simulate")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL for this run")
    args = parser.parse_args(argv)
    if args.log_level:
        set_log_level(args.log_level)

    config = load_config(args.config) if args.config else PoolConfig.from_dict(DEFAULT_CONFIG)
    result = run_simulation(config, days=max(0, args.days))

    if args.json:
        payload = {k: v for k, v in result.items() if not k.startswith("report_")}
        print(json.dumps(payload, indent=2, default=str))
    else:
        print(result["report_before_withdraw"])
        print()
        print(f"alice withdrew {result['alice_paid']}")
        for entry in result["rates"]:
            print(f"{entry['adapter_id']}: simple {entry['simple_bps']} bps, compounded {entry['compounded_bps']} bps")
        print()
        print(result["report_after_withdraw"])
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
