#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Allocation reports built from a ledger snapshot."""

from __future__ import annotations

from typing import Dict, List

import pandas as pd

from .ledger import VaultLedger
from .safe_math import format_amount

ALLOCATION_COLUMNS = ("adapter_id", "type", "active", "value", "weight")


def allocation_frame(ledger: VaultLedger) -> pd.DataFrame:
    """One row per registered adapter plus an ``idle`` row; weights sum to 1 over active capital."""
    snapshot = ledger.snapshot()
    total = int(snapshot["total_assets"])
    rows: List[Dict[str, object]] = [
        {
            "adapter_id": "idle",
            "type": "idle",
            "active": True,
            "value": int(snapshot["idle_balance"]),
        }
    ]
    for entry in snapshot["adapters"]:
        rows.append(dict(entry))

    frame = pd.DataFrame(rows, columns=list(ALLOCATION_COLUMNS[:-1]))
    frame["value"] = frame["value"].astype("object")
    if total > 0:
        frame["weight"] = [
            float(value) / total if active else 0.0
            for value, active in zip(frame["value"], frame["active"])
        ]
    else:
        frame["weight"] = 0.0
    return frame


def format_report(ledger: VaultLedger, decimals: int = 18) -> str:
    snapshot = ledger.snapshot()
    frame = allocation_frame(ledger)
    lines = [
        f"Pool {snapshot['address']} ({'paused' if snapshot['paused'] else 'live'})",
        f"  total assets : {format_amount(int(snapshot['total_assets']), decimals)}",
        f"  total shares : {format_amount(int(snapshot['total_shares']), decimals)}",
        f"  idle / target: {format_amount(int(snapshot['idle_balance']), decimals)}"
        f" / {format_amount(int(snapshot['idle_target']), decimals)}"
        f" ({snapshot['reserve_bps']} bps)",
        "  allocation:",
    ]
    for row in frame.itertuples(index=False):
        flag = "" if row.active else " (inactive)"
        lines.append(
            f"    {row.adapter_id:<20} {format_amount(int(row.value), decimals):>24}  {row.weight:7.2%}{flag}"
        )
    return "\n".join(lines)
