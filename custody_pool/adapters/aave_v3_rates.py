#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Read-only Aave v3 supply rate source for :class:`LendingMarket`."""

from __future__ import annotations

from typing import Dict

from web3 import Web3

from ..logging_config import get_logger
from ..rates import ray_annual_to_wad_per_second

logger = get_logger(__name__)

_UINT = "uint256"

AAVE_DATA_PROVIDER_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "asset", "type": "address"},
        ],
        "name": "getReserveData",
        "outputs": [
            {"internalType": _UINT, "name": "unbacked", "type": _UINT},
            {"internalType": _UINT, "name": "accruedToTreasuryScaled", "type": _UINT},
            {"internalType": _UINT, "name": "totalAToken", "type": _UINT},
            {"internalType": _UINT, "name": "totalStableDebt", "type": _UINT},
            {"internalType": _UINT, "name": "totalVariableDebt", "type": _UINT},
            {"internalType": _UINT, "name": "liquidityRate", "type": _UINT},
            {"internalType": _UINT, "name": "variableBorrowRate", "type": _UINT},
            {"internalType": _UINT, "name": "stableBorrowRate", "type": _UINT},
            {"internalType": _UINT, "name": "averageStableBorrowRate", "type": _UINT},
            {"internalType": _UINT, "name": "liquidityIndex", "type": _UINT},
            {"internalType": _UINT, "name": "variableBorrowIndex", "type": _UINT},
            {"internalType": "uint40", "name": "lastUpdateTimestamp", "type": "uint40"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]

LIQUIDITY_RATE_FIELD = 5


class AaveV3RateSource:
    """Callable returning the reserve's supply rate as a WAD per-second rate."""

    def __init__(self, w3, config: Dict[str, object]):
        provider_address = str(config.get("data_provider") or "").strip()
        asset_address = str(config.get("reserve_asset") or config.get("asset") or "").strip()
        if not provider_address:
            raise ValueError("Aave rate source requires 'data_provider' address")
        if not asset_address:
            raise ValueError("Aave rate source requires 'reserve_asset' address")

        self.w3 = w3
        self.provider = w3.eth.contract(
            address=Web3.to_checksum_address(provider_address),
            abi=AAVE_DATA_PROVIDER_ABI,
        )
        self.reserve_asset = Web3.to_checksum_address(asset_address)

    def liquidity_rate_ray(self) -> int:
        data = self.provider.functions.getReserveData(self.reserve_asset).call()
        return int(data[LIQUIDITY_RATE_FIELD])

    def __call__(self) -> int:
        rate_ray = self.liquidity_rate_ray()
        per_second = ray_annual_to_wad_per_second(rate_ray)
        logger.debug("aave reserve %s liquidityRate=%d ray -> %d wad/s", self.reserve_asset, rate_ray, per_second)
        return per_second
