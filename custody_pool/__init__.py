"""Pooled-custody accounting engine: share ledger, reserve policy and yield adapters."""

from .adapters import Adapter, LendingAdapter, LendingMarket, ShareVault, ShareVaultAdapter, get_adapter
from .config import PoolConfig, load_config
from .controller import AllocationController
from .events import EventLog, PoolEvent
from .ledger import AdapterRecord, VaultLedger
from .rates import WAD, compounded_annual_rate_bps, simple_annual_rate_bps
from .token import AssetToken, InMemoryToken

__all__ = [
    "Adapter",
    "AdapterRecord",
    "AllocationController",
    "AssetToken",
    "EventLog",
    "InMemoryToken",
    "LendingAdapter",
    "LendingMarket",
    "PoolConfig",
    "PoolEvent",
    "ShareVault",
    "ShareVaultAdapter",
    "VaultLedger",
    "WAD",
    "compounded_annual_rate_bps",
    "get_adapter",
    "load_config",
    "simple_annual_rate_bps",
]
