"""Adapter registry: build yield-destination adapters from configuration."""

from __future__ import annotations

import os
import time
from typing import Any, Callable, Dict, Optional, Tuple, Type

from ..logging_config import get_logger
from ..token import InMemoryToken
from .aave_v3_rates import AaveV3RateSource
from .base import Adapter
from .lending import LendingAdapter, LendingMarket
from .share_vault import ShareVault, ShareVaultAdapter

logger = get_logger(__name__)

ADAPTER_TYPES: Dict[str, Type[Adapter]] = {
    "lending": LendingAdapter,
    "share_vault": ShareVaultAdapter,
}

__all__ = [
    "ADAPTER_TYPES",
    "AaveV3RateSource",
    "Adapter",
    "LendingAdapter",
    "LendingMarket",
    "ShareVault",
    "ShareVaultAdapter",
    "get_adapter",
]


def _resolve_env(value: Any) -> Any:
    if isinstance(value, str):
        resolved = os.path.expandvars(value)
        if resolved.startswith("$"):
            return ""
        return resolved
    if isinstance(value, dict):
        return {k: _resolve_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env(v) for v in value]
    return value


def get_adapter(
    adapter_id: str,
    config: Dict[str, object],
    asset: InMemoryToken,
    owner: str,
    w3=None,
    clock: Optional[Callable[[], float]] = None,
) -> Tuple[Optional[Adapter], Optional[str]]:
    """Build the adapter configured under ``config["adapters"][adapter_id]``.

    Returns ``(adapter, None)`` on success, otherwise ``(None, reason)`` with
    reason one of ``no_adapter:<id>``, ``unknown_type:<type>`` or
    ``adapter_init_error:<ExceptionName>``.
    """
    adapters_cfg = config.get("adapters", {}) or {}
    if adapter_id not in adapters_cfg:
        logger.warning("no_adapter:%s (not found in adapters configuration)", adapter_id)
        return None, f"no_adapter:{adapter_id}"

    entry = _resolve_env(adapters_cfg[adapter_id])
    adapter_type = str(entry.get("type", "")).lower()
    cls = ADAPTER_TYPES.get(adapter_type)
    if cls is None:
        logger.warning("unknown_type:%s for adapter %s", adapter_type or "unset", adapter_id)
        return None, f"unknown_type:{adapter_type or 'unset'}"

    try:
        adapter = cls.from_config(adapter_id, entry, asset, owner, w3=w3, clock=clock or time.time)
    except (ValueError, TypeError, KeyError) as exc:
        logger.error("adapter_init_error for %s: %s", adapter_id, exc)
        return None, f"adapter_init_error:{type(exc).__name__}"
    return adapter, None
