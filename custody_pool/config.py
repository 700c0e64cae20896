#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Pool configuration: environment variables overlaid on an optional JSON file.

Environment:
    POOL_ADDRESS                custody account of the ledger (default "pool")
    POOL_RESERVE_BPS            idle reserve target in bps, 0..2000 (default 0)
    POOL_STRICT_PARTIAL_FILLS   fail pulls that return less than requested (default false)
    POOL_CONFIG                 path of the JSON file read by load_config()

JSON layout::

    {
      "reserve_bps": 500,
      "adapters": {
        "aave-usdc": {"type": "lending", "rate_per_second": "1000000000"},
        "vault-a":   {"type": "share_vault"}
      }
    }

The order of the ``adapters`` mapping is the waterfall order.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .errors import ValidationError
from .logging_config import get_logger
from .validation import normalize_identity, validate_reserve_bps

logger = get_logger(__name__)

load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, raw)
        return default


@dataclass
class PoolConfig:
    """Configuration bundle for a ledger and its adapters."""

    pool_address: str = "pool"
    reserve_bps: int = 0
    strict_partial_fills: bool = False
    adapters: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.pool_address = normalize_identity(self.pool_address, "pool address")
        self.reserve_bps = validate_reserve_bps(self.reserve_bps)
        if not isinstance(self.adapters, dict):
            raise ValidationError("'adapters' must be a mapping of adapter id to settings")

    @classmethod
    def from_env(cls) -> "PoolConfig":
        return cls(
            pool_address=os.getenv("POOL_ADDRESS", "pool"),
            reserve_bps=_env_int("POOL_RESERVE_BPS", 0),
            strict_partial_fills=_env_flag("POOL_STRICT_PARTIAL_FILLS", False),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PoolConfig":
        """Build from a mapping; environment variables take precedence when set."""
        strict_raw = data.get("strict_partial_fills", False)
        if isinstance(strict_raw, str):
            strict_raw = strict_raw.strip().lower() in _TRUE_VALUES
        return cls(
            pool_address=os.getenv("POOL_ADDRESS") or str(data.get("pool_address") or "pool"),
            reserve_bps=_env_int("POOL_RESERVE_BPS", int(data.get("reserve_bps", 0))),
            strict_partial_fills=_env_flag("POOL_STRICT_PARTIAL_FILLS", bool(strict_raw)),
            adapters=dict(data.get("adapters") or {}),
        )

    def as_adapter_config(self) -> Dict[str, Any]:
        return {"adapters": self.adapters}


def load_config(path: Optional[Path] = None) -> PoolConfig:
    """Load ``path`` (or ``$POOL_CONFIG``) if it exists, else configure from env alone."""
    if path is None:
        env_path = os.getenv("POOL_CONFIG")
        path = Path(env_path) if env_path else None

    if path is None or not path.exists():
        if path is not None:
            logger.warning("Config file %s not found; using environment only", path)
        return PoolConfig.from_env()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValidationError(f"Config root in {path} must be an object")
    return PoolConfig.from_dict(data)
