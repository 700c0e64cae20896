#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Fixed-point interest rate math.

Rates are WAD integers (1.0 == 10**18). A per-second rate ``r`` is converted
to annualised figures in basis points:

    simple      = r * SECONDS_PER_YEAR * 10000 / WAD
    compounded  = ((WAD + r) ** SECONDS_PER_YEAR / WAD**(n-1) - WAD) * 10000 / WAD

The power is computed by exponentiation by squaring with truncating WAD
multiplications, so the compounded figure is a slight underestimate of the
exact value.

Every intermediate product is checked against the 256-bit width an EVM
contract would use; an oversized product raises
:class:`~custody_pool.errors.RateOverflowError`. With
``SECONDS_PER_YEAR`` as exponent this happens once the per-second rate
exceeds roughly 2.8e12 (2.8e-6 as a fraction, about 8800% simple APR).
"""

from __future__ import annotations

from typing import Tuple

from .errors import RateOverflowError
from .safe_math import BPS_DENOMINATOR, MAX_UINT256

WAD = 10**18
RAY = 10**27
WAD_RAY_RATIO = RAY // WAD
SECONDS_PER_YEAR = 31_536_000


def wad_mul(a: int, b: int) -> int:
    """Multiply two WAD numbers, truncating toward zero."""
    product = a * b
    if product > MAX_UINT256:
        raise RateOverflowError(f"wad_mul overflow: {a} * {b} exceeds uint256")
    return product // WAD


def wad_pow(base: int, exponent: int) -> int:
    """
    Raise a WAD number to an integer power by repeated squaring.

    Args:
        base: WAD-scaled base (``WAD`` means 1.0)
        exponent: Non-negative integer exponent

    Returns:
        WAD-scaled ``base ** exponent``
    """
    if exponent < 0:
        raise ValueError("wad_pow exponent must be non-negative")
    result = WAD
    while exponent:
        if exponent & 1:
            result = wad_mul(result, base)
        exponent >>= 1
        if exponent:
            base = wad_mul(base, base)
    return result


def simple_annual_rate_bps(rate_per_second: int) -> int:
    """Annualised simple rate in basis points for a WAD per-second rate."""
    if rate_per_second < 0:
        raise ValueError("rate_per_second must be non-negative")
    if rate_per_second == 0:
        return 0
    return rate_per_second * SECONDS_PER_YEAR * BPS_DENOMINATOR // WAD


def compounded_annual_rate_bps(rate_per_second: int) -> int:
    """Annualised rate, compounded every second, in basis points."""
    if rate_per_second < 0:
        raise ValueError("rate_per_second must be non-negative")
    if rate_per_second == 0:
        return 0
    growth = wad_pow(WAD + rate_per_second, SECONDS_PER_YEAR)
    return (growth - WAD) * BPS_DENOMINATOR // WAD


def annual_rates_bps(rate_per_second: int) -> Tuple[int, int]:
    """Return ``(simple_bps, compounded_bps)``."""
    return simple_annual_rate_bps(rate_per_second), compounded_annual_rate_bps(rate_per_second)


def ray_annual_to_wad_per_second(rate_ray: int) -> int:
    """Convert an annual RAY rate (Aave ``currentLiquidityRate``) to a WAD per-second rate."""
    if rate_ray < 0:
        raise ValueError("rate must be non-negative")
    return rate_ray // WAD_RAY_RATIO // SECONDS_PER_YEAR


def growth_factor(rate_per_second: int, elapsed_seconds: int) -> int:
    """WAD growth multiplier ``(1 + r) ** elapsed`` used for index accrual."""
    if elapsed_seconds <= 0 or rate_per_second == 0:
        return WAD
    return wad_pow(WAD + rate_per_second, elapsed_seconds)
