#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Integer helpers for share conversion, basis points and amount display."""

from __future__ import annotations

from decimal import Decimal, ROUND_DOWN
from typing import Union

from web3 import Web3

BPS_DENOMINATOR = 10_000
MAX_UINT256 = (1 << 256) - 1


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    Return ``floor(a * b / denominator)`` for non-negative integers.

    Args:
        a: First factor
        b: Second factor
        denominator: Divisor, must be positive

    Returns:
        Truncated quotient
    """
    if denominator <= 0:
        raise ZeroDivisionError("mul_div denominator must be positive")
    if a < 0 or b < 0:
        raise ValueError("mul_div operands must be non-negative")
    return (a * b) // denominator


def mul_div_up(a: int, b: int, denominator: int) -> int:
    """Return ``ceil(a * b / denominator)``; same operand rules as :func:`mul_div`."""
    if denominator <= 0:
        raise ZeroDivisionError("mul_div_up denominator must be positive")
    if a < 0 or b < 0:
        raise ValueError("mul_div_up operands must be non-negative")
    return -(-(a * b) // denominator)


def bps_of(amount: int, bps: int) -> int:
    """Floor of ``amount * bps / 10000``."""
    return mul_div(amount, bps, BPS_DENOMINATOR)


def to_base_units(amount: Union[int, str, Decimal], decimals: int = 18) -> int:
    """
    Convert a human-readable amount into smallest units, rounding down.

    Args:
        amount: Amount in whole tokens (e.g. "1.5")
        decimals: Token decimals

    Returns:
        Integer amount in smallest units
    """
    dec_amount = Decimal(str(amount))
    if dec_amount < 0:
        raise ValueError(f"Negative amount: {amount}")
    if decimals == 18:
        return int(Web3.to_wei(dec_amount.quantize(Decimal(1).scaleb(-18), rounding=ROUND_DOWN), "ether"))
    scaled = dec_amount * (Decimal(10) ** decimals)
    return int(scaled.quantize(Decimal(1), rounding=ROUND_DOWN))


def format_amount(amount: int, decimals: int = 18, precision: int = 6) -> str:
    """
    Format a smallest-unit amount as a human-readable string.

    Args:
        amount: Amount in smallest units
        decimals: Token decimals
        precision: Decimal places to display
    """
    if decimals == 18:
        value = Decimal(Web3.from_wei(amount, "ether"))
    else:
        value = Decimal(amount) / (Decimal(10) ** decimals)
    quant = Decimal(1).scaleb(-precision)
    return format(value.quantize(quant, rounding=ROUND_DOWN), "f")
