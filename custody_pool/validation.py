#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Input validation for identities, amounts and reserve targets."""

from __future__ import annotations

from web3 import Web3

from .errors import ValidationError, ZeroAmountError

MAX_RESERVE_BPS = 2_000
MAX_IDENTITY_LENGTH = 200

_LABEL_CHARS = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_:.")


def normalize_identity(identity: object, kind: str = "identity") -> str:
    """Validate a holder/adapter/account identity and return its canonical form.

    Hex addresses are returned checksummed so the same account never shows up
    under two spellings. Anything else must be a short label made of
    alphanumerics and ``-_:.``.

    Examples:
        >>> normalize_identity("alice")
        'alice'
    """
    if not isinstance(identity, str) or not identity.strip():
        raise ValidationError(f"Empty {kind}")

    value = identity.strip()
    if value.lower().startswith("0x"):
        if not Web3.is_address(value):
            raise ValidationError(f"Invalid {kind} address: {value}")
        return Web3.to_checksum_address(value)

    if len(value) > MAX_IDENTITY_LENGTH:
        raise ValidationError(f"{kind} too long: {len(value)} chars")
    if not all(c in _LABEL_CHARS for c in value):
        raise ValidationError(f"Invalid characters in {kind}: {value!r}")
    return value


def require_positive_amount(amount: object, name: str = "amount") -> int:
    """Return ``amount`` if it is a positive integer, else raise."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(f"{name} must be an integer, got {type(amount).__name__}")
    if amount < 0:
        raise ValidationError(f"{name} must be non-negative, got {amount}")
    if amount == 0:
        raise ZeroAmountError(f"{name} must be greater than zero")
    return amount


def validate_reserve_bps(bps: object) -> int:
    if isinstance(bps, bool) or not isinstance(bps, int):
        raise ValidationError(f"reserve bps must be an integer, got {bps!r}")
    if bps < 0 or bps > MAX_RESERVE_BPS:
        raise ValidationError(f"reserve bps must be within [0, {MAX_RESERVE_BPS}], got {bps}")
    return bps
