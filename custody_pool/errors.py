#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Error taxonomy for ledger, adapter and controller operations."""

from __future__ import annotations

from typing import Optional


class PoolError(Exception):
    """Base class for every failure raised by the custody pool."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


# Validation ---------------------------------------------------------------
class ValidationError(PoolError):
    """Malformed input: zero amount, bad identity, asset mismatch."""
    pass


class ZeroAmountError(ValidationError):
    """Amount (or the shares/assets it converts to) is zero."""
    pass


class UnknownAdapterError(ValidationError):
    """Adapter id is not registered."""

    def __init__(self, adapter_id: str, operation: Optional[str] = None):
        super().__init__(f"Unknown adapter: {adapter_id}", operation)
        self.adapter_id = adapter_id


class InactiveAdapterError(ValidationError):
    """Adapter is registered but disabled."""

    def __init__(self, adapter_id: str, operation: Optional[str] = None):
        super().__init__(f"Adapter is not active: {adapter_id}", operation)
        self.adapter_id = adapter_id


class AssetMismatchError(ValidationError):
    """Asset identity passed to an adapter differs from the one it manages."""

    def __init__(self, expected: str, received: str):
        super().__init__(f"Asset mismatch: expected {expected}, got {received}")
        self.expected = expected
        self.received = received


class InsufficientSharesError(ValidationError):
    """Holder tried to burn more shares than it owns."""

    def __init__(self, holder: str, requested: int, available: int):
        super().__init__(
            f"Holder {holder} has {available} shares, cannot burn {requested}",
            "withdraw",
        )
        self.holder = holder
        self.requested = requested
        self.available = available


# Authorization ------------------------------------------------------------
class AuthorizationError(PoolError):
    """Caller lacks the role required by the operation."""

    def __init__(self, caller: str, role: str, operation: Optional[str] = None):
        super().__init__(f"{caller} is not {role}", operation)
        self.caller = caller
        self.role = role


class PausedError(AuthorizationError):
    """Operation attempted while the pool is paused."""

    def __init__(self, operation: Optional[str] = None, message: Optional[str] = None):
        text = message or f"Pool is paused ({operation or 'operation'} blocked)"
        PoolError.__init__(self, text, operation)
        self.caller = None
        self.role = "unpaused"


# Liquidity ----------------------------------------------------------------
class LiquidityError(PoolError):
    """Not enough liquid capital for the requested operation."""
    pass


class ReserveViolationError(LiquidityError):
    """Push would consume the reserve instead of the surplus above it."""

    def __init__(self, amount: int, idle: int, target: int):
        surplus = max(0, idle - target)
        super().__init__(
            f"Push of {amount} exceeds surplus {surplus} (idle={idle}, target={target})",
            "push",
        )
        self.amount = amount
        self.idle = idle
        self.target = target


class InsufficientLiquidityError(LiquidityError):
    """Liquidity waterfall exhausted every active adapter."""

    def __init__(self, requested: int, remaining: int):
        super().__init__(
            f"Waterfall could not source {remaining} of {requested} requested",
            "waterfall",
        )
        self.requested = requested
        self.remaining = remaining


# External calls -----------------------------------------------------------
class ExternalCallError(PoolError):
    """An adapter call completed but its observed effect is unacceptable."""

    def __init__(self, message: str, adapter_id: Optional[str] = None):
        super().__init__(message, "pull")
        self.adapter_id = adapter_id


class NoFundsReceivedError(ExternalCallError):
    """Adapter withdraw produced no observable proceeds."""

    def __init__(self, adapter_id: str, requested: int):
        super().__init__(f"No funds received from {adapter_id} (requested {requested})", adapter_id)
        self.requested = requested


class PartialFillError(ExternalCallError):
    """Adapter returned less than requested while partial fills are disallowed."""

    def __init__(self, adapter_id: str, requested: int, received: int):
        super().__init__(
            f"Adapter {adapter_id} returned {received} of {requested} requested",
            adapter_id,
        )
        self.requested = requested
        self.received = received


# Collaborators ------------------------------------------------------------
class TransferError(PoolError):
    """Asset transfer failed (balance or allowance)."""

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message, "transfer")
        self.reason = reason


class ReentrancyError(PoolError):
    """Mutating entry point invoked while another one is executing."""
    pass


class RateOverflowError(PoolError, ArithmeticError):
    """Fixed-point product exceeds the 256-bit integer width."""
    pass


def classify_error(error_message: str) -> PoolError:
    """
    Classify a collaborator failure message into the pool taxonomy.

    Args:
        error_message: Free-form text, e.g. an ERC-20 revert reason

    Returns:
        Matching PoolError subclass instance
    """
    message_lower = error_message.lower()

    if any(phrase in message_lower for phrase in [
        "exceeds balance",
        "insufficient balance",
        "insufficient allowance",
        "exceeds allowance",
    ]):
        return TransferError(error_message, reason=message_lower)

    if any(phrase in message_lower for phrase in ["paused", "shutdown"]):
        return PausedError(message=error_message)

    if "reentran" in message_lower:
        return ReentrancyError(error_message)

    if any(phrase in message_lower for phrase in [
        "insufficient liquidity",
        "insufficient cash",
    ]):
        return LiquidityError(error_message)

    if "overflow" in message_lower:
        return RateOverflowError(error_message)

    return PoolError(error_message)
