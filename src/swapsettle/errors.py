"""
errors.py - Settlement error taxonomy

Every port adapter translates its transport/library failures into one of
these before they reach the application services, so callers only ever
have to catch ``SettlementError`` subclasses.
"""

from __future__ import annotations


class SettlementError(Exception):
    """Base class for all settlement failures."""


class ValidationError(SettlementError):
    """Malformed caller input (address, amount, slippage, hash, payload)."""


class NotFoundError(SettlementError):
    """Unknown coin, unknown trade, or trade not in the expected state."""


class UpstreamError(SettlementError):
    """Aggregator, price oracle or RPC read failed."""


class ChainError(SettlementError):
    """Transaction submission rejected by the chain."""


class ProvisioningError(SettlementError):
    """Fee account could not be derived or created."""


class PersistenceError(SettlementError):
    """Trade store write/read failed where it is not tolerable."""


class InvalidTransition(SettlementError):
    """Raised when an invalid trade state transition is attempted."""
