"""
Input checks shared by the quote, prepare, execute and reconcile paths.

All helpers raise ``ValidationError`` with the offending field named; they
never touch the network.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union

import base58

from ..errors import ValidationError

MAX_SLIPPAGE_BPS = 5000
MIN_TX_HASH_LEN = 64
MAX_TX_HASH_LEN = 88
PUBKEY_BYTES = 32


def _b58decode(value: str) -> bytes:
    try:
        return base58.b58decode(value)
    except ValueError as exc:
        raise ValidationError(f"not base58: {value!r}") from exc


def is_valid_address(value: str) -> bool:
    if not value or not isinstance(value, str):
        return False
    try:
        return len(base58.b58decode(value)) == PUBKEY_BYTES
    except ValueError:
        return False


def validate_address(value: str, field_name: str = "address") -> str:
    value = (value or "").strip()
    if not is_valid_address(value):
        raise ValidationError(f"invalid {field_name}: {value!r}")
    return value


def parse_amount(value: Union[str, int, Decimal]) -> Decimal:
    """Parse a positive amount in source-asset units."""
    if isinstance(value, bool):
        raise ValidationError(f"invalid amount: {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"invalid amount: {value!r}") from exc
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(f"amount must be positive: {value!r}")
    return amount


def parse_slippage_bps(value: Union[str, int]) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"invalid slippage: {value!r}")
    try:
        bps = int(str(value).strip())
    except ValueError as exc:
        raise ValidationError(f"slippage must be an integer number of bps: {value!r}") from exc
    if bps < 0 or bps > MAX_SLIPPAGE_BPS:
        raise ValidationError(f"slippage out of range 0-{MAX_SLIPPAGE_BPS} bps: {bps}")
    return bps


def validate_transaction_hash(value: str) -> str:
    value = (value or "").strip()
    if not (MIN_TX_HASH_LEN <= len(value) <= MAX_TX_HASH_LEN):
        raise ValidationError(f"invalid transaction hash length: {len(value)}")
    _b58decode(value)
    return value
