"""
In-process trade store.

Keeps unique secondary indexes on ``unsigned_transaction`` and
``transaction_hash``, hands out copies so callers never mutate stored state,
and serializes writes behind one asyncio lock so compare-and-set is atomic.
"""

from __future__ import annotations

import asyncio
import re
import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger

from ...domain.models.trade import Trade, TradeStatus
from ...errors import PersistenceError, ValidationError
from ...ports.store import FilterOption, ListOptions, TradeStorePort

UNIQUE_FIELDS = ("unsigned_transaction", "transaction_hash")


def _like_to_regex(pattern: str) -> "re.Pattern[str]":
    parts = [".*" if ch == "%" else "." if ch == "_" else re.escape(ch) for ch in str(pattern)]
    return re.compile("^" + "".join(parts) + "$", re.IGNORECASE)


def _coerce(sample: Any, value: Any) -> Any:
    """Bring a filter value to the stored field's type."""
    if isinstance(sample, Enum):
        return value.value if isinstance(value, Enum) else value
    if isinstance(sample, Decimal) and not isinstance(value, Decimal):
        try:
            return Decimal(str(value))
        except InvalidOperation as e:
            raise ValidationError(f"cannot compare decimal field with {value!r}") from e
    if isinstance(sample, bool) and isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes"}
    try:
        if isinstance(sample, int) and not isinstance(sample, bool) and isinstance(value, str):
            return int(value)
        if isinstance(sample, datetime) and isinstance(value, str):
            return datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"cannot compare {type(sample).__name__} field with {value!r}") from e
    return value


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


_ORDERING: Dict[str, Callable[[Any, Any], bool]] = {
    ">": lambda a, b: a > b,
    "<": lambda a, b: a < b,
    ">=": lambda a, b: a >= b,
    "<=": lambda a, b: a <= b,
}


class InMemoryTradeStore(TradeStorePort):
    def __init__(self):
        self._trades: Dict[str, Trade] = {}
        self._indexes: Dict[str, Dict[str, str]] = {name: {} for name in UNIQUE_FIELDS}
        self._lock = asyncio.Lock()

    async def create(self, trade: Trade) -> Trade:
        async with self._lock:
            stored = trade.copy()
            if not stored.id:
                stored.id = str(uuid.uuid4())
            if stored.id in self._trades:
                raise PersistenceError(f"trade {stored.id} already exists")
            self._check_unique(stored)
            self._trades[stored.id] = stored
            self._index(stored)
            logger.debug(f"TRADE_STORE | create | trade={stored.id} | status={stored.status.value}")
            return stored.copy()

    async def update(self, trade: Trade) -> None:
        async with self._lock:
            self._replace(trade)

    async def get(self, trade_id: str) -> Optional[Trade]:
        trade = self._trades.get(trade_id)
        return trade.copy() if trade else None

    async def get_by_field(self, field_name: str, value: str) -> Optional[Trade]:
        if field_name in self._indexes:
            trade_id = self._indexes[field_name].get(value)
            return await self.get(trade_id) if trade_id else None

        self._check_field(field_name)
        for trade in self._trades.values():
            if _plain(getattr(trade, field_name)) == _coerce(getattr(trade, field_name), value):
                return trade.copy()
        return None

    async def list_with_opts(self, opts: ListOptions) -> Tuple[List[Trade], int]:
        self._check_field(opts.sort_by)
        for f in opts.filters:
            self._check_field(f.field)

        matched = [t for t in self._trades.values() if all(self._matches(t, f) for f in opts.filters)]

        def sort_key(t: Trade):
            v = _plain(getattr(t, opts.sort_by))
            # Nones sort last ascending.
            return (v is None, v if v is not None else 0)

        matched.sort(key=sort_key, reverse=opts.sort_desc)
        total = len(matched)
        offset = max(0, opts.offset)
        page = matched[offset:] if opts.limit <= 0 else matched[offset:offset + opts.limit]
        return [t.copy() for t in page], total

    async def compare_and_set(self, trade: Trade, expected_status: TradeStatus) -> bool:
        async with self._lock:
            current = self._trades.get(trade.id)
            if current is None:
                raise PersistenceError(f"trade {trade.id} not found")
            if current.status != expected_status:
                logger.debug(
                    f"TRADE_STORE | cas rejected | trade={trade.id} | "
                    f"expected={expected_status.value} | actual={current.status.value}"
                )
                return False
            self._replace(trade)
            return True

    # ------------------------------------------------------------------
    # internals (call with the lock held)
    # ------------------------------------------------------------------
    def _replace(self, trade: Trade) -> None:
        current = self._trades.get(trade.id)
        if current is None:
            raise PersistenceError(f"trade {trade.id} not found")
        self._check_unique(trade)
        self._unindex(current)
        stored = trade.copy()
        self._trades[stored.id] = stored
        self._index(stored)

    def _check_unique(self, trade: Trade) -> None:
        for name in UNIQUE_FIELDS:
            value = getattr(trade, name)
            if not value:
                continue
            owner = self._indexes[name].get(value)
            if owner is not None and owner != trade.id:
                raise PersistenceError(f"duplicate {name} for trade {trade.id} (held by {owner})")

    def _index(self, trade: Trade) -> None:
        for name in UNIQUE_FIELDS:
            value = getattr(trade, name)
            if value:
                self._indexes[name][value] = trade.id

    def _unindex(self, trade: Trade) -> None:
        for name in UNIQUE_FIELDS:
            value = getattr(trade, name)
            if value and self._indexes[name].get(value) == trade.id:
                del self._indexes[name][value]

    @staticmethod
    def _check_field(name: str) -> None:
        if name not in Trade.__dataclass_fields__:
            raise ValidationError(f"unknown trade field: {name}")

    @staticmethod
    def _matches(trade: Trade, f: FilterOption) -> bool:
        raw = getattr(trade, f.field)
        actual = _plain(raw)
        op = f.operator.strip().upper()

        if op in ("IN", "NOT IN"):
            values = f.value if isinstance(f.value, (list, tuple, set)) else [f.value]
            found = actual in {_coerce(raw, v) for v in values}
            return found if op == "IN" else not found
        if op == "LIKE":
            return actual is not None and bool(_like_to_regex(f.value).match(str(actual)))

        expected = _coerce(raw, f.value)
        if op == "=":
            return actual == expected
        if op == "!=":
            return actual != expected
        if op in _ORDERING:
            if actual is None or expected is None:
                return False
            return _ORDERING[op](actual, expected)
        raise ValidationError(f"unsupported filter operator: {f.operator}")
