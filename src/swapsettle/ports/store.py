from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from ..domain.models.trade import Trade, TradeStatus


@dataclass
class FilterOption:
    """Single filter on a trade field, e.g. FilterOption("status", "=", "prepared")."""

    field: str
    operator: str
    value: Any


@dataclass
class ListOptions:
    limit: int = 50
    offset: int = 0
    sort_by: str = "created_at"
    sort_desc: bool = True
    filters: List[FilterOption] = field(default_factory=list)


class TradeStorePort(ABC):
    """Trade persistence abstraction."""

    @abstractmethod
    async def create(self, trade: Trade) -> Trade:
        """Persist a new trade; assigns and returns it with ``id`` set."""
        ...

    @abstractmethod
    async def update(self, trade: Trade) -> None:
        ...

    @abstractmethod
    async def get(self, trade_id: str) -> Optional[Trade]:
        ...

    @abstractmethod
    async def get_by_field(self, field_name: str, value: str) -> Optional[Trade]:
        ...

    @abstractmethod
    async def list_with_opts(self, opts: ListOptions) -> Tuple[List[Trade], int]:
        ...

    @abstractmethod
    async def compare_and_set(self, trade: Trade, expected_status: TradeStatus) -> bool:
        """Persist only if the stored status still equals ``expected_status``."""
        ...
