from abc import ABC, abstractmethod
from typing import Optional

from ..domain.models.chain import TransactionOptions, TransactionStatus


class ChainClientPort(ABC):
    """Blockchain RPC abstraction."""

    @abstractmethod
    async def send_raw_transaction(self, raw_tx: bytes, opts: TransactionOptions) -> str:
        """Submit signed bytes; returns the signature (transaction hash)."""
        ...

    @abstractmethod
    async def get_transaction_status(self, signature: str) -> TransactionStatus:
        ...


class FeeEstimatorPort(ABC):
    """Optional capability: network fee for a serialized message."""

    @abstractmethod
    async def get_fee_for_message(self, message: bytes) -> Optional[int]:
        ...
