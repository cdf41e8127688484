from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ChainTxStatus(Enum):
    PENDING = "Pending"
    PROCESSED = "Processed"
    CONFIRMED = "Confirmed"
    FINALIZED = "Finalized"
    FAILED = "Failed"
    UNKNOWN = "Unknown"


class Commitment(Enum):
    PROCESSED = "processed"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"


@dataclass
class TransactionStatus:
    """Chain view of a signature."""

    status: ChainTxStatus
    confirmations: Optional[int] = None
    error: Optional[str] = None
    slot: Optional[int] = None


@dataclass(frozen=True)
class TransactionOptions:
    skip_preflight: bool = False
    preflight_commitment: Commitment = Commitment.CONFIRMED
    max_retries: Optional[int] = None
