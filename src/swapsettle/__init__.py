"""swapsettle - Solana swap settlement orchestrator (quote, prepare, execute, reconcile)."""

from .errors import (
    ChainError,
    InvalidTransition,
    NotFoundError,
    PersistenceError,
    ProvisioningError,
    SettlementError,
    UpstreamError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    "ChainError",
    "InvalidTransition",
    "NotFoundError",
    "PersistenceError",
    "ProvisioningError",
    "SettlementError",
    "UpstreamError",
    "ValidationError",
    "__version__",
]
