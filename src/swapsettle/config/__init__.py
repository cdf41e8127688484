from .settings import (
    JupiterSettings,
    LoggingSettings,
    PlatformFeeSettings,
    ReconcileSettings,
    SettlementConfig,
    SolanaSettings,
    load_config,
)

__all__ = [
    "JupiterSettings",
    "LoggingSettings",
    "PlatformFeeSettings",
    "ReconcileSettings",
    "SettlementConfig",
    "SolanaSettings",
    "load_config",
]
