from .settlement_service import SettlementService

__all__ = ["SettlementService"]
