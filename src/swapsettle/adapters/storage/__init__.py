from .memory import InMemoryTradeStore

__all__ = ["InMemoryTradeStore"]
