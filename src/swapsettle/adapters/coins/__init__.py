from .static_resolver import StaticCoinResolver

__all__ = ["StaticCoinResolver"]
