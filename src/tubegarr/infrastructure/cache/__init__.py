"""Cache Infrastructure - in-memory result cache and loading guard."""

from .result_cache import CacheKey, LoadingGuard, ResultCache, TtlPolicy

__all__ = [
    "CacheKey",
    "LoadingGuard",
    "ResultCache",
    "TtlPolicy",
]
