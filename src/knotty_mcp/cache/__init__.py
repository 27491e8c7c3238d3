"""Spec cache."""

from .spec_cache import CacheEntry, CacheRefreshError, CacheState, SpecCache

__all__ = ["CacheEntry", "CacheRefreshError", "CacheState", "SpecCache"]
