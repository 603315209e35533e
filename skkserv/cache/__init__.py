"""Cache module for the SKK server."""

from .store import CacheEntry, CacheStore, load

__all__ = ["CacheEntry", "CacheStore", "load"]
