"""
Lookup Service

Combines the CacheStore with a remote client:

    1. A fresh cache entry answers directly (no network, no file write).
    2. Otherwise the remote client is called exactly once.
    3. A conversion is stored and persisted; "no conversion" is not cached.

Failures are returned as LookupResult.error() rather than raised.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any

from ..cache.store import CacheStore
from .client import TransliterateClient

logger = logging.getLogger(__name__)


class LookupStatus(Enum):
    """Outcome of resolving a reading."""
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class LookupResult:
    """
    Result of LookupService.resolve().

    Attributes:
        status: FOUND, NOT_FOUND or ERROR
        conversion: The conversion for FOUND results
        message: Failure description for ERROR results
        cached: True when a FOUND result came from the cache
    """
    status: LookupStatus
    conversion: Optional[str] = None
    message: str = ""
    cached: bool = False

    @classmethod
    def found(cls, conversion: str, cached: bool = False) -> "LookupResult":
        return cls(status=LookupStatus.FOUND, conversion=conversion, cached=cached)

    @classmethod
    def not_found(cls) -> "LookupResult":
        return cls(status=LookupStatus.NOT_FOUND)

    @classmethod
    def error(cls, message: str) -> "LookupResult":
        return cls(status=LookupStatus.ERROR, message=message)


class LookupService:
    """
    Resolves readings through the cache with remote fallback.

    Attributes:
        store: The CacheStore shared by every connection
        client: Any object with a lookup(reading) -> Optional[str] method
    """

    def __init__(self, store: CacheStore, client: TransliterateClient):
        self.store = store
        self.client = client

        self._hits = 0
        self._misses = 0
        self._errors = 0

    def resolve(self, reading: str, now: float = None) -> LookupResult:
        """
        Resolve a reading to its conversion.

        Args:
            reading: The reading sent by the client
            now: Current unix time (default time.time())

        Returns:
            LookupResult describing the outcome
        """
        now = time.time() if now is None else now

        try:
            entry = self.store.get(reading, now)
            if entry is not None:
                self._hits += 1
                logger.debug(f"Cache hit for {reading!r}")
                return LookupResult.found(entry.conversion, cached=True)

            self._misses += 1
            logger.debug(f"Cache miss for {reading!r}, querying remote")
            conversion = self.client.lookup(reading)
            if conversion is None:
                return LookupResult.not_found()

            self.store.put(reading, conversion, now)
            return LookupResult.found(conversion)

        except Exception as exc:
            self._errors += 1
            logger.exception(f"Failed to resolve {reading!r}: {exc}")
            return LookupResult.error(str(exc))

    def get_stats(self) -> Dict[str, Any]:
        """Hit, miss and error counters along with the cache stats."""
        return {
            "hits": self._hits,
            "misses": self._misses,
            "errors": self._errors,
            "cache_stats": self.store.get_stats(),
        }
