"""
Conversion Cache Store

This module keeps the reading -> conversion cache in memory and mirrors it
to a tab-delimited file on disk.

File format (UTF-8, one record per line, sorted by reading):
    <unix-epoch-seconds>\t<reading>\t<conversion>\n

Expiration is checked on read only. A stale entry is ignored by get() but
stays in memory (and on disk) until a new conversion overwrites it.
"""

import logging
import os
import tempfile
import time
from dataclasses import dataclass
from typing import Dict, Optional, Any

from ..config.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """
    A cached conversion.

    Attributes:
        conversion: The orthographic form(s), candidates joined by '/'
        created_at: Unix time at which this conversion was stored
    """
    conversion: str
    created_at: float

    def is_fresh(self, now: float, ttl: int) -> bool:
        """Return True while now is strictly before created_at + ttl."""
        return now < self.created_at + ttl


def load(path: str) -> Dict[str, CacheEntry]:
    """
    Read a persisted cache file.

    Args:
        path: Location of the cache file

    Returns:
        Mapping of reading to CacheEntry. Empty if the file does not exist.
        Lines that are not valid UTF-8, lack one of the three fields, or
        whose timestamp is not an integer are skipped.
    """
    entries: Dict[str, CacheEntry] = {}
    if not os.path.exists(path):
        logger.debug(f"No cache file at {path}, starting empty")
        return entries

    with open(path, "rb") as fh:
        for lineno, raw in enumerate(fh, start=1):
            try:
                line = raw.decode("utf-8")
            except UnicodeDecodeError:
                logger.debug(f"Skipping malformed cache line {lineno}")
                continue
            parts = line.rstrip("\r\n").split("\t")
            if len(parts) < 3 or not all(parts[:3]):
                logger.debug(f"Skipping malformed cache line {lineno}")
                continue
            try:
                created_at = int(parts[0])
            except ValueError:
                logger.debug(f"Skipping cache line {lineno} with bad timestamp")
                continue
            entries[parts[1]] = CacheEntry(conversion=parts[2], created_at=created_at)

    logger.info(f"Loaded {len(entries)} cache entries from {path}")
    return entries


class CacheStore:
    """
    Expiring conversion cache backed by a flat file.

    The store is populated from its file the first time it is accessed,
    and the whole file is rewritten after every put(). It never evicts:
    TTL only decides whether a cached value is used.

    Attributes:
        path: Location of the backing file
        ttl: Seconds a conversion stays fresh
    """

    def __init__(self, path: str = None, ttl: int = None):
        """
        Initialize the cache store.

        Args:
            path: Backing file (default from settings.CACHE_PATH)
            ttl: Freshness window in seconds (default from settings.CACHE_TTL)
        """
        self.path = path if path is not None else settings.CACHE_PATH
        self.ttl = ttl if ttl is not None else settings.CACHE_TTL
        self._entries: Optional[Dict[str, CacheEntry]] = None

    @property
    def entries(self) -> Dict[str, CacheEntry]:
        """The in-memory mapping, loaded from disk on first access."""
        if self._entries is None:
            self._entries = load(self.path)
        return self._entries

    def get(self, reading: str, now: float = None) -> Optional[CacheEntry]:
        """
        Look up a fresh entry.

        Args:
            reading: The reading to look up
            now: Current unix time (default time.time())

        Returns:
            The entry if present and not expired, None otherwise
        """
        now = time.time() if now is None else now
        entry = self.entries.get(reading)
        if entry is None or not entry.is_fresh(now, self.ttl):
            return None
        return entry

    def put(self, reading: str, conversion: str, now: float = None) -> None:
        """
        Store a conversion and rewrite the backing file.

        Raises:
            OSError: If the file cannot be written
        """
        now = time.time() if now is None else now
        self.entries[reading] = CacheEntry(conversion=conversion, created_at=now)
        self.persist()

    def persist(self, path: str = None) -> None:
        """
        Write all entries to disk, sorted by reading.

        The data goes to a temporary file in the target directory which then
        replaces the target.

        Args:
            path: Destination (default self.path)
        """
        path = path if path is not None else self.path
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".cache-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
                for reading in sorted(self.entries):
                    entry = self.entries[reading]
                    fh.write(f"{int(entry.created_at)}\t{reading}\t{entry.conversion}\n")
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        logger.debug(f"Persisted {len(self.entries)} cache entries to {path}")

    def size(self) -> int:
        """Number of entries held, stale ones included."""
        return len(self.entries)

    def get_stats(self, now: float = None) -> Dict[str, Any]:
        """
        Get statistics about the cache.

        Returns:
            Dictionary containing total, fresh and stale entry counts,
            the TTL and the backing path
        """
        now = time.time() if now is None else now
        total = len(self.entries)
        fresh = sum(1 for e in self.entries.values() if e.is_fresh(now, self.ttl))

        return {
            "total_entries": total,
            "fresh_entries": fresh,
            "stale_entries": total - fresh,
            "ttl": self.ttl,
            "path": self.path,
        }
