"""
DNS Cache Module

Time-bounded memoization of MX lookups, keyed by domain.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from .config import DNS_CACHE_TTL, DNS_NEGATIVE_CACHE_TTL
from .models import DomainRecord


@dataclass
class CacheEntry:
    record: DomainRecord
    cached_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.cached_at >= self.ttl


class DNSCache:
    """
    Cache of DomainRecord objects with a fixed time-to-live.

    Expired entries read as a miss and are dropped on access. Every store
    also sweeps all expired entries; there is no background timer.
    Failed lookups (no domain, or no MX records) live for ``negative_ttl``
    so a transient outage does not pin a domain as dead for the full TTL.

    Example:
        >>> cache = DNSCache(ttl=300)
        >>> cache.lookup('example.com') is None
        True
    """

    def __init__(self, ttl: float = DNS_CACHE_TTL,
                 negative_ttl: float = DNS_NEGATIVE_CACHE_TTL,
                 clock: Callable[[], float] = time.monotonic):
        """
        Initialize the cache.

        Args:
            ttl: Lifetime of successful lookups in seconds
            negative_ttl: Lifetime of failed lookups in seconds
            clock: Monotonic time source, injectable for tests
        """
        self.ttl = ttl
        self.negative_ttl = negative_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(domain: str) -> str:
        return domain.strip().lower()

    def lookup(self, domain: str) -> Optional[DomainRecord]:
        """
        Return the cached record for a domain, or None on a miss.

        Args:
            domain: The domain to look up

        Returns:
            The cached DomainRecord, or None if absent or expired
        """
        key = self._key(domain)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                self._entries.pop(key, None)
                return None
            return entry.record

    def store(self, domain: str, record: DomainRecord) -> None:
        """
        Cache a lookup outcome and sweep expired entries.

        Args:
            domain: The domain the record belongs to
            record: The lookup outcome, positive or negative
        """
        negative = not record.exists or record.mx_count == 0
        with self._lock:
            now = self._clock()
            self._entries[self._key(domain)] = CacheEntry(
                record=record,
                cached_at=now,
                ttl=self.negative_ttl if negative else self.ttl,
            )
            self._sweep(now)

    def _sweep(self, now: float) -> None:
        # Caller holds self._lock.
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict:
        with self._lock:
            size = len(self._entries)
        return {
            'size': size,
            'ttl': self.ttl,
            'negative_ttl': self.negative_ttl,
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, domain: str) -> bool:
        return self.lookup(domain) is not None
