"""Decision cache: (user, right, patient) -> cached grant/deny.

Two backends share the DecisionCache protocol:

- InMemoryDecisionCache: unbounded, TTL-aware. Reference backend for tests,
  never provisioned from configuration.
- LRUDecisionCache: bounded with least-recently-used eviction; entries also
  expire after their TTL regardless of LRU pressure. The production backend.

Both guard their state with a lock, so concurrent checks can share one
instance without any locking of their own. Only GRANTED/DENIED booleans are
ever stored; the authorization service never writes UNKNOWN.
"""
import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol, Any

from app.core.exceptions import CacheProvisioningError
from app.core.logging_config import logger

CACHE_KEY_SEP = "::"

DEFAULT_TTL_SECONDS = 60
DEFAULT_MAX_SIZE = 1000


def get_cache_key(username: str, access: str, patient_id: str) -> str:
    """Builds ``username::access::patient_id``.

    The field order and separator are relied upon when inspecting the cache,
    so they must not change.

    Raises:
        ValueError: If a component contains the separator, or starts or ends
            with ":", either of which would make the key ambiguous.
    """
    for value, name in ((username, "username"), (access, "access"), (patient_id, "patient_id")):
        if CACHE_KEY_SEP in value:
            raise ValueError(
                f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
            )
        # "a:" + "::" + "b" reads the same as "a" + "::" + ":b"
        if value.startswith(":") or value.endswith(":"):
            raise ValueError(f"Cache key component {name!r} must not start or end with ':'")
    return f"{username}{CACHE_KEY_SEP}{access}{CACHE_KEY_SEP}{patient_id}"


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: bool
    expires_at: Optional[float]  # monotonic instant, None = never

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class DecisionCache(Protocol):
    """What the authorization service needs from a cache backend."""

    default_ttl: int

    def get(self, key: str) -> Optional[bool]:
        """Return the cached decision, or None when absent or expired."""
        ...

    def peek(self, key: str) -> Optional[bool]:
        """Like get(), without counting as a use of the entry."""
        ...

    def put(self, key: str, value: bool, ttl: Optional[int] = None) -> None:
        """Store a decision. ttl None = default TTL; ttl <= 0 = remove."""
        ...

    def remove(self, key: str) -> None:
        """Drop a key. Removing a missing key is a no-op."""
        ...

    def clear(self) -> None:
        ...

    def stats(self) -> Dict[str, Any]:
        ...

    def __len__(self) -> int:
        ...


class InMemoryDecisionCache:
    """Unbounded dict-backed cache with per-entry expiry."""

    backend = "memory"

    def __init__(self, default_ttl: int = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bool]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return None
            return entry.value

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Raw entry lookup (expired entries included), for inspection."""
        with self._lock:
            return self._entries.get(key)

    def peek(self, key: str) -> Optional[bool]:
        return self.get(key)

    def put(self, key: str, value: bool, ttl: Optional[int] = None) -> None:
        if ttl is None:
            ttl = self.default_ttl
        with self._lock:
            if ttl <= 0:
                self._entries.pop(key, None)
                return
            self._entries[key] = CacheEntry(key, bool(value), self._clock() + ttl)

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        return {"backend": self.backend, "size": len(self), "max_size": None, "default_ttl": self.default_ttl}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class LRUDecisionCache:
    """Bounded cache: LRU eviction at max_size, TTL expiry on every entry."""

    backend = "lru"

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        default_ttl: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._next_expiry = math.inf
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[bool]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return None
            # Most recently used goes last
            self._entries.move_to_end(key)
            return entry.value

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        with self._lock:
            return self._entries.get(key)

    def peek(self, key: str) -> Optional[bool]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.is_expired(self._clock()):
                return None
            return entry.value

    def put(self, key: str, value: bool, ttl: Optional[int] = None) -> None:
        if ttl is None:
            ttl = self.default_ttl
        with self._lock:
            if ttl <= 0:
                self._entries.pop(key, None)
                return
            expires_at = self._clock() + ttl
            self._entries[key] = CacheEntry(key, bool(value), expires_at)
            self._entries.move_to_end(key)
            self._next_expiry = min(self._next_expiry, expires_at)
            self._evict()

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._next_expiry = math.inf

    def stats(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "size": len(self),
            "max_size": self.max_size,
            "default_ttl": self.default_ttl,
        }

    def _evict(self) -> None:
        if len(self._entries) <= self.max_size:
            return
        # Expired entries go first so they don't push out live ones. Only
        # scan once something can actually have expired.
        now = self._clock()
        if now >= self._next_expiry:
            self._purge_expired(now)
        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Cache EVICT: {evicted}")

    def _purge_expired(self, now: float) -> None:
        for stale in [k for k, e in self._entries.items() if e.is_expired(now)]:
            del self._entries[stale]
        self._next_expiry = min((e.expires_at for e in self._entries.values()), default=math.inf)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Backends that can be provisioned from configuration; all of them bounded
CACHE_BACKENDS = {
    LRUDecisionCache.backend: LRUDecisionCache,
}


def build_decision_cache(
    backend: str = LRUDecisionCache.backend,
    max_size: int = DEFAULT_MAX_SIZE,
    default_ttl: int = DEFAULT_TTL_SECONDS,
) -> DecisionCache:
    """Provisions the configured cache backend.

    Raises:
        CacheProvisioningError: Unknown backend or unusable size/TTL.
    """
    try:
        if backend not in CACHE_BACKENDS:
            raise ValueError(f"unknown cache backend {backend!r}")
        if default_ttl <= 0:
            raise ValueError(f"default TTL must be positive, got {default_ttl}")
        cache = CACHE_BACKENDS[backend](max_size=max_size, default_ttl=default_ttl)
    except ValueError as e:
        raise CacheProvisioningError(f"Failed to create authorization cache: {e}") from e
    logger.info(f"Decision cache ready: backend={backend}, max_size={max_size}, default_ttl={default_ttl}s")
    return cache
