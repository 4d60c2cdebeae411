"""Turns the remote authority's caching headers into a caching directive.

Only consulted for 200 and 403 responses. Precedence:

1. ``Expires`` (a valid HTTP date) gives a candidate TTL of
   (expires - now) seconds, truncated toward zero.
2. ``Cache-Control`` overrides it: ``no-cache``/``no-store`` means do not
   store, full stop; otherwise ``max-age`` replaces the candidate TTL.
3. A positive candidate is stored for that long, a non-positive one means
   do not store (and drop any existing entry).
4. No candidate at all means store for the cache's default TTL.
"""
import time
from dataclasses import dataclass
from datetime import timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Iterable, Mapping, Optional, Union

import httpx

from app.core.logging_config import logger


class CachingAction(str, Enum):
    STORE = "store"
    STORE_DEFAULT = "store_default"
    DO_NOT_STORE = "do_not_store"


@dataclass(frozen=True)
class CachingDirective:
    action: CachingAction
    ttl: Optional[int] = None  # seconds, only set for STORE

    @classmethod
    def store(cls, ttl: int) -> "CachingDirective":
        return cls(CachingAction.STORE, ttl)

    @classmethod
    def store_default(cls) -> "CachingDirective":
        return cls(CachingAction.STORE_DEFAULT)

    @classmethod
    def do_not_store(cls) -> "CachingDirective":
        return cls(CachingAction.DO_NOT_STORE)


STORE_DEFAULT = CachingDirective.store_default()
DO_NOT_STORE = CachingDirective.do_not_store()

NO_CACHE_DIRECTIVES = frozenset({"no-cache", "no-store"})

# Larger delta-seconds are treated as this value (RFC 9111, section 1.2.2)
MAX_DELTA_SECONDS = 2 ** 31


def parse_http_date(value: str) -> Optional[float]:
    """Parses an HTTP-date into epoch seconds, or None if it isn't one."""
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        # HTTP dates are always GMT
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def ttl_from_expires(value: str, now: float) -> Optional[int]:
    """Seconds until ``value``, truncated toward zero; None if unparseable."""
    expires = parse_http_date(value)
    if expires is None:
        logger.debug(f"Ignoring unparseable Expires header: {value!r}")
        return None
    delta_ms = int(expires * 1000) - int(now * 1000)
    return int(delta_ms / 1000)


def _directives(values: Iterable[str]):
    """Yields (name, value) pairs from Cache-Control header values."""
    for header in values:
        for part in header.split(","):
            part = part.strip()
            if not part:
                continue
            name, _, argument = part.partition("=")
            argument = argument.strip().strip('"') if argument else None
            yield name.strip().lower(), argument


def interpret_caching_headers(
    headers: Union[httpx.Headers, Mapping[str, str]],
    now: Optional[float] = None,
) -> CachingDirective:
    """Applies the Expires / Cache-Control precedence rules to ``headers``.

    Args:
        headers: Response headers; any mapping is accepted.
        now: Current wall-clock time in epoch seconds (defaults to time.time()).
    """
    if not isinstance(headers, httpx.Headers):
        headers = httpx.Headers(headers)
    if now is None:
        now = time.time()

    validity: Optional[int] = None

    # Last Expires wins if the header is repeated
    expires_values = headers.get_list("expires")
    if expires_values:
        validity = ttl_from_expires(expires_values[-1], now)
        if validity is not None:
            validity = min(validity, MAX_DELTA_SECONDS)

    # Cache-Control takes precedence over Expires
    for name, argument in _directives(headers.get_list("cache-control")):
        if name in NO_CACHE_DIRECTIVES:
            return DO_NOT_STORE
        if name == "max-age":
            try:
                validity = min(int(argument), MAX_DELTA_SECONDS)
            except (TypeError, ValueError):
                logger.debug(f"Ignoring invalid max-age value: {argument!r}")

    if validity is None:
        return STORE_DEFAULT
    if validity > 0:
        return CachingDirective.store(validity)
    return DO_NOT_STORE
