"""
Short-lived provider access tokens keyed by OAuth correlation state.

The OAuth callback stores the exchanged access token under the `state` the
caller chose; the silent number-verification path reads it back during signup.
Every entry disappears `ttl_seconds` after its most recent insertion, whether
or not it was read.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from ..core.exceptions import CacheError
from ..database.redis import RedisCache

logger = structlog.get_logger()

DEFAULT_TOKEN_TTL_SECONDS = 2 * 60 * 60


class TokenCache(ABC):
    """Correlation state -> access token, with time-based eviction."""

    ttl_seconds: int

    @abstractmethod
    async def put(self, state: str, token: str) -> None:
        """Insert or overwrite; the entry expires `ttl_seconds` from now."""

    @abstractmethod
    async def take(self, state: str) -> str | None:
        """Non-destructive read. None once expired or never stored."""

    async def close(self) -> None:
        """Release timers or connections held by the cache."""


@dataclass(eq=False)
class _TokenEntry:
    token: str
    expires_at: float
    handle: asyncio.TimerHandle | None = None


class InMemoryTokenCache(TokenCache):
    """
    Process-local token cache with one cancellable eviction timer per entry.

    Re-putting a state cancels the previous timer before arming a new one,
    and a timer only evicts the exact entry it was armed for. Reads also check
    the entry deadline, so a late timer never makes a token outlive its TTL.
    """

    def __init__(
        self,
        ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cache.

        Args:
            ttl_seconds: Lifetime of an entry after its most recent insertion
            clock: Monotonic clock used for read-time deadline checks
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _TokenEntry] = {}

        logger.info("Token cache initialized", backend="memory", ttl_seconds=ttl_seconds)

    async def put(self, state: str, token: str) -> None:
        loop = asyncio.get_running_loop()

        previous = self._entries.get(state)
        if previous is not None and previous.handle is not None:
            previous.handle.cancel()

        entry = _TokenEntry(token=token, expires_at=self._clock() + self.ttl_seconds)
        entry.handle = loop.call_later(self.ttl_seconds, self._expire, state, entry)
        self._entries[state] = entry

        logger.info("Access token cached", state=state, replaced=previous is not None)

    async def take(self, state: str) -> str | None:
        entry = self._entries.get(state)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            self._expire(state, entry)
            return None
        return entry.token

    def _expire(self, state: str, entry: _TokenEntry) -> None:
        """Timer callback. No-op unless `entry` is still the current value."""
        if self._entries.get(state) is not entry:
            return
        del self._entries[state]
        if entry.handle is not None:
            entry.handle.cancel()
        logger.info("Access token expired", state=state)

    async def close(self) -> None:
        for entry in self._entries.values():
            if entry.handle is not None:
                entry.handle.cancel()
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisTokenCache(TokenCache):
    """Redis-backed token cache. SETEX resets the TTL on every insertion."""

    def __init__(
        self,
        redis_cache: RedisCache,
        ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
        key_prefix: str = "idverify",
    ):
        self.redis = redis_cache
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    def _make_key(self, state: str) -> str:
        return f"{self.key_prefix}:token:{state}"

    async def put(self, state: str, token: str) -> None:
        await self.redis.setex(self._make_key(state), self.ttl_seconds, token)
        logger.info("Access token cached", state=state, backend="redis")

    async def take(self, state: str) -> str | None:
        try:
            return await self.redis.get(self._make_key(state))
        except CacheError:
            # Treated as a miss; the signup falls back to a one-time code
            logger.warning("Token cache unavailable", state=state)
            return None
