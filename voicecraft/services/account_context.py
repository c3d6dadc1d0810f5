"""
In-process TTL cache for account brand contexts.

A missing row is cached as ``None`` just like a found context, so
accounts without a brand voice do not hit the store on every request.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from voicecraft.core.config import settings
from voicecraft.schemas import AccountContext
from voicecraft.services.repositories import AccountContextRepository

logger = structlog.get_logger(__name__)

PRUNE_THRESHOLD = 1024


@dataclass(frozen=True)
class CacheEntry:
    value: Optional[AccountContext]
    expires_at: float


class AccountContextCache:
    """Per-account brand context with positive and negative caching."""

    def __init__(
        self,
        repository: AccountContextRepository,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.repository = repository
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.account_context_ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    async def get(self, account_id: str) -> Optional[AccountContext]:
        """Return the account's context, or None when it has none."""
        now = self._clock()
        entry = self._entries.get(account_id)
        if entry is not None:
            if entry.expires_at > now:
                return entry.value
            del self._entries[account_id]

        try:
            value = await self.repository.find_by_account_id(account_id)
        except Exception as e:
            # Not cached: the next call retries the store
            logger.warning("Account context lookup failed", account_id=account_id, error=str(e))
            return None

        self._prune(now)
        self._entries[account_id] = CacheEntry(value=value, expires_at=now + self.ttl_seconds)
        logger.debug("Account context cached", account_id=account_id, found=value is not None)
        return value

    def _prune(self, now: float) -> None:
        """Drop expired entries once the map grows past PRUNE_THRESHOLD."""
        if len(self._entries) < PRUNE_THRESHOLD:
            return
        for account_id in [key for key, entry in self._entries.items() if entry.expires_at <= now]:
            del self._entries[account_id]

    def invalidate(self, account_id: Optional[str] = None) -> None:
        """Drop one account's entry, or everything when no id is given."""
        if account_id is None:
            self._entries.clear()
        else:
            self._entries.pop(account_id, None)
