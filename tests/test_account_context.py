"""
Account context cache tests.
"""

import pytest

from voicecraft.schemas import AccountContext
from voicecraft.services import account_context as account_context_module
from voicecraft.services.account_context import AccountContextCache


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(context_repository, clock) -> AccountContextCache:
    return AccountContextCache(context_repository, ttl_seconds=300, clock=clock)


@pytest.mark.asyncio
async def test_missing_context_is_cached(cache, context_repository, clock):
    assert await cache.get("acct-1") is None
    clock.advance(299)
    assert await cache.get("acct-1") is None

    assert context_repository.calls == 1


@pytest.mark.asyncio
async def test_found_context_is_cached(cache, context_repository, brand_context):
    context_repository.contexts["acct-1"] = brand_context

    first = await cache.get("acct-1")
    second = await cache.get("acct-1")

    assert first == brand_context
    assert second is first
    assert context_repository.calls == 1


@pytest.mark.asyncio
async def test_entries_expire_after_ttl(cache, context_repository, clock, brand_context):
    await cache.get("acct-1")
    context_repository.contexts["acct-1"] = brand_context

    clock.advance(301)

    assert await cache.get("acct-1") == brand_context
    assert context_repository.calls == 2


@pytest.mark.asyncio
async def test_empty_context_differs_from_missing(cache, context_repository):
    context_repository.contexts["acct-empty"] = AccountContext()

    assert await cache.get("acct-empty") == AccountContext()
    assert await cache.get("acct-missing") is None


@pytest.mark.asyncio
async def test_store_error_returns_none_and_is_not_cached(cache, context_repository, brand_context):
    context_repository.error = RuntimeError("connection reset")

    assert await cache.get("acct-1") is None

    context_repository.error = None
    context_repository.contexts["acct-1"] = brand_context

    assert await cache.get("acct-1") == brand_context
    assert context_repository.calls == 2


@pytest.mark.asyncio
async def test_invalidate(cache, context_repository):
    await cache.get("acct-1")
    await cache.get("acct-2")

    cache.invalidate("acct-1")
    await cache.get("acct-1")
    await cache.get("acct-2")
    assert context_repository.calls == 3

    cache.invalidate()
    await cache.get("acct-2")
    assert context_repository.calls == 4


def test_default_ttl_is_five_minutes(context_repository):
    assert AccountContextCache(context_repository).ttl_seconds == 300


@pytest.mark.asyncio
async def test_expired_entries_are_pruned(context_repository, clock, monkeypatch):
    monkeypatch.setattr(account_context_module, "PRUNE_THRESHOLD", 3)
    cache = AccountContextCache(context_repository, ttl_seconds=300, clock=clock)

    for account_id in ("acct-1", "acct-2", "acct-3"):
        await cache.get(account_id)
    clock.advance(301)

    await cache.get("acct-4")

    assert set(cache._entries) == {"acct-4"}


@pytest.mark.asyncio
async def test_expired_entry_dropped_when_store_fails(cache, context_repository, clock):
    await cache.get("acct-1")
    clock.advance(301)
    context_repository.error = RuntimeError("database down")

    assert await cache.get("acct-1") is None
    assert "acct-1" not in cache._entries
