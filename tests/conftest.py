"""
Pytest configuration and fixtures.
"""

import asyncio
import json
from datetime import timedelta
from typing import Any, Callable, Optional, Union

import pytest

from voicecraft.core.config import Settings
from voicecraft.schemas import (
    AccountContext,
    EmojiUsage,
    LanguagePreference,
    SocialPost,
    StyleProfile,
    Tone,
    utcnow,
)

Response = Union[str, BaseException, Callable[[str, dict], str]]


class FakeLLM:
    """Records every call and replays queued responses in order."""

    def __init__(self, *responses: Response):
        self.responses: list[Response] = list(responses)
        self.calls: list[dict[str, Any]] = []
        self.gate: Optional[asyncio.Event] = None

    def queue(self, *responses: Response) -> None:
        self.responses.extend(responses)

    def queue_json(self, payload: Any) -> None:
        self.responses.append(json.dumps(payload))

    @property
    def prompts(self) -> list[str]:
        return [call["prompt"] for call in self.calls]

    async def generate(self, prompt: str, **kwargs) -> str:
        self.calls.append({"prompt": prompt, **kwargs})
        if not self.responses:
            raise AssertionError("Unexpected model call")
        response = self.responses.pop(0)

        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)

        if isinstance(response, BaseException):
            raise response
        if callable(response):
            return response(prompt, kwargs)
        return response


class InMemoryProfileRepository:
    def __init__(self, *profiles: StyleProfile):
        self.profiles: dict[str, StyleProfile] = {p.user_id: p for p in profiles}
        self.find_calls = 0
        self.upserts: list[tuple[str, dict]] = []
        self.error: Optional[Exception] = None

    async def find_by_user_id(self, user_id: str) -> Optional[StyleProfile]:
        self.find_calls += 1
        if self.error:
            raise self.error
        return self.profiles.get(user_id)

    async def upsert_by_user_id(self, user_id: str, fields: dict) -> StyleProfile:
        self.upserts.append((user_id, fields))
        existing = self.profiles.get(user_id)
        if existing is None:
            profile = StyleProfile(user_id=user_id, **fields)
        else:
            profile = existing.model_copy(update=fields)
        self.profiles[user_id] = profile
        return profile


class InMemoryAccountContextRepository:
    def __init__(self, contexts: Optional[dict[str, AccountContext]] = None):
        self.contexts = contexts or {}
        self.calls = 0
        self.error: Optional[Exception] = None

    async def find_by_account_id(self, account_id: str) -> Optional[AccountContext]:
        self.calls += 1
        if self.error:
            raise self.error
        return self.contexts.get(account_id)


class FakeSocialSource:
    def __init__(self, posts: Optional[list[str]] = None):
        self.posts = [SocialPost(text=text) for text in (posts or [])]
        self.calls: list[dict[str, Any]] = []
        self.gate: Optional[asyncio.Event] = None
        self.error: Optional[Exception] = None

    def set_posts(self, posts: list[str]) -> None:
        self.posts = [SocialPost(text=text) for text in posts]

    async def fetch_recent_posts(self, social_id: int, *, limit: int = 25, include_reposts: bool = True):
        self.calls.append({"social_id": social_id, "limit": limit, "include_reposts": include_reposts})
        if self.gate is not None:
            await self.gate.wait()
        if self.error:
            raise self.error
        return self.posts[:limit]


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        environment="development",
        gemini_api_key="test-key",
        neynar_api_key="test-neynar-key",
    )


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def profile_repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def context_repository() -> InMemoryAccountContextRepository:
    return InMemoryAccountContextRepository()


@pytest.fixture
def social_source() -> FakeSocialSource:
    return FakeSocialSource()


@pytest.fixture
def sample_posts() -> list[str]:
    return [
        f"gm builders, shipping update number {i} for the protocol today"
        for i in range(1, 13)
    ]


@pytest.fixture
def sample_profile() -> StyleProfile:
    """A fresh, fully analyzed profile."""
    return StyleProfile(
        user_id="user-1",
        social_id=1234,
        tone=Tone.TECHNICAL,
        avg_length=150,
        common_phrases=["gm", "wagmi"],
        topics=["zk proofs", "rollups"],
        emoji_usage=EmojiUsage.LIGHT,
        language_preference=LanguagePreference.EN,
        sample_posts=["first sample post", "second sample post", "third sample post"],
        analyzed_at=utcnow() - timedelta(days=1),
    )


@pytest.fixture
def brand_context() -> AccountContext:
    return AccountContext(
        brand_voice="Confident, plain-spoken and builder friendly",
        bio="Infrastructure for onchain apps",
        expertise=["rollups", "developer tooling"],
        always_do=["mention concrete numbers"],
        never_do=["use price speculation", "use slang"],
        hashtags=["#build", "#base"],
    )
