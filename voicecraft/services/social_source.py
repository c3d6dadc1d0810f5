"""
Social network client used to sample a user's recent posts.
"""

from typing import Optional, Protocol

import httpx
import structlog

from voicecraft.core.config import settings
from voicecraft.core.exceptions import ConfigurationError, SocialSourceError
from voicecraft.schemas import SocialPost

logger = structlog.get_logger(__name__)


class SocialSource(Protocol):
    """Anything that can return a user's recent posts, newest first."""

    async def fetch_recent_posts(
        self,
        social_id: int,
        *,
        limit: int = 25,
        include_reposts: bool = True,
    ) -> list[SocialPost]:
        ...


class NeynarSocialSource:
    """Farcaster posts via the Neynar v2 API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key or settings.neynar_api_key
        self._base_url = (base_url or settings.neynar_base_url).rstrip("/")
        self._timeout = timeout or settings.neynar_timeout
        self._transport = transport

    async def fetch_recent_posts(
        self,
        social_id: int,
        *,
        limit: int = 25,
        include_reposts: bool = True,
    ) -> list[SocialPost]:
        """
        Fetch the most recent posts for a Farcaster id.

        Raises:
            ConfigurationError: No API key configured
            SocialSourceError: HTTP or connection failure
        """
        if not self._api_key:
            raise ConfigurationError("NEYNAR_API_KEY is not configured")

        url = f"{self._base_url}/farcaster/feed/user/casts"
        params = {
            "fid": social_id,
            "limit": limit,
            "include_recasts": str(include_reposts).lower(),
        }
        headers = {"accept": "application/json", "x-api-key": self._api_key}

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(url, headers=headers, params=params)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Neynar API returned an error",
                social_id=social_id,
                status_code=e.response.status_code,
                body=e.response.text[:500],
            )
            raise SocialSourceError(
                f"Failed to fetch posts: HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            logger.error("Failed to connect to Neynar", social_id=social_id, error=str(e))
            raise SocialSourceError(f"Could not reach Neynar: {e}") from e

        body = response.json()
        raw_posts = body.get("casts") or []

        posts = [
            SocialPost(
                text=raw.get("text") or "",
                hash=raw.get("hash"),
                timestamp=raw.get("timestamp"),
            )
            for raw in raw_posts
            if isinstance(raw, dict)
        ]

        logger.info("Fetched recent posts", social_id=social_id, count=len(posts))
        return posts[:limit]
