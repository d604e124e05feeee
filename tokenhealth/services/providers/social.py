"""
X (Twitter) API v2 social profile client.

Looks up the public metrics of the project account and measures follower
growth against a baseline snapshot kept in the identity cache. The first
observation of a handle becomes its baseline until the cache entry
expires.

NO business logic, NO scoring.
"""

import logging
import re
from datetime import datetime
from typing import Any

from tokenhealth.core.payloads import CoinLinks, FollowerChange, SocialProfile, Trend
from tokenhealth.core.results import Ok, ProviderResult, logical_error
from tokenhealth.services.cache import TTLCache
from tokenhealth.services.providers.base import ProviderClient, ProviderConfig, to_int

logger = logging.getLogger(__name__)

USER_FIELDS = "created_at,public_metrics,verified"

PROFILE_URL_RE = re.compile(r"(?:twitter\.com|x\.com)/(?:#!/)?@?([A-Za-z0-9_]{1,15})", re.IGNORECASE)


def baseline_key(handle: str) -> str:
    return f"social:baseline:{handle.lower()}"


def extract_social_handle(links: CoinLinks) -> str | None:
    """
    Find the project's X handle in its published links.

    Uses the screen name when present, else the first homepage link that
    points at an X/Twitter profile.
    """
    if links.twitter_screen_name:
        return links.twitter_screen_name.lstrip("@")
    for url in links.homepage:
        match = PROFILE_URL_RE.search(url)
        if match:
            return match.group(1)
    return None


def calculate_follower_growth(current: int, previous: int | None) -> FollowerChange:
    """
    Follower change against a previous observation.

    >>> calculate_follower_growth(1100, 1000).percentage
    10.0
    """
    if previous is None:
        return FollowerChange()

    change = current - previous
    percentage = 0.0 if previous == 0 else round(change / previous * 100, 1)

    if change > 0:
        trend = Trend.UP
    elif change < 0:
        trend = Trend.DOWN
    else:
        trend = Trend.NEUTRAL

    return FollowerChange(trend=trend, value=change, percentage=percentage)


def parse_profile(data: dict[str, Any], handle: str) -> SocialProfile:
    user = data["data"]
    metrics = user.get("public_metrics") or {}
    created_at = user.get("created_at")

    return SocialProfile(
        handle=user.get("username") or handle,
        followers=to_int(metrics.get("followers_count")) or 0,
        following=to_int(metrics.get("following_count")) or 0,
        tweet_count=to_int(metrics.get("tweet_count")) or 0,
        verified=bool(user.get("verified")),
        created_at=datetime.fromisoformat(created_at.replace("Z", "+00:00")) if created_at else None,
    )


class SocialProfileClient(ProviderClient):
    """
    X API v2 client.

    Requires a bearer token. Without one every lookup is a logical error
    and no request is made.
    """

    name = "social_profile"

    def __init__(self, config: ProviderConfig, cache: TTLCache | None = None):
        super().__init__(config)
        self._cache = cache

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._config.api_key}"}

    def _check_payload(self, data: Any) -> str | None:
        if not isinstance(data, dict):
            return "unexpected response"
        if "data" not in data and data.get("errors"):
            first = data["errors"][0]
            return f"provider error: {first.get('detail') or first.get('title')}"
        return None

    async def fetch(self, handle: str) -> ProviderResult[SocialProfile]:
        """
        Fetch profile metrics and follower growth of a handle.

        Args:
            handle: Screen name, with or without '@'

        Returns:
            Ok(SocialProfile) or Err
        """
        handle = handle.lstrip("@")
        if not self._config.api_key:
            return logical_error(self.name, "no bearer token configured")

        logger.debug(f"X profile: @{handle}")
        result = await self._get_json(
            f"users/by/username/{handle}",
            params={"user.fields": USER_FIELDS},
        )
        result = self._parse(result, lambda data: parse_profile(data, handle))
        if not isinstance(result, Ok):
            return result

        profile = result.payload
        previous = await self._baseline(profile)
        profile = profile.model_copy(
            update={"follower_change": calculate_follower_growth(profile.followers, previous)}
        )
        return Ok(profile, fetched_at=result.fetched_at)

    async def _baseline(self, profile: SocialProfile) -> int | None:
        """Read the baseline follower count, recording one if absent or malformed."""
        if not self._cache:
            return None

        key = baseline_key(profile.handle)
        entry = await self._cache.get(key)
        if entry and isinstance(entry.payload, dict):
            return to_int(entry.payload.get("followers"))

        if entry:
            logger.warning(f"Replacing malformed follower baseline for {profile.handle}")

        await self._cache.put(key, {"followers": profile.followers})
        return None
