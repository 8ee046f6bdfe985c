"""FACEIT Data API client built on the resilient fetch layer."""

from __future__ import annotations

import logging
import re
from typing import Any

from clients.http import ResilientFetchClient
from clients.normalize import (
    normalize_elo_feed,
    normalize_match_history,
    normalize_match_stats,
    normalize_player_profile,
)
from domain.common import MatchOutcomeRecord, MatchStatBlob, PlayerProfile
from domain.config import ApiSettings

logger = logging.getLogger(__name__)

USER_AGENT = "FaceitDashboard/1.0"

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class MissingCredentialsError(RuntimeError):
    """Raised when a run needing fresh data has no API key configured."""


def is_player_id(value: str) -> bool:
    return bool(_UUID_RE.match(value))


class FaceitClient:
    """Typed access to profiles, history, match stats and rating history."""

    def __init__(
        self,
        fetcher: ResilientFetchClient,
        *,
        api_key: str | None,
        settings: ApiSettings | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.api_key = (api_key or "").strip()
        self.settings = settings or ApiSettings()
        if not self.api_key:
            logger.error("FACEIT API key is missing or empty; authenticated calls will fail")

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key)

    def require_credentials(self) -> None:
        if not self.has_credentials:
            raise MissingCredentialsError(
                f"Environment variable {self.settings.api_key_env} is not set"
            )

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        }

    def _url(self, path: str) -> str:
        return f"{self.settings.base_url}/{path.lstrip('/')}"

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any | None:
        return await self.fetcher.fetch_json(self._url(path), headers=self._headers(), params=params)

    async def get_player(self, nickname_or_id: str) -> PlayerProfile | None:
        """Look up a profile by player id or nickname, merged with lifetime stats."""
        if is_player_id(nickname_or_id):
            raw_profile = await self._get(f"players/{nickname_or_id}")
        else:
            raw_profile = await self._get("players", params={"nickname": nickname_or_id})
        if not isinstance(raw_profile, dict) or not raw_profile.get("player_id"):
            return None

        raw_stats = await self.get_lifetime_stats(str(raw_profile["player_id"]))
        return normalize_player_profile(
            raw_profile,
            raw_stats,
            game=self.settings.game,
            language=self.settings.profile_language,
        )

    async def get_lifetime_stats(self, player_id: str) -> dict[str, Any]:
        raw = await self._get(f"players/{player_id}/stats/{self.settings.game}")
        return raw if isinstance(raw, dict) else {}

    async def get_player_history(self, player_id: str, limit: int = 30) -> list[MatchOutcomeRecord]:
        raw = await self._get(
            f"players/{player_id}/history",
            params={"game": self.settings.game, "limit": limit},
        )
        return normalize_match_history(raw, language=self.settings.profile_language)

    async def get_match_stats(self, match_id: str) -> MatchStatBlob | None:
        raw = await self._get(f"matches/{match_id}/stats")
        return normalize_match_stats(match_id, raw)

    async def get_elo_history(self, player_id: str, size: int = 100) -> list[dict[str, Any]]:
        """Fetch the raw rating-over-time feed (newest-first, unauthenticated endpoint)."""
        url = self.settings.elo_history_url.format(player_id=player_id, game=self.settings.game)
        raw = await self.fetcher.fetch_json(
            url,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            params={"size": size},
        )
        return normalize_elo_feed(raw)


__all__ = ["FaceitClient", "MissingCredentialsError", "USER_AGENT", "is_player_id"]
