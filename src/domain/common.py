"""Shared types for match history, per-match stats and rating snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RosterMember:
    """One player listed on a match roster."""

    player_id: str
    nickname: str | None = None
    profile_url: str | None = None
    avatar: str | None = None


@dataclass(frozen=True)
class MatchOutcomeRecord:
    """Canonical history entry for one finished match of a tracked player."""

    match_id: str
    finished_at: int | None
    teams: dict[str, tuple[RosterMember, ...]]
    winner: str | None = None

    def side_of(self, player_id: str) -> str | None:
        for side, members in self.teams.items():
            if any(member.player_id == player_id for member in members):
                return side
        return None


@dataclass(frozen=True)
class PlayerStatLine:
    """Raw per-match counters for one participant."""

    kills: int = 0
    deaths: int = 0
    assists: int = 0
    adr: float = 0.0
    headshots: int = 0
    rounds: int = 0
    nickname: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kills": self.kills,
            "deaths": self.deaths,
            "assists": self.assists,
            "adr": self.adr,
            "headshots": self.headshots,
            "rounds": self.rounds,
            "nickname": self.nickname,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> PlayerStatLine:
        nickname = raw.get("nickname")
        return cls(
            kills=int(raw.get("kills", 0)),
            deaths=int(raw.get("deaths", 0)),
            assists=int(raw.get("assists", 0)),
            adr=float(raw.get("adr", 0.0)),
            headshots=int(raw.get("headshots", 0)),
            rounds=int(raw.get("rounds", 0)),
            nickname=None if nickname is None else str(nickname),
        )


@dataclass(frozen=True)
class MatchStatBlob:
    """Parsed per-match stats for every participant, keyed by player id.

    Immutable once written: matches are never replayed, so a cached blob is
    only ever evicted by age.
    """

    match_id: str
    map_name: str
    players: dict[str, PlayerStatLine] = field(default_factory=dict)
    cached_at: int | None = None

    def stat_line(self, player_id: str) -> PlayerStatLine | None:
        return self.players.get(player_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "cachedAt": self.cached_at,
            "mapName": self.map_name,
            "players": {player_id: line.to_dict() for player_id, line in self.players.items()},
        }

    @classmethod
    def from_dict(cls, match_id: str, raw: dict[str, Any]) -> MatchStatBlob:
        players_raw = raw.get("players") or {}
        if not isinstance(players_raw, dict):
            raise ValueError(f"players must be an object, got {type(players_raw).__name__}")
        cached_at = raw.get("cachedAt")
        return cls(
            match_id=match_id,
            map_name=str(raw.get("mapName") or "Unknown"),
            players={
                str(player_id): PlayerStatLine.from_dict(line)
                for player_id, line in players_raw.items()
                if isinstance(line, dict)
            },
            cached_at=None if cached_at is None else int(cached_at),
        )


@dataclass(frozen=True)
class EloHistoryPoint:
    """One rating observation, oldest-first ordering when in a series."""

    timestamp: int
    rating: int


@dataclass(frozen=True)
class PlayerProfile:
    """Normalized player profile merged with lifetime stats."""

    player_id: str
    nickname: str
    profile_url: str
    avatar: str
    rating: int | None
    skill_level: int
    lifetime_win_rate: str | None = None
    lifetime_matches: str | None = None


@dataclass(frozen=True)
class SnapshotEntry:
    """One player's rating at the start of a comparison period."""

    player_id: str
    rating: int

    def to_dict(self) -> dict[str, Any]:
        return {"playerId": self.player_id, "rating": self.rating}


__all__ = [
    "EloHistoryPoint",
    "MatchOutcomeRecord",
    "MatchStatBlob",
    "PlayerProfile",
    "PlayerStatLine",
    "RosterMember",
    "SnapshotEntry",
]
