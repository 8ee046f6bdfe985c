"""Map loosely-shaped upstream payloads onto the strict internal types.

Everything downstream of the client works on MatchOutcomeRecord,
MatchStatBlob and PlayerProfile only; upstream schema drift stops here.
"""

from __future__ import annotations

from typing import Any

from domain.common import MatchOutcomeRecord, MatchStatBlob, PlayerProfile, PlayerStatLine, RosterMember
from domain.maps import normalize_map_name

_ROSTER_KEYS = ("players", "roster", "members")


def _to_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def localize_url(url: Any, language: str) -> str:
    """Fill the `{lang}` placeholder FACEIT leaves in profile URLs."""
    return str(url or "").replace("{lang}", language)


def _roster_members(team: Any, language: str) -> tuple[RosterMember, ...]:
    if not isinstance(team, dict):
        return ()
    raw_members: Any = None
    for key in _ROSTER_KEYS:
        if isinstance(team.get(key), list):
            raw_members = team[key]
            break
    if raw_members is None:
        return ()

    members: list[RosterMember] = []
    for raw in raw_members:
        if not isinstance(raw, dict):
            continue
        player_id = _optional_str(raw.get("player_id") or raw.get("id"))
        if player_id is None:
            continue
        members.append(
            RosterMember(
                player_id=player_id,
                nickname=_optional_str(raw.get("nickname")),
                profile_url=_optional_str(localize_url(raw.get("faceit_url"), language)),
                avatar=_optional_str(raw.get("avatar")),
            )
        )
    return tuple(members)


def normalize_match_outcome(raw: Any, *, language: str = "en") -> MatchOutcomeRecord | None:
    """Normalize one history item; None when it has no match id."""
    if not isinstance(raw, dict):
        return None
    match_id = _optional_str(raw.get("match_id"))
    if match_id is None:
        return None

    teams_raw = raw.get("teams")
    teams: dict[str, tuple[RosterMember, ...]] = {}
    if isinstance(teams_raw, dict):
        for side, team in teams_raw.items():
            teams[str(side)] = _roster_members(team, language)

    results = raw.get("results")
    winner = _optional_str(results.get("winner")) if isinstance(results, dict) else None

    finished_raw = raw.get("finished_at")
    finished_at = _to_int(finished_raw) if finished_raw is not None else None

    return MatchOutcomeRecord(
        match_id=match_id,
        finished_at=finished_at or None,
        teams=teams,
        winner=winner,
    )


def normalize_match_history(raw: Any, *, language: str = "en") -> list[MatchOutcomeRecord]:
    """Normalize a history page, preserving the provider's (newest-first) order."""
    items = raw.get("items") if isinstance(raw, dict) else None
    if not isinstance(items, list):
        return []
    records = (normalize_match_outcome(item, language=language) for item in items)
    return [record for record in records if record is not None]


def _round_count(score: Any) -> int:
    parts = str(score or "0 / 0").split("/")
    return sum(_to_int(part.strip()) for part in parts)


def normalize_match_stats(match_id: str, raw: Any) -> MatchStatBlob | None:
    """Build a MatchStatBlob from the per-match stats payload (first round only)."""
    if not isinstance(raw, dict):
        return None
    rounds = raw.get("rounds")
    if not isinstance(rounds, list) or not rounds or not isinstance(rounds[0], dict):
        return None

    first_round = rounds[0]
    round_stats = first_round.get("round_stats") or {}
    if not isinstance(round_stats, dict):
        round_stats = {}
    round_count = _round_count(round_stats.get("Score"))
    map_name = normalize_map_name(round_stats.get("Map"))

    players: dict[str, PlayerStatLine] = {}
    for team in first_round.get("teams") or []:
        if not isinstance(team, dict):
            continue
        for player in team.get("players") or []:
            if not isinstance(player, dict):
                continue
            player_id = _optional_str(player.get("player_id"))
            if player_id is None:
                continue
            stats = player.get("player_stats") or {}
            if not isinstance(stats, dict):
                stats = {}
            players[player_id] = PlayerStatLine(
                kills=_to_int(stats.get("Kills")),
                deaths=_to_int(stats.get("Deaths")),
                assists=_to_int(stats.get("Assists")),
                adr=_to_float(stats.get("ADR")),
                headshots=_to_int(stats.get("Headshots")),
                rounds=round_count,
                nickname=_optional_str(player.get("nickname")),
            )

    return MatchStatBlob(match_id=match_id, map_name=map_name, players=players)


def normalize_player_profile(
    raw_profile: Any,
    raw_stats: Any = None,
    *,
    game: str = "cs2",
    language: str = "en",
) -> PlayerProfile | None:
    """Merge the profile and lifetime-stats payloads; None without a player id."""
    if not isinstance(raw_profile, dict):
        return None
    player_id = _optional_str(raw_profile.get("player_id"))
    if player_id is None:
        return None

    games = raw_profile.get("games") if isinstance(raw_profile.get("games"), dict) else {}
    game_raw = games.get(game) if isinstance(games.get(game), dict) else {}
    rating_raw = game_raw.get("faceit_elo")
    rating = _to_int(rating_raw) if rating_raw is not None else None

    lifetime: dict[str, Any] = {}
    if isinstance(raw_stats, dict) and isinstance(raw_stats.get("lifetime"), dict):
        lifetime = raw_stats["lifetime"]

    return PlayerProfile(
        player_id=player_id,
        nickname=_optional_str(raw_profile.get("nickname")) or player_id,
        profile_url=localize_url(raw_profile.get("faceit_url"), language),
        avatar=str(raw_profile.get("avatar") or ""),
        rating=rating or None,
        skill_level=_to_int(game_raw.get("skill_level")),
        lifetime_win_rate=_optional_str(lifetime.get("Win Rate %")),
        lifetime_matches=_optional_str(lifetime.get("Matches")),
    )


def normalize_elo_feed(raw: Any) -> list[dict[str, Any]]:
    """Unwrap the rating-over-time feed to its list of raw points."""
    if isinstance(raw, list):
        return [item for item in raw if isinstance(item, dict)]
    if isinstance(raw, dict) and isinstance(raw.get("items"), list):
        return [item for item in raw["items"] if isinstance(item, dict)]
    return []


__all__ = [
    "localize_url",
    "normalize_elo_feed",
    "normalize_match_history",
    "normalize_match_outcome",
    "normalize_match_stats",
    "normalize_player_profile",
]
