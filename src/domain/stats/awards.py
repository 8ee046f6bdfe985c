"""Roster-wide awards derived from each player's rolling window."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from domain.stats.calculator import AggregateRecord

PLACEHOLDER = "—"


@dataclass(frozen=True)
class AwardCandidate:
    """Minimal view of one processed player needed to rank awards."""

    nickname: str
    avatar: str
    stats: AggregateRecord


@dataclass(frozen=True)
class Award:
    nickname: str
    value: str | int
    avatar: str | None = None


def _percent_value(text: str) -> int:
    try:
        return int(text.rstrip("%"))
    except ValueError:
        return 0


def calculate_awards(candidates: Sequence[AwardCandidate]) -> dict[str, Award]:
    """Pick the leader for each award; ties keep the earlier candidate."""
    if not candidates:
        return {}

    best_kd = Award(PLACEHOLDER, "0.00")
    best_hs = Award(PLACEHOLDER, "0%")
    best_adr = Award(PLACEHOLDER, "0.0")
    most_matches = Award(PLACEHOLDER, 0)
    longest_streak = Award(PLACEHOLDER, 0)
    lowest_deaths: Award | None = None

    for candidate in candidates:
        recent = candidate.stats.recent
        streak = candidate.stats.streak

        if float(recent.kd) > float(best_kd.value):
            best_kd = Award(candidate.nickname, recent.kd, candidate.avatar)
        if _percent_value(recent.hs_percent) > _percent_value(str(best_hs.value)):
            best_hs = Award(candidate.nickname, recent.hs_percent, candidate.avatar)
        if float(recent.adr) > float(best_adr.value):
            best_adr = Award(candidate.nickname, recent.adr, candidate.avatar)
        if recent.matches > int(most_matches.value):
            most_matches = Award(candidate.nickname, recent.matches, candidate.avatar)
        if recent.matches > 0 and (lowest_deaths is None or recent.deaths < int(lowest_deaths.value)):
            lowest_deaths = Award(candidate.nickname, recent.deaths, candidate.avatar)
        if streak.type == "win" and streak.length > int(longest_streak.value):
            longest_streak = Award(candidate.nickname, streak.length, candidate.avatar)

    return {
        "best_kd": best_kd,
        "best_hs": best_hs,
        "best_adr": best_adr,
        "most_matches": most_matches,
        "longest_streak": longest_streak,
        "lowest_deaths": lowest_deaths or Award(PLACEHOLDER, 0),
    }


__all__ = ["Award", "AwardCandidate", "calculate_awards"]
