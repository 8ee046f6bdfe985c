"""Batch update: fetch, cache, aggregate and snapshot every tracked player."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any
from zoneinfo import ZoneInfo

from domain.common import MatchOutcomeRecord, MatchStatBlob, PlayerProfile, SnapshotEntry
from domain.config import HistorySettings
from domain.protocol import MatchStatSource, StatsProvider
from domain.snapshots.engine import PeriodUpdate, PlayerRatingState, SnapshotEngine
from domain.snapshots.periods import Period
from domain.stats.awards import Award, AwardCandidate, calculate_awards
from domain.stats.calculator import AggregateRecord, StatsCalculator, TeammateSynergy

logger = logging.getLogger(__name__)

TEAMMATE_RANKING_LIMIT = 5
LAST_MATCH_FORMAT = "%Y-%m-%d %H:%M"
NO_MATCH_LABEL = "—"


def _mate_dict(mate: TeammateSynergy) -> dict[str, Any]:
    return {**asdict(mate), "win_rate": mate.win_rate}


@dataclass(frozen=True)
class PlayerReport:
    """Profile plus derived stats for one player that resolved fully."""

    profile: PlayerProfile
    stats: AggregateRecord
    last_match_at: int | None

    @property
    def player_id(self) -> str:
        return self.profile.player_id

    @property
    def rating(self) -> int:
        return self.profile.rating or 0

    def rating_state(self) -> PlayerRatingState:
        return PlayerRatingState(
            player_id=self.player_id,
            current_rating=self.rating,
            last_match_at=self.last_match_at,
            elo_history=self.stats.elo_history,
        )

    def last_match_label(self, timezone: ZoneInfo) -> str:
        if self.last_match_at is None:
            return NO_MATCH_LABEL
        return datetime.fromtimestamp(self.last_match_at, tz=timezone).strftime(LAST_MATCH_FORMAT)

    def to_dict(self, timezone: ZoneInfo) -> dict[str, Any]:
        return {
            **asdict(self.profile),
            "last_match": self.last_match_label(timezone),
            "last_match_at": self.last_match_at or 0,
            "stats": self.stats.to_dict(),
            "top_mates": [
                _mate_dict(mate) for mate in self.stats.top_teammates(by="games", limit=TEAMMATE_RANKING_LIMIT)
            ],
            "best_mates": [
                _mate_dict(mate) for mate in self.stats.top_teammates(by="wins", limit=TEAMMATE_RANKING_LIMIT)
            ],
            "worst_mates": [
                _mate_dict(mate) for mate in self.stats.top_teammates(by="losses", limit=TEAMMATE_RANKING_LIMIT)
            ],
        }


@dataclass(frozen=True)
class DashboardResult:
    """Outcome of one batch run, handed to the presentation layer."""

    players: tuple[PlayerReport, ...]
    snapshots: dict[Period, PeriodUpdate]
    awards: dict[str, Award]
    last_updated: datetime
    timezone: ZoneInfo
    skipped: tuple[str, ...] = field(default_factory=tuple)

    @property
    def processed(self) -> int:
        return len(self.players)

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_updated": self.last_updated.strftime(LAST_MATCH_FORMAT),
            "processed": self.processed,
            "skipped": list(self.skipped),
            "players": [player.to_dict(self.timezone) for player in self.players],
            "snapshots": {
                period.value: [entry.to_dict() for entry in update.entries]
                for period, update in self.snapshots.items()
            },
            "awards": {name: asdict(award) for name, award in self.awards.items()},
        }


async def resolve_match_stats(
    provider: StatsProvider,
    cache: MatchStatSource,
    matches: Sequence[MatchOutcomeRecord],
) -> dict[str, MatchStatBlob]:
    """Look up every match's blob, hitting the cache first; unresolved matches are omitted."""

    async def _resolve(match_id: str) -> MatchStatBlob | None:
        cached = cache.get(match_id)
        if cached is not None:
            logger.debug("Cache hit for match %s", match_id)
            return cached
        try:
            blob = await provider.get_match_stats(match_id)
        except Exception:
            logger.warning("Stats lookup failed for match %s", match_id, exc_info=True)
            return None
        if blob is None:
            return None
        return cache.put(match_id, blob)

    match_ids = list(dict.fromkeys(match.match_id for match in matches))
    blobs = await asyncio.gather(*(_resolve(match_id) for match_id in match_ids))
    return {match_id: blob for match_id, blob in zip(match_ids, blobs) if blob is not None}


async def process_player(
    player_ref: str,
    *,
    provider: StatsProvider,
    cache: MatchStatSource,
    calculator: StatsCalculator,
    history: HistorySettings,
) -> PlayerReport | None:
    """Resolve one roster entry; any failure excludes the player and is logged."""
    try:
        profile = await provider.get_player(player_ref)
        if profile is None:
            logger.error("Profile not found for %s", player_ref)
            return None
        if profile.rating is None:
            logger.error("No rating on profile for %s (%s)", player_ref, profile.player_id)
            return None

        matches, elo_feed = await asyncio.gather(
            provider.get_player_history(profile.player_id, limit=history.match_limit),
            provider.get_elo_history(profile.player_id, size=history.elo_history_size),
        )
        stat_blobs = await resolve_match_stats(provider, cache, matches)
        stats = calculator.aggregate(profile.player_id, matches, stat_blobs, elo_feed)
    except Exception:
        logger.exception("Error processing player %s", player_ref)
        return None

    last_match_at = matches[0].finished_at if matches else None
    logger.info(
        "Processed %s: rating=%s matches=%d stats_resolved=%d",
        profile.nickname,
        profile.rating,
        len(matches),
        stats.recent.matches,
    )
    return PlayerReport(profile=profile, stats=stats, last_match_at=last_match_at)


async def run_dashboard_update(
    roster: Sequence[str],
    *,
    provider: StatsProvider,
    cache: MatchStatSource,
    snapshots: SnapshotEngine,
    history: HistorySettings | None = None,
    calculator: StatsCalculator | None = None,
    clock: Callable[[], datetime] | None = None,
) -> DashboardResult:
    """Run one full batch. Raises MissingCredentialsError before any network call."""
    provider.require_credentials()

    history = history or HistorySettings()
    calculator = calculator or StatsCalculator(recent_results=history.recent_results)
    clock = clock or (lambda: datetime.now(UTC))

    logger.info("Processing %d players", len(roster))
    reports = await asyncio.gather(
        *(
            process_player(
                player_ref,
                provider=provider,
                cache=cache,
                calculator=calculator,
                history=history,
            )
            for player_ref in roster
        )
    )

    # Single save after every put of the run has landed.
    cache.persist()

    players = sorted(
        (report for report in reports if report is not None),
        key=lambda report: report.rating,
        reverse=True,
    )
    skipped = tuple(ref for ref, report in zip(roster, reports) if report is None)

    now = clock()
    states = [player.rating_state() for player in players]
    updates: dict[Period, PeriodUpdate] = {}
    for period in Period:
        try:
            updates[period] = snapshots.update_period(period, states, now=now)
        except OSError:
            logger.exception("Failed to update %s snapshot", period.value)

    try:
        snapshots.record_latest(
            [SnapshotEntry(player.player_id, player.rating) for player in players]
        )
    except OSError:
        logger.exception("Failed to write latest ratings")

    awards = calculate_awards(
        [
            AwardCandidate(nickname=player.profile.nickname, avatar=player.profile.avatar, stats=player.stats)
            for player in players
        ]
    )

    logger.info("Processed %d players, skipped %d", len(players), len(skipped))
    if skipped:
        logger.warning("Skipped players: %s", ", ".join(skipped))

    return DashboardResult(
        players=tuple(players),
        snapshots=updates,
        awards=awards,
        last_updated=now.astimezone(snapshots.timezone),
        timezone=snapshots.timezone,
        skipped=skipped,
    )


__all__ = [
    "DashboardResult",
    "PlayerReport",
    "process_player",
    "resolve_match_stats",
    "run_dashboard_update",
]
