"""Period baselines with once-per-period refresh and history backfill."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from zoneinfo import ZoneInfo

from domain.common import EloHistoryPoint, SnapshotEntry
from domain.protocol import SnapshotMetadata, SnapshotStore
from domain.snapshots.periods import (
    DEFAULT_TIMEZONE,
    Period,
    local_midnight,
    period_start,
    resolve_timezone,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlayerRatingState:
    """What the engine needs to know about one processed player."""

    player_id: str
    current_rating: int
    last_match_at: int | None
    elo_history: Sequence[EloHistoryPoint] = ()


class SnapshotAction(str, Enum):
    BACKFILLED = "backfilled"
    ROLLED_OVER = "rolled_over"
    KEPT = "kept"


@dataclass(frozen=True)
class PeriodUpdate:
    """Result of evaluating one period: the baseline now in force and how it got there."""

    period: Period
    action: SnapshotAction
    period_start: datetime
    entries: tuple[SnapshotEntry, ...]
    appended: int = 0

    def ratings_by_player(self) -> dict[str, int]:
        return {entry.player_id: entry.rating for entry in self.entries}


def rating_at(history: Sequence[EloHistoryPoint], boundary_ts: int, fallback: int) -> int:
    """Rating at the latest point at or before `boundary_ts` (history is oldest first).

    Falls back to the oldest known point when every point is after the
    boundary, and to `fallback` when there is no history.
    """
    if not history:
        return fallback
    for point in reversed(history):
        if point.timestamp <= boundary_ts:
            return point.rating
    return history[0].rating


class SnapshotEngine:
    """Maintains the daily/weekly/monthly/yearly baselines in a SnapshotStore.

    Re-running within one period instance never changes a baseline already
    recorded for a player; only a boundary crossing replaces it.
    """

    def __init__(
        self,
        store: SnapshotStore,
        *,
        timezone: str | ZoneInfo = DEFAULT_TIMEZONE,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.timezone = resolve_timezone(timezone)
        self._clock = clock or (lambda: datetime.now(UTC))

    def update_all(
        self,
        players: Sequence[PlayerRatingState],
        periods: Sequence[Period] = tuple(Period),
    ) -> dict[Period, PeriodUpdate]:
        now = self._clock()
        return {period: self.update_period(period, players, now=now) for period in periods}

    def update_period(
        self,
        period: Period,
        players: Sequence[PlayerRatingState],
        *,
        now: datetime | None = None,
    ) -> PeriodUpdate:
        start = period_start(period, now or self._clock(), self.timezone)
        boundary_ts = int(start.timestamp())

        baseline = self.store.load_baseline(period)
        metadata = self.store.load_metadata(period)
        if baseline is None or metadata is None:
            if baseline is None:
                logger.info("No %s snapshot yet, backfilling from rating history", period.value)
            else:
                logger.warning("No %s metadata next to snapshot, backfilling from rating history", period.value)
            entries = [self._backfilled_entry(player, boundary_ts) for player in players]
            self.store.save_baseline(period, entries)
            self.store.save_metadata(period, start.date())
            return PeriodUpdate(period, SnapshotAction.BACKFILLED, start, tuple(entries))

        if self._is_stale(metadata, start):
            logger.info("%s period rolled over, baseline reset to current ratings", period.value)
            entries = [SnapshotEntry(player.player_id, player.current_rating) for player in players]
            self.store.save_baseline(period, entries)
            self.store.save_metadata(period, start.date())
            return PeriodUpdate(period, SnapshotAction.ROLLED_OVER, start, tuple(entries))

        known = {entry.player_id for entry in baseline}
        appended = [
            self._late_joiner_entry(player, boundary_ts)
            for player in players
            if player.player_id not in known
        ]
        if appended:
            baseline = [*baseline, *appended]
            self.store.save_baseline(period, baseline)
            logger.info("Added %d new players to the %s snapshot", len(appended), period.value)

        return PeriodUpdate(
            period,
            SnapshotAction.KEPT,
            start,
            tuple(baseline),
            appended=len(appended),
        )

    def record_latest(self, entries: Sequence[SnapshotEntry]) -> None:
        """Persist current ratings, independent of any period boundary."""
        self.store.save_latest(entries)

    def _is_stale(self, metadata: SnapshotMetadata, start: datetime) -> bool:
        # Present but unparseable metadata counts as a past period.
        if metadata.last_updated is None:
            return True
        return local_midnight(metadata.last_updated, self.timezone) < start

    @staticmethod
    def _backfilled_entry(player: PlayerRatingState, boundary_ts: int) -> SnapshotEntry:
        history = player.elo_history
        # Idle since before the boundary: zero delta for this period. Judged from
        # the rating feed here; late joiners use last_match_at, which is what the
        # roster refresh knows for a single newly added player.
        if history and history[-1].timestamp < boundary_ts:
            return SnapshotEntry(player.player_id, player.current_rating)
        return SnapshotEntry(
            player.player_id,
            rating_at(history, boundary_ts, player.current_rating),
        )

    @staticmethod
    def _late_joiner_entry(player: PlayerRatingState, boundary_ts: int) -> SnapshotEntry:
        if player.last_match_at is not None and player.last_match_at >= boundary_ts:
            return SnapshotEntry(
                player.player_id,
                rating_at(player.elo_history, boundary_ts, player.current_rating),
            )
        return SnapshotEntry(player.player_id, player.current_rating)


__all__ = [
    "PeriodUpdate",
    "PlayerRatingState",
    "SnapshotAction",
    "SnapshotEngine",
    "rating_at",
]
