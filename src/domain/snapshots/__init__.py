"""Rating snapshot modules."""

from domain.snapshots.engine import (
    PeriodUpdate,
    PlayerRatingState,
    SnapshotAction,
    SnapshotEngine,
    rating_at,
)
from domain.snapshots.periods import Period, period_start

__all__ = [
    "Period",
    "PeriodUpdate",
    "PlayerRatingState",
    "SnapshotAction",
    "SnapshotEngine",
    "period_start",
    "rating_at",
]
