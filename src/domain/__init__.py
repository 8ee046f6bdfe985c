"""Match statistics and rating-snapshot domain modules."""

from domain.common import (
    EloHistoryPoint,
    MatchOutcomeRecord,
    MatchStatBlob,
    PlayerProfile,
    PlayerStatLine,
    RosterMember,
    SnapshotEntry,
)

__all__ = [
    "EloHistoryPoint",
    "MatchOutcomeRecord",
    "MatchStatBlob",
    "PlayerProfile",
    "PlayerStatLine",
    "RosterMember",
    "SnapshotEntry",
]
