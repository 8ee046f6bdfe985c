"""Player statistics modules."""

from domain.stats.awards import Award, AwardCandidate, calculate_awards
from domain.stats.calculator import (
    AggregateRecord,
    MapPerformance,
    MatchDetail,
    RollingStatsWindow,
    StatsCalculator,
    Streak,
    TeammateSynergy,
    compute_streak,
    normalize_elo_history,
)

__all__ = [
    "AggregateRecord",
    "Award",
    "AwardCandidate",
    "MapPerformance",
    "MatchDetail",
    "RollingStatsWindow",
    "StatsCalculator",
    "Streak",
    "TeammateSynergy",
    "calculate_awards",
    "compute_streak",
    "normalize_elo_history",
]
