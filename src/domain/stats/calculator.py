"""Rolling-window player statistics from match history and cached per-match stats."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass, field
from math import floor
from typing import Any, Literal

from domain.common import EloHistoryPoint, MatchOutcomeRecord, MatchStatBlob, RosterMember
from domain.maps import UNKNOWN_MAP

DEFAULT_RECENT_RESULTS = 5
UNKNOWN_NICKNAME = "—"

Outcome = Literal["W", "L"]


def round_half_up(value: float) -> int:
    return int(floor(value + 0.5))


def format_ratio(numerator: float, denominator: float, *, digits: int = 2) -> str:
    """Zero-guarded ratio as a fixed-point string ("0.00" when the denominator is 0)."""
    if not denominator:
        return f"{0.0:.{digits}f}"
    return f"{numerator / denominator:.{digits}f}"


def percentage(part: int, whole: int) -> int:
    return round_half_up(part / whole * 100) if whole else 0


@dataclass(frozen=True)
class RollingStatsWindow:
    """Summed counters and derived ratios over the stat-resolved matches."""

    kills: int = 0
    deaths: int = 0
    assists: int = 0
    adr_total: float = 0.0
    headshots: int = 0
    rounds: int = 0
    matches: int = 0
    wins: int = 0
    kd: str = "0.00"
    kpr: str = "0.00"
    adr: str = "0.0"
    hs_percent: str = "0%"
    win_rate_pct: int = 0


@dataclass(frozen=True)
class Streak:
    type: Literal["win", "loss", "none"] = "none"
    length: int = 0


@dataclass(frozen=True)
class MapPerformance:
    map_name: str
    matches: int
    wins: int
    losses: int
    kills: int
    deaths: int
    win_rate_pct: int
    kd: str


@dataclass(frozen=True)
class TeammateSynergy:
    player_id: str
    nickname: str
    profile_url: str
    avatar: str | None
    games: int
    wins: int
    losses: int
    win_rate_pct: int

    @property
    def win_rate(self) -> str:
        return f"{self.win_rate_pct}%" if self.games else UNKNOWN_NICKNAME


@dataclass(frozen=True)
class MatchDetail:
    """One stat-resolved match, as fed to the per-match history view."""

    match_id: str
    finished_at: int | None
    kd: str
    result: Outcome | None
    map_name: str
    kills: int
    deaths: int


@dataclass(frozen=True)
class AggregateRecord:
    """Everything derived for one player in one run."""

    player_id: str
    recent: RollingStatsWindow
    streak: Streak
    last_results: tuple[Outcome, ...]
    map_performance: tuple[MapPerformance, ...]
    teammates: tuple[TeammateSynergy, ...]
    elo_history: tuple[EloHistoryPoint, ...]
    match_history: tuple[MatchDetail, ...]
    matches_processed: int

    def top_teammates(self, *, by: str = "games", limit: int = 5) -> list[TeammateSynergy]:
        """Teammates ranked by `games`, `wins` or `losses`, descending."""
        if by not in ("games", "wins", "losses"):
            raise ValueError(f"Unsupported teammate ranking key: {by}")
        return sorted(self.teammates, key=lambda mate: getattr(mate, by), reverse=True)[:limit]

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["teammates"] = [
            {**asdict(mate), "win_rate": mate.win_rate} for mate in self.teammates
        ]
        payload["last_results"] = list(self.last_results)
        return payload


@dataclass
class _MapBucket:
    matches: int = 0
    wins: int = 0
    losses: int = 0
    kills: int = 0
    deaths: int = 0


@dataclass
class _MateBucket:
    identity: RosterMember
    games: int = 0
    wins: int = 0
    losses: int = 0


@dataclass
class _WindowTotals:
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    adr_total: float = 0.0
    headshots: int = 0
    rounds: int = 0
    matches: int = 0
    wins: int = 0
    maps: dict[str, _MapBucket] = field(default_factory=dict)
    mates: dict[str, _MateBucket] = field(default_factory=dict)


def normalize_elo_history(raw_points: Iterable[Mapping[str, Any]] | None) -> list[EloHistoryPoint]:
    """Convert the newest-first rating feed into integer points, oldest first.

    `date` arrives in milliseconds and `elo` as a string; entries where either
    does not parse are dropped.
    """
    points: list[EloHistoryPoint] = []
    for item in raw_points or ():
        if not isinstance(item, Mapping):
            continue
        try:
            timestamp = floor(float(item["date"]) / 1000)
            rating = int(float(item["elo"]))
        except (KeyError, TypeError, ValueError, OverflowError):
            continue
        points.append(EloHistoryPoint(timestamp=timestamp, rating=rating))

    points.reverse()
    return sorted(points, key=lambda point: point.timestamp)


def compute_streak(outcomes: Sequence[Outcome]) -> Streak:
    """Run length of the newest outcome; outcomes are ordered newest first."""
    if not outcomes:
        return Streak()
    first = outcomes[0]
    length = 0
    for outcome in outcomes:
        if outcome != first:
            break
        length += 1
    return Streak(type="win" if first == "W" else "loss", length=length)


def match_kd(kills: int, deaths: int) -> str:
    if deaths:
        return f"{kills / deaths:.2f}"
    return "10.0" if kills > 0 else "0.00"


class StatsCalculator:
    """Stateless aggregator turning one player's history into an AggregateRecord."""

    def __init__(self, *, recent_results: int = DEFAULT_RECENT_RESULTS) -> None:
        if recent_results <= 0:
            raise ValueError("recent_results must be greater than 0")
        self.recent_results = recent_results

    def aggregate(
        self,
        player_id: str,
        matches: Sequence[MatchOutcomeRecord],
        stat_blobs: Mapping[str, MatchStatBlob],
        rating_history: Iterable[Mapping[str, Any]] | None = None,
    ) -> AggregateRecord:
        """Fold matches in provider order (newest first) into derived metrics."""
        totals = _WindowTotals()
        outcomes: list[Outcome] = []
        details: list[MatchDetail] = []

        for match in matches:
            blob = stat_blobs.get(match.match_id)
            stat_line = blob.stat_line(player_id) if blob is not None else None
            map_name = blob.map_name if blob is not None else UNKNOWN_MAP

            decided = self._outcome_for(player_id, match)
            # No winner or player not on a roster: a non-win that ends any win streak.
            outcome: Outcome = decided or "L"
            outcomes.append(outcome)

            self._accumulate_teammates(totals, player_id, match, decided)

            bucket = totals.maps.setdefault(map_name, _MapBucket())
            bucket.matches += 1
            if outcome == "W":
                bucket.wins += 1
            elif outcome == "L":
                bucket.losses += 1

            if stat_line is None:
                continue

            totals.kills += stat_line.kills
            totals.deaths += stat_line.deaths
            totals.assists += stat_line.assists
            totals.adr_total += stat_line.adr
            totals.headshots += stat_line.headshots
            totals.rounds += stat_line.rounds
            totals.matches += 1
            if outcome == "W":
                totals.wins += 1

            bucket.kills += stat_line.kills
            bucket.deaths += stat_line.deaths

            details.append(
                MatchDetail(
                    match_id=match.match_id,
                    finished_at=match.finished_at,
                    kd=match_kd(stat_line.kills, stat_line.deaths),
                    result=outcome,
                    map_name=map_name,
                    kills=stat_line.kills,
                    deaths=stat_line.deaths,
                )
            )

        return AggregateRecord(
            player_id=player_id,
            recent=self._window(totals),
            streak=compute_streak(outcomes),
            last_results=tuple(outcomes[: self.recent_results]),
            map_performance=self._map_performance(totals),
            teammates=self._teammates(totals),
            elo_history=tuple(normalize_elo_history(rating_history)),
            match_history=tuple(details),
            matches_processed=len(matches),
        )

    @staticmethod
    def _outcome_for(player_id: str, match: MatchOutcomeRecord) -> Outcome | None:
        if match.winner is None:
            return None
        side = match.side_of(player_id)
        if side is None:
            return None
        return "W" if side == match.winner else "L"

    @staticmethod
    def _accumulate_teammates(
        totals: _WindowTotals,
        player_id: str,
        match: MatchOutcomeRecord,
        outcome: Outcome | None,
    ) -> None:
        side = match.side_of(player_id)
        if side is None:
            return
        for member in match.teams[side]:
            if member.player_id == player_id:
                continue
            # First-seen identity wins; later (older) matches never overwrite it.
            mate = totals.mates.setdefault(member.player_id, _MateBucket(identity=member))
            mate.games += 1
            if outcome == "W":
                mate.wins += 1
            elif outcome == "L":
                mate.losses += 1

    @staticmethod
    def _window(totals: _WindowTotals) -> RollingStatsWindow:
        return RollingStatsWindow(
            kills=totals.kills,
            deaths=totals.deaths,
            assists=totals.assists,
            adr_total=totals.adr_total,
            headshots=totals.headshots,
            rounds=totals.rounds,
            matches=totals.matches,
            wins=totals.wins,
            kd=format_ratio(totals.kills, totals.deaths if totals.matches else 0),
            kpr=format_ratio(totals.kills, totals.rounds),
            adr=format_ratio(totals.adr_total, totals.matches, digits=1),
            hs_percent=f"{percentage(totals.headshots, totals.kills)}%",
            win_rate_pct=percentage(totals.wins, totals.matches),
        )

    @staticmethod
    def _map_performance(totals: _WindowTotals) -> tuple[MapPerformance, ...]:
        rows = [
            MapPerformance(
                map_name=map_name,
                matches=bucket.matches,
                wins=bucket.wins,
                losses=bucket.losses,
                kills=bucket.kills,
                deaths=bucket.deaths,
                win_rate_pct=percentage(bucket.wins, bucket.matches),
                kd=format_ratio(bucket.kills, bucket.deaths),
            )
            for map_name, bucket in totals.maps.items()
        ]
        rows.sort(key=lambda row: row.matches, reverse=True)
        return tuple(rows)

    @staticmethod
    def _teammates(totals: _WindowTotals) -> tuple[TeammateSynergy, ...]:
        teammates: list[TeammateSynergy] = []
        for mate_id, bucket in totals.mates.items():
            nickname = bucket.identity.nickname
            if not nickname or nickname == UNKNOWN_NICKNAME:
                continue
            teammates.append(
                TeammateSynergy(
                    player_id=mate_id,
                    nickname=nickname,
                    profile_url=bucket.identity.profile_url or "#",
                    avatar=bucket.identity.avatar,
                    games=bucket.games,
                    wins=bucket.wins,
                    losses=bucket.losses,
                    win_rate_pct=percentage(bucket.wins, bucket.games),
                )
            )
        return tuple(teammates)


__all__ = [
    "AggregateRecord",
    "MapPerformance",
    "MatchDetail",
    "RollingStatsWindow",
    "StatsCalculator",
    "Streak",
    "TeammateSynergy",
    "compute_streak",
    "format_ratio",
    "match_kd",
    "normalize_elo_history",
    "percentage",
    "round_half_up",
]
