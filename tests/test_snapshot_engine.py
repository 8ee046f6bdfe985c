from __future__ import annotations

from datetime import date, datetime, timedelta
from pathlib import Path
from zoneinfo import ZoneInfo

from domain.common import EloHistoryPoint, SnapshotEntry
from domain.snapshots.engine import PlayerRatingState, SnapshotAction, SnapshotEngine, rating_at
from domain.snapshots.periods import Period
from repositories.snapshot_repository import JsonSnapshotRepository

BERLIN = ZoneInfo("Europe/Berlin")
# Wednesday afternoon; the week started on Monday 2024-03-11.
NOW = datetime(2024, 3, 13, 15, 0, tzinfo=BERLIN)
DAY_START = int(datetime(2024, 3, 13, tzinfo=BERLIN).timestamp())


def _engine(tmp_path: Path, now: datetime = NOW) -> tuple[SnapshotEngine, JsonSnapshotRepository]:
    repository = JsonSnapshotRepository(tmp_path)
    return SnapshotEngine(repository, timezone=BERLIN, clock=lambda: now), repository


def test_rating_at_picks_latest_point_before_boundary() -> None:
    history = [
        EloHistoryPoint(100, 1000),
        EloHistoryPoint(200, 1100),
        EloHistoryPoint(300, 1200),
    ]
    assert rating_at(history, 250, fallback=0) == 1100
    assert rating_at(history, 200, fallback=0) == 1100
    assert rating_at(history, 50, fallback=0) == 1000
    assert rating_at([], 50, fallback=1234) == 1234


def test_first_run_backfills_from_history(tmp_path: Path) -> None:
    engine, repository = _engine(tmp_path)
    player = PlayerRatingState(
        player_id="p1",
        current_rating=1850,
        last_match_at=DAY_START + 3600,
        elo_history=(
            EloHistoryPoint(DAY_START - 3600, 1800),
            EloHistoryPoint(DAY_START + 3600, 1850),
        ),
    )

    update = engine.update_period(Period.DAILY, [player])

    assert update.action is SnapshotAction.BACKFILLED
    assert update.ratings_by_player() == {"p1": 1800}
    assert repository.load_baseline(Period.DAILY) == [SnapshotEntry("p1", 1800)]
    metadata = repository.load_metadata(Period.DAILY)
    assert metadata is not None
    assert metadata.last_updated == date(2024, 3, 13)


def test_backfill_of_idle_player_uses_current_rating(tmp_path: Path) -> None:
    engine, _ = _engine(tmp_path)
    idle = PlayerRatingState(
        player_id="idle",
        current_rating=1500,
        last_match_at=DAY_START - 86_400,
        elo_history=(
            EloHistoryPoint(DAY_START - 2 * 86_400, 1480),
            EloHistoryPoint(DAY_START - 86_400, 1500),
        ),
    )
    no_history = PlayerRatingState(player_id="fresh", current_rating=1000, last_match_at=None)

    update = engine.update_period(Period.DAILY, [idle, no_history])

    assert update.ratings_by_player() == {"idle": 1500, "fresh": 1000}


def test_backfill_falls_back_to_oldest_point(tmp_path: Path) -> None:
    engine, _ = _engine(tmp_path)
    player = PlayerRatingState(
        player_id="p1",
        current_rating=1300,
        last_match_at=DAY_START + 100,
        elo_history=(EloHistoryPoint(DAY_START + 50, 1250), EloHistoryPoint(DAY_START + 100, 1300)),
    )
    assert engine.update_period(Period.DAILY, [player]).ratings_by_player() == {"p1": 1250}


def test_rollover_stamps_current_period_start(tmp_path: Path) -> None:
    engine, repository = _engine(tmp_path)
    repository.save_baseline(Period.WEEKLY, [SnapshotEntry("p1", 1700)])
    repository.save_metadata(Period.WEEKLY, date(2024, 3, 4))

    update = engine.update_period(
        Period.WEEKLY,
        [PlayerRatingState("p1", 1820, DAY_START), PlayerRatingState("p2", 1600, None)],
    )

    assert update.action is SnapshotAction.ROLLED_OVER
    assert update.ratings_by_player() == {"p1": 1820, "p2": 1600}
    metadata = repository.load_metadata(Period.WEEKLY)
    assert metadata is not None
    assert metadata.last_updated == date(2024, 3, 11)


def test_missing_metadata_with_baseline_backfills_from_history(tmp_path: Path) -> None:
    engine, repository = _engine(tmp_path)
    repository.save_baseline(Period.DAILY, [SnapshotEntry("p1", 1700)])
    player = PlayerRatingState(
        player_id="p1",
        current_rating=1850,
        last_match_at=DAY_START + 3600,
        elo_history=(
            EloHistoryPoint(DAY_START - 3600, 1800),
            EloHistoryPoint(DAY_START + 3600, 1850),
        ),
    )

    update = engine.update_period(Period.DAILY, [player])

    assert update.action is SnapshotAction.BACKFILLED
    assert update.ratings_by_player() == {"p1": 1800}
    metadata = repository.load_metadata(Period.DAILY)
    assert metadata is not None
    assert metadata.last_updated == date(2024, 3, 13)


def test_unparseable_metadata_with_baseline_rolls_over(tmp_path: Path) -> None:
    engine, repository = _engine(tmp_path)
    repository.save_baseline(Period.MONTHLY, [SnapshotEntry("p1", 1700)])
    repository.metadata_path(Period.MONTHLY).write_text("{not json", encoding="utf-8")

    update = engine.update_period(Period.MONTHLY, [PlayerRatingState("p1", 1750, None)])

    assert update.action is SnapshotAction.ROLLED_OVER
    assert update.ratings_by_player() == {"p1": 1750}
    metadata = repository.load_metadata(Period.MONTHLY)
    assert metadata is not None
    assert metadata.last_updated == date(2024, 3, 1)


def test_same_period_rerun_keeps_baseline(tmp_path: Path) -> None:
    engine, repository = _engine(tmp_path)
    first = engine.update_period(Period.WEEKLY, [PlayerRatingState("p1", 1800, None)])

    later, _ = _engine(tmp_path, now=NOW + timedelta(days=2))
    second = later.update_period(Period.WEEKLY, [PlayerRatingState("p1", 1900, None)])

    assert first.action is SnapshotAction.BACKFILLED
    assert second.action is SnapshotAction.KEPT
    assert second.ratings_by_player() == {"p1": 1800}
    assert repository.load_baseline(Period.WEEKLY) == [SnapshotEntry("p1", 1800)]


def test_late_joiner_is_appended_without_touching_existing_entries(tmp_path: Path) -> None:
    engine, repository = _engine(tmp_path)
    repository.save_baseline(Period.DAILY, [SnapshotEntry("p1", 1700)])
    repository.save_metadata(Period.DAILY, date(2024, 3, 13))

    active = PlayerRatingState(
        player_id="p2",
        current_rating=1650,
        last_match_at=DAY_START + 7200,
        elo_history=(EloHistoryPoint(DAY_START - 600, 1610), EloHistoryPoint(DAY_START + 7200, 1650)),
    )
    idle = PlayerRatingState(player_id="p3", current_rating=1400, last_match_at=DAY_START - 600)

    update = engine.update_period(
        Period.DAILY,
        [PlayerRatingState("p1", 1760, DAY_START + 100), active, idle],
    )

    assert update.action is SnapshotAction.KEPT
    assert update.appended == 2
    assert update.ratings_by_player() == {"p1": 1700, "p2": 1610, "p3": 1400}
    assert repository.load_baseline(Period.DAILY) == list(update.entries)


def test_update_all_covers_every_period(tmp_path: Path) -> None:
    engine, repository = _engine(tmp_path)

    updates = engine.update_all([PlayerRatingState("p1", 2000, None)])
    engine.record_latest([SnapshotEntry("p1", 2000)])

    assert set(updates) == set(Period)
    assert all(update.action is SnapshotAction.BACKFILLED for update in updates.values())
    assert updates[Period.YEARLY].period_start == datetime(2024, 1, 1, tzinfo=BERLIN)
    for period in Period:
        assert repository.baseline_path(period).exists()
    assert (tmp_path / "elo-latest.json").exists()
