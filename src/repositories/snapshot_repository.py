"""JSON-file persistence for period baselines, their metadata and the latest ratings."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date
from pathlib import Path
from typing import Any

from domain.common import SnapshotEntry
from domain.protocol import SnapshotMetadata
from domain.snapshots.periods import Period
from repositories.json_store import read_json, write_json

logger = logging.getLogger(__name__)

LATEST_FILE = "elo-latest.json"


def _baseline_file(period: Period) -> str:
    return f"elo-{period.value}.json"


def _metadata_file(period: Period) -> str:
    return f"elo-{period.value}-meta.json"


def _entry_from_raw(raw: Any) -> SnapshotEntry | None:
    if not isinstance(raw, dict):
        return None
    player_id = raw.get("playerId")
    # Older files stored the rating under "elo".
    rating = raw.get("rating", raw.get("elo"))
    if not player_id or rating is None:
        return None
    try:
        return SnapshotEntry(player_id=str(player_id), rating=int(float(rating)))
    except (TypeError, ValueError, OverflowError):
        return None


class JsonSnapshotRepository:
    """Stores each period as `elo-<period>.json` plus `elo-<period>-meta.json`."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir

    def baseline_path(self, period: Period) -> Path:
        return self.data_dir / _baseline_file(period)

    def metadata_path(self, period: Period) -> Path:
        return self.data_dir / _metadata_file(period)

    def load_baseline(self, period: Period) -> list[SnapshotEntry] | None:
        """Return the stored baseline, or None when missing or unreadable."""
        path = self.baseline_path(period)
        if not path.exists():
            return None
        try:
            raw = read_json(path)
        except (OSError, ValueError) as exc:
            logger.error("Unreadable %s snapshot %s: %s", period.value, path, exc)
            return None
        if not isinstance(raw, list):
            logger.error("Snapshot %s is not a JSON array", path)
            return None

        entries = [entry for entry in (_entry_from_raw(item) for item in raw) if entry is not None]
        if len(entries) != len(raw):
            logger.warning("Skipped %d malformed entries in %s", len(raw) - len(entries), path)
        return entries

    def save_baseline(self, period: Period, entries: Sequence[SnapshotEntry]) -> None:
        path = self.baseline_path(period)
        write_json(path, [entry.to_dict() for entry in entries])
        logger.info("Wrote %s (%d entries)", path.name, len(entries))

    def load_metadata(self, period: Period) -> SnapshotMetadata | None:
        path = self.metadata_path(period)
        if not path.exists():
            return None
        try:
            raw = read_json(path)
            last_updated = date.fromisoformat(str(raw["lastUpdated"])[:10])
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Unreadable %s metadata %s: %s", period.value, path, exc)
            return SnapshotMetadata(last_updated=None)
        return SnapshotMetadata(last_updated=last_updated)

    def save_metadata(self, period: Period, last_updated: date) -> None:
        write_json(self.metadata_path(period), {"lastUpdated": last_updated.isoformat()})

    def save_latest(self, entries: Sequence[SnapshotEntry]) -> None:
        path = self.data_dir / LATEST_FILE
        write_json(path, [entry.to_dict() for entry in entries])
        logger.info("Wrote %s (%d entries)", path.name, len(entries))


__all__ = ["JsonSnapshotRepository", "LATEST_FILE"]
