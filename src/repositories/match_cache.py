"""Durable, age-evicting cache of parsed per-match stat blobs."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from domain.common import MatchStatBlob
from repositories.json_store import read_json, write_json

logger = logging.getLogger(__name__)

DEFAULT_TTL_DAYS = 90
_MS_PER_DAY = 86_400_000


def _utc_now_ms() -> int:
    return int(datetime.now(UTC).timestamp() * 1000)


@dataclass(frozen=True)
class CachePersistResult:
    """Outcome of one successful cache save."""

    path: Path
    entries: int
    size_bytes: int
    evicted: int


class MatchStatCache:
    """Match-id keyed store for MatchStatBlob values backed by one JSON file.

    The file is read lazily on first access. Eviction runs only as part of
    `persist`, and `persist` always writes the complete in-memory table, so it
    must be called once after every `put` of a run has landed.
    """

    def __init__(
        self,
        path: Path,
        *,
        ttl_days: int = DEFAULT_TTL_DAYS,
        clock_ms: Callable[[], int] | None = None,
    ) -> None:
        if ttl_days <= 0:
            raise ValueError("ttl_days must be greater than 0")
        self.path = path
        self.ttl_days = ttl_days
        self._clock_ms = clock_ms or _utc_now_ms
        self._entries: dict[str, dict[str, Any]] = {}
        self._loaded = False

    def load(self) -> None:
        if self._loaded:
            return
        self._loaded = True

        if not self.path.exists():
            logger.info("No match cache at %s, starting empty", self.path)
            return

        try:
            raw = read_json(self.path)
        except (OSError, ValueError) as exc:
            logger.error("Failed to load match cache %s, starting empty: %s", self.path, exc)
            return

        if not isinstance(raw, dict):
            logger.error("Match cache %s is not a JSON object, starting empty", self.path)
            return

        self._entries = {str(key): value for key, value in raw.items() if isinstance(value, dict)}
        logger.info("Loaded %d cached matches from %s", len(self._entries), self.path)

    def get(self, match_id: str) -> MatchStatBlob | None:
        self.load()
        raw = self._entries.get(match_id)
        if raw is None:
            return None
        try:
            return MatchStatBlob.from_dict(match_id, raw)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.warning("Dropping malformed cache entry %s: %s", match_id, exc)
            del self._entries[match_id]
            return None

    def put(self, match_id: str, blob: MatchStatBlob) -> MatchStatBlob:
        """Store a blob stamped with the current time; an existing entry is kept as-is."""
        self.load()
        existing = self.get(match_id)
        if existing is not None:
            return existing

        stamped = replace(blob, match_id=match_id, cached_at=self._clock_ms())
        self._entries[match_id] = stamped.to_dict()
        return stamped

    def __contains__(self, match_id: object) -> bool:
        self.load()
        return match_id in self._entries

    def __len__(self) -> int:
        self.load()
        return len(self._entries)

    def evict_expired(self) -> int:
        """Drop entries whose cachedAt is strictly older than the TTL; return how many."""
        self.load()
        cutoff = self._clock_ms() - self.ttl_days * _MS_PER_DAY
        expired = [
            match_id
            for match_id, raw in self._entries.items()
            if not _is_fresh(raw.get("cachedAt"), cutoff)
        ]
        for match_id in expired:
            del self._entries[match_id]
        if expired:
            logger.info("Evicted %d expired cache entries", len(expired))
        return len(expired)

    def persist(self) -> CachePersistResult | None:
        """Evict, then overwrite the durable file with the full table.

        Failures are logged and reported as None; losing the cache only costs
        refetches on the next run.
        """
        self.load()
        evicted = self.evict_expired()
        try:
            size_bytes = write_json(self.path, self._entries)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Failed to save match cache %s: %s", self.path, exc)
            return None

        result = CachePersistResult(
            path=self.path,
            entries=len(self._entries),
            size_bytes=size_bytes,
            evicted=evicted,
        )
        logger.info(
            "Saved match cache %s (%d entries, %.1f KiB)",
            self.path,
            result.entries,
            result.size_bytes / 1024.0,
        )
        return result


def _is_fresh(cached_at: Any, cutoff_ms: int) -> bool:
    if isinstance(cached_at, bool) or not isinstance(cached_at, (int, float)):
        return False
    return cached_at >= cutoff_ms


__all__ = ["CachePersistResult", "DEFAULT_TTL_DAYS", "MatchStatCache"]
