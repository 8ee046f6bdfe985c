"""Protocols the domain layer depends on."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from domain.common import MatchOutcomeRecord, MatchStatBlob, PlayerProfile, SnapshotEntry

if TYPE_CHECKING:
    from domain.snapshots.periods import Period


@dataclass(frozen=True)
class SnapshotMetadata:
    """Side-car record for one period file; `last_updated` is None when unreadable."""

    last_updated: date | None


@runtime_checkable
class SnapshotStore(Protocol):
    """Persistence for period baselines and their metadata."""

    def load_baseline(self, period: Period) -> list[SnapshotEntry] | None: ...

    def save_baseline(self, period: Period, entries: Sequence[SnapshotEntry]) -> None: ...

    def load_metadata(self, period: Period) -> SnapshotMetadata | None: ...

    def save_metadata(self, period: Period, last_updated: date) -> None: ...

    def save_latest(self, entries: Sequence[SnapshotEntry]) -> None: ...


@runtime_checkable
class MatchStatSource(Protocol):
    """Cache-like lookup/put of per-match stat blobs with a single end-of-run save."""

    def get(self, match_id: str) -> MatchStatBlob | None: ...

    def put(self, match_id: str, blob: MatchStatBlob) -> MatchStatBlob: ...

    def persist(self) -> Any: ...


@runtime_checkable
class StatsProvider(Protocol):
    """Upstream data the batch pipeline needs for one player."""

    def require_credentials(self) -> None: ...

    async def get_player(self, nickname_or_id: str) -> PlayerProfile | None: ...

    async def get_player_history(self, player_id: str, limit: int = 30) -> list[MatchOutcomeRecord]: ...

    async def get_match_stats(self, match_id: str) -> MatchStatBlob | None: ...

    async def get_elo_history(self, player_id: str, size: int = 100) -> list[dict[str, Any]]: ...


__all__ = ["MatchStatSource", "SnapshotMetadata", "SnapshotStore", "StatsProvider"]
