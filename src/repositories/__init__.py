"""File-backed repositories for cached match stats and rating snapshots."""

from repositories.match_cache import CachePersistResult, MatchStatCache
from repositories.snapshot_repository import JsonSnapshotRepository

__all__ = ["CachePersistResult", "JsonSnapshotRepository", "MatchStatCache"]
