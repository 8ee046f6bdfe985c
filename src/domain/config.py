"""Load dashboard run configuration from a TOML file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any
import tomllib

ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_PATH = ROOT_DIR / "configs" / "dashboard" / "default.toml"


@dataclass(frozen=True)
class ApiSettings:
    base_url: str = "https://open.faceit.com/data/v4"
    elo_history_url: str = "https://api.faceit.com/stats/v1/stats/time/users/{player_id}/games/{game}"
    game: str = "cs2"
    api_key_env: str = "FACEIT_API_KEY"
    profile_language: str = "en"
    max_retries: int = 3
    retry_delay_seconds: float = 1.0
    timeout_seconds: float = 10.0
    max_concurrency: int = 5


@dataclass(frozen=True)
class HistorySettings:
    match_limit: int = 30
    elo_history_size: int = 100
    recent_results: int = 5


@dataclass(frozen=True)
class CacheSettings:
    path: Path = Path("data/match_cache.json")
    ttl_days: int = 90


@dataclass(frozen=True)
class SnapshotSettings:
    data_dir: Path = Path("data")
    timezone: str = "Europe/Berlin"


@dataclass(frozen=True)
class DashboardConfig:
    """Configuration for one dashboard update run."""

    name: str
    description: str | None
    file_path: Path | None
    api: ApiSettings
    history: HistorySettings
    cache: CacheSettings
    snapshots: SnapshotSettings

    def as_config_json(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "base_url": self.api.base_url,
            "game": self.api.game,
            "max_retries": self.api.max_retries,
            "retry_delay_seconds": self.api.retry_delay_seconds,
            "timeout_seconds": self.api.timeout_seconds,
            "max_concurrency": self.api.max_concurrency,
            "match_limit": self.history.match_limit,
            "elo_history_size": self.history.elo_history_size,
            "recent_results": self.history.recent_results,
            "cache_path": str(self.cache.path),
            "cache_ttl_days": self.cache.ttl_days,
            "snapshot_dir": str(self.snapshots.data_dir),
            "timezone": self.snapshots.timezone,
        }


def default_dashboard_config(base_dir: Path | None = None) -> DashboardConfig:
    """Build the built-in configuration without reading a file."""
    return parse_dashboard_config({}, None, base_dir=base_dir)


def load_dashboard_config(config_path: Path, *, base_dir: Path | None = None) -> DashboardConfig:
    """Load and validate one dashboard TOML config file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    if not config_path.is_file():
        raise ValueError(f"Config path is not a file: {config_path}")

    with config_path.open("rb") as file:
        raw = tomllib.load(file)
    return parse_dashboard_config(raw, config_path, base_dir=base_dir)


def parse_dashboard_config(
    raw: dict[str, Any],
    file_path: Path | None,
    *,
    base_dir: Path | None = None,
) -> DashboardConfig:
    label = str(file_path) if file_path is not None else "<defaults>"
    root = base_dir if base_dir is not None else Path.cwd()

    system_raw = raw.get("system", {})
    api_raw = raw.get("api", {})
    history_raw = raw.get("history", {})
    cache_raw = raw.get("cache", {})
    snapshots_raw = raw.get("snapshots", {})

    name = str(system_raw.get("name", "faceit_dashboard")).strip()
    if not name:
        raise ValueError(f"{label}: [system].name must not be empty")

    description_value = system_raw.get("description")
    description = None if description_value is None else str(description_value)

    defaults = ApiSettings()
    api = ApiSettings(
        base_url=str(api_raw.get("base_url", defaults.base_url)).rstrip("/"),
        elo_history_url=str(api_raw.get("elo_history_url", defaults.elo_history_url)),
        game=str(api_raw.get("game", defaults.game)),
        api_key_env=str(api_raw.get("api_key_env", defaults.api_key_env)),
        profile_language=str(api_raw.get("profile_language", defaults.profile_language)),
        max_retries=int(api_raw.get("max_retries", defaults.max_retries)),
        retry_delay_seconds=float(api_raw.get("retry_delay_seconds", defaults.retry_delay_seconds)),
        timeout_seconds=float(api_raw.get("timeout_seconds", defaults.timeout_seconds)),
        max_concurrency=int(api_raw.get("max_concurrency", defaults.max_concurrency)),
    )
    history = HistorySettings(
        match_limit=int(history_raw.get("match_limit", 30)),
        elo_history_size=int(history_raw.get("elo_history_size", 100)),
        recent_results=int(history_raw.get("recent_results", 5)),
    )
    cache = CacheSettings(
        path=_resolve(root, cache_raw.get("path", "data/match_cache.json")),
        ttl_days=int(cache_raw.get("ttl_days", 90)),
    )
    snapshots = SnapshotSettings(
        data_dir=_resolve(root, snapshots_raw.get("data_dir", "data")),
        timezone=str(snapshots_raw.get("timezone", "Europe/Berlin")),
    )

    _validate(label=label, api=api, history=history, cache=cache, snapshots=snapshots)

    return DashboardConfig(
        name=name,
        description=description,
        file_path=file_path,
        api=api,
        history=history,
        cache=cache,
        snapshots=snapshots,
    )


def _resolve(root: Path, value: Any) -> Path:
    path = Path(str(value))
    return path if path.is_absolute() else root / path


def _validate(
    *,
    label: str,
    api: ApiSettings,
    history: HistorySettings,
    cache: CacheSettings,
    snapshots: SnapshotSettings,
) -> None:
    if not api.base_url:
        raise ValueError(f"{label}: [api].base_url is required")
    if "{player_id}" not in api.elo_history_url:
        raise ValueError(f"{label}: [api].elo_history_url must contain {{player_id}}")
    if not api.api_key_env:
        raise ValueError(f"{label}: [api].api_key_env is required")
    if api.max_retries < 0:
        raise ValueError(f"{label}: [api].max_retries must be >= 0")
    if api.retry_delay_seconds < 0.0:
        raise ValueError(f"{label}: [api].retry_delay_seconds must be >= 0")
    if api.timeout_seconds <= 0.0:
        raise ValueError(f"{label}: [api].timeout_seconds must be > 0")
    if api.max_concurrency <= 0:
        raise ValueError(f"{label}: [api].max_concurrency must be > 0")
    if history.match_limit <= 0 or history.match_limit > 100:
        raise ValueError(f"{label}: [history].match_limit must be between 1 and 100")
    if history.elo_history_size <= 0:
        raise ValueError(f"{label}: [history].elo_history_size must be > 0")
    if history.recent_results <= 0:
        raise ValueError(f"{label}: [history].recent_results must be > 0")
    if cache.ttl_days <= 0:
        raise ValueError(f"{label}: [cache].ttl_days must be > 0")
    if not snapshots.timezone:
        raise ValueError(f"{label}: [snapshots].timezone is required")


__all__ = [
    "ApiSettings",
    "CacheSettings",
    "DEFAULT_CONFIG_PATH",
    "DashboardConfig",
    "HistorySettings",
    "SnapshotSettings",
    "default_dashboard_config",
    "load_dashboard_config",
    "parse_dashboard_config",
]
