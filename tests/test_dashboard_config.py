"""Tests for TOML-based dashboard config loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from domain.config import DEFAULT_CONFIG_PATH, default_dashboard_config, load_dashboard_config


def test_load_dashboard_config_from_file(tmp_path: Path) -> None:
    config_path = tmp_path / "custom.toml"
    config_path.write_text(
        """
[system]
name = "team_alpha"
description = "Scrim roster"

[api]
base_url = "https://example.test/data/v4/"
game = "csgo"
max_retries = 5
retry_delay_seconds = 0.5
max_concurrency = 2

[history]
match_limit = 50
recent_results = 10

[cache]
path = "cache/matches.json"
ttl_days = 30

[snapshots]
data_dir = "/srv/snapshots"
timezone = "UTC"
""".strip()
    )

    config = load_dashboard_config(config_path, base_dir=tmp_path)

    assert config.name == "team_alpha"
    assert config.description == "Scrim roster"
    assert config.file_path == config_path
    assert config.api.base_url == "https://example.test/data/v4"
    assert config.api.game == "csgo"
    assert config.api.max_retries == 5
    assert config.api.retry_delay_seconds == pytest.approx(0.5)
    assert config.api.max_concurrency == 2
    assert config.api.timeout_seconds == pytest.approx(10.0)
    assert config.history.match_limit == 50
    assert config.history.elo_history_size == 100
    assert config.history.recent_results == 10
    assert config.cache.path == tmp_path / "cache" / "matches.json"
    assert config.cache.ttl_days == 30
    assert config.snapshots.data_dir == Path("/srv/snapshots")
    assert config.snapshots.timezone == "UTC"


def test_shipped_default_config_matches_builtin_defaults(tmp_path: Path) -> None:
    shipped = load_dashboard_config(DEFAULT_CONFIG_PATH, base_dir=tmp_path)
    builtin = default_dashboard_config(base_dir=tmp_path)

    assert shipped.api == builtin.api
    assert shipped.history == builtin.history
    assert shipped.cache == builtin.cache
    assert shipped.snapshots == builtin.snapshots
    assert shipped.as_config_json()["cache_ttl_days"] == 90
    assert builtin.snapshots.timezone == "Europe/Berlin"


@pytest.mark.parametrize(
    ("section", "body", "message"),
    [
        ("history", "match_limit = 0", r"\[history\].match_limit"),
        ("history", "match_limit = 101", r"\[history\].match_limit"),
        ("api", "max_retries = -1", r"\[api\].max_retries"),
        ("api", "max_concurrency = 0", r"\[api\].max_concurrency"),
        ("api", 'elo_history_url = "https://example.test/elo"', r"\[api\].elo_history_url"),
        ("cache", "ttl_days = 0", r"\[cache\].ttl_days"),
        ("system", 'name = "  "', r"\[system\].name"),
    ],
)
def test_invalid_values_are_rejected(tmp_path: Path, section: str, body: str, message: str) -> None:
    config_path = tmp_path / "bad.toml"
    config_path.write_text(f"[{section}]\n{body}\n")

    with pytest.raises(ValueError, match=message):
        load_dashboard_config(config_path)


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_dashboard_config(tmp_path / "absent.toml")


def test_config_path_must_be_a_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="not a file"):
        load_dashboard_config(tmp_path)
