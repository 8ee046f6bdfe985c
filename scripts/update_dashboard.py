#!/usr/bin/env python3
"""Dashboard update commands: full batch run, snapshot inspection and cache maintenance."""

from __future__ import annotations

import asyncio
import os
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated

import httpx
import typer

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from clients.faceit import FaceitClient, MissingCredentialsError
from clients.http import ResilientFetchClient
from core.logging import configure_logging
from domain.config import DEFAULT_CONFIG_PATH, DashboardConfig, load_dashboard_config
from domain.pipeline import DashboardResult, run_dashboard_update
from domain.roster import load_roster
from domain.snapshots.engine import SnapshotEngine
from domain.snapshots.periods import Period, period_start
from repositories.json_store import write_json
from repositories.match_cache import MatchStatCache
from repositories.snapshot_repository import JsonSnapshotRepository

DEFAULT_ROSTER_PATH = Path("players.txt")
DEFAULT_OUTPUT_PATH = Path("data/dashboard.json")

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="FACEIT dashboard update commands.",
)

ConfigOption = Annotated[
    Path,
    typer.Option("--config", help="Dashboard TOML config file."),
]
LogLevelOption = Annotated[
    str,
    typer.Option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)."),
]


def _load_config(config_path: Path) -> DashboardConfig:
    try:
        return load_dashboard_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc


async def _run_batch(config: DashboardConfig, roster: list[str]) -> DashboardResult:
    api_key = os.environ.get(config.api.api_key_env, "")
    cache = MatchStatCache(config.cache.path, ttl_days=config.cache.ttl_days)
    snapshots = SnapshotEngine(
        JsonSnapshotRepository(config.snapshots.data_dir),
        timezone=config.snapshots.timezone,
    )

    async with httpx.AsyncClient(follow_redirects=True) as http_client:
        fetcher = ResilientFetchClient(
            http_client,
            max_retries=config.api.max_retries,
            retry_delay=config.api.retry_delay_seconds,
            timeout=config.api.timeout_seconds,
            max_concurrency=config.api.max_concurrency,
        )
        provider = FaceitClient(fetcher, api_key=api_key, settings=config.api)
        return await run_dashboard_update(
            roster,
            provider=provider,
            cache=cache,
            snapshots=snapshots,
            history=config.history,
        )


@app.command()
def run(
    config_path: ConfigOption = DEFAULT_CONFIG_PATH,
    roster_path: Annotated[
        Path,
        typer.Option("--roster", help="Text file with one player id or nickname per line."),
    ] = DEFAULT_ROSTER_PATH,
    output_path: Annotated[
        Path,
        typer.Option("--output", help="Where to write the combined dashboard JSON."),
    ] = DEFAULT_OUTPUT_PATH,
    log_level: LogLevelOption = "INFO",
) -> None:
    """Fetch, aggregate and snapshot every player in the roster."""
    configure_logging(log_level)
    config = _load_config(config_path)

    try:
        roster = load_roster(roster_path)
    except FileNotFoundError as exc:
        raise typer.BadParameter(str(exc), param_hint="--roster") from exc
    if not roster:
        raise typer.BadParameter(f"No players listed in {roster_path}", param_hint="--roster")

    try:
        result = asyncio.run(_run_batch(config, roster))
    except MissingCredentialsError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    write_json(output_path, result.to_dict())
    typer.echo(
        f"processed={result.processed} skipped={len(result.skipped)} "
        f"output={output_path} "
        + " ".join(f"{period.value}={update.action.value}" for period, update in result.snapshots.items())
    )


@app.command()
def show_snapshots(
    config_path: ConfigOption = DEFAULT_CONFIG_PATH,
    period: Annotated[
        Period | None,
        typer.Option("--period", help="Only show one period (daily, weekly, monthly, yearly)."),
    ] = None,
) -> None:
    """Print stored baselines and when each was last refreshed."""
    config = _load_config(config_path)
    repository = JsonSnapshotRepository(config.snapshots.data_dir)
    periods = [period] if period is not None else list(Period)

    for item in periods:
        baseline = repository.load_baseline(item)
        metadata = repository.load_metadata(item)
        last_updated = metadata.last_updated if metadata is not None else None
        current_start = period_start(item, datetime.now(UTC), config.snapshots.timezone).date()
        typer.echo(
            f"period={item.value} entries={len(baseline) if baseline is not None else 0} "
            f"last_updated={last_updated or '—'} current_start={current_start}"
        )
        for entry in baseline or []:
            typer.echo(f"  {entry.player_id} rating={entry.rating}")


@app.command()
def cache_info(config_path: ConfigOption = DEFAULT_CONFIG_PATH) -> None:
    """Print match cache location, entry count and file size."""
    config = _load_config(config_path)
    cache = MatchStatCache(config.cache.path, ttl_days=config.cache.ttl_days)
    size_bytes = config.cache.path.stat().st_size if config.cache.path.exists() else 0
    typer.echo(
        f"path={config.cache.path} entries={len(cache)} "
        f"size_kib={size_bytes / 1024.0:.1f} ttl_days={config.cache.ttl_days}"
    )


@app.command()
def prune_cache(
    config_path: ConfigOption = DEFAULT_CONFIG_PATH,
    log_level: LogLevelOption = "INFO",
) -> None:
    """Drop expired match cache entries and rewrite the cache file."""
    configure_logging(log_level)
    config = _load_config(config_path)
    cache = MatchStatCache(config.cache.path, ttl_days=config.cache.ttl_days)
    result = cache.persist()
    if result is None:
        typer.echo(f"error: could not write {config.cache.path}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"evicted={result.evicted} entries={result.entries} size_bytes={result.size_bytes}")


if __name__ == "__main__":
    app()
