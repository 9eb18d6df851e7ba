"""Cache commands for the edge cache."""

from pathlib import Path

import typer

from src.cli.utils import (
    config_option,
    display_success,
    handle_errors,
    load_config,
)
from src.services.cache_service import EdgeCacheService

cache_app = typer.Typer(help="Inspect or clear the edge cache")


@cache_app.command(name="stats")
@handle_errors
def cache_stats(
    config_path: Path = config_option(),
):
    """Display edge cache statistics."""
    config = load_config(config_path)
    cache = EdgeCacheService(config.cache)
    try:
        stats = cache.get_stats()
    finally:
        cache.close()

    typer.echo(f"Cache directory: {config.cache.cache_dir}")
    typer.echo(f"  entries:  {stats.entries}")
    typer.echo(f"  disk:     {stats.disk_mb:.1f} MB")
    typer.echo(f"  hit rate: {stats.hit_rate:.1%} ({stats.hits} hits, {stats.misses} misses)")


@cache_app.command(name="clear")
@handle_errors
def cache_clear(
    config_path: Path = config_option(),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Remove every cached page."""
    config = load_config(config_path)
    if not yes:
        typer.confirm("Delete every cached page?", abort=True)

    cache = EdgeCacheService(config.cache)
    try:
        removed = cache.clear()
    finally:
        cache.close()
    display_success(f"Removed {removed} cached entries")
