"""Schedule commands for the smart cacher daemon.

Provides the command that runs the warm-up job on an interval alongside
the proxy server.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from src.cli.utils import (
    config_option,
    display_success,
    display_warning,
    load_config,
    logger,
)
from src.models.config import AppConfig

schedule_app = typer.Typer(help="Manage the smart cacher scheduler")


@schedule_app.command(name="start")
def schedule_start(
    config_path: Path = config_option(),
    interval: Optional[int] = typer.Option(
        None,
        "--interval",
        "-i",
        min=1,
        help="Minutes between warm-up runs (default: from config)",
    ),
    serve: bool = typer.Option(
        True, "--serve/--no-serve", help="Also run the proxy server"
    ),
    enable_cleanup: bool = typer.Option(
        True, "--cleanup/--no-cleanup", help="Enable cache cleanup job"
    ),
):
    """Start the scheduler daemon.

    Runs one warm-up traversal per interval (never two at once) and,
    unless --no-serve is given, the proxy server in the same process.
    Press Ctrl+C to stop gracefully.

    Examples:
        # Run with the configured interval
        python -m src.cli schedule start

        # Warm every 5 minutes, no proxy
        python -m src.cli schedule start --interval 5 --no-serve
    """
    config = load_config(config_path)
    if interval is not None:
        schedule = config.schedule.model_copy(update={"interval_minutes": interval})
        config = config.model_copy(update={"schedule": schedule})

    try:
        asyncio.run(
            _run_scheduler(config=config, serve=serve, enable_cleanup=enable_cleanup)
        )
    except KeyboardInterrupt:
        display_warning("\nScheduler stopped.")
    except Exception as e:
        logger.exception("scheduler_failed")
        typer.secho(f"Scheduler failed: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


async def _run_scheduler(config: AppConfig, serve: bool, enable_cleanup: bool):
    """Run the scheduler daemon, optionally with the proxy server.

    Args:
        config: Service configuration.
        serve: Whether to run the proxy server alongside.
        enable_cleanup: Whether to enable the cache cleanup job.
    """
    from src.scheduling import CacherScheduler, CacheCleanupJob, CacheWarmupJob

    typer.secho("Starting Smart Cacher Daemon", fg=typer.colors.CYAN, bold=True)
    typer.echo(f"  Catalog: {config.warmup.catalog_url}")
    typer.echo(f"  Warm-up every {config.schedule.interval_minutes} min")
    if serve:
        base = f"http://{config.server.host}:{config.server.port}"
        typer.echo(f"  Proxy: {base}")
        typer.echo(f"  Metrics endpoint: {base}/metrics")
    typer.echo("\nPress Ctrl+C to stop.\n")

    scheduler = CacherScheduler.from_config(config)
    scheduler.schedule_warmup(CacheWarmupJob(config))
    if enable_cleanup:
        scheduler.schedule_cleanup(CacheCleanupJob(config))

    jobs = scheduler.get_jobs()
    display_success(f"\nScheduled {len(jobs)} jobs:")
    for job in jobs:
        next_run = job.get("next_run_time") or "N/A"
        typer.echo(f"  - {job['id']}: next run at {next_run}")

    if serve:
        from src.api import run_server_async

        await asyncio.gather(
            run_server_async(config, log_level="warning"),
            scheduler.start(),
        )
    else:
        await scheduler.start()
