"""Warm command: one smart cacher run in the foreground."""

import asyncio
import json
from pathlib import Path

import typer

from src.cli.utils import (
    config_option,
    display_error,
    display_success,
    display_warning,
    handle_errors,
    load_config,
)
from src.models.warmup import TraversalOutcome


@handle_errors
def warm_command(
    config_path: Path = config_option(),
):
    """Run a single time-sliced warm-up traversal and print its report.

    Exits with code 1 if the catalog could not be fetched.
    """
    from src.scheduling import CacheWarmupJob

    config = load_config(config_path)
    job = CacheWarmupJob(config)
    report = asyncio.run(job())

    if report is None:
        display_error("Warm-up run failed, see logs")
        raise typer.Exit(code=1)

    typer.echo(json.dumps(report, indent=2))

    outcome = report["outcome"]
    if outcome == TraversalOutcome.CATALOG_UNAVAILABLE.value:
        display_error("Catalog unavailable, checkpoint untouched")
        raise typer.Exit(code=1)
    if outcome == TraversalOutcome.HALTED.value:
        display_warning(f"Time budget reached, resuming at {report['saved']}")
    else:
        display_success("Catalog pass complete, checkpoint reset")
