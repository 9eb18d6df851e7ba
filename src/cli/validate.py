"""Validate command for configuration files."""

from pathlib import Path

import typer

from src.services.config_manager import ConfigManager
from src.cli.utils import handle_errors, display_success, display_error


@handle_errors
def validate_command(
    config_path: Path = typer.Argument(..., help="Config file to validate"),
):
    """Validate configuration file syntax and semantics."""
    try:
        config = ConfigManager(config_path=str(config_path)).load_config()
    except Exception as e:
        display_error(f"Validation failed: {e}")
        raise typer.Exit(code=1)

    display_success("Configuration is valid! ✅")
    typer.echo(f"  Origin: {config.origin.base_url}")
    typer.echo(f"  Catalog: {config.warmup.catalog_url}")
    typer.echo(
        f"  Batch size: {config.warmup.batch_size}, "
        f"budget: {config.warmup.time_budget_seconds}s"
    )
