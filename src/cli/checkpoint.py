"""Checkpoint commands for inspecting and resetting cacher progress."""

from pathlib import Path

import typer

from src.cli.utils import (
    config_option,
    display_error,
    display_success,
    handle_errors,
    load_config,
)
from src.models.config import AppConfig
from src.services.checkpoint_service import CheckpointService
from src.services.state_store import FileStateStore

checkpoint_app = typer.Typer(help="Inspect or reset the warm-up checkpoint")


def _service(config: AppConfig) -> CheckpointService:
    store = FileStateStore(Path(config.checkpoint.state_dir))
    return CheckpointService(config.checkpoint, store)


@checkpoint_app.command(name="show")
@handle_errors
def checkpoint_show(
    config_path: Path = config_option(),
):
    """Display the position the next run resumes from."""
    config = load_config(config_path)
    checkpoint = _service(config).load()

    typer.echo(f"Checkpoint '{config.checkpoint.state_key}': {checkpoint.to_json()}")
    typer.echo(f"  manga index:   {checkpoint.manga_index}")
    typer.echo(f"  chapter:       {checkpoint.chapter_index}")
    typer.echo(f"  page offset:   {checkpoint.page_index}")


@checkpoint_app.command(name="reset")
@handle_errors
def checkpoint_reset(
    config_path: Path = config_option(),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Restart the catalog pass from the beginning."""
    config = load_config(config_path)
    if not yes:
        typer.confirm("Reset the checkpoint to the start of the catalog?", abort=True)

    if _service(config).reset():
        display_success("Checkpoint reset")
    else:
        display_error("Checkpoint could not be written")
        raise typer.Exit(code=1)
