"""Shared CLI plumbing: config loading, error reporting and coloured output."""

import functools
from pathlib import Path
from typing import Any, Callable, TypeVar

import structlog
import typer

from src.models.config import AppConfig
from src.observability.logging import configure_logging
from src.services.config_manager import DEFAULT_CONFIG_PATH, ConfigManager
from src.utils.exceptions import ConfigValidationError, ProxyError

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])

CONFIG_OPTION_HELP = "Path to service config YAML"


def config_option() -> Any:
    """``--config/-c`` option shared by every command that reads the YAML."""
    return typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c", help=CONFIG_OPTION_HELP)


def load_config(config_path: Path) -> AppConfig:
    """Load the service config and configure logging from its ``logging`` block.

    Nothing is logged before logging is configured, so stdout carries only
    command output (signed links, JSON reports).

    Raises:
        typer.Exit: code 1 when the file is missing or does not validate.
    """
    try:
        config = ConfigManager(config_path=str(config_path)).load_config()
    except (FileNotFoundError, ConfigValidationError) as e:
        display_error(f"Configuration Error: {e}")
        raise typer.Exit(code=1)

    configure_logging(
        level=config.logging.level, json_output=config.logging.json_output
    )
    logger.info(
        "config_loaded",
        path=str(config_path),
        origin=config.origin.base_url,
        batch_size=config.warmup.batch_size,
        cache_ttl_seconds=config.cache.ttl_seconds,
    )
    return config


def handle_errors(func: F) -> F:
    """Turn unexpected exceptions into a red message and exit code 1.

    ``typer.Exit`` and ``typer.Abort`` (declined confirmations) pass through.
    Domain errors print their message only; anything else is also logged
    with its traceback.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (typer.Exit, typer.Abort):
            raise
        except ProxyError as e:
            display_error(f"Error: {e}")
            raise typer.Exit(code=1)
        except Exception as e:
            logger.exception("command_failed", command=func.__name__)
            display_error(f"Error: {e}")
            raise typer.Exit(code=1)

    return wrapper  # type: ignore[return-value]


def _styled(colour: str) -> Callable[[str], None]:
    def display(message: str) -> None:
        typer.secho(message, fg=colour)

    return display


display_success = _styled(typer.colors.GREEN)
display_warning = _styled(typer.colors.YELLOW)
display_error = _styled(typer.colors.RED)
display_info = _styled(typer.colors.CYAN)
