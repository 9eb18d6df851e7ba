"""Serve command for the signed-URL proxy."""

from pathlib import Path
from typing import Optional

import typer

from src.cli.utils import (
    config_option,
    display_info,
    handle_errors,
    load_config,
)


@handle_errors
def serve_command(
    config_path: Path = config_option(),
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Override bind host"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Override bind port"),
):
    """Run the proxy server (page route plus health and metrics endpoints)."""
    from src.api import run_server

    config = load_config(config_path)
    if host is not None or port is not None:
        server = config.server.model_copy(
            update={
                k: v for k, v in {"host": host, "port": port}.items() if v is not None
            }
        )
        config = config.model_copy(update={"server": server})

    display_info(
        f"Starting proxy at http://{config.server.host}:{config.server.port}"
    )
    run_server(config)
