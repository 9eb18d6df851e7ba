"""Sign command for minting proxy links."""

from pathlib import Path
from typing import Optional

import typer

from src.cli.utils import config_option, handle_errors, load_config
from src.utils.signature import build_signed_url, sign_path


@handle_errors
def sign_command(
    path: str = typer.Argument(..., help="Request path, e.g. /one-piece/12/3.webp"),
    config_path: Path = config_option(),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", "-b", help="Proxy base URL to prefix"
    ),
    timestamp: Optional[int] = typer.Option(
        None, "--timestamp", "-t", help="Unix time to sign at (default: now)"
    ),
):
    """Print a signed link (or query string) for a page path."""
    config = load_config(config_path)
    if not path.startswith("/"):
        path = f"/{path}"

    secret = config.signing.secret_key
    if base_url:
        typer.echo(build_signed_url(base_url, path, secret, timestamp))
    else:
        signed = sign_path(path, secret, timestamp)
        typer.echo(f"{signed.path}?{signed.query}")
