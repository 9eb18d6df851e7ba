"""Manga proxy CLI package.

Provides the command-line interface for the signed-URL proxy and the
smart cacher.

Usage:
    python -m src.cli serve --config config/manga_proxy.yaml
    python -m src.cli warm
    python -m src.cli schedule start
    python -m src.cli checkpoint show
    python -m src.cli cache stats
    python -m src.cli sign /one-piece/12/3.webp
    python -m src.cli validate config/manga_proxy.yaml
"""

import typer

from src.cli.cache import cache_app
from src.cli.checkpoint import checkpoint_app
from src.cli.schedule import schedule_app
from src.cli.serve import serve_command
from src.cli.sign import sign_command
from src.cli.validate import validate_command
from src.cli.warm import warm_command

app = typer.Typer(help="Manga Edge Proxy & Smart Cacher")

# Register individual commands
app.command(name="serve")(serve_command)
app.command(name="warm")(warm_command)
app.command(name="sign")(sign_command)
app.command(name="validate")(validate_command)

# Register sub-applications
app.add_typer(schedule_app, name="schedule")
app.add_typer(checkpoint_app, name="checkpoint")
app.add_typer(cache_app, name="cache")

__all__ = [
    "app",
    "serve_command",
    "warm_command",
    "sign_command",
    "validate_command",
    "schedule_app",
    "checkpoint_app",
    "cache_app",
]
