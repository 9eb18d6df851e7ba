"""Signed-URL page proxy HTTP application."""

from src.api.app import STATUS_TEXT, create_app, run_server, run_server_async

__all__ = ["STATUS_TEXT", "create_app", "run_server", "run_server_async"]
