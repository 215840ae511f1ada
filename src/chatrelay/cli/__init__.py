"""Command-line interface for chatrelay."""

from .app import app, main

__all__ = ["app", "main"]
