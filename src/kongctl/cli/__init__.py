"""Command line interface for kongctl."""

from .main import app, run

__all__ = ["app", "run"]
