"""fieldstore command-line interface (``fieldstore`` console script)."""

from fieldstore.cli.app import app

__all__ = ["app"]
