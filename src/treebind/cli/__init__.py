"""
CLI layer for treebind.

Provides a Typer application whose commands delegate to
``treebind.survey``. This package handles only terminal transport:
argument parsing, coloured output and table formatting.

Entry point::

    treebind --help
"""

from treebind.cli.app import app

__all__ = ["app"]
