# vocfeat/cli/__init__.py

"""Command-line interface for vocfeat."""

from .main import cli

__all__ = ["cli"]
