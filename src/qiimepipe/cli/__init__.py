"""Command line interface for qiime-pipe."""

from qiimepipe.cli.main import cli

__all__ = ["cli"]
