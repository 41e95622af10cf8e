"""CLI commands for P2P Profit.

This package provides the command-line interface for importing
trades and reporting realized profit.
"""

from p2pprofit.cli.main import cli, main

__all__ = ["cli", "main"]
