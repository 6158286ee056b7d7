"""CLI module for sbomgraph.

This module provides the command-line interface. It supports both CLI
arguments and environment variables for configuration.
"""

from .main import build_config, cli, main, run_analysis

__all__ = [
    "cli",
    "main",
    "build_config",
    "run_analysis",
]
