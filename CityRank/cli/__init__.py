"""
Command-line interface module for the CityRank package.

Key Components:
- main: Main entry point for the CLI
- cli: The click command group
"""

from CityRank.cli.commands import cli, main

__all__ = ['cli', 'main']
