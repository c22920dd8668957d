"""
CLI Module - Command-line interface for MedCollege Finder.
==========================================================

Usage:
    collegefinder --help
    collegefinder search "AJ"
    collegefinder grouped "DNB in Karnataka"
    collegefinder suggest "govt"
    collegefinder stats

Components:
- main: Typer CLI application
"""

from medcollege_finder.cli.main import app, cli

__all__ = ["app", "cli"]
