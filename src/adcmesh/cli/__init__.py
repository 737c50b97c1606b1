"""Command-line interface for adcmesh."""

from adcmesh.cli.app import main

__all__ = ["main"]
