"""Sous-package CLI commands - re-exporte les commandes publiques."""

from src.adapters.cli.commands.run_command import run

__all__ = [
    "run",
]
