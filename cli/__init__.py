"""CLI package for cotate

Command-line interface for saving, switching and inspecting Codex accounts.
"""

from cli.commands import AccountCommands
from cli.main import main

__all__ = [
    "AccountCommands",
    "main",
]
