"""Shared utilities package for cotate"""

from .debug_console import (
    DebugCapturingConsole,
    create_console,
    setup_debug_logger,
)

__all__ = [
    "DebugCapturingConsole",
    "create_console",
    "setup_debug_logger",
]
