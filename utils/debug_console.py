"""Debug logging for cotate.

With --debug, library log records and everything printed to the Rich
console are appended to a plain-text log file.
"""

import io
import logging
import re
from typing import Optional
from rich.console import Console as RichConsole

ANSI_ESCAPE = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')
DEBUG_LOGGER_NAME = "cotate.debug"


class DebugCapturingConsole(RichConsole):
    """Rich Console that also writes a plain-text copy of its output to a logger"""

    def __init__(self, debug_logger: Optional[logging.Logger] = None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.debug_logger = debug_logger

    def print(self, *objects, **kwargs):
        super().print(*objects, **kwargs)

        if self.debug_logger and self.debug_logger.isEnabledFor(logging.DEBUG):
            plain_text = self.render_plain(*objects, **kwargs)
            if plain_text.strip():
                self.debug_logger.debug(f"[CONSOLE] {plain_text}")

    def render_plain(self, *objects, **kwargs) -> str:
        """Render objects the way print() would, without markup or colour"""
        buffer = io.StringIO()
        plain_console = RichConsole(
            file=buffer,
            force_terminal=False,
            width=self.width,
            legacy_windows=False,
        )
        plain_console.print(*objects, **kwargs)
        return ANSI_ESCAPE.sub("", buffer.getvalue()).rstrip()


def setup_debug_logger(log_file: str) -> logging.Logger:
    """
    Attach a file handler for debug output.

    The handler is installed on the root logger so that records from
    codex_accounts and cli modules end up in the same file as the
    captured console output.

    Args:
        log_file: Path to the debug log file (appended to)

    Returns:
        Logger used for captured console output
    """
    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.addHandler(file_handler)

    debug_logger = logging.getLogger(DEBUG_LOGGER_NAME)
    debug_logger.setLevel(logging.DEBUG)
    return debug_logger


def create_console(debug_enabled: bool = False,
                   debug_logger: Optional[logging.Logger] = None) -> RichConsole:
    """Console for the CLI, capturing output when debug logging is active"""
    if debug_enabled and debug_logger:
        return DebugCapturingConsole(debug_logger=debug_logger)
    return RichConsole()
