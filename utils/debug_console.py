"""Logging setup and a Rich console that mirrors its output into the debug log.

Operator-facing lines go through Rich; when --debug is on, the same lines are
written as plain text to the debug log next to the library log records, so a
single file shows what the operator saw and what the code did.
"""

import io
import logging
import os
from typing import Optional

from rich.console import Console as RichConsole

from settings import DEBUG_LOG_FILE

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Logger that receives the plain-text copy of console output
CONSOLE_LOGGER = "kite_session.console"


class DebugCapturingConsole(RichConsole):
    """Rich Console that also logs a plain-text copy of everything it prints

    Each rendered line becomes its own DEBUG record, so a status table shows up
    in the log row by row.
    """

    def __init__(self, debug_logger: Optional[logging.Logger] = None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.debug_logger = debug_logger or logging.getLogger(CONSOLE_LOGGER)

    def print(self, *objects, **kwargs):
        super().print(*objects, **kwargs)

        if not self.debug_logger.isEnabledFor(logging.DEBUG):
            return
        for line in self.render_plain(*objects, **kwargs).splitlines():
            if line.strip():
                self.debug_logger.debug(line.rstrip())

    def render_plain(self, *objects, **kwargs) -> str:
        """Render objects the way print() would, minus markup and colour"""
        buffer = io.StringIO()
        plain_console = RichConsole(
            file=buffer,
            width=self.width,
            color_system=None,
            force_terminal=False,
            legacy_windows=False,
        )
        plain_console.print(*objects, **kwargs)
        return buffer.getvalue()


def create_debug_console(debug_enabled: bool = False,
                         debug_logger: Optional[logging.Logger] = None) -> RichConsole:
    """Return a capturing console in debug mode, a plain Rich console otherwise"""
    if debug_enabled:
        return DebugCapturingConsole(debug_logger=debug_logger)
    return RichConsole()


def setup_logging(level: str = "info", debug: bool = False,
                  log_file: str = DEBUG_LOG_FILE) -> Optional[logging.Logger]:
    """
    Configure logging for a CLI run.

    Without debug, records at `level` and above go to stderr. With debug,
    everything from DEBUG up goes to stderr and is appended to log_file, and
    the console capture logger writes to the same file (but not to stderr,
    where the operator already sees the Rich output).

    Args:
        level: Root log level name when debug is off
        debug: Whether debug mode is enabled
        log_file: Debug log file path

    Returns:
        The console capture logger in debug mode, None otherwise
    """
    root_logger = logging.getLogger()
    console_logger = logging.getLogger(CONSOLE_LOGGER)

    # Clear handlers from a previous setup
    for logger in (root_logger, console_logger):
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    if not debug:
        root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        # httpx logs every request at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)
        return None

    root_logger.setLevel(logging.DEBUG)
    log_file = os.path.abspath(log_file)
    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    console_logger.setLevel(logging.DEBUG)
    console_logger.addHandler(file_handler)
    console_logger.propagate = False

    logging.getLogger(__name__).info(f"Debug logging enabled - appending to {log_file}")
    return console_logger
