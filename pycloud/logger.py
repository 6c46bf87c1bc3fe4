"""
Package logger for pycloud: console and/or file sinks with per-sink levels.
"""
import os
import sys
import time
from typing import Optional
from enum import Enum, auto


class LogLevel(Enum):
    """Log levels for controlling verbosity."""
    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


class CloudLogger:
    """
    Logger writing to the console, a file, or both.

    Each sink has its own threshold. Warnings and above go to stderr, lower
    levels to stdout. The log file is truncated when the logger is created.
    """
    MODES = ('console', 'file', 'both')

    def __init__(
        self,
        mode: str = 'console',
        log_file: Optional[str] = None,
        console_level: LogLevel = LogLevel.INFO,
        file_level: LogLevel = LogLevel.DEBUG,
        include_timestamp: bool = True
    ):
        """
        Args:
            mode: 'console', 'file', or 'both'
            log_file: Path to log file (required if mode is 'file' or 'both')
            console_level: Minimum log level for console output
            file_level: Minimum log level for file output
            include_timestamp: Whether to prefix messages with the wall-clock time
        """
        if mode not in self.MODES:
            raise ValueError("mode must be 'console', 'file', or 'both'")
        if mode != 'console' and not log_file:
            raise ValueError("log_file must be provided when mode is 'file' or 'both'")

        self.mode = mode
        self.log_file = log_file
        self.console_level = console_level
        self.file_level = file_level
        self.include_timestamp = include_timestamp

        if self.log_file and mode != 'console':
            log_dir = os.path.dirname(self.log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            open(self.log_file, 'w').close()

    def _console_accepts(self, level: LogLevel) -> bool:
        return self.mode != 'file' and level.value >= self.console_level.value

    def _file_accepts(self, level: LogLevel) -> bool:
        return self.mode != 'console' and level.value >= self.file_level.value

    def isEnabledFor(self, level: LogLevel) -> bool:
        """
        Check whether a message at ``level`` would reach any sink.
        Callers use it to skip building expensive debug messages.
        """
        return self._console_accepts(level) or self._file_accepts(level)

    def _format_message(self, message: str, level: LogLevel) -> str:
        timestamp = f"[{time.strftime('%Y-%m-%d %H:%M:%S')}] " if self.include_timestamp else ""
        return f"{timestamp}[{level.name}] {message}"

    def log(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        """
        Log a message with the specified level.

        Args:
            message: The message to log
            level: The log level (default: INFO)
        """
        if not self.isEnabledFor(level):
            return
        formatted = self._format_message(message, level)
        if self._console_accepts(level):
            print(formatted, file=sys.stderr if level.value >= LogLevel.WARNING.value else sys.stdout)
        if self._file_accepts(level):
            with open(self.log_file, 'a') as f:
                f.write(formatted + '\n')

    def debug(self, message: str) -> None:
        self.log(message, LogLevel.DEBUG)

    def info(self, message: str) -> None:
        self.log(message, LogLevel.INFO)

    def warning(self, message: str) -> None:
        self.log(message, LogLevel.WARNING)

    def error(self, message: str) -> None:
        self.log(message, LogLevel.ERROR)

    def __call__(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        """Shorthand for :meth:`log`, as used by the example scripts."""
        self.log(message, level)


# Default logger instance
DEFAULT_LOGGER = CloudLogger(mode='console')


def get_logger() -> CloudLogger:
    """Return the logger every pycloud module writes to."""
    return DEFAULT_LOGGER


def set_logger(logger: Optional[CloudLogger]) -> None:
    """
    Replace the package logger.

    Args:
        logger: A CloudLogger instance or None to reset to default
    """
    global DEFAULT_LOGGER
    if logger is None:
        DEFAULT_LOGGER = CloudLogger(mode='console')
    elif not isinstance(logger, CloudLogger):
        raise ValueError("Logger must be an instance of CloudLogger")
    else:
        DEFAULT_LOGGER = logger
