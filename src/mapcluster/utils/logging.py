"""
logging.py

Centralised logging for mapcluster.

All modules obtain their logger through ``MapclusterLogger.get_logger(__name__)`` so that a
single verbosity switch (``LogLevel``) controls the whole package.  The user-facing helpers
(``log_progress``, ``log_success`` ...) prefix messages with a symbol and colour, and are gated
on the current level so that library code can call them freely.

Environment variables
---------------------
``MAPCLUSTER_LOG_LEVEL``
    Requested level (``quiet``, ``normal``, ``verbose``, ``debug``) read by ``setup_logging``.
``MAPCLUSTER_EFFECTIVE_LOG_LEVEL``
    Written by ``setup_logging`` so that loggers created later (e.g. in worker threads spawned
    by the host) pick up the same level.
"""

import logging
import os
import sys
from enum import Enum

from tqdm import tqdm


class LogLevel(Enum):
    """Verbosity levels understood by the CLI and library helpers."""

    QUIET = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3


class Colors:
    """ANSI colour codes."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    GRAY = "\033[90m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"


class Symbols:
    """Unicode symbols for logging."""

    CHECK = "✓"
    CROSS = "✗"
    WARNING = "⚠"
    GEAR = "⚙"
    ROCKET = "🚀"


_PYTHON_LEVELS = {
    LogLevel.QUIET: logging.ERROR,
    LogLevel.NORMAL: logging.INFO,
    LogLevel.VERBOSE: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
}


class SimpleFormatter(logging.Formatter):
    """Formatter that only colours the message according to its level."""

    COLORS = {
        "DEBUG": Colors.GRAY,
        "INFO": Colors.CYAN,
        "WARNING": Colors.YELLOW,
        "ERROR": Colors.RED,
        "CRITICAL": Colors.RED + Colors.BOLD,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        return f"{color}{record.getMessage()}{Colors.RESET}"


class MapclusterLogger:
    """Registry of package loggers sharing one verbosity level."""

    _current_level: LogLevel = LogLevel.NORMAL
    _loggers: dict[str, logging.Logger] = {}

    @classmethod
    def set_level(cls, level: LogLevel) -> None:
        cls._current_level = level
        for logger in cls._loggers.values():
            cls._configure_logger_level(logger, level)

    @classmethod
    def get_level(cls) -> LogLevel:
        return cls._current_level

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        if name not in cls._loggers:
            logger = logging.getLogger(name)
            cls._configure_logger_level(logger, cls._current_level)
            cls._loggers[name] = logger
        return cls._loggers[name]

    @classmethod
    def _configure_logger_level(cls, logger: logging.Logger, level: LogLevel) -> None:
        env_level = os.getenv("MAPCLUSTER_EFFECTIVE_LOG_LEVEL")
        if env_level:
            try:
                level = LogLevel[env_level.upper()]
            except KeyError:
                pass
        logger.setLevel(_PYTHON_LEVELS.get(level, logging.INFO))

    @classmethod
    def progress(cls, message: str, symbol: str = Symbols.GEAR) -> None:
        if cls._current_level.value >= LogLevel.NORMAL.value:
            cls.get_logger("mapcluster.progress").info(f"{symbol} {message}")

    @classmethod
    def success(cls, message: str, symbol: str = Symbols.CHECK) -> None:
        if cls._current_level.value >= LogLevel.NORMAL.value:
            cls.get_logger("mapcluster.success").info(
                f"{Colors.GREEN}{symbol} {message}{Colors.RESET}"
            )

    @classmethod
    def info(cls, message: str) -> None:
        if cls._current_level.value >= LogLevel.NORMAL.value:
            cls.get_logger("mapcluster.info").info(message)

    @classmethod
    def detail(cls, message: str, indent: str = "  ") -> None:
        if cls._current_level.value >= LogLevel.VERBOSE.value:
            cls.get_logger("mapcluster.detail").info(f"{indent} {message}")

    @classmethod
    def debug(cls, message: str, logger_name: str = "mapcluster.debug") -> None:
        if cls._current_level.value >= LogLevel.DEBUG.value:
            cls.get_logger(logger_name).debug(message)

    @classmethod
    def warning(cls, message: str, symbol: str = Symbols.WARNING) -> None:
        if cls._current_level.value >= LogLevel.NORMAL.value:
            cls.get_logger("mapcluster.warning").warning(f"{symbol} {message}")

    @classmethod
    def error(cls, message: str, symbol: str = Symbols.CROSS) -> None:
        cls.get_logger("mapcluster.error").error(f"{symbol} {message}")


def suppress_third_party_logs() -> None:
    """Keep chatty dependencies at WARNING so they do not drown our output."""
    for name in ("sklearn", "joblib", "urllib3", "matplotlib", "numexpr"):
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(level: LogLevel | None = None) -> None:
    """Configure the root handler and the package-wide verbosity level."""
    if level is None:
        requested = os.getenv("MAPCLUSTER_LOG_LEVEL", "normal").upper()
        level = LogLevel[requested] if requested in LogLevel.__members__ else LogLevel.NORMAL

    MapclusterLogger.set_level(level)
    os.environ["MAPCLUSTER_EFFECTIVE_LOG_LEVEL"] = level.name

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(SimpleFormatter())
    if level == LogLevel.QUIET:
        handler.setLevel(logging.ERROR)
    elif level == LogLevel.DEBUG:
        handler.setLevel(logging.DEBUG)
    else:
        handler.setLevel(logging.INFO)

    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if level == LogLevel.DEBUG else logging.INFO)

    suppress_third_party_logs()


class ProgressTracker:
    """Step-wise progress bar for the CLI; silent in QUIET mode."""

    _STATUS_STYLES = {
        "success": (Colors.GREEN, Symbols.CHECK),
        "warning": (Colors.YELLOW, Symbols.WARNING),
        "error": (Colors.RED, Symbols.CROSS),
    }

    def __init__(self, steps: list[str]):
        self.steps = steps
        self.current = 0
        self.show_progress = MapclusterLogger.get_level() != LogLevel.QUIET
        self.pbar = None
        if self.show_progress:
            self.pbar = tqdm(
                total=len(steps),
                desc=f"{Colors.BLUE}Progress{Colors.RESET}",
                bar_format="{desc}: {percentage:3.0f}%|{bar}| {n_fmt}/{total_fmt}",
            )

    def advance(self, message: str | None = None, status: str = "success") -> None:
        self.current += 1
        if self.pbar is None:
            return
        if message:
            color, symbol = self._STATUS_STYLES.get(status, (Colors.CYAN, Symbols.GEAR))
            self.pbar.write(f"{color}{symbol} {message}{Colors.RESET}")
        self.pbar.update(1)

    def close(self) -> None:
        if self.pbar is None:
            return
        self.pbar.write(f"{Colors.GREEN}{Symbols.CHECK} All steps completed{Colors.RESET}")
        self.pbar.close()


# Convenience wrappers -------------------------------------------------------


def log_progress(message: str, symbol: str = Symbols.GEAR) -> None:
    MapclusterLogger.progress(message, symbol)


def log_success(message: str, symbol: str = Symbols.CHECK) -> None:
    MapclusterLogger.success(message, symbol)


def log_info(message: str) -> None:
    MapclusterLogger.info(message)


def log_detail(message: str, indent: str = "  ") -> None:
    MapclusterLogger.detail(message, indent)


def log_debug(message: str, logger_name: str = "mapcluster.debug") -> None:
    MapclusterLogger.debug(message, logger_name)


def log_warning(message: str, symbol: str = Symbols.WARNING) -> None:
    MapclusterLogger.warning(message, symbol)


def log_error(message: str, symbol: str = Symbols.CROSS) -> None:
    MapclusterLogger.error(message, symbol)
