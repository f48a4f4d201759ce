"""
Centralized logging configuration for Appearance Keeper.

Uses a rotating file handler with logs stored under the XDG state directory.
Includes colored console output for debug mode.
"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


_VERBOSE: bool = False
_DEBUG_ENV = "APPEARANCE_KEEPER_DEBUG"
_LOG_DIR: Optional[Path] = None


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',       # Cyan
        'INFO': '\033[32m',        # Green
        'WARNING': '\033[33m',     # Yellow
        'ERROR': '\033[31m',       # Red
        'CRITICAL': '\033[35m',    # Magenta
    }
    # Engine writes tagged [APPLY] stand out from regular info lines
    APPLY_COLOR = '\033[38;5;135m'
    RESET = '\033[0m'
    BOLD = '\033[1m'

    def format(self, record):
        original_levelname = record.levelname

        color = self.COLORS.get(record.levelname)
        if '[APPLY]' in str(record.msg) and record.levelno < logging.WARNING:
            color = self.APPLY_COLOR

        if color is None:
            return super().format(record)

        record.levelname = f"{self.BOLD}{color}{record.levelname}{self.RESET}"
        try:
            message = super().format(record)
        finally:
            record.levelname = original_levelname
        return f"{color}{message}{self.RESET}"


def _env_flag(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None:
        return None
    value = raw.strip().lower()
    if value in ("1", "true", "on", "yes"):
        return True
    if value in ("0", "false", "off", "no"):
        return False
    return None


def get_log_dir() -> Path:
    """Return the directory used for log files.

    Defaults to ``$XDG_STATE_HOME/appearance-keeper/logs`` (falling back to
    ``~/.local/state``). setup_logging() may override it.
    """
    if _LOG_DIR is not None:
        return _LOG_DIR
    state_home = os.getenv("XDG_STATE_HOME") or str(Path.home() / ".local" / "state")
    return Path(state_home) / "appearance-keeper" / "logs"


def setup_logging(debug: bool = False, verbose: bool = False,
                  log_dir: Optional[Path] = None) -> None:
    """
    Configure application logging with file rotation.

    Args:
        debug: If True, set log level to DEBUG and enable console output.
        verbose: When True, store writes also log their old and new values.
            Verbose mode implies debug-level logging.
        log_dir: Optional override for the log directory.
    """
    global _VERBOSE, _LOG_DIR

    env_debug = _env_flag(_DEBUG_ENV)
    if env_debug is not None:
        debug = debug or env_debug

    debug_enabled = debug or verbose
    if log_dir is not None:
        _LOG_DIR = Path(log_dir)

    log_dir = get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "appearance-keeper.log"

    level = logging.DEBUG if debug_enabled else logging.INFO

    formatter = logging.Formatter(
        '%(asctime)s - %(name)-30s - %(levelname)-8s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # File handler with rotation (1MB max, keep 5 backups)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=1 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_fmt = '%(asctime)s - %(name)-30s - %(levelname)-8s - %(message)s'
    if debug_enabled and sys.stdout.isatty():
        console_handler.setFormatter(ColoredFormatter(console_fmt, datefmt='%H:%M:%S'))
    else:
        console_handler.setFormatter(logging.Formatter(console_fmt, datefmt='%H:%M:%S'))
    console_handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)

    # Warnings always reach the console; everything else only in debug mode
    if not debug_enabled:
        console_handler.setLevel(logging.WARNING)
    root_logger.addHandler(console_handler)

    _VERBOSE = bool(verbose)

    root_logger.info("=" * 60)
    root_logger.info(
        "Appearance Keeper logging initialized (debug=%s, verbose=%s)",
        debug_enabled,
        _VERBOSE,
    )
    root_logger.info("=" * 60)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module."""
    return logging.getLogger(name)


def is_verbose_logging() -> bool:
    """Return True when verbose debug logging is enabled globally."""

    return _VERBOSE
