"""
Application logging for sqsh.

A singleton wrapper around the ``sqsh`` stdlib logger. The interactive screen
owns stdout, so console records go to stderr; an optional file handler keeps
the full detail (location, tracebacks) with size or time based rotation.
"""

import logging
import sys
import threading
from datetime import datetime
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Optional


# Between INFO and WARNING: normal but significant (batch finished, original removed)
NOTICE = 25
logging.addLevelName(NOTICE, "NOTICE")


def _resolve_level(name: str, default: int) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else default


# ============================================================================
# Formatters
# ============================================================================


class DetailedFormatter(logging.Formatter):
    """Formatter with location tracking (module:function:line)."""

    def format(self, record: logging.LogRecord) -> str:
        record.location = f"{record.module}:{record.funcName}:{record.lineno}"
        return super().format(record)


# ============================================================================
# Singleton Logger
# ============================================================================


class SqshLogger:
    """
    Thread-safe singleton logger.

    Features:
    - Console output on stderr (WARNING+ by default)
    - Optional file output with location info and full tracebacks
    - Optional log rotation (size or time based)
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if getattr(self, "_initialized", False):
            return

        self._initialized = True
        self._logger = logging.getLogger("sqsh")
        self._logger.setLevel(logging.WARNING)
        self._logger.propagate = False

        self._console_handler: Optional[logging.Handler] = None
        self._file_handler: Optional[logging.Handler] = None
        self._log_dir: Optional[Path] = None

    def configure(
        self,
        log_level: str = "INFO",
        log_dir: Optional[str] = None,
        enable_console: bool = True,
        console_level: str = "WARNING",
        rotation_enabled: bool = False,
        rotation_type: str = "size",
        max_bytes: int = 10485760,  # 10 MB
        backup_count: int = 5,
        when: str = "midnight",
    ) -> None:
        """
        Configure handlers. Calling again replaces the previous configuration.

        Args:
            log_level: Level for the logger and file handler
            log_dir: Directory for log files; None disables file logging
            enable_console: Enable stderr output
            console_level: Minimum level shown on the console
            rotation_enabled: Enable log rotation
            rotation_type: "size" or "time"
            max_bytes: Max bytes for size-based rotation
            backup_count: Number of rotated files to keep
            when: Rotation interval for time-based rotation (e.g. "midnight", "H")
        """
        if rotation_enabled and rotation_type not in ("size", "time"):
            raise ValueError(f"Invalid rotation_type: {rotation_type}. Must be 'size' or 'time'.")

        self._cleanup_handlers()

        level = _resolve_level(log_level, logging.INFO)
        self._logger.setLevel(level)

        if enable_console:
            self._console_handler = logging.StreamHandler(sys.stderr)
            self._console_handler.setLevel(_resolve_level(console_level, logging.WARNING))
            self._console_handler.setFormatter(logging.Formatter(fmt="%(message)s"))
            self._logger.addHandler(self._console_handler)

        if log_dir is not None:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)
            self._log_dir = log_path
            log_file = log_path / f"sqsh_{datetime.now().strftime('%Y%m%d')}.log"

            if not rotation_enabled:
                self._file_handler = logging.FileHandler(log_file, encoding="utf-8", delay=True)
            elif rotation_type == "size":
                self._file_handler = RotatingFileHandler(
                    log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8", delay=True
                )
            else:
                self._file_handler = TimedRotatingFileHandler(
                    log_file, when=when, backupCount=backup_count, encoding="utf-8", delay=True
                )

            self._file_handler.setLevel(level)
            self._file_handler.setFormatter(
                DetailedFormatter(
                    fmt="%(asctime)s [%(levelname)s] [%(location)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
                )
            )
            self._logger.addHandler(self._file_handler)

    def get_logger(self) -> logging.Logger:
        """Get the underlying logger instance."""
        return self._logger

    def _cleanup_handlers(self) -> None:
        for handler in list(self._logger.handlers):
            handler.close()
            self._logger.removeHandler(handler)
        self._console_handler = None
        self._file_handler = None
        self._log_dir = None

    def notice(self, msg: str, *args, **kwargs) -> None:
        """Log a normal but significant event."""
        kwargs.setdefault("stacklevel", 2)
        self._logger.log(NOTICE, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs) -> None:
        kwargs.setdefault("stacklevel", 2)
        self._logger.error(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        kwargs.setdefault("stacklevel", 2)
        self._logger.warning(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        kwargs.setdefault("stacklevel", 2)
        self._logger.info(msg, *args, **kwargs)

    def debug(self, msg: str, *args, **kwargs) -> None:
        kwargs.setdefault("stacklevel", 2)
        self._logger.debug(msg, *args, **kwargs)


def get_logger() -> SqshLogger:
    """Get the global SqshLogger instance."""
    return SqshLogger()
