"""Levelled logging to standard output and to a dated log file."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

_LEVEL_FLAGS = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "FATAL",
}

_FORMAT = "[%(level_flag)s][%(filename)s:%(lineno)d] %(asctime)s %(message)s"
_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


@dataclass(frozen=True)
class LogSettings:
    """Where the log file goes; its name is ``<name>-<date>.<ext>``."""

    path: str = "logs"
    name: str = "respkit"
    ext: str = "log"
    time_format: str = "%Y-%m-%d"


class _Formatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.level_flag = _LEVEL_FLAGS.get(record.levelno, record.levelname)
        return super().format(record)


class _StdoutHandler(logging.Handler):
    """Writes to whatever ``sys.stdout`` is at the time of each record."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            stream = sys.stdout
            stream.write(self.format(record) + "\n")
            stream.flush()
        except Exception:
            self.handleError(record)


_logger = logging.getLogger("respkit")
_logger.setLevel(logging.DEBUG)
_logger.propagate = False
_stdout_handler = _StdoutHandler()
_stdout_handler.setFormatter(_Formatter(_FORMAT, _DATE_FORMAT))
_logger.addHandler(_stdout_handler)
_file_handler: Optional[logging.FileHandler] = None


def setup(settings: LogSettings) -> Path:
    """Send log records to a dated file as well as standard output.

    Returns the path of the log file; raises OSError if it cannot be opened.
    """
    global _file_handler
    directory = Path(settings.path)
    file_name = f"{settings.name}-{datetime.now().strftime(settings.time_format)}.{settings.ext}"
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except PermissionError as exc:
        raise OSError(f"permission denied dir: {directory}") from exc
    except OSError as exc:
        raise OSError(f"error during make dir {directory}, err: {exc}") from exc

    target = directory / file_name
    try:
        handler = logging.FileHandler(target, mode="a", encoding="utf-8")
    except OSError as exc:
        raise OSError(f"fail to open file, err: {exc}") from exc
    handler.setFormatter(_Formatter(_FORMAT, _DATE_FORMAT))

    if _file_handler is not None:
        _logger.removeHandler(_file_handler)
        _file_handler.close()
    _file_handler = handler
    _logger.addHandler(handler)
    return target


def _log(level: int, args: tuple) -> None:
    message = " ".join(str(arg) for arg in args)
    # point the record at the caller of the public function
    _logger.log(level, message, stacklevel=3)


def debug(*args: Any) -> None:
    """Log at debug level."""
    _log(logging.DEBUG, args)


def info(*args: Any) -> None:
    """Log at info level."""
    _log(logging.INFO, args)


def warn(*args: Any) -> None:
    """Log at warning level."""
    _log(logging.WARNING, args)


def error(*args: Any) -> None:
    """Log at error level."""
    _log(logging.ERROR, args)


def fatal(*args: Any) -> None:
    """Log at fatal level, then exit with status 1."""
    _log(logging.CRITICAL, args)
    raise SystemExit(1)