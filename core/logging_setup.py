"""Logging configuration for the DIP check-in bot.

Registers a ``SUCCESS`` level (between ``INFO`` and ``WARNING``) and sets up a
dual-handler logging pipeline:

1. **Console** -- :class:`SafeStreamHandler` that gracefully handles
   Unicode on Windows by falling back to ``cp1252`` replacement
   encoding.
2. **File** -- :class:`CompressedRotatingFileHandler` writing to
   ``logs/checkin_bot.log`` with automatic gzip rotation (10 MiB per
   file, 5 backups).

Usage::

    from core.logging_setup import setup_logging, log_success
    setup_logging("DEBUG")
    log_success(logger, "Check-in successful")
"""

import gzip
import io
import logging
import os
import shutil
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

SUCCESS: int = 25
"""Numeric level for successful check-ins and cycle summaries."""

logging.addLevelName(SUCCESS, "SUCCESS")


def log_success(logger: logging.Logger, msg: str, *args) -> None:
    """Log *msg* at the ``SUCCESS`` level on *logger*."""
    if logger.isEnabledFor(SUCCESS):
        logger.log(SUCCESS, msg, *args)


class CompressedRotatingFileHandler(RotatingFileHandler):
    """RotatingFileHandler that gzip-compresses rotated log files.

    Rotated files are renamed with a ``.gz`` suffix and compressed
    in-place, keeping disk usage low for a bot that runs for weeks.
    """

    def rotation_filename(self, default_name: str) -> str:
        """Append ``.gz`` to the rotated file name."""
        return f"{default_name}.gz"

    def rotate(self, source: str, dest: str) -> None:
        """Compress *source* into *dest* using gzip.

        The original *source* file is removed after successful
        compression.
        """
        with open(source, 'rb') as f_in:
            with gzip.open(dest, 'wb') as f_out:
                shutil.copyfileobj(f_in, f_out)
        os.remove(source)


class SafeStreamHandler(logging.StreamHandler):
    """StreamHandler that never lets an encoding error escape.

    Windows consoles default to a narrow code page; unencodable
    characters are replaced instead of raising
    :exc:`UnicodeEncodeError`.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            stream = self.stream
            try:
                stream.write(msg + self.terminator)
            except UnicodeEncodeError:
                encoding = getattr(stream, "encoding", None) or "cp1252"
                safe_msg = msg.encode(
                    encoding, errors='replace',
                ).decode(encoding)
                stream.write(safe_msg + self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)


def setup_logging(
    log_level: str = "INFO", log_file: Optional[str] = None,
) -> None:
    """Configure the root logger with console and file handlers.

    On Windows the function first reconfigures ``sys.stdout`` and
    ``sys.stderr`` to use UTF-8 (with replacement for unencodable
    characters) before any handler is created.

    Args:
        log_level: Logging level name (e.g. ``"DEBUG"``,
            ``"SUCCESS"``, ``"WARNING"``).  Defaults to ``"INFO"``.
        log_file: Path of the rotating log file.  Defaults to
            ``logs/checkin_bot.log`` relative to the working directory.
    """
    # Must happen BEFORE creating StreamHandler
    if sys.platform == "win32":
        try:
            if hasattr(sys.stdout, 'reconfigure'):
                sys.stdout.reconfigure(
                    encoding='utf-8', errors='replace',
                )
                sys.stderr.reconfigure(
                    encoding='utf-8', errors='replace',
                )
            else:
                sys.stdout = io.TextIOWrapper(
                    sys.stdout.buffer,
                    encoding='utf-8',
                    errors='replace',
                    line_buffering=True,
                )
        except Exception:
            os.environ['PYTHONIOENCODING'] = 'utf-8:replace'

    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    log_path = log_file or os.path.join("logs", "checkin_bot.log")
    log_dir = os.path.dirname(log_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    file_handler = CompressedRotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8',
    )

    stream_handler = SafeStreamHandler(sys.stdout)

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s - %(message)s',
        handlers=[file_handler, stream_handler],
        force=True,
    )
    # aiohttp logs every connection reset at DEBUG/INFO
    logging.getLogger("aiohttp").setLevel(max(level, logging.WARNING))
