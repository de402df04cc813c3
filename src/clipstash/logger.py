from datetime import datetime
import logging
from logging import Logger as T_Logger
from logging.config import dictConfig
from pathlib import Path
from typing import Optional

from pythonjsonlogger.json import JsonFormatter  # type: ignore # noqa F401

from clipstash.config import LoggingSettings, ensure_private_dir
from clipstash.utils import get_time

LOGGER_NAME = "clipstash"
LOG_FILE_NAME = f"{LOGGER_NAME}.jsonl"
ARCHIVE_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

logger: T_Logger = logging.getLogger(LOGGER_NAME)
system_logger = logger.getChild("SYSTEM")


def build_config(log_file_path: Path, log_level: str) -> dict:
    """dictConfig for a console handler plus a JSON-lines file handler."""
    level = log_level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
            },
            "standard": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
        },
        "handlers": {
            "file": {
                "class": "logging.FileHandler",
                "filename": str(log_file_path),
                "formatter": "json",
                "encoding": "utf-8",
                "level": level,
            },
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": level,
            },
        },
        "loggers": {
            LOGGER_NAME: {
                "handlers": ["file", "console"],
                "level": level,
                "propagate": True,
            },
        },
    }


def _archive_daily_log_file(log_file_path: Path) -> Optional[Path]:
    """Archive the log file daily by renaming it with a timestamp."""
    system_logger.debug("Checking for log file to archive...")
    current_time = get_time().replace(tzinfo=None)
    # Skip when the newest archive is less than 24 hours old
    archive_files = sorted(
        log_file_path.parent.glob(f"{log_file_path.stem}_*.jsonl"),
        key=lambda f: f.stat().st_mtime,
        reverse=True,
    )
    if archive_files:
        latest_archive = archive_files[0]
        timestamp_str = latest_archive.stem.replace(f"{log_file_path.stem}_", "")
        try:
            timestamp = datetime.strptime(timestamp_str, ARCHIVE_TIMESTAMP_FORMAT)
        except ValueError:
            system_logger.warning(
                f"Could not parse timestamp from archive file {latest_archive}, skipping timestamp check."
            )
            return None
        if (current_time - timestamp).total_seconds() < 24 * 3600:
            system_logger.debug(
                f"Latest archive {latest_archive} is less than 24 hours old, skipping archiving."
            )
            return None

    if log_file_path.exists() and log_file_path.stat().st_size > 0:
        timestamp = current_time.strftime(ARCHIVE_TIMESTAMP_FORMAT)
        archive_path = log_file_path.with_name(f"{log_file_path.stem}_{timestamp}.jsonl")
        system_logger.debug(f"Archiving log file {log_file_path} to {archive_path}")
        log_file_path.rename(archive_path)
        return archive_path
    return None


def _manage_logfile_archives(log_file_path: Path, days_to_keep: int = 10) -> list[Path]:
    """Keep only the `days_to_keep` most recent archives; return the deleted ones."""
    system_logger.debug("Managing log file archives...")
    archive_files = sorted(
        log_file_path.parent.glob(f"{log_file_path.stem}_*.jsonl"),
        key=lambda f: f.stat().st_mtime,
        reverse=True,
    )
    if len(archive_files) <= days_to_keep:
        system_logger.debug("No old archive files to delete.")
        return []
    removed = archive_files[days_to_keep:]
    for archive_file in removed:
        system_logger.debug(f"Deleting old archive file: {archive_file}")
        archive_file.unlink()
    return removed


def configure_logging(settings: Optional[LoggingSettings] = None) -> T_Logger:
    """
    Route the `clipstash` logger to stderr and to <logs_dir>/clipstash.jsonl.

    The previous log file is archived first (at most once a day) and old
    archives beyond `days_to_keep` are removed.
    """
    settings = settings or LoggingSettings()
    log_file_path = ensure_private_dir(settings.logs_dir) / LOG_FILE_NAME

    # Rotate before the file handler opens the file
    _archive_daily_log_file(log_file_path)
    _manage_logfile_archives(log_file_path, settings.days_to_keep)

    dictConfig(build_config(log_file_path, settings.log_level))
    system_logger.debug("Logger for clipstash initialized.")
    return logger
