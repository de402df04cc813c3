"""
clipstash.config
Configuration and settings management for clipstash.
Overview:
- Provides Pydantic-based settings classes for the storage layer, the clipboard
    watcher, logging and the command line surface.
- Each settings class inherits from FactoryBaseSettings and supports environment
    variable overrides via Field aliases.
Contents:
- Settings Classes:
    - StorageSettings:
        Database file override, lock wait bound and durability pragmas. The
        database_path property resolves (and creates) the file location.
    - ClipboardWatcherSettings:
        Poll interval of the clipboard backend.
    - LoggingSettings:
        Log level, log directory and archive retention.
    - CliSettings:
        Default result limits and preview width for the query commands.
Design Notes:
- Default values are provided for all fields enabling zero-configuration startup.
- CLIPSTASH_DB_PATH is the documented override for the database location; when
    unset the file lives in the per-user configuration directory.
"""

from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator

from clipstash.config.base import (  # noqa: F401
    APP_ENV,
    APP_NAME,
    APP_ROOT,
    CONFIG_DIR,
    AppEnv,
    StoragePathError,
    ensure_private_dir,
    resolve_db_path,
)
from clipstash.config.factory import FactoryBaseSettings
from clipstash.config.factory import get_settings  # noqa: F401  This is used externally

JOURNAL_MODES = {"DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF"}
SYNCHRONOUS_MODES = {"OFF", "NORMAL", "FULL", "EXTRA"}


class StorageSettings(FactoryBaseSettings):
    """
    History database configuration settings.
    """

    db_path: Optional[Path] = Field(
        default=None,
        alias="CLIPSTASH_DB_PATH",
        description="Explicit path of the history database file.",
    )
    busy_timeout_ms: int = Field(
        default=5000,
        ge=0,
        alias="CLIPSTASH_BUSY_TIMEOUT_MS",
        description="How long a write waits for a competing writer. (Milliseconds) [Default: 5000]",
    )
    journal_mode: str = Field(
        default="WAL",
        alias="CLIPSTASH_JOURNAL_MODE",
        description="SQLite journal mode. [Default: WAL]",
    )
    synchronous: str = Field(
        default="NORMAL",
        alias="CLIPSTASH_SYNCHRONOUS",
        description="SQLite fsync policy. [Default: NORMAL]",
    )

    @property
    def database_path(self) -> Path:
        """Resolved database file path; parent directories are created."""
        return resolve_db_path(self.db_path)

    @field_validator("journal_mode", mode="before")
    def parse_journal_mode(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().upper()
            if v not in JOURNAL_MODES:
                raise ValueError(f"journal_mode must be one of {sorted(JOURNAL_MODES)}")
        return v

    @field_validator("synchronous", mode="before")
    def parse_synchronous(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().upper()
            if v not in SYNCHRONOUS_MODES:
                raise ValueError(
                    f"synchronous must be one of {sorted(SYNCHRONOUS_MODES)}"
                )
        return v


class ClipboardWatcherSettings(FactoryBaseSettings):
    """
    Configuration for the Clipboard Watcher Service.
    """

    poll_interval: float = Field(
        default=0.5,
        ge=0,
        description="Interval for polling the clipboard. (Seconds) [Default: 0.5]",
        alias="CLIPSTASH_POLL_INTERVAL",
    )


class LoggingSettings(FactoryBaseSettings):
    """
    Logging configuration settings.
    """

    log_level: str = Field(
        default="info",
        alias="CLIPSTASH_LOG_LEVEL",
        description="Log level for console and file output.",
    )
    log_dir: Optional[Path] = Field(
        default=None,
        alias="CLIPSTASH_LOG_DIR",
        description="Directory for the JSON-lines log file.",
    )
    days_to_keep: int = Field(
        default=10,
        ge=0,
        alias="CLIPSTASH_LOG_DAYS_TO_KEEP",
        description="Number of archived log files to keep.",
    )

    @property
    def logs_dir(self) -> Path:
        """Base directory for logs."""
        return self.log_dir or AppEnv.config_dir() / "logs"


class CliSettings(FactoryBaseSettings):
    """
    CLI configuration settings.
    """

    list_limit: int = Field(
        default=10,
        ge=0,
        alias="CLIPSTASH_LIST_LIMIT",
        description="Number of entries shown by `list`.",
    )
    search_limit: int = Field(
        default=20,
        ge=0,
        alias="CLIPSTASH_SEARCH_LIMIT",
        description="Maximum number of matches shown by `search`.",
    )
    preview_width: int = Field(
        default=80,
        ge=1,
        alias="CLIPSTASH_PREVIEW_WIDTH",
        description="Characters of content shown per line before truncation.",
    )
