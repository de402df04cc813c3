# region Docstring
"""
clipstash.config.base

Environment detection and per-user path resolution.

Overview:
- Provides a utility class for detecting the current application environment
    (prod, dev or test) and for locating the per-user configuration directory.
- Resolves the location of the history database file, honouring an explicit
    override and creating missing directories with owner-only permissions.

Contents:
- Classes:
    - AppEnv:
        Class methods to determine the environment, the working directory root
        and the platform-specific configuration directory.
    - StoragePathError:
        Raised when the database location cannot be determined or created.

- Functions:
    - ensure_private_dir(path) -> Path
    - resolve_db_path(override) -> Path

- Module-level Constants:
    - APP_NAME (str): Directory and file stem used for all per-user files.
    - APP_ROOT (Path): The working directory the process was started from.
    - APP_ENV (Literal["prod", "dev", "test"]): The detected environment.
    - CONFIG_DIR (Path): The per-user configuration directory.

Environment Detection Logic:
- The CLIPSTASH_ENV environment variable selects the environment explicitly.
- Anything else falls back to "prod".

Design Notes:
- The configuration directory comes from platformdirs: ~/.config on Linux,
    ~/Library/Application Support on macOS and %APPDATA% on Windows.
- resolve_db_path looks the directory up at call time, so relocating the
    user's config home takes effect without re-importing this module.
"""
# endregion
# region Imports
import os
from pathlib import Path
from typing import Literal, Optional

from platformdirs import user_config_dir

# endregion
# region AppEnv Class

APP_NAME = "clipstash"
DB_FILE_NAME = f"{APP_NAME}.db"
PRIVATE_DIR_MODE = 0o700


class StoragePathError(Exception):
    """Raised when the history database path cannot be resolved or created."""

    pass


class AppEnv:
    """
    Application environment detection utility.

    Attributes:
        ROOT (Path): The directory the process was started from.
        PROD (Literal["prod"]): Constant representing the production environment.
        DEV (Literal["dev"]): Constant representing the development environment.
        TEST (Literal["test"]): Constant representing the test environment.
    """

    ROOT: Path = Path().cwd().resolve()
    PROD: Literal["prod"] = "prod"
    DEV: Literal["dev"] = "dev"
    TEST: Literal["test"] = "test"

    @classmethod
    def environment(cls) -> Literal["prod", "dev", "test"]:
        """Determine the current application environment."""
        value = os.getenv("CLIPSTASH_ENV", "").lower()
        if value in {cls.PROD, cls.DEV, cls.TEST}:
            return value
        return cls.PROD

    @classmethod
    def app_root(cls) -> Path:
        """Get the application root directory."""
        return cls.ROOT

    @classmethod
    def config_dir(cls) -> Path:
        """Get the per-user configuration directory for clipstash."""
        return Path(user_config_dir(APP_NAME, appauthor=False, roaming=True))


# endregion
# region Path Resolution


def ensure_private_dir(path: Path) -> Path:
    """
    Create `path` (and any missing parents) readable only by the current user.

    Raises:
        StoragePathError: If the directory cannot be created.
    """
    path = Path(path)
    missing = [p for p in (path, *path.parents) if not p.exists()]
    try:
        # Outermost first, so every directory created here gets the private mode
        for directory in reversed(missing):
            directory.mkdir(mode=PRIVATE_DIR_MODE, exist_ok=True)
        if not path.is_dir():
            raise NotADirectoryError(f"{path} is not a directory")
    except OSError as e:
        raise StoragePathError(f"could not create directory {path}: {e}") from e
    return path


def resolve_db_path(override: Optional[Path] = None) -> Path:
    """
    Resolve the location of the history database file.

    Arguments:
        override (Optional[Path]): Explicit file path, usually taken from the
            CLIPSTASH_DB_PATH environment variable.

    Returns:
        Path: The database file path. Its parent directory exists on return.

    Raises:
        StoragePathError: If no configuration directory is available or a
            directory cannot be created.
    """
    if override is not None and str(override) != "":
        db_path = Path(override).expanduser()
        ensure_private_dir(db_path.parent)
        return db_path

    try:
        config_dir = AppEnv.config_dir()
    except Exception as e:
        raise StoragePathError(f"could not get user config directory: {e}") from e

    ensure_private_dir(config_dir)
    return config_dir / DB_FILE_NAME


# endregion
# region Module-level Constants

APP_ROOT: Path = AppEnv.app_root()
"""[Path] Directory the process was started from."""
APP_ENV: Literal["prod", "dev", "test"] = AppEnv.environment()
"""[Literal] Environment name, used to pick config.{env}.yaml."""
CONFIG_DIR: Path = AppEnv.config_dir()
"""[Path] Per-user configuration directory."""
# endregion


__all__ = [
    "APP_ENV",
    "APP_NAME",
    "APP_ROOT",
    "CONFIG_DIR",
    "DB_FILE_NAME",
    "AppEnv",
    "StoragePathError",
    "ensure_private_dir",
    "resolve_db_path",
]
