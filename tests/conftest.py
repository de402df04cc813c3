import logging
import sys
from pathlib import Path

import pytest

# Add the src directory to the path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from clipstash.config import get_settings  # noqa: E402
from clipstash.storage import Storage  # noqa: E402

CLIPSTASH_ENV_VARS = (
    "CLIPSTASH_DB_PATH",
    "CLIPSTASH_BUSY_TIMEOUT_MS",
    "CLIPSTASH_JOURNAL_MODE",
    "CLIPSTASH_SYNCHRONOUS",
    "CLIPSTASH_POLL_INTERVAL",
    "CLIPSTASH_LOG_LEVEL",
    "CLIPSTASH_LOG_DIR",
    "CLIPSTASH_LOG_DAYS_TO_KEEP",
    "CLIPSTASH_LIST_LIMIT",
    "CLIPSTASH_SEARCH_LIMIT",
    "CLIPSTASH_PREVIEW_WIDTH",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Isolate every test from CLIPSTASH_* variables and cached settings."""
    for name in CLIPSTASH_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    # Handlers configured by the CLI point at streams that are gone after the test
    for handler in list(logging.getLogger("clipstash").handlers):
        logging.getLogger("clipstash").removeHandler(handler)
        handler.close()


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Database file inside a directory that does not exist yet."""
    return tmp_path / "data" / "clipstash.db"


@pytest.fixture
def storage(db_path):
    """Open storage on a fresh database file."""
    with Storage.open(db_path) as s:
        yield s


@pytest.fixture
def cli_env(monkeypatch, tmp_path, db_path):
    """Point the command line at a temporary database and log directory."""
    monkeypatch.setenv("CLIPSTASH_DB_PATH", str(db_path))
    monkeypatch.setenv("CLIPSTASH_LOG_DIR", str(tmp_path / "logs"))
    get_settings.cache_clear()
    return db_path
