"""
clipstash

Clipboard history recorder: a watcher stores every new text copy in a local
SQLite file and the `clipstash` command lists, searches, restores or clears it.
"""

from clipstash.clipboard import Clipboard, ClipboardError  # noqa: F401
from clipstash.config import StoragePathError  # noqa: F401
from clipstash.models import HistoryEntry  # noqa: F401
from clipstash.storage import Storage, StorageBusyError, StorageError  # noqa: F401
from clipstash.watcher import ClipboardWatcher, WatchStats  # noqa: F401

__version__ = "0.1.0"

__all__ = [
    "Clipboard",
    "ClipboardError",
    "ClipboardWatcher",
    "HistoryEntry",
    "Storage",
    "StorageBusyError",
    "StorageError",
    "StoragePathError",
    "WatchStats",
]
