# region Docstring
"""
clipstash.watcher
Bridges a stream of clipboard snapshots into history inserts.
Overview:
    - ClipboardWatcher consumes any iterable of text snapshots (normally
      Clipboard.watch()) and stores each one that is non-empty and differs from
      the previously stored value.
    - WatchStats counts what happened to every snapshot.
Design Notes:
    - Deduplication only compares against the last value this watcher stored (or
      the newest row at startup). Non-adjacent repeats are stored, and two watchers
      on one file do not see each other's writes.
    - A failed insert is logged and the loop continues. last_content stays
      unchanged, so the same text is attempted again if it is copied again.
"""

# endregion
# region Imports
import logging
import time
from datetime import datetime
from logging import Logger as T_Logger
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, Field

from clipstash.storage import Storage, StorageError
from clipstash.utils import get_time, truncate

# endregion
# region Pydantic Models


class WatchStats(BaseModel):
    """
    Counters for one watcher run.
    Attributes:
        seen (int): Snapshots received.
        stored (int): Snapshots written to storage.
        skipped_empty (int): Empty snapshots discarded.
        skipped_duplicate (int): Snapshots equal to the previous stored value.
        failed (int): Inserts that raised a StorageError.
    """

    seen: int = Field(0, description="Snapshots received")
    stored: int = Field(0, description="Snapshots written to storage")
    skipped_empty: int = Field(0, description="Empty snapshots discarded")
    skipped_duplicate: int = Field(
        0, description="Snapshots equal to the previous stored value"
    )
    failed: int = Field(0, description="Inserts that raised a StorageError")
    start_time: float = Field(default_factory=time.time)

    @property
    def uptime(self) -> float:
        return time.time() - self.start_time

    def __str__(self) -> str:
        return (
            f"{self.seen} seen, {self.stored} stored, "
            f"{self.skipped_duplicate} duplicate, {self.skipped_empty} empty, "
            f"{self.failed} failed, uptime {self.uptime:.1f}s"
        )


# endregion
# region Watcher Service


class ClipboardWatcher:
    __storage: Storage
    __logger: T_Logger

    def __init__(
        self,
        storage: Storage,
        logger: Optional[T_Logger] = None,
        clock: Callable[[], datetime] = get_time,
    ) -> None:
        self.__storage = storage
        self.__logger = (logger or logging.getLogger("clipstash")).getChild(
            self.__class__.__name__
        )
        self.__clock = clock
        self.last_content: str = ""
        self.stats = WatchStats()

    def seed(self) -> None:
        """Load the newest stored content so a restart does not repeat it."""
        try:
            self.last_content = self.__storage.last_content() or ""
        except StorageError as e:
            self.__logger.warning("Could not get last history item: %s", e)
            self.last_content = ""

    def handle(self, content: str) -> Optional[int]:
        """
        Process one snapshot.

        Returns:
            Optional[int]: The new entry id, or None when nothing was stored.
        """
        self.stats.seen += 1
        if content == "":
            self.stats.skipped_empty += 1
            return None
        if content == self.last_content:
            self.stats.skipped_duplicate += 1
            return None

        try:
            entry_id = self.__storage.insert(content, self.__clock())
        except StorageError as e:
            self.stats.failed += 1
            self.__logger.error("Error storing clipboard item: %s", e)
            return None

        self.last_content = content
        self.stats.stored += 1
        self.__logger.info("New item copied (#%s): %s", entry_id, truncate(content))
        return entry_id

    def run(self, snapshots: Iterable[str]) -> WatchStats:
        """
        Seed from storage, then handle snapshots until the iterable ends.

        Arguments:
            snapshots (Iterable[str]): Clipboard texts in the order they were copied.

        Returns:
            WatchStats: Counters for this run.
        """
        self.seed()
        self.__logger.info("Agent is running and watching clipboard...")
        for content in snapshots:
            self.handle(content)
        self.__logger.info("Watcher stopped: %s", self.stats)
        return self.stats


# endregion
