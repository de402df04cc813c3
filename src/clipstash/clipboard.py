# region Docstring
"""
clipstash.clipboard
Text clipboard access for the watcher and the `get` command.
Overview:
- Wraps pyperclip behind four operations: init, read_current, write and watch.
- watch() turns the clipboard into a blocking iterator of changed text
    snapshots. Each next() suspends the caller until the text changes.
Design notes:
- pyperclip has no change notifications, so watch() polls at the configured
    interval. Callers only see the iterator.
- The text present when watching starts is the baseline and is not yielded.
- A failed or undecodable read during watching is logged and that tick is
    skipped.
"""
# endregion
# region Imports
import logging
import threading
from logging import Logger as T_Logger
from typing import Iterator, Optional

import pyperclip

from clipstash.config import ClipboardWatcherSettings

# endregion


class ClipboardError(Exception):
    """Custom exception for clipboard access errors."""

    pass


class Clipboard:
    __settings: ClipboardWatcherSettings
    __logger: T_Logger

    def __init__(
        self,
        settings: Optional[ClipboardWatcherSettings] = None,
        logger: Optional[T_Logger] = None,
    ) -> None:
        self.__settings = settings or ClipboardWatcherSettings()
        self.__logger = (logger or logging.getLogger("clipstash")).getChild(
            self.__class__.__name__
        )

    @property
    def poll_interval(self) -> float:
        return self.__settings.poll_interval

    def init(self) -> None:
        """
        Check that a clipboard mechanism is available.

        Raises:
            ClipboardError: If pyperclip cannot reach the system clipboard.
        """
        try:
            pyperclip.paste()
        except pyperclip.PyperclipException as e:
            raise ClipboardError(f"Failed to initialize clipboard: {e}") from e
        except UnicodeError as e:
            # The backend answered; it just holds bytes that are not text
            self.__logger.debug("Clipboard holds undecodable data: %s", e)

    def read_current(self) -> str:
        """Current clipboard text; an empty or non-text clipboard reads as ""."""
        return pyperclip.paste() or ""

    def write(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise ClipboardError(f"Failed to write clipboard: {e}") from e

    def watch(self, stop: Optional[threading.Event] = None) -> Iterator[str]:
        """
        Yield the clipboard text every time it changes.

        Arguments:
            stop (Optional[threading.Event]): Ends the iteration once set.

        Yields:
            str: The new clipboard text. May be "" when the clipboard was emptied.
        """
        stop = stop or threading.Event()
        try:
            last = self.read_current()
        except (pyperclip.PyperclipException, UnicodeError) as e:
            self.__logger.warning("Could not read initial clipboard: %s", e)
            last = ""

        self.__logger.debug("Polling clipboard every %ss", self.poll_interval)
        while not stop.wait(self.poll_interval):
            try:
                current = self.read_current()
            except (pyperclip.PyperclipException, UnicodeError) as e:
                self.__logger.warning("Clipboard read failed: %s", e)
                continue
            if current != last:
                last = current
                yield current
