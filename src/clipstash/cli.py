# region Docstring
"""
clipstash.cli
Command line entry point: the clipboard watcher daemon and the history queries.
Overview:
- Running `clipstash` with no command starts the watcher. The query commands
    (list, get, search, clear, info) open the database, do one thing and exit.
- Output goes to stdout through a rich Console; logs go to stderr and the
    JSON-lines log file.
Exit statuses:
- 0: success, including empty list/search results.
- 1: invalid input, unknown id, unknown command, storage or clipboard failure.
"""
# endregion
# region Imports
import signal
import threading
from contextlib import contextmanager
from typing import Iterator, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from typer.core import TyperGroup

from clipstash.clipboard import Clipboard, ClipboardError
from clipstash.config import (
    CliSettings,
    ClipboardWatcherSettings,
    LoggingSettings,
    StoragePathError,
    StorageSettings,
    get_settings,
)
from clipstash.logger import configure_logging, logger
from clipstash.models import HistoryEntry
from clipstash.storage import Storage, StorageError
from clipstash.watcher import ClipboardWatcher

# endregion

console = Console(
    width=120,
    color_system="auto",
)


class ClipstashGroup(TyperGroup):
    """Reports unknown commands together with the list of valid ones."""

    def resolve_command(self, ctx, args):
        if args and self.get_command(ctx, args[0]) is None:
            console.print(f"Unknown command: {args[0]}", markup=False, highlight=False)
            console.print(
                f"Available commands: {', '.join(self.list_commands(ctx))}",
                markup=False,
                highlight=False,
            )
            ctx.exit(1)
        return super().resolve_command(ctx, args)


app = typer.Typer(
    name="clipstash",
    help="Record clipboard history and search or restore past entries.",
    cls=ClipstashGroup,
    add_completion=False,
)


def _fail(message: str) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    raise typer.Exit(code=1)


@contextmanager
def open_storage() -> Iterator[Storage]:
    """Open the configured database; storage failures end the command with exit 1."""
    try:
        storage = Storage.from_settings(get_settings(StorageSettings), logger=logger)
    except (StoragePathError, StorageError) as e:
        logger.error("Could not open history database: %s", e)
        _fail(f"Could not open history database: {e}")

    try:
        yield storage
    except StorageError as e:
        logger.error("Storage error: %s", e)
        _fail(str(e))
    finally:
        storage.close()


def open_clipboard() -> Clipboard:
    clipboard = Clipboard(get_settings(ClipboardWatcherSettings), logger=logger)
    try:
        clipboard.init()
    except ClipboardError as e:
        logger.error("%s", e)
        _fail(str(e))
    return clipboard


def print_entries(entries: list[HistoryEntry]) -> None:
    width = get_settings(CliSettings).preview_width
    for entry in entries:
        console.print(
            f"{entry.id}: {entry.preview(width)}",
            markup=False,
            highlight=False,
            soft_wrap=True,
        )


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """
    Record clipboard history and search or restore past entries.

    Without a command, watch the clipboard and store every new text copy.
    """
    configure_logging(get_settings(LoggingSettings))
    if ctx.invoked_subcommand is None:
        watch()


@app.command(name="watch", help="Watch the clipboard and store every new text copy.")
def watch():
    clipboard = open_clipboard()
    stop = threading.Event()

    def _handler(signum, frame):
        logger.info("Received signal %s, stopping watcher.", signum)
        stop.set()

    previous = {sig: signal.signal(sig, _handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        with open_storage() as storage:
            watcher = ClipboardWatcher(storage, logger=logger)
            stats = watcher.run(clipboard.watch(stop))
            console.print(f"Watcher stopped: {stats}", markup=False, highlight=False)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


@app.command(name="list", help="Show the most recent clipboard items.")
def list_items(
    limit: Optional[int] = typer.Option(
        None, "--limit", "-n", min=0, help="Number of items to show."
    ),
):
    limit = get_settings(CliSettings).list_limit if limit is None else limit
    with open_storage() as storage:
        entries = storage.list_recent(limit)
    console.print(f"Last {limit} clipboard items:", highlight=False)
    if not entries:
        console.print("No items found.")
        return
    print_entries(entries)


@app.command(name="get", help="Copy the item with the given ID back to the clipboard.")
def get_item(
    entry_id: Optional[str] = typer.Argument(None, metavar="ID", help="Item ID."),
):
    if not entry_id:
        _fail("Please provide an ID. Usage: clipstash get <id>")
    # int() alone would also take " 12 ", "1_000" and non-ASCII digits
    if not (entry_id.isascii() and entry_id.isdigit()):
        _fail(f"Invalid ID '{entry_id}'. It must be a number.")
    item_id = int(entry_id)

    with open_storage() as storage:
        content = storage.get_by_id(item_id)
    if content is None:
        _fail(f"No item found with ID: {item_id}")

    clipboard = open_clipboard()
    try:
        clipboard.write(content)
    except ClipboardError as e:
        logger.error("%s", e)
        _fail(str(e))
    console.print(f"Copied item #{item_id} to clipboard.", highlight=False)


@app.command(name="search", help="Find clipboard items containing a term.")
def search_items(
    term: Optional[str] = typer.Argument(None, help="Text to look for."),
    limit: Optional[int] = typer.Option(
        None, "--limit", "-n", min=0, help="Maximum number of matches."
    ),
):
    if not term:
        _fail("Please provide a search term. Usage: clipstash search <term>")
    limit = get_settings(CliSettings).search_limit if limit is None else limit

    with open_storage() as storage:
        entries = storage.search(term, limit)
    console.print(f'Search results for "{term}":', markup=False, highlight=False)
    if not entries:
        console.print("No items found.")
        return
    print_entries(entries)


@app.command(name="clear", help="Delete every clipboard item.")
def clear_items():
    with open_storage() as storage:
        deleted = storage.clear()
    console.print(f"Cleared {deleted} items.", highlight=False)


@app.command(name="info", help="Show where the history is stored and how big it is.")
def info():
    with open_storage() as storage:
        console.print(
            f"Database: {storage.path}", markup=False, highlight=False, soft_wrap=True
        )
        console.print(f"Items: {storage.count()}", highlight=False)


def run():
    """Console script entry point."""
    try:
        app()
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise e
