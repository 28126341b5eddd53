import csv
import json
import logging
import os
from typing import Iterable, List, Optional

import config
from NetflixWatchActivity import Reporter, WatchActivity, parseTitle

# Maximum number of titles to remember
HISTORY_SIZE = 20


# The titles already seen on Netflix, so they are only sent to Trakt once
class NetflixHistory(object):
    def __init__(self, filename: Optional[str] = None):
        self.filename = filename if filename is not None else config.HISTORY_FILENAME
        self.items: List[str] = []
        self.items_search = set()
        # Titles pushed since the last successful sync. Never written to disk.
        self.new_activity: List[WatchActivity] = []
        self.new_items: List[str] = []

    def has(self, item: str) -> bool:
        """
        Returns `True` if the title has already been seen
        :param item: The raw Netflix title
        """
        return item in self.items_search

    def push(self, item: str, reporter: Optional[Reporter] = None) -> bool:
        """
        Adds a title to the history and queues its parsed activity. The oldest
        title is dropped once the history is full.

        :param item: The raw Netflix title
        :param reporter: Forwarded to the title parser
        :return: False if the title was already known
        """
        if self.has(item):
            return False

        if len(self.items) >= HISTORY_SIZE:
            oldest = self.items.pop(0)
            self.items_search.discard(oldest)

        self.items.append(item)
        self.items_search.add(item)
        self.new_items.append(item)
        self.new_activity.append(parseTitle(item, reporter))
        return True

    def clearNewActivity(self):
        self.new_activity = []
        self.new_items = []

    def forgetNewActivity(self):
        """
        Drops the titles that were never synced, so they are seen as new
        again the next time they are pushed.
        """
        pending = set(self.new_items)
        self.items = [item for item in self.items if item not in pending]
        self.items_search -= pending
        self.clearNewActivity()

    def toJson(self) -> dict:
        return {"search": {item: {} for item in self.items_search}, "items": list(self.items)}

    def write(self):
        """Saves the history to disk, replacing the previous file."""
        directory = os.path.dirname(self.filename)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = self.filename + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self.toJson(), f, ensure_ascii=False)
        os.replace(tmp_path, self.filename)

    def load(self):
        """Loads the history from disk. A missing file leaves the history empty."""
        if not os.path.isfile(self.filename):
            logging.debug(f"No history file at {self.filename}, starting fresh")
            return
        with open(self.filename, "r", encoding="utf-8") as f:
            data = json.load(f)
        self.items = list(data.get("items") or [])
        self.items_search = set((data.get("search") or {}).keys())
        self.clearNewActivity()


def cleanupString(text: str) -> str:
    """Collapses whitespace runs into a single space and strips the ends."""
    return " ".join(text.split())


def readViewingHistory(
    filename: Optional[str] = None, delimiter: Optional[str] = None, limit: int = HISTORY_SIZE
) -> List[str]:
    """
    Reads the titles of a Netflix "Viewing activity" CSV export.

    Netflix lists the newest entries first. Only the `limit` newest titles
    are kept, and they are returned oldest first so they get pushed to the
    history in the order they were watched.

    :param filename: Path of the CSV export (Title,Date)
    :param delimiter: CSV delimiter
    :param limit: Number of rows to read
    :return: The cleaned up titles, oldest first
    """
    filename = filename if filename is not None else config.VIEWING_HISTORY_FILENAME
    delimiter = delimiter if delimiter is not None else config.CSV_DELIMITER

    titles = []
    with open(filename, "r", newline="", encoding="utf-8") as csvfile:
        reader = csv.reader(csvfile, delimiter=delimiter)
        header_skipped = False
        for line in reader:
            if not line:
                continue
            # Skip CSV header row (typically "Title,Date")
            if not header_skipped:
                header_skipped = True
                if line[0].strip().lower() == "title":
                    continue
            title = cleanupString(line[0])
            if title:
                titles.append(title)
            if len(titles) >= limit:
                break

    titles.reverse()
    return titles


def updateHistory(history: NetflixHistory, titles: Iterable[str], reporter: Optional[Reporter] = None) -> int:
    """Pushes the titles to the history, returns how many were new."""
    added = 0
    for title in titles:
        if history.push(title, reporter):
            added += 1
    logging.info(f"Found {added} new watched medias on Netflix")
    return added
