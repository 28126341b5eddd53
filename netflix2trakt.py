#!/usr/bin/env python3
"""
Netflix to Trakt watch-activity tracker.

Reads the latest titles of the Netflix viewing activity, finds the matching
movies and episodes on Trakt, and marks them as watched in one batch.
"""

import logging
import os
import sys
import time
from csv import writer as csv_writer
from datetime import datetime, timezone
from typing import List, Optional

import requests
from tqdm import tqdm

import config
from NetflixHistory import NetflixHistory, readViewingHistory, updateHistory
from NetflixWatchActivity import Reporter, WatchActivity
from TitleMatcher import stringMatches
from TraktIO import TraktAuthenticationError, TraktError, TraktIO
from TraktModels import SEARCH_TYPE_EPISODE, SEARCH_TYPE_MOVIE


class MediaNotFound(Exception):
    """No Trakt search result matched the Netflix title."""


class BatchNotSynced(Exception):
    """Trakt did not accept the batch, the titles are kept for the next run."""


class LogReporter(object):
    """
    Reporter sending user-facing messages through logging, and to the
    console when verbose.
    """

    def __init__(self, verbose: Optional[bool] = None):
        self.verbose = verbose if verbose is not None else config.TRAKT_API_VERBOSE
        self.messages: List[str] = []

    def send_message(self, msg: str) -> None:
        self.messages.append(msg)
        logging.info(f"USER: {msg}")
        if self.verbose:
            print(msg)


def append_not_found(activity: WatchActivity, filename: Optional[str] = None):
    """Append a not-found entry to the CSV, creating it with a header if needed."""
    filename = filename if filename is not None else config.NOT_FOUND_FILENAME
    is_new = not os.path.exists(filename)
    try:
        with open(filename, "a", newline="", encoding="utf-8") as f:
            w = csv_writer(f)
            if is_new:
                w.writerow(["Show", "Season", "Episode"])
            if activity.is_show:
                w.writerow([activity.title, activity.season or "", activity.episode_name])
            else:
                w.writerow([activity.title, "", ""])
    except OSError as e:
        logging.warning(f"append_not_found failed: {e}")


class ActivityTracker(object):
    """Maps the new Netflix activity to Trakt and marks it as watched."""

    def __init__(
        self,
        traktIO: TraktIO,
        history: NetflixHistory,
        reporter: Reporter,
        search_delay: Optional[float] = None,
        not_found_file: Optional[str] = None,
    ):
        self.traktIO = traktIO
        self.history = history
        self.reporter = reporter
        self.search_delay = search_delay if search_delay is not None else config.TRAKT_API_SEARCH_DELAY
        self.not_found_file = not_found_file
        self._last_api_call_time = 0.0

    def run(self, titles: List[str]):
        """
        Pushes the titles to the history, marks the new ones as watched, and
        saves the history.

        :raises BatchNotSynced: the batch was rejected. The history is saved
            without the rejected titles so the next run submits them again.
        """
        updateHistory(self.history, titles, self.reporter)
        self.markAsWatched()
        if self.history.new_activity:
            pending = len(self.history.new_activity)
            self.history.forgetNewActivity()
            self.history.write()
            raise BatchNotSynced(f"{pending} titles were not marked as watched")
        self.history.write()

    def _enforce_rate_limit(self):
        """Enforce a minimum delay between two Trakt searches"""
        time_since_last_call = time.time() - self._last_api_call_time
        if time_since_last_call < self.search_delay:
            time.sleep(self.search_delay - time_since_last_call)
        self._last_api_call_time = time.time()

    def markAsWatched(self) -> Optional[dict]:
        """
        Searches every new activity on Trakt and submits the matches as a
        single batch. An activity that cannot be found is reported and
        skipped; the others still get submitted.

        :return: The Trakt response, or None if nothing was submitted
        """
        activities = self.history.new_activity
        if not activities:
            logging.info("Nothing new to mark as watched")
            return None

        # The batch is rebuilt from the pending activity on every pass
        self.traktIO.clearData()

        verbose = getattr(self.reporter, "verbose", False)
        for activity in tqdm(activities, desc="Finding medias on Trakt", disable=not verbose):
            self._enforce_rate_limit()
            try:
                self.searchMedia(activity)
            except TraktAuthenticationError:
                raise
            except (MediaNotFound, TraktError, requests.RequestException) as e:
                self.reporter.send_message(f"Trakt: Couldn't find: {activity}\nError: {e}\nPlease add manually.")
                logging.error(f"media search failed: is_show={activity.is_show} media={activity} error={e}")
                append_not_found(activity, self.not_found_file)
                continue
            self.reporter.send_message(f"Adding to current watchlist batch: {activity}")

        if not self.traktIO.hasPendingData():
            self.history.clearNewActivity()
            return None

        try:
            response = self.traktIO.sync()
        except TraktAuthenticationError as e:
            self.reporter.send_message(f"Trakt: Couldn't mark the batch as watched. Error: {e}")
            raise
        except (TraktError, requests.RequestException) as e:
            # The titles stay in new_activity, run() keeps them out of the saved history
            self.reporter.send_message(f"Trakt: Couldn't mark the batch as watched. Error: {e}")
            return None

        self.reporter.send_message("Batch processed successfully")
        self.history.clearNewActivity()
        return response

    def searchMedia(self, activity: WatchActivity):
        """
        Tries to map a Netflix movie/episode to one on Trakt, and adds the
        first match to the pending batch.

        :raises MediaNotFound: no search result matched
        """
        watched_at = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        search_type = SEARCH_TYPE_EPISODE if activity.is_show else SEARCH_TYPE_MOVIE

        results = self.traktIO.search(search_type, activity.search_query())
        for result in results:
            if result.type == SEARCH_TYPE_MOVIE and result.movie is not None:
                if not stringMatches(activity.title, result.movie.title):
                    continue
                self.traktIO.addMovie(result.movie.ids, watched_at)
                return

            if result.type == SEARCH_TYPE_EPISODE and result.show is not None and result.episode is not None:
                if not stringMatches(activity.title, result.show.title):
                    continue
                if not stringMatches(activity.episode_name, result.episode.title):
                    continue
                if activity.season > 0 and result.episode.season != activity.season:
                    continue
                self.traktIO.addEpisodeToHistory(result.episode.ids, watched_at)
                return

        raise MediaNotFound("not found")


def main():
    """Entry point: loads the Netflix activity, authenticates, syncs Trakt"""
    logging.basicConfig(
        filename=config.LOG_FILENAME,
        level=config.LOG_LEVEL,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    reporter = LogReporter()
    traktIO = TraktIO()
    if not traktIO.isAuthenticated():
        try:
            traktIO.authenticate()
        except KeyboardInterrupt:
            print("\nAuthentication cancelled")
            return 1
        except TraktError as e:
            print(f"Authentication failed: {e}")
            return 1

    history = NetflixHistory()
    history.load()

    try:
        titles = readViewingHistory()
    except OSError as e:
        logging.error(f"Could not read the Netflix viewing history: {e}")
        reporter.send_message(f"Trakt error: could not read the Netflix viewing history: {e}")
        return 1

    tracker = ActivityTracker(traktIO, history, reporter)
    try:
        tracker.run(titles)
    except TraktError as e:
        logging.error(f"Run aborted: {e}")
        reporter.send_message(f"Trakt error: {e}")
        return 1
    except BatchNotSynced as e:
        logging.error(f"Run incomplete: {e}")
        reporter.send_message(f"Trakt error: {e}. They will be retried on the next run.")
        return 1
    except OSError as e:
        reporter.send_message(f"Trakt error: could not save the history: {e}")
        return 1

    print("[OK] Processing complete. Review the log for detailed entries if needed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
