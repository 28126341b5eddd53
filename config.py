"""
Settings for the Netflix to Trakt watch-activity tracker.

Values are read from ``config.ini`` (if present) and every key can be
overridden through an environment variable of the same name, which is the
way the service is configured when it runs in a container.
"""

import configparser
import logging
import os

CONFIG_FILENAME = os.environ.get("NETFLIX2TRAKT_CONFIG", "config.ini")

_parser = configparser.ConfigParser()
_parser.read(CONFIG_FILENAME, encoding="utf-8")


def _get(section: str, key: str, fallback: str = "") -> str:
    """
    Look up a setting, environment first, then config.ini, then the fallback.

    :param section: The config.ini section the key lives in
    :param key: The setting name, also used as the environment variable name
    :param fallback: Value used when neither source defines the key
    :return: The raw string value
    """
    env_value = os.environ.get(key)
    if env_value is not None:
        return env_value
    return _parser.get(section, key, fallback=fallback)


def _get_bool(section: str, key: str, fallback: bool = False) -> bool:
    return _get(section, key, str(fallback)).strip().lower() in ("true", "1", "yes", "on")


def _get_float(section: str, key: str, fallback: float) -> float:
    try:
        return float(_get(section, key, str(fallback)))
    except ValueError:
        logging.warning(f"Invalid value for {key}, using {fallback}")
        return fallback


# Netflix
VIEWING_HISTORY_FILENAME = _get("Netflix", "VIEWING_HISTORY_FILENAME", "NetflixViewingHistory.csv")
CSV_DELIMITER = _get("Netflix", "CSV_DELIMITER", ",")

# Trakt
TRAKT_API_CLIENT_ID = _get("Trakt", "TRAKT_CLIENT_ID")
TRAKT_API_CLIENT_SECRET = _get("Trakt", "TRAKT_CLIENT_SECRET")
TRAKT_API_REDIRECT_URI = _get("Trakt", "TRAKT_REDIRECT_URI", "urn:ietf:wg:oauth:2.0:oob")
TRAKT_API_URL = _get("Trakt", "TRAKT_API_URL", "https://api.trakt.tv")
TRAKT_API_TIMEOUT = _get_float("Trakt", "TRAKT_API_TIMEOUT", 10.0)
TRAKT_API_SEARCH_DELAY = _get_float("Trakt", "TRAKT_API_SEARCH_DELAY", 0.1)
TRAKT_API_DRY_RUN = _get_bool("Trakt", "TRAKT_API_DRY_RUN", False)
TRAKT_API_VERBOSE = _get_bool("Trakt", "TRAKT_API_VERBOSE", False)

# Files
CONFIG_DIR = os.path.expanduser(_get("Files", "CONFIG_DIR", "."))
TRAKT_AUTH_FILENAME = os.path.join(CONFIG_DIR, _get("Files", "TRAKT_AUTH_FILE", "traktAuth.json"))
HISTORY_FILENAME = os.path.join(CONFIG_DIR, _get("Files", "HISTORY_FILE", "history.json"))
NOT_FOUND_FILENAME = os.path.join(CONFIG_DIR, _get("Files", "NOT_FOUND_FILE", "not_found.csv"))

# Logging
LOG_FILENAME = _get("Logging", "LOG_FILENAME", "netflix2trakt.log")
LOG_LEVEL = getattr(logging, _get("Logging", "LOG_LEVEL", "INFO").upper(), logging.INFO)
