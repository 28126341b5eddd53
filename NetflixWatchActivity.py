import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, NamedTuple, Optional, Protocol


class Reporter(Protocol):
    """Anything that accepts a free-text diagnostic (Slack, log, not_found.csv...)."""

    def send_message(self, msg: str) -> None: ...


# A parsed Netflix "Viewing activity" entry
@dataclass(frozen=True)
class WatchActivity:
    title: str
    episode_name: str = ""
    season: int = 0  # 0 means unknown
    is_show: bool = False

    def __str__(self):
        if self.is_show:
            return f"{self.title}: {self.episode_name}"
        return self.title

    def search_query(self) -> str:
        """
        Returns the text to use on Trakt to search for the media.
        Escaping is left to the HTTP layer.
        """
        if self.is_show:
            return f"{self.title} {self.episode_name}"
        return self.title


class TitleOverride(NamedTuple):
    title: str
    season: int


# Shows we cannot figure out programmatically without Netflix's private API.
# The key is the exact prefix of the Netflix title, everything after it is
# the (quoted) episode name.
#
# Zombieverse season 1 has a regular pattern, but season 2 dropped the
# season number for a season name, and the episodes have no names either,
# so there is no way to tell both seasons apart.
TITLE_OVERRIDES: Dict[str, TitleOverride] = {
    "Zombieverse: New Blood: ": TitleOverride(title="Zombieverse", season=2),
}

# Format is `<Show Name>: <Show Name>: "<Episode Name>"`
TITLE_DEFAULT_REGEX = re.compile(r'(.+): (.+): "(.+)"')
# Format is `<Show: Name>: <Show: Name>: "<Episode Name>"`
TITLE_SHOW_COLON_REGEX = re.compile(r'((.+): (.+)): ((.+): (.+)): "(.+)"')
# Format is `<Show Name>: <Season marker>: "<Episode Name>"`
TITLE_SEASON_REGEX = re.compile(
    r'(.+): (((Season|Part|Class|Volume) (\d+)((.+)?: .+)?)|(Limited Series)|(Collection)): "(.+)"'
)
# Format is `<Show Name>: "<Episode Name>"`
TITLE_SHORT_REGEX = re.compile(r'([^:]+): "([^:]+)"')


def _single_match(regex: re.Pattern, title: str, group_count: int) -> Optional[re.Match]:
    """
    Returns the match only if the regex matches the title exactly once with
    the expected number of groups. Ambiguous titles return None so the next
    rule gets a chance.
    """
    matches = list(regex.finditer(title))
    if len(matches) != 1 or len(matches[0].groups()) != group_count:
        return None
    return matches[0]


def _send(reporter: Optional[Reporter], msg: str) -> None:
    if reporter is not None:
        reporter.send_message(msg)


def parseRepeatedName(title: str, reporter: Optional[Reporter] = None) -> Optional[WatchActivity]:
    # This is the most common format
    # Ex: Scott Pilgrim Takes Off: Scott Pilgrim Takes Off: "Whatever"
    match = _single_match(TITLE_DEFAULT_REGEX, title, 3)
    if match is None or match.group(1) != match.group(2):
        return None
    return WatchActivity(title=match.group(1), episode_name=match.group(3), is_show=True)


def parseColonInName(title: str, reporter: Optional[Reporter] = None) -> Optional[WatchActivity]:
    # Ex: Squid Game: The Challenge: Squid Game: The Challenge: "Nowhere To Hide"
    match = _single_match(TITLE_SHOW_COLON_REGEX, title, 7)
    if match is None or match.group(1) != match.group(4):
        return None
    return WatchActivity(title=match.group(1), episode_name=match.group(7), is_show=True)


def parseSeasonMarker(title: str, reporter: Optional[Reporter] = None) -> Optional[WatchActivity]:
    # Ex: Alice in Borderland: Season 2: "Episode 8"
    # Ex: Strong Girl Nam-soon: Limited Series: "Forewarned Bloodbath"
    # Ex: Goedam: Collection: "Birth"
    # Ex: That '90s Show: Part 2: "Friends in Low Places"
    # Ex: Weak Hero: Class 2: "Episode 1"
    # Ex: Love, Death & Robots: Volume 4: "Close Encounters of the Mini Kind"
    # Ex: Arrested Development: Season 4 Remix: Fateful Consequences: "A Couple-A New Starts"
    match = _single_match(TITLE_SEASON_REGEX, title, 10)
    if match is None:
        return None
    # "Limited Series" and "Collection" have no number
    season = int(match.group(5)) if match.group(5) else 0
    return WatchActivity(title=match.group(1), episode_name=match.group(10), season=season, is_show=True)


def parseKnownOverride(title: str, reporter: Optional[Reporter] = None) -> Optional[WatchActivity]:
    for prefix, override in TITLE_OVERRIDES.items():
        if title.startswith(prefix):
            return WatchActivity(
                title=override.title,
                episode_name=title[len(prefix):].strip('"'),
                season=override.season,
                is_show=True,
            )
    return None


def parseSubtitleAsSeason(title: str, reporter: Optional[Reporter] = None) -> Optional[WatchActivity]:
    # Some shows have a subtitle as season name, but a movie may also have
    # multiple colons in its name. With only 2 colons we assume it's a show
    # and drop the middle part.
    # Ex: Slasher: The Executioner: "Soon Your Own Eyes Will See"
    match = _single_match(TITLE_DEFAULT_REGEX, title, 3)
    if match is None:
        return None
    activity = WatchActivity(title=match.group(1), episode_name=match.group(3), is_show=True)
    _send(
        reporter,
        f"Potentially weird title found: {title}. "
        f"Assuming it's a show named '{activity.title}' with an episode named '{activity.episode_name}'",
    )
    return activity


def parseShortForm(title: str, reporter: Optional[Reporter] = None) -> Optional[WatchActivity]:
    # No season marker and no repeated name. This can match movies too.
    # Ex: Friendly Rivalry: "Episode 16"
    match = _single_match(TITLE_SHORT_REGEX, title, 2)
    if match is None:
        return None
    return WatchActivity(title=match.group(1), episode_name=match.group(2), season=1, is_show=True)


class TitleRule(NamedTuple):
    name: str
    parse: Callable[[str, Optional[Reporter]], Optional[WatchActivity]]


# Evaluated in order, the first rule returning an activity wins
TITLE_RULES: List[TitleRule] = [
    TitleRule("repeated_name", parseRepeatedName),
    TitleRule("colon_in_name", parseColonInName),
    TitleRule("season_marker", parseSeasonMarker),
    TitleRule("known_override", parseKnownOverride),
    TitleRule("subtitle_as_season", parseSubtitleAsSeason),
    TitleRule("short_form", parseShortForm),
]


def parseTitle(title: str, reporter: Optional[Reporter] = None) -> WatchActivity:
    """
    Turns a Netflix title into a WatchActivity.

    All shows have their episode names wrapped in quotes. It doesn't mean
    that *only* shows have quotes, but very few movies do, so titles without
    one are movies and skip the show parsing entirely.

    :param title: The title as displayed on Netflix
    :param reporter: Receives a message whenever the title had to be guessed
    :return: The parsed activity. Never fails, the worst case is a movie
        named after the whole title.
    """
    if '"' not in title:
        return WatchActivity(title=title)

    for rule in TITLE_RULES:
        activity = rule.parse(title, reporter)
        if activity is not None:
            logging.debug(f"Title '{title}' parsed by rule {rule.name}: {activity!r}")
            return activity

    _send(reporter, f"Potentially weird title found: {title}. Assuming it's a movie.")
    return WatchActivity(title=title)
