import pytest

from NetflixWatchActivity import (
    TITLE_OVERRIDES,
    TITLE_SHORT_REGEX,
    TitleOverride,
    WatchActivity,
    _single_match,
    parseTitle,
)


@pytest.mark.parametrize(
    "title, expected",
    [
        (
            'Arrested Development: Season 1: "Justice is Blind"',
            WatchActivity("Arrested Development", "Justice is Blind", 1, True),
        ),
        ('Friendly Rivalry: "Episode 16"', WatchActivity("Friendly Rivalry", "Episode 16", 1, True)),
        ('Zombieverse: New Blood: "Episode 7"', WatchActivity("Zombieverse", "Episode 7", 2, True)),
        ('The Devil\'s Plan: Season 2: "Episode 9"', WatchActivity("The Devil's Plan", "Episode 9", 2, True)),
        ('Squid Game: Season 3: "○△□"', WatchActivity("Squid Game", "○△□", 3, True)),
        ('Squid Game: Season 3: "Humans Are…"', WatchActivity("Squid Game", "Humans Are…", 3, True)),
        ('Chicken Nugget: Limited Series: "Episode 5"', WatchActivity("Chicken Nugget", "Episode 5", 0, True)),
        ('Old Enough!: Season 2: "Episode 4"', WatchActivity("Old Enough!", "Episode 4", 2, True)),
        (
            'Love, Death & Robots: Volume 4: "Close Encounters of the Mini Kind"',
            WatchActivity("Love, Death & Robots", "Close Encounters of the Mini Kind", 4, True),
        ),
        (
            'A Man on the Inside: "The Curious Incident of the Dog in the Painting Class"',
            WatchActivity("A Man on the Inside", "The Curious Incident of the Dog in the Painting Class", 1, True),
        ),
        ('Weak Hero: Class 2: "Episode 1"', WatchActivity("Weak Hero", "Episode 1", 2, True)),
        ('Goedam: Collection: "Threshold"', WatchActivity("Goedam", "Threshold", 0, True)),
        (
            'Scott Pilgrim Takes Off: Scott Pilgrim Takes Off: "Whatever"',
            WatchActivity("Scott Pilgrim Takes Off", "Whatever", 0, True),
        ),
        (
            'Strong Girl Nam-soon: Limited Series: "Light and Shadow of Gangnam"',
            WatchActivity("Strong Girl Nam-soon", "Light and Shadow of Gangnam", 0, True),
        ),
        ('Alice in Borderland: Season 2: "Episode 8"', WatchActivity("Alice in Borderland", "Episode 8", 2, True)),
        (
            'Squid Game: The Challenge: Squid Game: The Challenge: "Nowhere To Hide"',
            WatchActivity("Squid Game: The Challenge", "Nowhere To Hide", 0, True),
        ),
        ('That \'90s Show: Part 2: "Friends in Low Places"', WatchActivity("That '90s Show", "Friends in Low Places", 2, True)),
        (
            'Slasher: The Executioner: "Soon Your Own Eyes Will See"',
            WatchActivity("Slasher", "Soon Your Own Eyes Will See", 0, True),
        ),
        (
            'Arrested Development: Season 4 Remix: Fateful Consequences: "A Couple-A New Starts"',
            WatchActivity("Arrested Development", "A Couple-A New Starts", 4, True),
        ),
        ("Pain Hustlers", WatchActivity("Pain Hustlers")),
        ("Ali Wong: Hard Knock Wife", WatchActivity("Ali Wong: Hard Knock Wife")),
    ],
)
def test_parse_title(title, expected):
    assert parseTitle(title) == expected


@pytest.mark.parametrize("title", ["Pain Hustlers", "Ali Wong: Hard Knock Wife", "King Arthur: Legend of the Sword"])
def test_titles_without_quotes_are_movies(title, reporter):
    activity = parseTitle(title, reporter)
    assert activity.is_show is False
    assert activity.episode_name == ""
    assert activity.season == 0
    assert activity.title == title
    assert reporter.messages == []


def test_repeated_name():
    assert parseTitle('A: A: "B"') == WatchActivity(title="A", episode_name="B", season=0, is_show=True)


def test_season_marker():
    assert parseTitle('A: Season 3: "B"') == WatchActivity(title="A", episode_name="B", season=3, is_show=True)


def test_limited_series_has_no_season():
    assert parseTitle('A: Limited Series: "B"') == WatchActivity(title="A", episode_name="B", season=0, is_show=True)


def test_short_form_defaults_to_first_season():
    assert parseTitle('A: "B"') == WatchActivity(title="A", episode_name="B", season=1, is_show=True)


def test_subtitle_as_season_is_reported(reporter):
    activity = parseTitle('Slasher: The Executioner: "Soon Your Own Eyes Will See"', reporter)

    assert activity.title == "Slasher"
    assert len(reporter.messages) == 1
    assert "Potentially weird title found" in reporter.messages[0]
    assert "Slasher" in reporter.messages[0]


def test_unparseable_show_falls_back_to_movie(reporter):
    title = 'The "Best" Movie Ever'
    activity = parseTitle(title, reporter)

    assert activity == WatchActivity(title=title)
    assert reporter.messages == [f"Potentially weird title found: {title}. Assuming it's a movie."]


def test_known_titles_are_not_reported(reporter):
    parseTitle('Alice in Borderland: Season 2: "Episode 8"', reporter)
    parseTitle('Friendly Rivalry: "Episode 16"', reporter)
    assert reporter.messages == []


def test_overrides_can_be_extended(monkeypatch):
    monkeypatch.setitem(TITLE_OVERRIDES, "Some Show: Another Name: ", TitleOverride(title="Some Show", season=3))

    activity = parseTitle('Some Show: Another Name: "Episode 2"')

    assert activity == WatchActivity(title="Some Show", episode_name="Episode 2", season=3, is_show=True)


def test_watch_activity_rendering():
    show = WatchActivity("Alice in Borderland", "Episode 8", 2, True)
    movie = WatchActivity("Pain Hustlers")

    assert str(show) == "Alice in Borderland: Episode 8"
    assert show.search_query() == "Alice in Borderland Episode 8"
    assert str(movie) == "Pain Hustlers"
    assert movie.search_query() == "Pain Hustlers"


@pytest.mark.parametrize(
    "title",
    [
        # The short form matches once per line
        'Trailer: "One"\nTrailer: "Two"',
        # The default and short forms both match once per line
        'Dark: Dark: "Secrets"\nDark: Dark: "Lies"',
    ],
)
def test_ambiguous_titles_fall_back_to_movie(title, reporter):
    activity = parseTitle(title, reporter)

    assert activity == WatchActivity(title=title)
    assert reporter.messages == [f"Potentially weird title found: {title}. Assuming it's a movie."]


def test_single_match():
    assert _single_match(TITLE_SHORT_REGEX, 'Friendly Rivalry: "Episode 16"', 2).group(1) == "Friendly Rivalry"
    assert _single_match(TITLE_SHORT_REGEX, 'A: "b" and C: "d"', 2) is None
    assert _single_match(TITLE_SHORT_REGEX, 'Friendly Rivalry: "Episode 16"', 3) is None
