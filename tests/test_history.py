import json

from NetflixHistory import HISTORY_SIZE, NetflixHistory, cleanupString, readViewingHistory, updateHistory
from NetflixWatchActivity import WatchActivity


def make_history(tmp_path):
    return NetflixHistory(str(tmp_path / "history.json"))


def test_push_queues_the_parsed_activity(tmp_path):
    history = make_history(tmp_path)

    assert history.push('Alice in Borderland: Season 2: "Episode 8"') is True

    assert history.has('Alice in Borderland: Season 2: "Episode 8"')
    assert history.new_activity == [
        WatchActivity(title="Alice in Borderland", episode_name="Episode 8", season=2, is_show=True)
    ]


def test_known_titles_are_ignored(tmp_path):
    history = make_history(tmp_path)
    history.push("Pain Hustlers")

    assert history.push("Pain Hustlers") is False
    assert history.items == ["Pain Hustlers"]
    assert len(history.new_activity) == 1


def test_oldest_title_is_evicted(tmp_path):
    history = make_history(tmp_path)
    for i in range(HISTORY_SIZE + 1):
        history.push(f"Movie {i}")

    assert len(history.items) == HISTORY_SIZE
    assert history.items[0] == "Movie 1"
    assert not history.has("Movie 0")
    assert history.has(f"Movie {HISTORY_SIZE}")
    assert history.items_search == set(history.items)


def test_evicted_title_is_new_again(tmp_path):
    history = make_history(tmp_path)
    for i in range(HISTORY_SIZE + 1):
        history.push(f"Movie {i}")
    history.clearNewActivity()

    assert history.push("Movie 0") is True
    assert history.new_activity == [WatchActivity(title="Movie 0")]


def test_write_then_load(tmp_path):
    history = make_history(tmp_path)
    history.push("Pain Hustlers")
    history.push('Goedam: Collection: "Birth"')
    history.write()

    with open(history.filename, encoding="utf-8") as f:
        data = json.load(f)
    assert data["items"] == ["Pain Hustlers", 'Goedam: Collection: "Birth"']
    assert set(data["search"]) == {"Pain Hustlers", 'Goedam: Collection: "Birth"'}
    assert "new_activity" not in data

    loaded = make_history(tmp_path)
    loaded.load()
    assert loaded.items == history.items
    assert loaded.items_search == history.items_search
    assert loaded.new_activity == []


def test_load_without_a_file(tmp_path):
    history = make_history(tmp_path)
    history.load()

    assert history.items == []
    assert history.new_activity == []


def test_write_creates_the_directory(tmp_path):
    history = NetflixHistory(str(tmp_path / "state" / "history.json"))
    history.push("Pain Hustlers")
    history.write()

    assert (tmp_path / "state" / "history.json").is_file()
    assert not (tmp_path / "state" / "history.json.tmp").exists()


def test_update_history_counts_new_titles(tmp_path, reporter):
    history = make_history(tmp_path)
    history.push("Pain Hustlers")

    added = updateHistory(history, ["Pain Hustlers", "Leave the World Behind"], reporter)

    assert added == 1
    assert history.items == ["Pain Hustlers", "Leave the World Behind"]


def test_update_history_forwards_the_reporter(tmp_path, reporter):
    history = make_history(tmp_path)

    updateHistory(history, ['Slasher: The Executioner: "Soon Your Own Eyes Will See"'], reporter)

    assert len(reporter.messages) == 1
    assert reporter.messages[0].startswith("Potentially weird title found")


def test_cleanup_string():
    assert cleanupString("  Pain \n Hustlers\t") == "Pain Hustlers"


def test_read_viewing_history(tmp_path):
    path = tmp_path / "NetflixViewingHistory.csv"
    path.write_text(
        'Title,Date\n'
        '"Alice in Borderland: Season 2: ""Episode 8""",12/30/23\n'
        'Pain  Hustlers,12/29/23\n'
        '\n'
        'Leave the World Behind,12/28/23\n',
        encoding="utf-8",
    )

    titles = readViewingHistory(str(path), ",")

    assert titles == [
        "Leave the World Behind",
        "Pain Hustlers",
        'Alice in Borderland: Season 2: "Episode 8"',
    ]


def test_read_viewing_history_keeps_the_newest(tmp_path):
    path = tmp_path / "NetflixViewingHistory.csv"
    path.write_text("".join(f"Movie {i},1/1/24\n" for i in range(5)), encoding="utf-8")

    titles = readViewingHistory(str(path), ",", limit=2)

    assert titles == ["Movie 1", "Movie 0"]


def test_forget_new_activity(tmp_path):
    history = make_history(tmp_path)
    history.push("Pain Hustlers")
    history.clearNewActivity()
    history.push("Leave the World Behind")

    history.forgetNewActivity()

    assert history.items == ["Pain Hustlers"]
    assert history.items_search == {"Pain Hustlers"}
    assert history.new_activity == []
    assert history.push("Leave the World Behind") is True
