import pytest


class RecordingReporter(object):
    def __init__(self):
        self.messages = []
        self.verbose = False

    def send_message(self, msg):
        self.messages.append(msg)


@pytest.fixture
def reporter():
    return RecordingReporter()


class FakeResponse(object):
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


class FakeSession(object):
    """Stands in for requests.Session, replaying canned responses in order."""

    def __init__(self, *responses):
        self.headers = {}
        self.calls = []
        self._responses = list(responses)

    def queue(self, *responses):
        self._responses.extend(responses)

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def auth_file(tmp_path):
    return str(tmp_path / "traktAuth.json")


@pytest.fixture
def make_trakt(session, auth_file):
    from TraktIO import TraktIO

    def _make(**kwargs):
        options = {
            "client_id": "client-id",
            "client_secret": "client-secret",
            "redirect_uri": "urn:ietf:wg:oauth:2.0:oob",
            "auth_file": auth_file,
            "base_url": "https://api.trakt.tv",
            "timeout": 1,
            "dry_run": False,
            "session": session,
        }
        options.update(kwargs)
        return TraktIO(**options)

    return _make
