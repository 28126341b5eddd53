"""
Typed views over the Trakt API payloads used by the tracker.

Only the fields the tracker reads are modelled; anything else returned by
Trakt is ignored when parsing.
"""

from dataclasses import asdict, dataclass, field
from typing import Optional

SEARCH_TYPE_MOVIE = "movie"
SEARCH_TYPE_EPISODE = "episode"


class Secret(object):
    """
    Wraps a sensitive string (OAuth tokens, client secret) so it cannot be
    printed or logged by accident. Use :meth:`get` to read the real value.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Optional[str] = None):
        self._value = value or ""

    def get(self) -> str:
        """Return the underlying plain-text value."""
        return self._value

    def __str__(self):
        return "********" if self._value else ""

    def __repr__(self):
        return f"Secret({str(self)!r})"

    def __format__(self, format_spec):
        return format(str(self), format_spec)

    def __bool__(self):
        return bool(self._value)

    def __eq__(self, other):
        if isinstance(other, Secret):
            return self._value == other._value
        return NotImplemented

    def __hash__(self):
        return hash(self._value)


@dataclass(frozen=True)
class TraktAccessToken:
    """OAuth credential returned by the device and refresh grants."""

    access_token: Secret = field(default_factory=Secret)
    refresh_token: Secret = field(default_factory=Secret)
    token_type: str = ""
    expires_in: int = 0
    scope: str = ""
    created_at: int = 0

    @classmethod
    def fromJson(cls, data: dict) -> "TraktAccessToken":
        return cls(
            access_token=Secret(data.get("access_token")),
            refresh_token=Secret(data.get("refresh_token")),
            token_type=data.get("token_type") or "",
            expires_in=int(data.get("expires_in") or 0),
            scope=data.get("scope") or "",
            created_at=int(data.get("created_at") or 0),
        )

    def toJson(self) -> dict:
        """
        Serialize the credential for the auth file. The tokens are written in
        plain text, so the result must only ever go to disk, never to a log.
        """
        return {
            "access_token": self.access_token.get(),
            "token_type": self.token_type,
            "expires_in": self.expires_in,
            "refresh_token": self.refresh_token.get(),
            "scope": self.scope,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class Ids:
    trakt: Optional[int] = None
    slug: Optional[str] = None
    imdb: Optional[str] = None
    tmdb: Optional[int] = None
    tvdb: Optional[int] = None

    @classmethod
    def fromJson(cls, data: Optional[dict]) -> "Ids":
        data = data or {}
        return cls(
            trakt=data.get("trakt"),
            slug=data.get("slug"),
            imdb=data.get("imdb"),
            tmdb=data.get("tmdb"),
            tvdb=data.get("tvdb"),
        )

    def toJson(self) -> dict:
        # Trakt rejects null ids, only send the ones we know
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass(frozen=True)
class Media:
    """A movie or a show."""

    title: str = ""
    year: Optional[int] = None
    ids: Ids = field(default_factory=Ids)

    @classmethod
    def fromJson(cls, data: Optional[dict]) -> "Media":
        data = data or {}
        return cls(title=data.get("title") or "", year=data.get("year"), ids=Ids.fromJson(data.get("ids")))


@dataclass(frozen=True)
class Episode:
    title: str = ""
    season: int = 0
    number: int = 0
    ids: Ids = field(default_factory=Ids)

    @classmethod
    def fromJson(cls, data: Optional[dict]) -> "Episode":
        data = data or {}
        return cls(
            title=data.get("title") or "",
            season=int(data.get("season") or 0),
            number=int(data.get("number") or 0),
            ids=Ids.fromJson(data.get("ids")),
        )


@dataclass(frozen=True)
class SearchResult:
    """
    One item of a ``/search/{type}`` response.

    ``type`` is either ``movie`` (``movie`` is set) or ``episode`` (``show``
    and ``episode`` are set).
    """

    type: str
    movie: Optional[Media] = None
    show: Optional[Media] = None
    episode: Optional[Episode] = None

    @classmethod
    def fromJson(cls, data: dict) -> "SearchResult":
        result_type = data.get("type") or ""
        if result_type == SEARCH_TYPE_MOVIE:
            return cls(type=result_type, movie=Media.fromJson(data.get("movie")))
        if result_type == SEARCH_TYPE_EPISODE:
            return cls(
                type=result_type,
                show=Media.fromJson(data.get("show")),
                episode=Episode.fromJson(data.get("episode")),
            )
        return cls(type=result_type)


@dataclass(frozen=True)
class DeviceCode:
    """Response of ``/oauth/device/code``."""

    device_code: str
    user_code: str
    verification_url: str
    expires_in: int
    interval: int

    @classmethod
    def fromJson(cls, data: dict) -> "DeviceCode":
        return cls(
            device_code=data.get("device_code") or "",
            user_code=data.get("user_code") or "",
            verification_url=data.get("verification_url") or "",
            expires_in=int(data.get("expires_in") or 0),
            interval=int(data.get("interval") or 5),
        )
