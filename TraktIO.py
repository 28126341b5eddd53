"""
TraktIO module: authenticated access to the Trakt API.

Handles the OAuth device-code flow, the bearer token refresh, the catalog
search, and the batched "mark as watched" submission.
"""

import json
import logging
import os
import threading
import time
from contextlib import suppress
from dataclasses import dataclass, replace
from typing import Any, Callable, List, Optional

import requests
from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_delay,
    stop_when_event_set,
    wait_fixed,
)

import config
from TraktModels import (
    SEARCH_TYPE_EPISODE,
    SEARCH_TYPE_MOVIE,
    DeviceCode,
    Ids,
    SearchResult,
    Secret,
    TraktAccessToken,
)

STATUS_CODES_DOC = "https://trakt.docs.apiary.io/#introduction/status-codes"


class TraktError(Exception):
    """Base class of all the errors raised by TraktIO."""


class TraktRequestError(TraktError):
    """Trakt answered with a non-2xx status code."""

    def __init__(self, status_code: int, message: str = ""):
        self.status_code = status_code
        super().__init__(message or f"http {status_code}. See {STATUS_CODES_DOC}")


class TraktAuthenticationError(TraktRequestError):
    """The credentials were rejected, even after a refresh."""

    def __init__(self, message: str = "authentication failed, delete the auth file and re-authenticate"):
        super().__init__(401, message)


class AuthorizationPending(TraktError):
    """The user has not yet approved the device code. Keep polling."""


class AuthenticationTimeout(TraktError):
    """The device code expired (or polling was cancelled) before the user approved it."""


@dataclass(frozen=True)
class RequestOptions:
    """
    Per-call options of TraktIO.request.

    :param no_auth: Don't send the bearer token (device-code and refresh
        endpoints, public search)
    :param retry_on_auth_failure: Allow exactly one token refresh and retry
        when the call returns 401
    """

    no_auth: bool = False
    retry_on_auth_failure: bool = True


DEFAULT_OPTIONS = RequestOptions()
NO_AUTH = RequestOptions(no_auth=True, retry_on_auth_failure=False)


class TraktIO(object):
    """
    Handles Trakt authorization and sync logic.

    Features:
    - OAuth device code authentication flow
    - Transparent token refresh: a 401 triggers one refresh and one retry
    - Tokens persisted to the auth file after every change
    - Batch syncing of watched movies and episodes
    - Dry run mode for testing
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        auth_file: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        dry_run: Optional[bool] = None,
        session: Optional[requests.Session] = None,
    ):
        # Use config defaults if not explicitly provided
        self.client_id = client_id if client_id is not None else config.TRAKT_API_CLIENT_ID
        self.client_secret = Secret(client_secret if client_secret is not None else config.TRAKT_API_CLIENT_SECRET)
        self.redirect_uri = redirect_uri if redirect_uri is not None else config.TRAKT_API_REDIRECT_URI
        self.auth_file = auth_file if auth_file is not None else config.TRAKT_AUTH_FILENAME
        self.base_url = (base_url if base_url is not None else config.TRAKT_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.TRAKT_API_TIMEOUT
        self.dry_run = dry_run if dry_run is not None else config.TRAKT_API_DRY_RUN

        self.session = session if session is not None else requests.Session()
        self.session.headers.update(
            {
                "Content-Type": "application/json",
                "trakt-api-version": "2",
                "trakt-api-key": self.client_id,
            }
        )

        # Buffers for batch syncing:
        # - _episodes: episode history entries pending sync
        # - _movies: movie history entries pending sync
        self._episodes: List[dict] = []
        self._movies: List[dict] = []

        self.authorization = self.loadAuthFile()

    # ---------------------------------------------------------------- auth file

    def loadAuthFile(self) -> TraktAccessToken:
        """
        Load the credential stored on disk.
        A missing file is not an error, it means we never authenticated.
        """
        if not os.path.isfile(self.auth_file):
            logging.debug(f"No Trakt auth file at {self.auth_file}")
            return TraktAccessToken()
        with open(self.auth_file, encoding="utf-8") as infile:
            return TraktAccessToken.fromJson(json.load(infile))

    def writeAuthFile(self):
        """Persist the current credential, replacing the whole file."""
        directory = os.path.dirname(self.auth_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = self.auth_file + ".tmp"
        # Created owner-only, the tokens are stored in plain text
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self.authorization.toJson(), f)
            os.replace(tmp_path, self.auth_file)
        except Exception:
            with suppress(OSError):
                os.remove(tmp_path)
            raise

    def _setAuthorization(self, authorization: TraktAccessToken):
        self.authorization = authorization
        self.writeAuthFile()
        logging.info("Trakt token saved")

    def isAuthenticated(self) -> bool:
        return bool(self.authorization.access_token)

    # ----------------------------------------------------------------- requests

    def _send(
        self, method: str, path: str, body: Any, params: Optional[dict], options: RequestOptions
    ) -> requests.Response:
        headers = {}
        if not options.no_auth:
            headers["Authorization"] = f"Bearer {self.authorization.access_token.get()}"
        url = f"{self.base_url}/{path.lstrip('/')}"
        logging.debug(f"Trakt {method} {url}")
        return self.session.request(
            method,
            url,
            json=body,
            params=params,
            headers=headers,
            timeout=self.timeout,
        )

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        options: RequestOptions = DEFAULT_OPTIONS,
        params: Optional[dict] = None,
    ) -> requests.Response:
        """
        Send a request to the Trakt API.

        If the access token has expired (401), the token is refreshed, saved
        to disk and the request is sent again, once. Network errors are
        raised as-is.

        :raises TraktAuthenticationError: the call got a 401 it cannot retry,
            or the token refresh was rejected
        :raises TraktRequestError: any other non-2xx status
        """
        response = self._send(method, path, body, params, options)

        if response.status_code == 401:
            if options.no_auth or not options.retry_on_auth_failure:
                raise TraktAuthenticationError()
            logging.info("Trakt returned 401, refreshing the access token")
            try:
                self.refreshToken()
            except TraktAuthenticationError:
                raise
            except TraktRequestError as e:
                raise TraktAuthenticationError(f"token refresh rejected: {e}") from e
            return self.request(method, path, body, replace(options, retry_on_auth_failure=False), params)

        if not 200 <= response.status_code < 300:
            raise TraktRequestError(response.status_code)
        return response

    def post(self, path: str, body: Any, options: RequestOptions = DEFAULT_OPTIONS) -> requests.Response:
        return self.request("POST", path, body=body, options=options)

    def get(self, path: str, params: Optional[dict] = None, options: RequestOptions = DEFAULT_OPTIONS) -> requests.Response:
        return self.request("GET", path, options=options, params=params)

    # ------------------------------------------------------------ OAuth grants

    def generateAuthCode(self) -> DeviceCode:
        """Generate a device code the user has to approve on trakt.tv"""
        response = self.post("/oauth/device/code", {"client_id": self.client_id}, NO_AUTH)
        if response.status_code != 200:
            raise TraktRequestError(response.status_code)
        return DeviceCode.fromJson(response.json())

    def getAccessToken(self, device_code: str) -> TraktAccessToken:
        """
        Exchange an approved device code for an access token, and save it.

        :raises AuthorizationPending: the user has not approved the code yet,
            the caller needs to keep polling
        """
        try:
            response = self.post(
                "/oauth/device/token",
                {
                    "client_id": self.client_id,
                    "client_secret": self.client_secret.get(),
                    "code": device_code,
                },
                NO_AUTH,
            )
        except TraktRequestError as e:
            if e.status_code == 400:
                raise AuthorizationPending("pending authorization") from e
            raise

        if response.status_code != 200:
            raise TraktRequestError(response.status_code)
        self._setAuthorization(TraktAccessToken.fromJson(response.json()))
        return self.authorization

    def refreshToken(self) -> TraktAccessToken:
        """Get a new access token using the stored refresh token, and save it."""
        response = self.post(
            "/oauth/token",
            {
                "refresh_token": self.authorization.refresh_token.get(),
                "client_id": self.client_id,
                "client_secret": self.client_secret.get(),
                "redirect_uri": self.redirect_uri,
                "grant_type": "refresh_token",
            },
            NO_AUTH,
        )
        self._setAuthorization(TraktAccessToken.fromJson(response.json()))
        logging.info("Trakt token refreshed")
        return self.authorization

    def pollForAccessToken(
        self,
        code: DeviceCode,
        cancel_event: Optional[threading.Event] = None,
        sleep: Optional[Callable[[float], Any]] = None,
    ) -> TraktAccessToken:
        """
        Poll getAccessToken every ``code.interval`` seconds until the user
        approves the code.

        :raises AuthenticationTimeout: the code expired or cancel_event was set
        """
        if sleep is None:
            # Returns early once the event is set
            sleep = cancel_event.wait if cancel_event is not None else time.sleep
        stop = stop_after_delay(code.expires_in)
        if cancel_event is not None:
            stop = stop | stop_when_event_set(cancel_event)

        retrying = Retrying(
            retry=retry_if_exception_type(AuthorizationPending),
            wait=wait_fixed(code.interval),
            stop=stop,
            sleep=sleep,
        )
        try:
            return retrying(self.getAccessToken, code.device_code)
        except RetryError as e:
            raise AuthenticationTimeout("authentication timed out. Please try again") from e

    def authenticate(self, cancel_event: Optional[threading.Event] = None) -> TraktAccessToken:
        """Handle device authentication flow"""
        code = self.generateAuthCode()
        verification_url = f"{code.verification_url.rstrip('/')}/{code.user_code}"
        print(f"Please open the following URL in your browser:\n{verification_url}")
        print(f'(or enter the code "{code.user_code}" at {code.verification_url})')
        print(f"You have {code.expires_in} seconds to complete the authentication...")

        authorization = self.pollForAccessToken(code, cancel_event=cancel_event)
        print("Authentication successful")
        return authorization

    # ------------------------------------------------------------------ search

    def search(self, search_type: str, query: str) -> List[SearchResult]:
        """Search the Trakt catalog for a movie or an episode"""
        if search_type not in (SEARCH_TYPE_MOVIE, SEARCH_TYPE_EPISODE):
            raise ValueError(f"unsupported search type: {search_type}")
        response = self.get(f"/search/{search_type}", params={"query": query}, options=NO_AUTH)
        return [SearchResult.fromJson(item) for item in response.json() or []]

    # ------------------------------------------------------------- batch sync

    def addMovie(self, ids: Ids, watched_at: str):
        """Add a movie to the pending sync buffer"""
        self._movies.append({"watched_at": watched_at, "ids": ids.toJson()})

    def addEpisodeToHistory(self, ids: Ids, watched_at: str):
        """Add an episode to the pending sync buffer"""
        self._episodes.append({"watched_at": watched_at, "ids": ids.toJson()})

    def getData(self) -> dict:
        """Get pending sync data"""
        return {"movies": self._movies, "episodes": self._episodes}

    def hasPendingData(self) -> bool:
        return bool(self._movies or self._episodes)

    def clearData(self):
        self._movies = []
        self._episodes = []

    def markAsWatched(self, data: dict) -> dict:
        """Mark movies and episodes as watched (POST /sync/history)"""
        return self.post("/sync/history", data).json()

    def sync(self) -> dict:
        """
        Submit the pending batch to Trakt in a single request.
        The buffers are only cleared once Trakt accepted the batch.
        """
        data = self.getData()
        if self.dry_run:
            logging.info("Dry run enabled. Skipping actual Trakt sync.")
            result = {
                "added": {"movies": len(self._movies), "episodes": len(self._episodes)},
                "not_found": {"movies": [], "episodes": []},
            }
            self.clearData()
            return result

        try:
            result = self.markAsWatched(data)
        except (TraktError, requests.RequestException) as e:
            logging.error(f"Trakt sync failed: {e}")
            raise

        added = result.get("added", {})
        logging.info("=== TRAKT SYNC RESULTS ===")
        logging.info(
            f"Movies - Submitted: {len(self._movies)}, Added: {added.get('movies', 0)}; "
            f"Episodes - Submitted: {len(self._episodes)}, Added: {added.get('episodes', 0)}"
        )
        not_found = result.get("not_found", {})
        if not_found.get("movies") or not_found.get("episodes"):
            logging.warning(f"Trakt did not find some items: {not_found}")

        self.clearData()
        return result
