"""Spotify remote capability: accounts token endpoint and Web API via Spotipy.

Both are blocking HTTP libraries, so every call runs in a worker thread and the
event loop only ever awaits.
"""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

import requests
import spotipy
from spotipy.exceptions import SpotifyException

from prunify.config import (
    REQUESTS_TIMEOUT_SEC,
    SPOTIFY_CLIENT_ID,
    SPOTIFY_REDIRECT_URI,
    SPOTIFY_TOKEN_URL,
)
from prunify.core.errors import RemoteError, TokenEndpointError

logger = logging.getLogger(__name__)


def configure_spotipy_logging() -> None:
    """Keep Spotipy's request logging out of our output."""
    for logger_name in ("spotipy", "spotipy.client", "spotipy.oauth2"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)


configure_spotipy_logging()


class SpotifyAccounts:
    """PKCE token endpoint calls (no client secret)."""

    def __init__(
        self,
        client_id: str = SPOTIFY_CLIENT_ID,
        redirect_uri: str = SPOTIFY_REDIRECT_URI,
        token_url: str = SPOTIFY_TOKEN_URL,
    ) -> None:
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.token_url = token_url
        self._session = requests.Session()

    async def exchange_authorization_code(self, code: str, verifier: str) -> dict:
        payload = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "client_id": self.client_id,
            "code_verifier": verifier,
        }
        return await asyncio.to_thread(self._post, payload)

    async def refresh_token(self, refresh_token: str) -> dict:
        payload = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": self.client_id,
        }
        return await asyncio.to_thread(self._post, payload)

    def _post(self, payload: dict) -> dict:
        try:
            r = self._session.post(self.token_url, data=payload, timeout=REQUESTS_TIMEOUT_SEC)
        except requests.RequestException as e:
            raise RemoteError(None, f"Token request failed: {type(e).__name__}") from e

        if r.status_code != 200:
            # Spotify answers errors as {"error": "...", "error_description": "..."}
            try:
                body = r.json()
            except ValueError:
                body = {}
            raise TokenEndpointError(
                r.status_code,
                body.get("error") or "http_error",
                body.get("error_description") or "",
            )
        try:
            data = r.json()
        except ValueError as e:
            raise RemoteError(r.status_code, "Token response was not JSON") from e
        if "access_token" not in data:
            raise RemoteError(r.status_code, "Token response missing access_token")
        return data

    def close(self) -> None:
        self._session.close()


class SpotifyRemote:
    """Typed async Web API operations used by the poller and commands.

    token_provider is awaited before every call and returns a valid access
    token; the Spotipy client is rebuilt only when the token changes.
    """

    def __init__(self, token_provider: Callable[[], Awaitable[str]]) -> None:
        self._token_provider = token_provider
        self._sp: Optional[spotipy.Spotify] = None
        self._sp_token: Optional[str] = None

    async def _client(self) -> spotipy.Spotify:
        token = await self._token_provider()
        if self._sp is None or token != self._sp_token:
            self._sp = spotipy.Spotify(
                auth=token,
                requests_timeout=REQUESTS_TIMEOUT_SEC,
                retries=3,
                status_retries=3,
            )
            self._sp_token = token
        return self._sp

    async def _call(self, name: str, *args, **kwargs):
        sp = await self._client()
        fn = getattr(sp, name)
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except SpotifyException as e:
            raise RemoteError(e.http_status, e.msg or str(e)) from e
        except requests.RequestException as e:
            raise RemoteError(None, f"{name}: {type(e).__name__}") from e

    async def get_current_playback(self) -> Optional[dict]:
        """Raw current_playback() payload, or None when nothing is playing."""
        return await self._call("current_playback")

    async def list_current_user_playlists(self, limit: int, offset: int) -> dict:
        return await self._call("current_user_playlists", limit=limit, offset=offset)

    async def remove_all_occurrences(self, playlist_uri: str, track_uris: List[str]) -> dict:
        return await self._call("playlist_remove_all_occurrences_of_items", playlist_uri, track_uris)

    async def add_items(self, playlist_uri: str, track_uris: List[str]) -> dict:
        return await self._call("playlist_add_items", playlist_uri, track_uris)

    async def skip_to_next(self) -> None:
        await self._call("next_track")

    async def seek(self, position_ms: int) -> None:
        await self._call("seek_track", position_ms)

    def close(self) -> None:
        session = getattr(self._sp, "_session", None)
        close_fn = getattr(session, "close", None)
        if callable(close_fn):
            close_fn()
