"""Controller construction and injection into routes.

The controller is built once in the app lifespan and stored on app.state;
routes receive it through the get_controller dependency.
"""
from fastapi import Request

from prunify.config import (
    SPOTIFY_CLIENT_ID,
    SPOTIFY_REDIRECT_URI,
    SPOTIFY_SCOPES,
)
from prunify.core.credential_store import build_credential_store
from prunify.core.session import SessionController
from prunify.core.settings_store import load_settings
from prunify.core.spotify_client import SpotifyAccounts, SpotifyRemote


def build_controller() -> SessionController:
    """Wire the production controller: keyring/file store, Spotify endpoints, saved settings."""
    return SessionController(
        store=build_credential_store(),
        accounts=SpotifyAccounts(SPOTIFY_CLIENT_ID, SPOTIFY_REDIRECT_URI),
        remote_factory=SpotifyRemote,
        settings=load_settings(),
        client_id=SPOTIFY_CLIENT_ID,
        redirect_uri=SPOTIFY_REDIRECT_URI,
        scopes=SPOTIFY_SCOPES.split(),
    )


def get_controller(request: Request) -> SessionController:
    return request.app.state.controller
