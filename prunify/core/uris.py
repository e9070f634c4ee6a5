"""Spotify playlist URI canonicalization."""
from prunify.config import SPOTIFY_PLAYLIST_PREFIX


def canonical_playlist_uri(playlist: str) -> str:
    """Return the full spotify:playlist:<id> form of a playlist id or URI.

    Already-prefixed URIs pass through unchanged. Legacy user-scoped URIs
    (spotify:user:<owner>:playlist:<id>) and open.spotify.com links are
    reduced to the id first.
    """
    playlist = playlist.strip()
    if playlist.startswith(SPOTIFY_PLAYLIST_PREFIX):
        return playlist
    if playlist.startswith("spotify:") and ":playlist:" in playlist:
        return SPOTIFY_PLAYLIST_PREFIX + playlist.rsplit(":", 1)[-1]
    if "open.spotify.com/playlist/" in playlist:
        playlist_id = playlist.split("/playlist/", 1)[1].split("?", 1)[0].strip("/")
        return SPOTIFY_PLAYLIST_PREFIX + playlist_id
    return SPOTIFY_PLAYLIST_PREFIX + playlist
