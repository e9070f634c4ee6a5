"""Published controller state and user settings."""
from dataclasses import dataclass
from typing import Optional, Tuple

from prunify.config import DEFAULT_SKIP_OFFSET_SECONDS
from prunify.models.playback import PlaylistRef, TrackRef


@dataclass(frozen=True)
class PublishedState:
    """Read-only view handed to observers. Each commit is a new instance."""
    authorized: bool = False
    current_track: Optional[TrackRef] = None
    current_playlist_uri: Optional[str] = None
    playlists: Tuple[PlaylistRef, ...] = ()
    is_loading: bool = False
    last_error: Optional[str] = None

    def to_dict(self) -> dict:
        track = self.current_track
        return {
            "authorized": self.authorized,
            "current_track": None if track is None else {
                "uri": track.uri,
                "name": track.name,
                "artist_name": track.artist_names,
                "album_name": track.album,
            },
            "current_playlist_uri": self.current_playlist_uri,
            "playlists": [{"id": p.id, "uri": p.uri, "name": p.name} for p in self.playlists],
            "is_loading": self.is_loading,
            "last_error": self.last_error,
        }


@dataclass
class UserSettings:
    """Settings owned by the UI collaborator; read by commands at call time."""
    default_playlist_id: str = ""
    default_playlist_name: str = ""
    skip_offset_seconds: int = DEFAULT_SKIP_OFFSET_SECONDS

    @property
    def effective_skip_offset_ms(self) -> int:
        """0 or negative means "use the default"."""
        seconds = self.skip_offset_seconds if self.skip_offset_seconds > 0 else DEFAULT_SKIP_OFFSET_SECONDS
        return seconds * 1000
