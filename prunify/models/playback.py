"""Playback state from Spotify."""
from dataclasses import dataclass
from typing import ClassVar, Optional, Tuple

from prunify.core.uris import canonical_playlist_uri


@dataclass(frozen=True)
class TrackRef:
    """The currently playing track."""
    uri: str
    name: str
    artists: Tuple[str, ...] = ()
    album: str = ""

    @property
    def artist_names(self) -> str:
        return ", ".join(self.artists)


@dataclass(frozen=True)
class PlaybackSnapshot:
    """Latest polled view of remote playback. Replaced whole, never patched."""
    track: Optional[TrackRef] = None
    playlist_context: Optional[str] = None

    EMPTY: ClassVar["PlaybackSnapshot"]

    @classmethod
    def from_playback(cls, pb: Optional[dict]) -> "PlaybackSnapshot":
        """Map Spotify current_playback() response to a snapshot.

        Only track items count (episodes and ads give an empty snapshot), and
        playlist_context is set only for a playlist context.
        """
        if not pb:
            return cls.EMPTY
        item = pb.get("item") or {}
        if item.get("type", "track") != "track" or not item.get("uri"):
            return cls.EMPTY
        album = item.get("album") or {}
        artists = item.get("artists") or []
        track = TrackRef(
            uri=item["uri"],
            name=item.get("name", ""),
            artists=tuple(a.get("name", "") for a in artists),
            album=album.get("name", ""),
        )
        context = pb.get("context") or {}
        playlist_context = None
        if context.get("type") == "playlist" and context.get("uri"):
            playlist_context = canonical_playlist_uri(context["uri"])
        return cls(track=track, playlist_context=playlist_context)


PlaybackSnapshot.EMPTY = PlaybackSnapshot()


@dataclass(frozen=True)
class PlaylistRef:
    """A playlist owned or followed by the current user."""
    id: str
    uri: str
    name: str

    @classmethod
    def from_api(cls, item: dict) -> "PlaylistRef":
        return cls(id=item["id"], uri=item["uri"], name=item.get("name") or "")
