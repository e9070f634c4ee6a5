"""Data models for authorization, playback, and published state."""
from prunify.models.auth import AuthorizationState, PendingAuthorization, SessionLifecycleEvent
from prunify.models.playback import PlaybackSnapshot, PlaylistRef, TrackRef
from prunify.models.state import PublishedState, UserSettings

__all__ = [
    "AuthorizationState",
    "PendingAuthorization",
    "SessionLifecycleEvent",
    "PlaybackSnapshot",
    "PlaylistRef",
    "TrackRef",
    "PublishedState",
    "UserSettings",
]
