"""Error taxonomy shared by the session, commands, and storage layers."""
from enum import Enum
from typing import Optional


class PrunifyError(Exception):
    """Base for all errors raised by the core."""


# Auth

class AuthError(PrunifyError):
    pass


class StateMismatch(AuthError):
    """Callback state did not match the pending authorization (or none was pending)."""

    def __init__(self, reason: str = "Authorization state mismatch"):
        super().__init__(reason)


class ExchangeFailed(AuthError):
    def __init__(self, reason: str):
        super().__init__(f"Authorization failed: {reason}")
        self.reason = reason


class RefreshFailed(AuthError):
    """Token refresh failed. terminal=True means the session was torn down."""

    def __init__(self, reason: str, terminal: bool):
        super().__init__(f"Token refresh failed: {reason}")
        self.reason = reason
        self.terminal = terminal


class NotAuthorized(AuthError):
    def __init__(self, reason: str = "Not signed in to Spotify"):
        super().__init__(reason)


# Commands

class CommandStep(str, Enum):
    REMOVE = "remove"
    ADD = "add"
    SKIP = "skip"
    SEEK = "seek"
    LIST_PLAYLISTS = "list_playlists"


class CommandError(PrunifyError):
    pass


class NoEligibleTrack(CommandError):
    def __init__(self, reason: str = "No track playing from a playlist"):
        super().__init__(reason)


class NoDefaultPlaylist(CommandError):
    def __init__(self, reason: str = "No default playlist configured"):
        super().__init__(reason)


class RemoteCallFailed(CommandError):
    """A remote step failed; earlier steps are not rolled back."""

    def __init__(self, step: CommandStep, cause: Exception):
        super().__init__(f"{step.value} failed: {cause}")
        self.step = step
        self.cause = cause


# Storage

class StorageError(PrunifyError):
    pass


class SaveFailed(StorageError):
    pass


class LoadFailed(StorageError):
    pass


class DeleteFailed(StorageError):
    pass


# Remote

class RemoteError(PrunifyError):
    """Web API or transport failure. status is None for transport errors."""

    def __init__(self, status: Optional[int], reason: str):
        super().__init__(f"HTTP {status}: {reason}" if status else reason)
        self.status = status
        self.reason = reason

    @property
    def is_client_error(self) -> bool:
        return self.status is not None and 400 <= self.status < 500


class TokenEndpointError(RemoteError):
    """Non-200 response from the accounts token endpoint."""

    def __init__(self, status: int, error: str, description: str = ""):
        super().__init__(status, f"{error}: {description}" if description else error)
        self.error = error
        self.description = description
