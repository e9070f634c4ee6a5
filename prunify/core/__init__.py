"""Core services: credential store, PKCE flow, token session, poller, commands."""
from prunify.core.errors import AuthError, CommandError, PrunifyError, StorageError

__all__ = ["AuthError", "CommandError", "PrunifyError", "StorageError"]
