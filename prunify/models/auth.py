"""Authorization state, pending PKCE login, and session lifecycle events."""
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, Optional


class SessionLifecycleEvent(str, Enum):
    """Emitted by the token session; drives poller start/stop."""
    AUTHORIZED = "authorized"
    DEAUTHORIZED = "deauthorized"
    REFRESH_FAILED = "refresh_failed"


@dataclass(frozen=True)
class AuthorizationState:
    """Access/refresh tokens with absolute expiry (epoch seconds).

    Token fields are kept out of repr so the object is safe to log.
    """
    access_token: str = field(repr=False)
    refresh_token: Optional[str] = field(repr=False)
    expires_at: float
    scopes: FrozenSet[str] = frozenset()

    def is_expired(self, now: float, leeway: float = 0.0) -> bool:
        return now + leeway >= self.expires_at

    def to_bytes(self) -> bytes:
        """Serialize to the opaque blob handed to the credential store."""
        data = {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at,
            "scopes": sorted(self.scopes),
        }
        return json.dumps(data, separators=(",", ":")).encode("utf-8")

    @classmethod
    def from_bytes(cls, blob: bytes) -> "AuthorizationState":
        """Inverse of to_bytes. Raises ValueError on a malformed blob."""
        try:
            data = json.loads(blob.decode("utf-8"))
            return cls(
                access_token=data["access_token"],
                refresh_token=data.get("refresh_token"),
                expires_at=float(data["expires_at"]),
                scopes=frozenset(data.get("scopes") or ()),
            )
        except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError) as e:
            raise ValueError(f"Malformed authorization blob: {type(e).__name__}") from e

    @classmethod
    def from_token_response(
        cls,
        response: dict,
        now: float,
        previous_refresh_token: Optional[str] = None,
        default_scopes: Iterable[str] = (),
    ) -> "AuthorizationState":
        """Build from an accounts-service token response.

        Spotify may omit refresh_token on refresh; the previous one stays valid then.
        """
        scope = response.get("scope")
        scopes = frozenset(scope.split()) if scope else frozenset(default_scopes)
        return cls(
            access_token=response["access_token"],
            refresh_token=response.get("refresh_token") or previous_refresh_token,
            expires_at=now + float(response.get("expires_in", 3600)),
            scopes=scopes,
        )


@dataclass(frozen=True)
class PendingAuthorization:
    """In-flight PKCE login between begin_authorization and the callback."""
    verifier: str = field(repr=False)
    challenge: str
    state: str
    created_at: float

    def is_expired(self, now: float, ttl: float) -> bool:
        return now - self.created_at > ttl
