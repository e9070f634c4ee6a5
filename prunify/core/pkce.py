"""PKCE authorization code flow: authorization URL and callback exchange."""
import base64
import hashlib
import logging
import secrets
import time
import urllib.parse
from typing import Callable, Iterable, Optional

from prunify.config import PENDING_AUTH_TTL_SEC, SPOTIFY_AUTHORIZE_URL
from prunify.core.errors import ExchangeFailed, RemoteError, StateMismatch
from prunify.models.auth import AuthorizationState, PendingAuthorization

logger = logging.getLogger(__name__)

# token_urlsafe(n) yields ceil(4n/3) characters
VERIFIER_BYTES = 48  # 64 chars
STATE_BYTES = 24  # 32 chars


def make_code_challenge(verifier: str) -> str:
    """base64url(SHA-256(verifier)) without padding (RFC 7636 S256)."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


class PKCEAuthorizationFlow:
    """At most one login attempt in flight; the pending login is single-use."""

    def __init__(
        self,
        client_id: str,
        redirect_uri: str,
        scopes: Iterable[str],
        accounts,
        authorize_url: str = SPOTIFY_AUTHORIZE_URL,
        pending_ttl: float = PENDING_AUTH_TTL_SEC,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.scopes = tuple(scopes)
        self.authorize_url = authorize_url
        self.pending_ttl = pending_ttl
        self._accounts = accounts
        self._clock = clock
        self._pending: Optional[PendingAuthorization] = None

    @property
    def pending(self) -> Optional[PendingAuthorization]:
        return self._pending

    def begin_authorization(self) -> str:
        """Start a login and return the provider authorization URL.

        Replaces any earlier pending login.
        """
        verifier = secrets.token_urlsafe(VERIFIER_BYTES)
        challenge = make_code_challenge(verifier)
        state = secrets.token_urlsafe(STATE_BYTES)
        self._pending = PendingAuthorization(
            verifier=verifier,
            challenge=challenge,
            state=state,
            created_at=self._clock(),
        )
        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "redirect_uri": self.redirect_uri,
            "code_challenge_method": "S256",
            "code_challenge": challenge,
            "state": state,
            "scope": " ".join(self.scopes),
        }
        logger.info("Authorization started")
        return f"{self.authorize_url}?{urllib.parse.urlencode(params)}"

    async def complete_authorization(self, callback_url: str) -> AuthorizationState:
        """Validate the callback and exchange its code for tokens.

        The pending login is consumed before anything else, so a callback can
        be used at most once whatever the outcome.
        """
        pending, self._pending = self._pending, None

        query = urllib.parse.parse_qs(urllib.parse.urlsplit(callback_url).query)
        code = (query.get("code") or [None])[0]
        state = (query.get("state") or [None])[0]
        error = (query.get("error") or [None])[0]

        if pending is None:
            raise StateMismatch("No authorization in progress")
        if pending.is_expired(self._clock(), self.pending_ttl):
            raise StateMismatch("Authorization request expired")
        if state != pending.state:
            logger.warning("Rejected callback with mismatched state")
            raise StateMismatch()
        if error:
            raise ExchangeFailed(error)
        if not code:
            raise ExchangeFailed("missing authorization code")

        try:
            response = await self._accounts.exchange_authorization_code(code, pending.verifier)
        except RemoteError as e:
            raise ExchangeFailed(str(e)) from e
        try:
            auth = AuthorizationState.from_token_response(
                response, now=self._clock(), default_scopes=self.scopes
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ExchangeFailed("malformed token response") from e
        logger.info("Authorization code exchanged")
        return auth
