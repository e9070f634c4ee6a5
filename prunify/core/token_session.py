"""Token session: holds the authorization state and keeps it fresh.

The only writer of the credential store. A refresh that the provider rejects
tears the session down; a refresh token that failed once cannot recover.
"""
import asyncio
import logging
import time
from typing import Callable, Optional

from prunify.config import TOKEN_EXPIRY_LEEWAY_SEC
from prunify.core.errors import NotAuthorized, RefreshFailed, RemoteError, StorageError
from prunify.models.auth import AuthorizationState, SessionLifecycleEvent

logger = logging.getLogger(__name__)

Listener = Callable[[SessionLifecycleEvent], None]


class TokenSession:
    def __init__(
        self,
        store,
        accounts,
        listener: Optional[Listener] = None,
        clock: Callable[[], float] = time.time,
        leeway: float = TOKEN_EXPIRY_LEEWAY_SEC,
    ) -> None:
        self._store = store
        self._accounts = accounts
        self._listener = listener
        self._clock = clock
        self._leeway = leeway
        self._state: Optional[AuthorizationState] = None
        self._refresh_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> Optional[AuthorizationState]:
        return self._state

    @property
    def is_authorized(self) -> bool:
        return self._state is not None

    def set_listener(self, listener: Optional[Listener]) -> None:
        self._listener = listener

    def restore(self, state: AuthorizationState) -> None:
        """Adopt a state read back from the credential store (no persist, no event)."""
        self._adopt(state)

    def establish(self, state: AuthorizationState) -> None:
        """Adopt a freshly exchanged state, persist it, and announce it."""
        self._adopt(state)
        self._persist()
        self._emit(SessionLifecycleEvent.AUTHORIZED)

    async def ensure_valid(self) -> None:
        """Refresh the access token if it has expired.

        Concurrent callers share one in-flight refresh.
        """
        if self._state is None:
            raise NotAuthorized()
        if not self._state.is_expired(self._clock(), self._leeway):
            return
        if self._refresh_task is None:
            task = asyncio.ensure_future(self._refresh())
            self._refresh_task = task
            task.add_done_callback(self._clear_refresh_task)
        await asyncio.shield(self._refresh_task)

    async def access_token(self) -> str:
        await self.ensure_valid()
        if self._state is None:
            raise NotAuthorized()
        return self._state.access_token

    def deauthorize(self) -> None:
        """Sign out: clear memory and stored credentials."""
        self._teardown()
        logger.info("Session deauthorized")
        self._emit(SessionLifecycleEvent.DEAUTHORIZED)

    async def _refresh(self) -> None:
        current = self._state
        if current is None:
            raise NotAuthorized()
        if not current.refresh_token:
            self._fail_terminal(current, "no refresh token")

        logger.info("Access token expired, refreshing")
        try:
            response = await self._accounts.refresh_token(current.refresh_token)
        except RemoteError as e:
            if self._state is not current:
                raise NotAuthorized("Session changed during token refresh") from e
            if e.is_client_error:
                self._fail_terminal(current, str(e))
            logger.warning("Token refresh failed (transient): %s", e)
            raise RefreshFailed(str(e), terminal=False) from e

        if self._state is not current:
            # Signed out (or re-authorized) while the refresh was in flight.
            raise NotAuthorized("Session changed during token refresh")
        try:
            self._state = AuthorizationState.from_token_response(
                response,
                now=self._clock(),
                previous_refresh_token=current.refresh_token,
                default_scopes=current.scopes,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RefreshFailed("malformed token response", terminal=False) from e
        self._persist()
        logger.info("Access token refreshed")

    def _fail_terminal(self, current: AuthorizationState, reason: str) -> None:
        if self._state is not current:
            raise NotAuthorized("Session changed during token refresh")
        logger.error("Token refresh rejected, re-authentication required: %s", reason)
        self._teardown()
        self._emit(SessionLifecycleEvent.REFRESH_FAILED)
        raise RefreshFailed(reason, terminal=True)

    def _clear_refresh_task(self, task: asyncio.Task) -> None:
        if self._refresh_task is task:
            self._refresh_task = None

    def _adopt(self, state: Optional[AuthorizationState]) -> None:
        # A refresh started for an older state must not be shared with this one.
        self._state = state
        self._refresh_task = None

    def _teardown(self) -> None:
        self._adopt(None)
        try:
            self._store.delete()
        except StorageError as e:
            logger.warning("Could not delete stored credentials: %s", e)

    def _persist(self) -> None:
        if self._state is None:
            return
        try:
            self._store.save(self._state.to_bytes())
        except StorageError as e:
            logger.warning("Could not save credentials: %s", e)

    def _emit(self, event: SessionLifecycleEvent) -> None:
        if self._listener is not None:
            self._listener(event)
