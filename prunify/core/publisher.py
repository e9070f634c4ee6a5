"""Published observable state: immutable snapshots plus ordered notification."""
import dataclasses
import logging
from typing import Callable, List

from prunify.models.state import PublishedState

logger = logging.getLogger(__name__)

StateListener = Callable[[PublishedState], None]


class StatePublisher:
    """Observers see every committed state, in commit order."""

    def __init__(self, initial: PublishedState = PublishedState()) -> None:
        self._state = initial
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> PublishedState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(self, **changes) -> PublishedState:
        """Commit a new state with the given fields changed and notify."""
        new_state = dataclasses.replace(self._state, **changes)
        if new_state == self._state:
            return self._state
        self._state = new_state
        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception:
                logger.exception("State listener %r failed", listener)
        return new_state
