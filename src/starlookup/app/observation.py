"""
Change Observation

Registers callbacks that run whenever one specific record is updated or
refreshed in its store. The callback is invoked once right away and then
after every matching notification, always inside the store's execution
context. Cancelling a token stops delivery, including notifications that
were queued on the bus but not yet delivered.

Example:
    observer = ChangeObserver(store)
    token = observer.observe(message, lambda: render(message))
    ...
    observer.cancel(token)
"""

import logging
from typing import Any, Callable, List, Optional, TYPE_CHECKING

from ..core.errors import ObservationError
from .bus import ChangeNotification, Subscription

if TYPE_CHECKING:
    from ..persistence.base import Store

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[], Any]


class ObservationToken:
    """Handle for one observation; pass it to ``cancel``."""

    def __init__(self, observer: "ChangeObserver", record: Any, callback: ChangeCallback):
        self.observer = observer
        self.record = record
        self.callback = callback
        self.subscription: Optional[Subscription] = None
        self.active = True
        self.deliveries = 0

    def cancel(self) -> None:
        self.observer.cancel(self)

    def __repr__(self) -> str:
        state = "active" if self.active else "cancelled"
        return f"<ObservationToken {type(self.record).__name__} {state} deliveries={self.deliveries}>"


class ChangeObserver:
    """
    Observes records of one store.

    Each instance owns its tokens; ``cancel_all`` (or leaving the context
    manager) cancels every observation it created.
    """

    def __init__(self, store: "Store"):
        self.store = store
        self._tokens: List[ObservationToken] = []

    def observe(self, record: Any, callback: ChangeCallback) -> ObservationToken:
        """
        Observe a record.

        Args:
            record: Record that belongs to the store
            callback: Called with no arguments on subscription and on every change

        Returns:
            Token to pass to cancel()

        Raises:
            ObservationError: the record is not in the store
        """
        if not self.store.contains(record):
            raise ObservationError(f"{type(record).__name__} record is not in store '{self.store.name}'")

        token = ObservationToken(self, record, callback)

        def handle(notification: ChangeNotification) -> None:
            if token.active and notification.affects(token.record):
                self.store.perform_and_wait(self._deliver, token)

        token.subscription = self.store.bus.subscribe(handle)
        self._tokens.append(token)

        self.store.perform_and_wait(self._deliver, token)
        return token

    def _deliver(self, token: ObservationToken) -> None:
        if not token.active:
            return
        token.deliveries += 1
        token.callback()

    def cancel(self, token: ObservationToken) -> None:
        """Stop an observation. Cancelling twice is a no-op."""
        if not token.active:
            return
        token.active = False
        if token.subscription is not None:
            self.store.bus.unsubscribe(token.subscription)
        self._tokens = [t for t in self._tokens if t is not token]
        logger.debug(f"Cancelled observation of {type(token.record).__name__} after {token.deliveries} deliveries")

    def cancel_all(self) -> None:
        for token in list(self._tokens):
            self.cancel(token)

    @property
    def tokens(self) -> List[ObservationToken]:
        return list(self._tokens)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cancel_all()


def observe(store: "Store", record: Any, callback: ChangeCallback) -> ObservationToken:
    """Observe a record with a dedicated observer."""
    return ChangeObserver(store).observe(record, callback)


def cancel(token: ObservationToken) -> None:
    token.observer.cancel(token)


__all__ = ["ChangeObserver", "ObservationToken", "ChangeCallback", "observe", "cancel"]
