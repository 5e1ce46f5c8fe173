"""
Change Bus

Per-store notification stream. Every committed unit of work is reported as a
``ChangeNotification`` carrying the records it inserted, updated, refreshed
and deleted. Notifications are queued by ``post`` and handed to subscribers
by ``flush``; ``publish`` does both.
"""

import logging
import threading
import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List

logger = logging.getLogger(__name__)


@dataclass
class ChangeNotification:
    """Change event for one unit-of-work commit."""
    inserted: List[Any] = field(default_factory=list)
    updated: List[Any] = field(default_factory=list)
    refreshed: List[Any] = field(default_factory=list)
    deleted: List[Any] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.inserted or self.updated or self.refreshed or self.deleted)

    def affects(self, record: Any) -> bool:
        """True if the record was updated or refreshed. Matches by identity."""
        return any(r is record for r in self.updated) or any(r is record for r in self.refreshed)


NotificationHandler = Callable[[ChangeNotification], Any]


class Subscription:
    """Represents a subscription to the change bus"""

    def __init__(self, handler: NotificationHandler):
        self.subscription_id = str(uuid.uuid4())
        self.handler = handler
        self.active = True
        self.notifications_handled = 0
        self.errors = 0


class ChangeBus:
    """
    In-process change bus scoped to one store.

    Handlers run synchronously in subscription order. A failing handler is
    logged and does not stop delivery to the others.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._subscriptions: Dict[str, Subscription] = {}
        self._pending: Deque[ChangeNotification] = deque()
        self._lock = threading.RLock()
        self._flushing = False

    def subscribe(self, handler: NotificationHandler) -> Subscription:
        """
        Subscribe a handler to receive all notifications.

        Args:
            handler: Function that accepts a ChangeNotification

        Returns:
            Subscription to pass to unsubscribe()
        """
        subscription = Subscription(handler)
        with self._lock:
            self._subscriptions[subscription.subscription_id] = subscription
        return subscription

    def unsubscribe(self, subscription: Subscription) -> bool:
        """
        Unsubscribe a handler. Queued notifications are not delivered to it.

        Returns:
            True if the subscription was active
        """
        with self._lock:
            subscription.active = False
            return self._subscriptions.pop(subscription.subscription_id, None) is not None

    def post(self, notification: ChangeNotification) -> None:
        """Queue a notification for the next flush."""
        with self._lock:
            self._pending.append(notification)

    def flush(self) -> int:
        """
        Deliver queued notifications.

        Re-entrant posts made by handlers are delivered by the outermost flush.

        Returns:
            Number of handler invocations
        """
        with self._lock:
            if self._flushing:
                return 0
            self._flushing = True

        delivered = 0
        try:
            while True:
                with self._lock:
                    if not self._pending:
                        # cleared under the same lock that saw the queue empty
                        self._flushing = False
                        break
                    notification = self._pending.popleft()
                    subscriptions = list(self._subscriptions.values())
                for subscription in subscriptions:
                    if not subscription.active:
                        continue
                    try:
                        subscription.handler(notification)
                        subscription.notifications_handled += 1
                        delivered += 1
                    except Exception:
                        subscription.errors += 1
                        logger.exception(f"Change handler {subscription.subscription_id} failed on bus '{self.name}'")
        except BaseException:
            with self._lock:
                self._flushing = False
            raise
        return delivered

    def publish(self, notification: ChangeNotification) -> int:
        """Queue a notification and deliver everything pending."""
        self.post(notification)
        return self.flush()

    def clear_subscribers(self) -> None:
        """Remove all subscribers."""
        with self._lock:
            for subscription in self._subscriptions.values():
                subscription.active = False
            self._subscriptions.clear()

    @property
    def subscriber_count(self) -> int:
        """Get the number of active subscribers."""
        return len(self._subscriptions)

    @property
    def pending_count(self) -> int:
        return len(self._pending)


__all__ = ["ChangeNotification", "ChangeBus", "Subscription", "NotificationHandler"]
