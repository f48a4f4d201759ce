"""
Shared change-notification plumbing for settings stores.

Publish/subscribe bookkeeping: subscriptions are keyed by
an opaque id and matched against the changed key with fnmatch patterns.
"""
import uuid
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Dict, List

from PySide6.QtCore import QObject, Signal

from core.logging.logger import get_logger
from core.settings.settings_port import ChangeCallback

logger = get_logger(__name__)


@dataclass
class Subscription:
    """A callback registered for keys matching ``key_pattern``."""
    callback: ChangeCallback
    key_pattern: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    active: bool = True

    def matches(self, key: str) -> bool:
        return self.key_pattern == key or fnmatchcase(key, self.key_pattern)


class ObservableStore(QObject):
    """
    Base class for stores that notify subscribers when a key changes.

    Notifications are delivered synchronously on the caller's thread, so a
    ``set()`` made from inside a callback re-enters ``_notify`` before it
    returns. Subclasses call ``_notify(key)`` after every successful write and
    whenever the backing storage reports an external change.
    """

    # Emitted for every changed key, after subscribers ran
    changed = Signal(str)

    def __init__(self, schema_id: str):
        super().__init__()
        self._schema_id = schema_id
        self._subscriptions: Dict[str, Subscription] = {}

    @property
    def schema_id(self) -> str:
        return self._schema_id

    def subscribe(self, key_pattern: str, callback: ChangeCallback) -> str:
        """
        Register ``callback(key)`` for changes of keys matching ``key_pattern``.

        Args:
            key_pattern: Exact key, or an fnmatch pattern ('*' for all keys)
            callback: Called with the changed key

        Returns:
            str: Subscription id for unsubscribe()

        Raises:
            ValueError: If callback is not callable or the pattern is empty
        """
        if not callable(callback):
            raise ValueError("Callback must be callable")
        if not isinstance(key_pattern, str) or not key_pattern.strip():
            raise ValueError("key_pattern must be a non-empty string")

        first = not self._subscriptions
        subscription = Subscription(callback, key_pattern)
        self._subscriptions[subscription.id] = subscription
        logger.debug("[%s] New subscription %s for %s", self._schema_id, subscription.id, key_pattern)

        if first:
            self._on_first_subscription()
        return subscription.id

    def unsubscribe(self, subscription_id: str) -> None:
        subscription = self._subscriptions.pop(subscription_id, None)
        if subscription is None:
            logger.warning("[%s] Unsubscribe called with unknown id: %s", self._schema_id, subscription_id)
            return
        subscription.active = False
        logger.debug("[%s] Unsubscribed %s", self._schema_id, subscription_id)

        if not self._subscriptions:
            self._on_last_unsubscribed()

    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def _notify(self, key: str) -> None:
        # Snapshot: callbacks may subscribe/unsubscribe while we iterate
        for subscription in list(self._subscriptions.values()):
            if not subscription.active or not subscription.matches(key):
                continue
            try:
                subscription.callback(key)
            except Exception as e:
                logger.error("[%s] Error in change handler for %s: %s", self._schema_id, key, e, exc_info=True)
        self.changed.emit(key)

    def _on_first_subscription(self) -> None:
        """Hook for stores that need to start watching their backend."""

    def _on_last_unsubscribed(self) -> None:
        """Hook for stores that can stop watching their backend."""

    def close(self) -> None:
        """Drop all subscriptions and release backend resources."""
        for subscription in self._subscriptions.values():
            subscription.active = False
        had_subscriptions = bool(self._subscriptions)
        self._subscriptions.clear()
        if had_subscriptions:
            self._on_last_unsubscribed()
