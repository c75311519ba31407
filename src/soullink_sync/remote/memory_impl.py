"""In-memory remote document store for tests and single-process use."""

import asyncio
import json
from typing import Dict, List, Optional

from .interfaces import ChangeCallback, Payload, RemoteDocumentStore, Subscription
from ..core.exceptions import RemoteStoreError
from ..utils.logging_config import get_logger

logger = get_logger('remote')


class MemorySubscription(Subscription):
    """Push listener registered on a MemoryDocumentStore."""

    def __init__(self, store: "MemoryDocumentStore", path: str, callback: ChangeCallback):
        self._store = store
        self.path = path
        self._callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._store._remove_subscription(self)

    def _deliver(self, payload: Payload) -> None:
        # Notifications already queued when unsubscribing are dropped
        if self.active:
            self._callback(payload)


class MemoryDocumentStore(RemoteDocumentStore):
    """
    Stores documents as JSON text, like a real backend would.

    Notifications are scheduled on the running event loop in write order, so
    subscribers (including the writer itself) see them asynchronously.
    """

    def __init__(self):
        self._documents: Dict[str, str] = {}
        self._subscriptions: Dict[str, List[MemorySubscription]] = {}
        self.write_count = 0

    async def fetch(self, path: str) -> Optional[Payload]:
        text = self._documents.get(path)
        return json.loads(text) if text is not None else None

    async def subscribe(self, path: str, on_change: ChangeCallback) -> Subscription:
        subscription = MemorySubscription(self, path, on_change)
        self._subscriptions.setdefault(path, []).append(subscription)
        logger.debug(f"Subscribed to {path} ({len(self._subscriptions[path])} listeners)")
        return subscription

    async def write(self, path: str, payload: Payload) -> None:
        try:
            text = json.dumps(payload)
        except (TypeError, ValueError) as e:
            raise RemoteStoreError(f"Payload for {path} is not JSON serializable: {e}", path, retryable=False)

        self._documents[path] = text
        self.write_count += 1
        self._notify(path, text)

    async def delete(self, path: str) -> None:
        if self._documents.pop(path, None) is not None:
            self._notify(path, "null")

    def _notify(self, path: str, text: str) -> None:
        loop = asyncio.get_running_loop()
        for subscription in list(self._subscriptions.get(path, [])):
            # Each listener gets its own decoded copy
            loop.call_soon(subscription._deliver, json.loads(text))

    def _remove_subscription(self, subscription: MemorySubscription) -> None:
        listeners = self._subscriptions.get(subscription.path, [])
        if subscription in listeners:
            listeners.remove(subscription)
        if not listeners:
            self._subscriptions.pop(subscription.path, None)

    def subscriber_count(self, path: str) -> int:
        return len(self._subscriptions.get(path, []))
