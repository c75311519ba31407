"""
HTTP + WebSocket client for the reference document server.

Reads and writes go through ``httpx``; push notifications arrive over a
WebSocket per subscribed path. A dropped socket is reconnected with
exponential backoff, and the server replays the current document on every
(re)connect so missed updates are recovered.
"""

import asyncio
import json
from typing import Awaitable, Callable, Optional, Set

import httpx
import websockets

from .interfaces import ChangeCallback, Payload, RemoteDocumentStore, Subscription
from ..config import get_config
from ..core.exceptions import RemoteStoreError
from ..store.retry import compute_backoff
from ..utils.logging_config import get_logger, log_exception

logger = get_logger('remote')

DOCUMENT_CHANGED = "document_changed"

# Status codes worth retrying: timeouts, conflicts, throttling and server errors
RETRYABLE_STATUS_CODES = {408, 409, 425, 429}


def is_retryable_status(status_code: int) -> bool:
    return status_code >= 500 or status_code in RETRYABLE_STATUS_CODES


class HttpSubscription(Subscription):
    """Background WebSocket listener for one document path."""

    def __init__(self, path: str, callback: ChangeCallback):
        self.path = path
        self._callback = callback
        self.active = True
        self.task: Optional[asyncio.Task] = None
        self.connected = False

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        if self.task is not None and not self.task.done():
            self.task.cancel()

    def deliver(self, payload: Payload) -> None:
        if self.active:
            self._callback(payload)


class HttpDocumentStore(RemoteDocumentStore):
    """RemoteDocumentStore backed by the ``/v1/documents`` API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        connect: Callable = websockets.connect,
        reconnect_base_delay: float = 0.5,
        reconnect_max_delay: float = 30.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        sync_config = get_config().sync
        self.base_url = (base_url or sync_config.remote_url).rstrip('/')
        self.timeout = timeout if timeout is not None else sync_config.http_timeout_secs
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self.timeout,
            headers={'User-Agent': 'SoulLink-Sync/1.0.0'},
        )
        self._connect = connect
        self.reconnect_base_delay = reconnect_base_delay
        self.reconnect_max_delay = reconnect_max_delay
        self._sleep = sleep
        self._subscriptions: Set[HttpSubscription] = set()

    def document_url(self, path: str) -> str:
        return f"{self.base_url}/v1/documents/{path}"

    def websocket_url(self, path: str) -> str:
        if self.base_url.startswith("https://"):
            ws_base = "wss://" + self.base_url[len("https://"):]
        elif self.base_url.startswith("http://"):
            ws_base = "ws://" + self.base_url[len("http://"):]
        else:
            ws_base = self.base_url
        return f"{ws_base}/v1/documents/{path}/ws"

    async def fetch(self, path: str) -> Optional[Payload]:
        try:
            response = await self._client.get(self.document_url(path))
        except httpx.HTTPError as e:
            raise RemoteStoreError(f"GET {path} failed: {e}", path) from e

        if response.status_code == 404:
            return None
        self._raise_for_status(response, path, "GET")

        try:
            return response.json()
        except ValueError as e:
            raise RemoteStoreError(f"GET {path} returned invalid JSON: {e}", path, retryable=False) from e

    async def write(self, path: str, payload: Payload) -> None:
        try:
            body = json.dumps(payload, separators=(',', ':'))
        except (TypeError, ValueError) as e:
            raise RemoteStoreError(
                f"Payload for {path} is not JSON serializable: {e}", path, retryable=False
            ) from e

        try:
            response = await self._client.put(
                self.document_url(path),
                content=body,
                headers={'Content-Type': 'application/json'},
            )
        except httpx.HTTPError as e:
            raise RemoteStoreError(f"PUT {path} failed: {e}", path) from e

        self._raise_for_status(response, path, "PUT")
        logger.debug(f"PUT {path} -> {response.status_code} ({len(body)} bytes)")

    async def subscribe(self, path: str, on_change: ChangeCallback) -> Subscription:
        subscription = HttpSubscription(path, on_change)
        subscription.task = asyncio.create_task(self._listen(subscription))
        subscription.task.add_done_callback(lambda _: self._subscriptions.discard(subscription))
        self._subscriptions.add(subscription)
        return subscription

    async def close(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()
        self._subscriptions.clear()
        if self._owns_client:
            await self._client.aclose()

    def _raise_for_status(self, response: httpx.Response, path: str, method: str) -> None:
        status_code = response.status_code
        if status_code < 400:
            return
        raise RemoteStoreError(
            f"{method} {path} failed with status {status_code}",
            path,
            retryable=is_retryable_status(status_code),
        )

    async def _listen(self, subscription: HttpSubscription) -> None:
        url = self.websocket_url(subscription.path)
        attempt = 0

        while subscription.active:
            try:
                async with self._connect(url) as websocket:
                    subscription.connected = True
                    attempt = 0
                    logger.info(f"WebSocket connected: {url}")
                    async for message in websocket:
                        self._dispatch(subscription, message)
            except (websockets.exceptions.WebSocketException, OSError) as e:
                logger.warning(f"WebSocket for {subscription.path} lost: {e}")
            except Exception as e:
                log_exception('remote', e, {"path": subscription.path})
                raise
            finally:
                subscription.connected = False

            if not subscription.active:
                break
            delay = compute_backoff(attempt, self.reconnect_base_delay, self.reconnect_max_delay, 0.2)
            attempt += 1
            logger.info(f"Reconnecting to {url} in {delay:.1f}s")
            await self._sleep(delay)

    def _dispatch(self, subscription: HttpSubscription, message) -> None:
        """Deliver one raw WebSocket message; anything but a document change is ignored."""
        if isinstance(message, bytes):
            message = message.decode('utf-8', errors='replace')
        try:
            data = json.loads(message)
        except ValueError:
            logger.warning(f"Ignoring non-JSON WebSocket message on {subscription.path}")
            return

        if not isinstance(data, dict) or data.get("type") != DOCUMENT_CHANGED:
            return
        if data.get("path", subscription.path) != subscription.path:
            return
        subscription.deliver(data.get("data"))
