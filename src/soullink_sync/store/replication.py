"""
Replication between the local document store and a remote document store.

One ReplicationChannel exists per active tracker session. Its lifecycle:

1. attach: fetch the remote document once, sanitize it (or seed a default
   document when it is absent or the read fails) and mark the store ready
2. subscribe: every push notification is sanitized and loaded into the store
   with origin ``remote``
3. publish: every ``local`` change is written to the remote store as a whole
   document (last writer wins); ``remote`` and ``session`` changes never are
4. detach: stop listening; late fetch results and notifications are ignored

Writes go through a single writer task. Snapshots queued while a write is in
flight collapse to the newest one, and failed writes are retried with
exponential backoff before the channel reports ``SyncStatus.ERROR``.
"""

import asyncio
from collections import deque
from typing import Awaitable, Callable, Deque, List, Optional

from .document_store import DocumentChange, LocalDocumentStore
from .retry import RetryPolicy
from ..core.enums import ChangeOrigin, SyncStatus
from ..core.exceptions import RemoteStoreError
from ..domain.factory import default_document
from ..domain.models import TrackerDocument
from ..domain.sanitizer import coerce
from ..remote.interfaces import Payload, RemoteDocumentStore, Subscription, state_path
from ..utils.logging_config import get_logger, log_exception

logger = get_logger('replication')

DocumentFactory = Callable[[], TrackerDocument]
StatusListener = Callable[[SyncStatus], None]
Sleep = Callable[[float], Awaitable[None]]

# Own writes remembered for echo detection
ECHO_WINDOW = 8


class ReplicationChannel:
    """Keeps one tracker's local document and its remote copy in step."""

    def __init__(
        self,
        store: LocalDocumentStore,
        remote: RemoteDocumentStore,
        tracker_id: str,
        document_factory: Optional[DocumentFactory] = None,
        retry_policy: Optional[RetryPolicy] = None,
        path_template: Optional[str] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.store = store
        self.remote = remote
        self.tracker_id = tracker_id
        self.path = (
            state_path(tracker_id, path_template) if path_template else state_path(tracker_id)
        )
        self._document_factory = document_factory or default_document
        self._retry_policy = retry_policy or RetryPolicy.from_config()
        self._sleep = sleep

        self._attached = False
        self._closed = False
        self._subscription: Optional[Subscription] = None
        self._store_unsubscribe: Optional[Callable[[], None]] = None

        # Write side
        self._pending: Optional[TrackerDocument] = None  # queued, not started
        self._in_flight: Optional[TrackerDocument] = None
        self._unsaved: Optional[TrackerDocument] = None  # gave up after retries
        # Last content known to be stored remotely
        self._remote_state: Optional[TrackerDocument] = None

        # Echo tracking: own writes whose push notification has not arrived yet
        self._unechoed: Deque[TrackerDocument] = deque(maxlen=ECHO_WINDOW)
        self._in_flight_is_echo_candidate = False
        self._in_flight_echoed = False

        self._writer: Optional[asyncio.Task] = None
        self._status = SyncStatus.IDLE
        self._status_listeners: List[StatusListener] = []

        self.publish_count = 0
        self.suppressed_echo_count = 0

    # ------------------------------------------------------------------
    # State

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def has_unsaved_changes(self) -> bool:
        return (
            self._pending is not None
            or self._in_flight is not None
            or self._unsaved is not None
        )

    def subscribe_status(self, listener: StatusListener) -> Callable[[], None]:
        """Observe the write-side status (for an "unsaved changes" indicator)."""
        self._status_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._status_listeners:
                self._status_listeners.remove(listener)

        return unsubscribe

    def _set_status(self, status: SyncStatus) -> None:
        if status is self._status:
            return
        self._status = status
        for listener in list(self._status_listeners):
            try:
                listener(status)
            except Exception as e:
                log_exception('replication', e, {"tracker": self.tracker_id})

    # ------------------------------------------------------------------
    # Lifecycle

    async def attach(self) -> None:
        """Load the remote document, mark the store ready, then subscribe."""
        if self._attached:
            raise RuntimeError(f"Channel for {self.tracker_id} is already attached")
        if self._closed:
            raise RuntimeError(f"Channel for {self.tracker_id} was detached")
        self._attached = True

        self.store.begin_session(self.tracker_id)

        try:
            raw = await self.remote.fetch(self.path)
        except Exception as e:
            # A failed read must not block the user; treat it as "no document yet"
            logger.warning(f"Initial fetch of {self.path} failed, using default document: {e}")
            raw = None

        if self._closed:
            logger.debug(f"Discarding fetch result for detached tracker {self.tracker_id}")
            return

        if raw is None:
            logger.info(f"No remote document at {self.path}, seeding default document")
            document = self._document_factory()
        else:
            document = coerce(raw, self._document_factory())
            self._remote_state = document

        self.store.replace_from_remote(document)
        self.store.mark_ready()
        self._store_unsubscribe = self.store.subscribe(self._on_store_change)

        subscription = await self.remote.subscribe(self.path, self._on_remote_change)
        if self._closed:
            subscription.unsubscribe()
            return
        self._subscription = subscription
        logger.info(f"Attached to {self.path}")

    def detach(self) -> None:
        """Stop replicating. Synchronous; queued writes are dropped (see ``flush``)."""
        if self._closed:
            return
        self._closed = True

        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        if self._store_unsubscribe is not None:
            self._store_unsubscribe()
            self._store_unsubscribe = None

        if self._writer is not None and not self._writer.done():
            self._writer.cancel()
        if self.has_unsaved_changes:
            logger.warning(f"Detached from {self.path} with unsaved changes")
        self._status_listeners.clear()
        logger.info(f"Detached from {self.path}")

    async def flush(self) -> bool:
        """Wait for queued writes; True when everything reached the remote store."""
        if self._pending is not None and not self._closed:
            self._ensure_writer()
        writer = self._writer
        if writer is not None and not writer.done():
            # wait() does not raise when detach() cancels the writer
            await asyncio.wait([writer])
        return not self.has_unsaved_changes

    def retry_unsaved(self) -> None:
        """Queue the snapshot that failed to save for another round of attempts."""
        if self._closed or self._unsaved is None or self._pending is not None:
            return
        self._queue_write(self._unsaved)

    # ------------------------------------------------------------------
    # Inbound

    def _on_remote_change(self, payload: Payload) -> None:
        if self._closed:
            return

        current = self.store.document
        fallback = current if current is not None else self._document_factory()
        document = coerce(payload, fallback)

        if self._consume_echo(document):
            self.suppressed_echo_count += 1
            logger.debug(f"Ignoring echo of own write on {self.path}")
            return
        if document == self._remote_state or (current is not None and document == current):
            # Nothing new (e.g. the replay sent when the push connection opens)
            self._remote_state = document
            return

        # A foreign write: it wins over everything not yet confirmed
        self._remote_state = document
        self._unechoed.clear()
        self._in_flight_is_echo_candidate = False
        if self._pending is not None:
            logger.info(f"Remote change on {self.path} replaces a queued local edit")
            self._pending = None
        self._unsaved = None
        if self._in_flight is None:
            self._set_status(SyncStatus.IDLE)

        self.store.replace_from_remote(document)

    def _consume_echo(self, document: TrackerDocument) -> bool:
        """True when ``document`` is the push notification of one of our own writes."""
        if (
            self._in_flight is not None
            and self._in_flight_is_echo_candidate
            and document == self._in_flight
        ):
            # Notification overtook the write response
            self._in_flight_echoed = True
            return True

        for position, written in enumerate(self._unechoed):
            if document == written:
                for _ in range(position + 1):
                    self._unechoed.popleft()
                return True
        return False

    # ------------------------------------------------------------------
    # Outbound

    def _on_store_change(self, change: DocumentChange) -> None:
        if self._closed or change.session_id != self.tracker_id:
            return
        if change.origin is not ChangeOrigin.LOCAL or not change.should_publish:
            return
        self._queue_write(change.document)

    def _queue_write(self, document: TrackerDocument) -> None:
        if (
            document == self._remote_state
            and self._in_flight is None
            and self._unsaved is None
        ):
            # Edited back to what the remote store already holds
            self._pending = None
            self._set_status(SyncStatus.IDLE)
            return

        self._pending = document
        if self._in_flight is None:
            self._set_status(SyncStatus.PENDING)
        self._ensure_writer()

    def _ensure_writer(self) -> None:
        if self._writer is not None and not self._writer.done():
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Edited outside the event loop; the next flush or in-loop edit starts the writer
            logger.debug(f"No running event loop, write to {self.path} deferred")
            return
        self._writer = loop.create_task(self._run_writer())

    async def _run_writer(self) -> None:
        while self._pending is not None and not self._closed:
            document = self._pending
            self._pending = None
            self._in_flight = document
            self._in_flight_is_echo_candidate = True
            self._in_flight_echoed = False
            self._set_status(SyncStatus.SYNCING)

            written = await self._write_with_retry(document)
            self._in_flight = None

            if written:
                self._unsaved = None
                self.publish_count += 1
                if self._in_flight_is_echo_candidate:
                    self._remote_state = document
                    if not self._in_flight_echoed:
                        self._unechoed.append(document)
                # Otherwise a foreign change arrived mid-write; the echo of
                # this write is applied like any other remote change
            elif self._pending is None and not self._closed and self._in_flight_is_echo_candidate:
                self._unsaved = document
                self._set_status(SyncStatus.ERROR)
                return

        if not self._closed:
            self._set_status(SyncStatus.IDLE)

    async def _write_with_retry(self, document: TrackerDocument) -> bool:
        payload = document.to_payload()
        attempt = 0
        while True:
            try:
                await self.remote.write(self.path, payload)
                logger.debug(f"Wrote {self.path} (attempt {attempt + 1})")
                return True
            except Exception as e:
                retryable = not isinstance(e, RemoteStoreError) or e.retryable
                if self._closed:
                    return False
                if not retryable or not self._retry_policy.should_retry(attempt):
                    log_exception(
                        'replication', e, {"path": self.path, "attempts": attempt + 1}
                    )
                    return False

                delay = self._retry_policy.delay_for(attempt)
                logger.warning(
                    f"Write to {self.path} failed (attempt {attempt + 1}), retrying in {delay:.1f}s: {e}"
                )
                await self._sleep(delay)
                attempt += 1

                if (
                    self._closed
                    or self._pending is not None
                    or not self._in_flight_is_echo_candidate
                ):
                    # Detached, or a newer local snapshot or a foreign change supersedes this one
                    return False
