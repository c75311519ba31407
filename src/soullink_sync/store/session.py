"""Chooses which tracker document is active and owns its replication channel."""

import asyncio
from typing import Optional

from .document_store import LocalDocumentStore
from .replication import DocumentFactory, ReplicationChannel, Sleep
from .retry import RetryPolicy
from ..config import get_config
from ..remote.interfaces import RemoteDocumentStore
from ..utils.logging_config import get_logger

logger = get_logger('replication')


class SessionSelector:
    """
    At most one tracker is active at a time. Selecting another tracker
    detaches the previous channel before the new one starts loading, so late
    results from the old tracker can never reach the store.
    """

    def __init__(
        self,
        store: LocalDocumentStore,
        remote: RemoteDocumentStore,
        document_factory: Optional[DocumentFactory] = None,
        retry_policy: Optional[RetryPolicy] = None,
        path_template: Optional[str] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.store = store
        self.remote = remote
        self._document_factory = document_factory
        self._retry_policy = retry_policy
        self._path_template = path_template or get_config().sync.state_path_template
        self._sleep = sleep
        self._channel: Optional[ReplicationChannel] = None

    @property
    def channel(self) -> Optional[ReplicationChannel]:
        return self._channel

    @property
    def tracker_id(self) -> Optional[str]:
        return self._channel.tracker_id if self._channel is not None else None

    async def select(self, tracker_id: Optional[str]) -> Optional[ReplicationChannel]:
        """
        Make ``tracker_id`` the active tracker, or clear the store for None.

        Selecting the already active tracker is a no-op.
        """
        current = self._channel
        if current is not None and not current.closed and current.tracker_id == tracker_id:
            return current

        self._detach_current()

        if tracker_id is None:
            logger.info("No tracker selected")
            self.store.clear()
            return None

        channel = ReplicationChannel(
            self.store,
            self.remote,
            tracker_id,
            document_factory=self._document_factory,
            retry_policy=self._retry_policy,
            path_template=self._path_template,
            sleep=self._sleep,
        )
        self._channel = channel
        await channel.attach()
        return channel

    async def close(self, flush: bool = True) -> None:
        """Detach the active tracker, optionally waiting for pending writes first."""
        if self._channel is not None and flush and not self._channel.closed:
            await self._channel.flush()
        self._detach_current()
        self.store.clear()

    def _detach_current(self) -> None:
        if self._channel is not None:
            self._channel.detach()
            self._channel = None
