"""Abstract interface of the remote document store the replication layer talks to."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

# Raw decoded JSON; may be of any shape
Payload = Any
ChangeCallback = Callable[[Payload], None]


class Subscription(ABC):
    """Handle for a registered push listener."""

    @abstractmethod
    def unsubscribe(self) -> None:
        """Stop delivering notifications. Synchronous and idempotent."""
        pass


class RemoteDocumentStore(ABC):
    """Key-value document store with get / subscribe / set primitives."""

    @abstractmethod
    async def fetch(self, path: str) -> Optional[Payload]:
        """Read the document at ``path``; None when absent."""
        pass

    @abstractmethod
    async def subscribe(self, path: str, on_change: ChangeCallback) -> Subscription:
        """Call ``on_change`` with every new value written at ``path``."""
        pass

    @abstractmethod
    async def write(self, path: str, payload: Payload) -> None:
        """
        Overwrite the whole document at ``path``.

        Raises:
            RemoteStoreError: If the write did not reach the store
        """
        pass

    async def close(self) -> None:
        """Release connections held by the store."""
        return None


def state_path(tracker_id: str, template: str = "trackers/{tracker_id}/state") -> str:
    """Path of a tracker's replicated state document."""
    return template.format(tracker_id=tracker_id)
