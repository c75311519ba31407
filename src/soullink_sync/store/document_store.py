"""In-memory owner of the active tracker document."""

from dataclasses import dataclass
from typing import Callable, List, Optional

from ..core.enums import ChangeOrigin
from ..domain.models import TrackerDocument
from ..domain.progression import ratchet_best
from ..utils.logging_config import get_logger, log_exception

logger = get_logger('store')

Mutation = Callable[[TrackerDocument], TrackerDocument]


@dataclass(frozen=True)
class DocumentChange:
    """Event emitted for every change of the store state."""

    document: Optional[TrackerDocument]
    origin: ChangeOrigin
    ready: bool
    session_id: Optional[str]

    @property
    def should_publish(self) -> bool:
        """Only confirmed local edits are written back to the remote store."""
        return (
            self.origin is ChangeOrigin.LOCAL
            and self.ready
            and self.document is not None
        )


DocumentListener = Callable[[DocumentChange], None]


class LocalDocumentStore:
    """
    Holds the canonical document of the active session.

    Documents handed out are shared objects: consumers must treat them as
    read-only and go through ``apply_mutation`` for edits.
    """

    def __init__(self):
        self._document: Optional[TrackerDocument] = None
        self._ready = False
        self._session_id: Optional[str] = None
        self._listeners: List[DocumentListener] = []

    @property
    def document(self) -> Optional[TrackerDocument]:
        return self._document

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    def subscribe(self, listener: DocumentListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, origin: ChangeOrigin) -> None:
        change = DocumentChange(
            document=self._document,
            origin=origin,
            ready=self._ready,
            session_id=self._session_id,
        )
        # Copy so listeners can unsubscribe while being notified
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as e:
                log_exception('store', e, {"origin": origin.value, "session": self._session_id})

    def begin_session(self, session_id: str) -> None:
        """Switch to another tracker: discard the document and go back to loading."""
        logger.info(f"Loading tracker {session_id}")
        self._session_id = session_id
        self._document = None
        self._ready = False
        self._emit(ChangeOrigin.SESSION)

    def clear(self) -> None:
        """No active tracker."""
        self._session_id = None
        self._document = None
        self._ready = False
        self._emit(ChangeOrigin.SESSION)

    def mark_ready(self) -> None:
        if self._ready:
            return
        self._ready = True
        self._emit(ChangeOrigin.SESSION)

    def replace_from_remote(self, document: TrackerDocument) -> None:
        """Load a (sanitized) document received from the remote store."""
        self._document = document
        self._emit(ChangeOrigin.REMOTE)

    def apply_mutation(self, mutation: Mutation) -> Optional[TrackerDocument]:
        """
        Apply a local edit synchronously.

        Returns the resulting document. A mutation that returns an unchanged
        document is a rejected no-op and emits nothing. Exceptions raised by
        the mutation propagate to the caller.
        """
        current = self._document
        if current is None:
            logger.warning("Ignoring mutation: no active tracker document")
            return None

        updated = mutation(current)
        if updated is current or updated == current:
            return current

        self._document = ratchet_best(updated)
        self._emit(ChangeOrigin.LOCAL)
        return self._document
