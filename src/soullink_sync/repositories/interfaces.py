"""Abstract repository interface for stored documents."""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from ..db.models import StoredDocument


class DocumentRepository(ABC):
    """Repository interface for StoredDocument entities."""

    @abstractmethod
    async def get(self, path: str) -> Optional[StoredDocument]:
        """Get the document stored at a path."""
        pass

    @abstractmethod
    async def put(self, path: str, payload: Any) -> StoredDocument:
        """Create or overwrite the document at a path, bumping its revision."""
        pass

    @abstractmethod
    async def delete(self, path: str) -> None:
        """
        Delete the document at a path.

        Raises:
            DocumentNotFoundError: If nothing is stored at the path
        """
        pass

    @abstractmethod
    async def list_paths(self, prefix: str = "") -> List[str]:
        """Paths of stored documents, optionally restricted to a prefix."""
        pass
