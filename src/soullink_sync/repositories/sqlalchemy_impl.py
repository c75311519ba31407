"""SQLAlchemy implementation of the document repository."""

from typing import Any, List, Optional

from sqlalchemy.orm import Session

from .interfaces import DocumentRepository
from ..core.exceptions import DocumentNotFoundError
from ..db.models import StoredDocument


class SQLAlchemyDocumentRepository(DocumentRepository):
    """SQLAlchemy implementation of DocumentRepository."""

    def __init__(self, session: Session):
        self._session = session

    async def get(self, path: str) -> Optional[StoredDocument]:
        return self._session.get(StoredDocument, path)

    async def put(self, path: str, payload: Any) -> StoredDocument:
        document = self._session.get(StoredDocument, path)
        if document is None:
            document = StoredDocument(path=path, payload=payload, revision=1)
            self._session.add(document)
        else:
            document.payload = payload
            document.revision = (document.revision or 0) + 1

        try:
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        self._session.refresh(document)
        return document

    async def delete(self, path: str) -> None:
        document = self._session.get(StoredDocument, path)
        if document is None:
            raise DocumentNotFoundError(path)
        self._session.delete(document)
        self._session.commit()

    async def list_paths(self, prefix: str = "") -> List[str]:
        query = self._session.query(StoredDocument.path)
        if prefix:
            query = query.filter(StoredDocument.path.startswith(prefix))
        return [row.path for row in query.order_by(StoredDocument.path).all()]
