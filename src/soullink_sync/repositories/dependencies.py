"""Dependency injection for the repository layer."""

from fastapi import Depends
from sqlalchemy.orm import Session

from ..db.database import get_db
from .sqlalchemy_impl import SQLAlchemyDocumentRepository


def get_document_repository(db: Session = Depends(get_db)) -> SQLAlchemyDocumentRepository:
    """Get Document repository instance."""
    return SQLAlchemyDocumentRepository(db)
