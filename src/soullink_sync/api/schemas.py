"""Pydantic models for document API responses."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProblemDetails(BaseModel):
    """RFC 9457 Problem Details for HTTP APIs."""

    type: str = Field(default="about:blank", description="A URI reference that identifies the problem type")
    title: str = Field(description="A short, human-readable summary of the problem type")
    status: int = Field(description="The HTTP status code")
    detail: Optional[str] = Field(None, description="Explanation specific to this occurrence")


class DocumentWriteResponse(BaseModel):
    """Result of storing a document."""

    model_config = ConfigDict(from_attributes=True)

    path: str
    revision: int = Field(description="Number of writes the document has seen")
    updated_at: datetime
    subscribers_notified: int = 0


class DocumentListResponse(BaseModel):
    """Paths of stored documents."""

    paths: List[str]


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    websocket_connections: int
