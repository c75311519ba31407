"""Document API endpoints: get / set / delete / subscribe."""

import json
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, WebSocket, WebSocketDisconnect, status

from ..config import get_config
from ..core.exceptions import DocumentNotFoundError
from ..events.websocket_manager import document_changed_message, websocket_manager
from ..repositories.dependencies import get_document_repository
from ..repositories.interfaces import DocumentRepository
from ..utils.logging_config import get_logger
from .schemas import DocumentListResponse, DocumentWriteResponse, ProblemDetails

logger = get_logger('api')

router = APIRouter(prefix="/v1/documents", tags=["documents"])

REVISION_HEADER = "X-Document-Revision"


@router.get(
    "",
    response_model=DocumentListResponse,
    responses={200: {"description": "Stored document paths"}},
)
async def list_documents(
    prefix: str = "",
    repo: DocumentRepository = Depends(get_document_repository),
) -> DocumentListResponse:
    """List stored document paths, optionally restricted to a prefix."""
    return DocumentListResponse(paths=await repo.list_paths(prefix))


@router.get(
    "/{path:path}",
    responses={
        200: {"description": "The stored JSON document, returned as-is"},
        404: {"model": ProblemDetails, "description": "No document at this path"},
    },
)
async def get_document(
    path: str,
    response: Response,
    repo: DocumentRepository = Depends(get_document_repository),
) -> Any:
    """Return the raw stored document."""
    document = await repo.get(path)
    if document is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No document at {path}")

    response.headers[REVISION_HEADER] = str(document.revision)
    return document.payload


@router.put(
    "/{path:path}",
    response_model=DocumentWriteResponse,
    responses={
        200: {"description": "Document stored and broadcast to subscribers"},
        400: {"model": ProblemDetails, "description": "Body is not valid JSON"},
        413: {"model": ProblemDetails, "description": "Document too large"},
    },
)
async def put_document(
    path: str,
    request: Request,
    repo: DocumentRepository = Depends(get_document_repository),
) -> DocumentWriteResponse:
    """
    Overwrite the document at ``path`` (last writer wins).

    The body is stored without validation; every subscriber of the path
    receives the new value.
    """
    body = await request.body()
    max_bytes = get_config().server.max_document_bytes
    if len(body) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Document exceeds {max_bytes} bytes",
        )

    try:
        payload = json.loads(body)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid JSON: {e}")

    document = await repo.put(path, payload)
    notified = await websocket_manager.broadcast_document(path, payload, document.revision)
    logger.info(f"Stored {path} (revision {document.revision}, {notified} subscribers notified)")

    return DocumentWriteResponse(
        path=document.path,
        revision=document.revision,
        updated_at=document.updated_at,
        subscribers_notified=notified,
    )


@router.delete(
    "/{path:path}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ProblemDetails, "description": "No document at this path"}},
)
async def delete_document(
    path: str,
    repo: DocumentRepository = Depends(get_document_repository),
) -> Response:
    """Delete the document; subscribers receive ``null``."""
    try:
        await repo.delete(path)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    await websocket_manager.broadcast_document(path, None)
    logger.info(f"Deleted {path}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.websocket("/{path:path}/ws")
async def document_websocket(
    websocket: WebSocket,
    path: str,
    repo: DocumentRepository = Depends(get_document_repository),
):
    """
    Push every change of ``path`` to the client.

    The current document (if any) is sent right after connecting so a client
    that reconnects catches up on missed writes.
    """
    connection = await websocket_manager.connect(websocket, path)
    try:
        document = await repo.get(path)
        if document is not None:
            await websocket_manager.send(
                connection,
                document_changed_message(path, document.payload, document.revision),
            )

        # Clients only listen; drain anything they send until they leave
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug(f"Subscriber left {path}")
    finally:
        websocket_manager.disconnect(websocket, path)
