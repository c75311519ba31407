"""WebSocket connection manager broadcasting document changes per path."""

import asyncio
import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List

from fastapi import WebSocket

from ..utils.logging_config import get_logger

logger = get_logger('websocket')

DOCUMENT_CHANGED = "document_changed"


@dataclass
class DocumentConnection:
    """A subscriber connection with metadata."""

    websocket: WebSocket
    path: str
    connected_at: float = field(default_factory=time.time)
    messages_sent: int = 0


def document_changed_message(path: str, data: Any, revision: int = 0) -> Dict[str, Any]:
    """Wire message pushed to subscribers; ``data`` is None once deleted."""
    return {
        "type": DOCUMENT_CHANGED,
        "path": path,
        "revision": revision,
        "data": data,
    }


class WebSocketManager:
    """Keeps subscriber connections grouped by document path."""

    def __init__(self, heartbeat_interval: float = 30):
        # Dict[path, Dict[WebSocket, DocumentConnection]]
        self.active_connections: Dict[str, Dict[WebSocket, DocumentConnection]] = {}
        self.heartbeat_interval = heartbeat_interval
        self._heartbeat_task = None

    async def connect(self, websocket: WebSocket, path: str) -> DocumentConnection:
        """Accept a WebSocket connection and subscribe it to a path."""
        await websocket.accept()

        connection = DocumentConnection(websocket=websocket, path=path)
        self.active_connections.setdefault(path, {})[websocket] = connection

        # Start heartbeat task with the first connection
        if self._heartbeat_task is None:
            self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())

        logger.info(
            f"WebSocket connected to {path}. Total connections: {len(self.active_connections[path])}"
        )
        return connection

    def disconnect(self, websocket: WebSocket, path: str) -> None:
        """Remove a WebSocket connection from a path."""
        connections = self.active_connections.get(path)
        if not connections or websocket not in connections:
            return

        del connections[websocket]
        if not connections:
            del self.active_connections[path]
        logger.info(f"WebSocket disconnected from {path}")

        # Stop heartbeat task if no connections remain
        if not self.active_connections and self._heartbeat_task:
            self._heartbeat_task.cancel()
            self._heartbeat_task = None

    async def send(self, connection: DocumentConnection, message: Dict[str, Any]) -> None:
        await connection.websocket.send_text(json.dumps(message, default=str))
        connection.messages_sent += 1

    async def broadcast_document(self, path: str, data: Any, revision: int = 0) -> int:
        """Push a document change to every subscriber of ``path``; returns deliveries."""
        connections = dict(self.active_connections.get(path, {}))
        if not connections:
            return 0

        message = document_changed_message(path, data, revision)
        failed_connections: List[WebSocket] = []
        delivered = 0

        for websocket, connection in connections.items():
            try:
                await self.send(connection, message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Failed to send document change on {path}: {e}")
                failed_connections.append(websocket)

        # Remove failed connections
        for websocket in failed_connections:
            self.disconnect(websocket, path)

        return delivered

    async def _heartbeat_loop(self) -> None:
        """Background task pinging every connection."""
        try:
            while True:
                await asyncio.sleep(self.heartbeat_interval)
                await self._send_heartbeats()
        except asyncio.CancelledError:
            logger.debug("Heartbeat task cancelled")

    async def _send_heartbeats(self) -> None:
        failed = []
        ping = {"type": "ping", "data": {"server_time": time.time()}}
        for path, connections in list(self.active_connections.items()):
            for websocket, connection in dict(connections).items():
                try:
                    await self.send(connection, ping)
                except Exception as e:
                    logger.warning(f"Failed to ping WebSocket on {path}: {e}")
                    failed.append((websocket, path))

        for websocket, path in failed:
            self.disconnect(websocket, path)

    def get_connection_count(self, path: str) -> int:
        """Get the number of subscribers of a path."""
        return len(self.active_connections.get(path, {}))

    def get_total_connections(self) -> int:
        """Get the total number of connections across all paths."""
        return sum(len(connections) for connections in self.active_connections.values())


# Global WebSocket manager instance
websocket_manager = WebSocketManager()
