"""WebSocket broadcasting of document changes."""
