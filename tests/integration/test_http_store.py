"""HTTP/WebSocket remote store against mocked transports and the real app."""

import asyncio
import json

import httpx
import pytest

from soullink_sync.core.exceptions import RemoteStoreError
from soullink_sync.remote.http_impl import HttpDocumentStore, is_retryable_status


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class FakeWebSocket:
    """Yields the given messages, then stays open until cancelled."""

    def __init__(self, messages):
        self.messages = list(messages)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for message in self.messages:
            yield message
        await asyncio.Event().wait()


class FakeConnect:
    """Stand-in for ``websockets.connect`` recording the URLs it was asked for."""

    def __init__(self, *connections):
        self.connections = list(connections)
        self.urls = []

    def __call__(self, url):
        self.urls.append(url)
        if not self.connections:
            return FakeWebSocket([])
        connection = self.connections.pop(0)
        if isinstance(connection, Exception):
            raise connection
        return connection


@pytest.mark.integration
class TestUrls:

    def test_document_and_websocket_urls(self):
        store = HttpDocumentStore(base_url="https://sync.example.org/", client=mock_client(lambda r: None))
        assert store.document_url("trackers/t1/state") == "https://sync.example.org/v1/documents/trackers/t1/state"
        assert store.websocket_url("trackers/t1/state") == "wss://sync.example.org/v1/documents/trackers/t1/state/ws"

        plain = HttpDocumentStore(base_url="http://127.0.0.1:8000", client=mock_client(lambda r: None))
        assert plain.websocket_url("a") == "ws://127.0.0.1:8000/v1/documents/a/ws"

    def test_retryable_statuses(self):
        assert is_retryable_status(503)
        assert is_retryable_status(429)
        assert not is_retryable_status(400)
        assert not is_retryable_status(413)


@pytest.mark.integration
@pytest.mark.asyncio
class TestFetchAndWrite:

    async def test_fetch_absent_returns_none(self):
        store = HttpDocumentStore(base_url="http://test", client=mock_client(lambda r: httpx.Response(404)))
        assert await store.fetch("trackers/t1/state") is None

    async def test_fetch_returns_payload(self):
        def handler(request):
            assert request.method == "GET"
            assert request.url.path == "/v1/documents/trackers/t1/state"
            return httpx.Response(200, json={"players": ["Ash"]})

        store = HttpDocumentStore(base_url="http://test", client=mock_client(handler))
        assert await store.fetch("trackers/t1/state") == {"players": ["Ash"]}

    async def test_fetch_invalid_json_not_retryable(self):
        store = HttpDocumentStore(
            base_url="http://test",
            client=mock_client(lambda r: httpx.Response(200, content=b"{not json")),
        )
        with pytest.raises(RemoteStoreError) as exc_info:
            await store.fetch("a")
        assert exc_info.value.retryable is False

    async def test_write_puts_json_body(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"path": "a", "revision": 1})

        store = HttpDocumentStore(base_url="http://test", client=mock_client(handler))
        await store.write("a", {"players": ["Ash", "Misty"]})

        assert seen[0].method == "PUT"
        assert seen[0].headers["content-type"] == "application/json"
        assert json.loads(seen[0].content) == {"players": ["Ash", "Misty"]}

    async def test_server_error_is_retryable(self):
        store = HttpDocumentStore(base_url="http://test", client=mock_client(lambda r: httpx.Response(503)))
        with pytest.raises(RemoteStoreError) as exc_info:
            await store.write("a", {})
        assert exc_info.value.retryable is True
        assert exc_info.value.path == "a"

    async def test_client_error_is_not_retryable(self):
        store = HttpDocumentStore(base_url="http://test", client=mock_client(lambda r: httpx.Response(400)))
        with pytest.raises(RemoteStoreError) as exc_info:
            await store.write("a", {})
        assert exc_info.value.retryable is False

    async def test_connection_error_is_retryable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        store = HttpDocumentStore(base_url="http://test", client=mock_client(handler))
        with pytest.raises(RemoteStoreError) as exc_info:
            await store.fetch("a")
        assert exc_info.value.retryable is True

    async def test_unserializable_payload_rejected_before_sending(self):
        calls = []
        store = HttpDocumentStore(
            base_url="http://test",
            client=mock_client(lambda r: calls.append(r) or httpx.Response(200)),
        )
        with pytest.raises(RemoteStoreError) as exc_info:
            await store.write("a", {"bad": object()})
        assert exc_info.value.retryable is False
        assert calls == []


@pytest.mark.integration
@pytest.mark.asyncio
class TestSubscriptions:

    async def test_only_matching_document_changes_delivered(self, settle):
        messages = [
            json.dumps({"type": "heartbeat", "timestamp": "now"}),
            "not json",
            json.dumps({"type": "document_changed", "path": "other", "revision": 1, "data": {"x": 0}}),
            json.dumps({"type": "document_changed", "path": "a", "revision": 2, "data": {"x": 1}}),
            json.dumps({"type": "document_changed", "path": "a", "revision": 3, "data": None}).encode(),
        ]
        connect = FakeConnect(FakeWebSocket(messages))
        store = HttpDocumentStore(base_url="http://test", client=mock_client(lambda r: None), connect=connect)

        received = []
        subscription = await store.subscribe("a", received.append)
        await settle()

        assert received == [{"x": 1}, None]
        assert subscription.connected is True
        assert connect.urls == ["ws://test/v1/documents/a/ws"]

        subscription.unsubscribe()
        await settle()
        assert subscription.task.done()
        assert subscription.connected is False

    async def test_reconnects_after_connection_error(self, settle, recording_sleep):
        connect = FakeConnect(
            OSError("connection refused"),
            FakeWebSocket([json.dumps({"type": "document_changed", "path": "a", "data": {"x": 2}})]),
        )
        store = HttpDocumentStore(
            base_url="http://test",
            client=mock_client(lambda r: None),
            connect=connect,
            sleep=recording_sleep,
        )

        received = []
        subscription = await store.subscribe("a", received.append)
        await settle()

        assert received == [{"x": 2}]
        assert len(connect.urls) == 2
        assert len(recording_sleep.delays) == 1
        subscription.unsubscribe()

    async def test_close_cancels_subscriptions(self, settle):
        store = HttpDocumentStore(
            base_url="http://test",
            client=mock_client(lambda r: None),
            connect=FakeConnect(FakeWebSocket([])),
        )
        subscription = await store.subscribe("a", lambda payload: None)
        await settle()

        await store.close()
        await settle()

        assert subscription.active is False
        assert subscription.task.done()

    async def test_unexpected_error_ends_listener(self, settle):
        store = HttpDocumentStore(
            base_url="http://test",
            client=mock_client(lambda r: None),
            connect=FakeConnect(RuntimeError("boom")),
        )
        subscription = await store.subscribe("a", lambda payload: None)
        await settle()

        assert subscription.task.done()
        assert isinstance(subscription.task.exception(), RuntimeError)

@pytest.mark.integration
@pytest.mark.asyncio
async def test_round_trip_through_document_api(app):
    """Fetch and write against the real FastAPI app in-process."""
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
    store = HttpDocumentStore(base_url="http://test", client=client)

    assert await store.fetch("trackers/t1/state") is None
    await store.write("trackers/t1/state", {"players": ["Ash", "Misty"]})
    assert await store.fetch("trackers/t1/state") == {"players": ["Ash", "Misty"]}

    await client.aclose()
