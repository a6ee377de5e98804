"""
Unit tests for the OpenAI Realtime API client.

These tests verify the functionality of the RealtimeClient class, which
connects to the OpenAI Realtime API, sends JSON events and yields the
events it receives.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK

from voice_dispatch.bot.realtime_api import RealtimeClient
from voice_dispatch.errors import RealtimeConnectionError
from voice_dispatch.models.realtime_events import InputAudioBufferAppendEvent


class ScriptedSocket:
    """Minimal websocket connection that replays a fixed list of frames."""

    def __init__(self, messages=(), error=None):
        self.messages = list(messages)
        self.error = error
        self.send = AsyncMock()
        self.close = AsyncMock()

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for message in self.messages:
            yield message
        if self.error is not None:
            raise self.error


@pytest.fixture
def mock_api_key():
    """Provide a mock API key for testing."""
    return "test-api-key"


@pytest.fixture
def mock_model():
    """Provide a mock model name for testing."""
    return "gpt-4o-realtime-preview-test"


@pytest.fixture
def realtime_client(mock_api_key, mock_model):
    """Create a RealtimeClient instance for testing."""
    return RealtimeClient(mock_api_key, mock_model)


async def connect_with(client, socket):
    with patch("voice_dispatch.bot.realtime_api.websockets.connect", AsyncMock(return_value=socket)) as mock_connect:
        await client.connect()
    return mock_connect


@pytest.mark.asyncio
async def test_connect_success(realtime_client, mock_model):
    """Test successful connection to the OpenAI Realtime API."""
    socket = ScriptedSocket()

    mock_connect = await connect_with(realtime_client, socket)

    assert realtime_client.ws is socket
    assert realtime_client.is_open
    url = mock_connect.call_args.args[0]
    assert url.endswith(f"?model={mock_model}")
    headers = mock_connect.call_args.kwargs["additional_headers"]
    assert headers["Authorization"] == "Bearer test-api-key"
    assert headers["OpenAI-Beta"] == "realtime=v1"


@pytest.mark.asyncio
async def test_connect_failure(realtime_client):
    """Test connection failure to the OpenAI Realtime API."""
    with patch(
        "voice_dispatch.bot.realtime_api.websockets.connect",
        AsyncMock(side_effect=OSError("Connection refused")),
    ):
        with pytest.raises(RealtimeConnectionError):
            await realtime_client.connect()

    assert not realtime_client.is_open


@pytest.mark.asyncio
async def test_send_event_serializes_models_and_dicts(realtime_client):
    socket = ScriptedSocket()
    await connect_with(realtime_client, socket)

    assert await realtime_client.send_event(InputAudioBufferAppendEvent(audio="AAEC"))
    assert await realtime_client.send_event({"type": "response.create"})

    sent = [json.loads(call.args[0]) for call in socket.send.await_args_list]
    assert sent == [
        {"type": "input_audio_buffer.append", "audio": "AAEC"},
        {"type": "response.create"},
    ]


@pytest.mark.asyncio
async def test_send_event_without_connection(realtime_client):
    assert await realtime_client.send_event({"type": "response.create"}) is False


@pytest.mark.asyncio
async def test_send_event_connection_closed(realtime_client):
    socket = ScriptedSocket()
    socket.send.side_effect = ConnectionClosedError(None, None)
    await connect_with(realtime_client, socket)

    assert await realtime_client.send_event({"type": "response.create"}) is False
    assert not realtime_client.is_open


@pytest.mark.asyncio
async def test_events_skips_unusable_frames(realtime_client):
    socket = ScriptedSocket(
        [
            json.dumps({"type": "session.created"}),
            b"\x00\x01",
            "not json",
            json.dumps([1, 2, 3]),
            json.dumps({"type": "response.audio.delta", "delta": "AAEC"}),
        ],
        error=ConnectionClosedOK(None, None),
    )
    await connect_with(realtime_client, socket)

    events = [event async for event in realtime_client.events()]

    assert [event["type"] for event in events] == ["session.created", "response.audio.delta"]
    assert not realtime_client.is_open


@pytest.mark.asyncio
async def test_events_abnormal_close_raises(realtime_client):
    socket = ScriptedSocket([json.dumps({"type": "session.created"})], error=ConnectionClosedError(None, None))
    await connect_with(realtime_client, socket)

    received = []
    with pytest.raises(RealtimeConnectionError):
        async for event in realtime_client.events():
            received.append(event)

    assert received == [{"type": "session.created"}]


@pytest.mark.asyncio
async def test_events_before_connect_raises(realtime_client):
    with pytest.raises(RealtimeConnectionError):
        async for _ in realtime_client.events():
            pass


@pytest.mark.asyncio
async def test_close_is_idempotent(realtime_client):
    socket = ScriptedSocket()
    await connect_with(realtime_client, socket)

    await realtime_client.close()
    await realtime_client.close()

    socket.close.assert_awaited_once()
    assert not realtime_client.is_open
    with pytest.raises(RealtimeConnectionError):
        await realtime_client.connect()
