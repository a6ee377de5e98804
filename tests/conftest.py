import asyncio
import json
import logging

import pytest
from fastapi import WebSocketDisconnect
from pydantic import BaseModel
from fastapi.websockets import WebSocketState

from voice_dispatch.models.business_config import BusinessConfig
from voice_dispatch.models.call_session import CallSession
from voice_dispatch.services.call_state_recorder import CallStateRecorder
from voice_dispatch.services.call_store import InMemoryCallStore


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test"""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    logging.basicConfig(level=logging.NOTSET)
    yield


DISCONNECT = object()
BINARY = object()


class FakeRealtime:
    """Stands in for RealtimeClient and records every event sent to the AI leg."""

    def __init__(self, api_key="test-api-key", model="test-model"):
        self.api_key = api_key
        self.model = model
        self.sent = []
        self.incoming = asyncio.Queue()
        self.connected = False
        self.closed = False
        self.connect_error = None
        self.fail_sends = False

    @property
    def is_open(self):
        return self.connected and not self.closed

    async def connect(self):
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True

    async def send_event(self, event):
        if not self.is_open or self.fail_sends:
            return False
        if isinstance(event, BaseModel):
            self.sent.append(json.loads(event.model_dump_json(exclude_none=True)))
        else:
            self.sent.append(dict(event))
        return True

    async def events(self):
        while True:
            item = await self.incoming.get()
            if item is None:
                return
            if isinstance(item, Exception):
                raise item
            yield item

    async def close(self):
        self.closed = True
        self.incoming.put_nowait(None)

    def sent_types(self):
        return [event["type"] for event in self.sent]


class FakeTelephony:
    """Stands in for the FastAPI WebSocket of the telephony leg."""

    def __init__(self, messages=()):
        self.incoming = asyncio.Queue()
        self.sent = []
        self.application_state = WebSocketState.CONNECTED
        self.client_state = WebSocketState.CONNECTED
        self.close_calls = 0
        for message in messages:
            self.push(message)

    def push(self, message):
        if message is DISCONNECT or message is BINARY:
            self.incoming.put_nowait(message)
        else:
            self.incoming.put_nowait(json.dumps(message) if isinstance(message, dict) else message)

    async def receive_text(self):
        if self.application_state != WebSocketState.CONNECTED:
            raise RuntimeError("WebSocket is not connected")
        item = await self.incoming.get()
        if item is DISCONNECT:
            self.client_state = WebSocketState.DISCONNECTED
            raise WebSocketDisconnect(code=1000)
        if item is BINARY:
            # Starlette looks up message["text"] on a bytes frame
            raise KeyError("text")
        return item

    async def send_text(self, text):
        self.sent.append(json.loads(text))

    async def close(self):
        self.close_calls += 1
        self.application_state = WebSocketState.DISCONNECTED

    @property
    def closed(self):
        return self.application_state == WebSocketState.DISCONNECTED


async def wait_until(predicate, timeout=2.0):
    """Poll ``predicate`` until it is true or fail the test."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met in time")
        await asyncio.sleep(0.01)


def start_event(stream_id="abc"):
    return {
        "event": "start",
        "stream_id": stream_id,
        "start": {
            "call_control_id": "v3:control-id",
            "media_format": {"encoding": "PCMU", "sample_rate": 8000, "channels": 1},
        },
    }


def media_event(payload="AAA=", chunk="1"):
    return {
        "event": "media",
        "stream_id": "abc",
        "media": {"track": "inbound", "chunk": chunk, "timestamp": "20", "payload": payload},
    }


@pytest.fixture
def config():
    return BusinessConfig(company_name="Acme Heating & Air", agent_name="Riley")


@pytest.fixture
def store():
    return InMemoryCallStore(calls={"abc": {"stream_id": "abc"}})


@pytest.fixture
def recorder(store):
    return CallStateRecorder(store)


@pytest.fixture
def realtime():
    client = FakeRealtime()
    client.connected = True
    return client


@pytest.fixture
def telephony():
    return FakeTelephony()


@pytest.fixture
def session(telephony, realtime, config):
    call_session = CallSession(telephony, realtime, config)
    call_session.ai_configured = True
    return call_session
