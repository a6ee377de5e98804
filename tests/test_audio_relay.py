"""
Tests for frame forwarding between the two legs.
"""

import base64
from unittest.mock import AsyncMock

import pytest
from fastapi.websockets import WebSocketState

from voice_dispatch.bot.audio_relay import AudioRelay, normalize_payload, telephony_ready


def test_normalize_payload_encodes_bytes():
    assert normalize_payload(b"\x00\x01\x02") == base64.b64encode(b"\x00\x01\x02").decode()


def test_normalize_payload_passes_base64_text_through():
    assert normalize_payload("AAEC") == "AAEC"


@pytest.mark.parametrize("payload", ["", "not base64!"])
def test_normalize_payload_rejects_bad_text(payload):
    with pytest.raises(ValueError):
        normalize_payload(payload)


def test_telephony_ready(telephony):
    assert telephony_ready(telephony)

    telephony.client_state = WebSocketState.DISCONNECTED
    assert not telephony_ready(telephony)

    assert not telephony_ready(object())


@pytest.mark.asyncio
async def test_forward_to_ai_preserves_order(session, realtime):
    relay = AudioRelay(session)

    for payload in ("AAAA", "AQEB", "AgIC"):
        assert await relay.forward_to_ai(payload)

    assert realtime.sent == [
        {"type": "input_audio_buffer.append", "audio": "AAAA"},
        {"type": "input_audio_buffer.append", "audio": "AQEB"},
        {"type": "input_audio_buffer.append", "audio": "AgIC"},
    ]
    assert session.frames_to_ai == 3
    assert session.frames_dropped == 0


@pytest.mark.asyncio
async def test_forward_to_ai_drops_before_session_is_configured(session, realtime):
    session.ai_configured = False
    relay = AudioRelay(session)

    assert await relay.forward_to_ai("AAAA") is False

    assert realtime.sent == []
    assert session.frames_dropped == 1


@pytest.mark.asyncio
async def test_forward_to_ai_drops_when_ai_leg_closed(session, realtime):
    await realtime.close()
    relay = AudioRelay(session)

    assert await relay.forward_to_ai("AAAA") is False
    assert session.frames_dropped == 1


@pytest.mark.asyncio
async def test_forward_to_ai_drops_invalid_payload(session, realtime):
    relay = AudioRelay(session)

    assert await relay.forward_to_ai("%%%") is False

    assert realtime.sent == []
    assert session.frames_dropped == 1


@pytest.mark.asyncio
async def test_forward_to_ai_counts_failed_send_as_drop(session, realtime):
    realtime.fail_sends = True
    relay = AudioRelay(session)

    assert await relay.forward_to_ai("AAAA") is False
    assert session.frames_to_ai == 0
    assert session.frames_dropped == 1


@pytest.mark.asyncio
async def test_forward_to_telephony_wraps_media_event(session, telephony):
    relay = AudioRelay(session)

    assert await relay.forward_to_telephony("AAEC")
    assert await relay.forward_to_telephony(b"\x00\x01\x02")

    assert telephony.sent == [
        {"event": "media", "media": {"payload": "AAEC"}},
        {"event": "media", "media": {"payload": "AAEC"}},
    ]
    assert session.frames_to_telephony == 2


@pytest.mark.asyncio
async def test_forward_to_telephony_drops_when_disconnected(session, telephony):
    await telephony.close()
    relay = AudioRelay(session)

    assert await relay.forward_to_telephony("AAEC") is False

    assert telephony.sent == []
    assert session.frames_dropped == 1


@pytest.mark.asyncio
async def test_forward_to_telephony_send_error_is_dropped(session, telephony):
    telephony.send_text = AsyncMock(side_effect=RuntimeError("socket gone"))
    relay = AudioRelay(session)

    assert await relay.forward_to_telephony("AAEC") is False
    assert session.frames_dropped == 1
