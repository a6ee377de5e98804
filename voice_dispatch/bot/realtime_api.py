import asyncio
import json
import logging
import time
from typing import Any, AsyncIterator, Dict, Union

import websockets
from pydantic import BaseModel
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, ConnectionClosedOK

from voice_dispatch.config.constants import LOGGER_NAME, REALTIME_API_URL
from voice_dispatch.errors import RealtimeConnectionError

logger = logging.getLogger(LOGGER_NAME)

CONNECTION_TIMEOUT = 30  # seconds
SEND_TIMEOUT = 5.0  # seconds

# WebSocket configuration for low latency
WS_MAX_SIZE = 16 * 1024 * 1024  # 16MB - large enough for audio chunks
WS_MAX_QUEUE = 32  # Small queue to prevent buffering
WS_PING_INTERVAL = 5  # 5 seconds between pings


class RealtimeClient:
    """
    Client for one OpenAI Realtime API session over WebSocket.

    The client does not reconnect: a dropped AI leg ends the call.
    """
    def __init__(self, api_key: str, model: str):
        self.api_key = api_key
        self.model = model
        self.ws = None
        self._connection_active = False
        self._is_closing = False
        logger.info(f"RealtimeClient initialized with model: {model}")

    @property
    def is_open(self) -> bool:
        """True while the connection can accept outbound events."""
        return self._connection_active and self.ws is not None and not self._is_closing

    async def connect(self) -> None:
        """
        Connect to the OpenAI Realtime WebSocket endpoint.

        Raises:
            RealtimeConnectionError: The connection could not be established
        """
        if self._is_closing:
            raise RealtimeConnectionError("Cannot connect - client is closing")

        url = f"{REALTIME_API_URL}?model={self.model}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "OpenAI-Beta": "realtime=v1",
        }

        try:
            logger.info(f"Connecting to OpenAI Realtime API with model: {self.model}")
            connection_start = time.time()
            self.ws = await asyncio.wait_for(
                websockets.connect(
                    url,
                    max_size=WS_MAX_SIZE,
                    max_queue=WS_MAX_QUEUE,
                    ping_interval=WS_PING_INTERVAL,
                    ping_timeout=10,
                    compression=None,  # Disable compression for lower latency
                    additional_headers=headers
                ),
                timeout=CONNECTION_TIMEOUT
            )
        except asyncio.TimeoutError as e:
            raise RealtimeConnectionError(
                f"Timeout while connecting to OpenAI Realtime API (after {CONNECTION_TIMEOUT}s)"
            ) from e
        except Exception as e:
            raise RealtimeConnectionError(f"Failed to connect to OpenAI Realtime API: {e}") from e

        self._connection_active = True
        logger.info(
            f"Connected to OpenAI Realtime API in {time.time() - connection_start:.2f} seconds"
        )

    async def send_event(self, event: Union[BaseModel, Dict[str, Any]]) -> bool:
        """
        Send one JSON event to the AI leg.

        Args:
            event: A pydantic event model or a plain dict

        Returns:
            bool: True if the event was sent, False if the connection is not usable
        """
        if not self.is_open:
            logger.debug("Cannot send event - connection not active")
            return False

        if isinstance(event, BaseModel):
            payload = event.model_dump_json(exclude_none=True)
        else:
            payload = json.dumps(event)

        try:
            await asyncio.wait_for(self.ws.send(payload), timeout=SEND_TIMEOUT)
            return True
        except asyncio.TimeoutError:
            logger.warning("Timeout while sending event to OpenAI")
            return False
        except ConnectionClosed as e:
            logger.warning(f"Connection closed while sending event: {e}")
            self._connection_active = False
            return False

    async def events(self) -> AsyncIterator[Dict[str, Any]]:
        """
        Yield decoded JSON events from the AI leg until it closes.

        Raises:
            RealtimeConnectionError: The connection dropped abnormally
        """
        if self.ws is None:
            raise RealtimeConnectionError("WebSocket not initialized for receive loop")

        try:
            async for message in self.ws:
                if isinstance(message, bytes):
                    logger.debug(f"Ignoring binary message of {len(message)} bytes")
                    continue
                try:
                    data = json.loads(message)
                except json.JSONDecodeError:
                    logger.warning(f"Received invalid JSON: {message[:100]}...")
                    continue
                if isinstance(data, dict):
                    yield data
        except ConnectionClosedOK:
            logger.info("OpenAI connection closed normally")
        except ConnectionClosedError as e:
            raise RealtimeConnectionError(f"OpenAI connection closed unexpectedly: {e}") from e
        finally:
            self._connection_active = False

    async def close(self) -> None:
        """Close the WebSocket connection. Safe to call more than once."""
        if self._is_closing:
            return
        logger.info("Closing OpenAI Realtime client")
        self._is_closing = True
        self._connection_active = False

        if self.ws:
            try:
                await self.ws.close()
            except Exception as e:
                logger.warning(f"Error closing OpenAI WebSocket: {e}")

        logger.info("OpenAI Realtime client closed")
