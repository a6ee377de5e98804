"""
WebSocket connection manager for the telephony media-stream endpoint.

This module accepts the telephony provider's media-stream WebSocket, tunes the
underlying socket for low latency and hands the connection to the dispatch
bridge, which owns it until the call ends.
"""

import logging
import socket
from typing import Optional

from fastapi import WebSocket

from voice_dispatch.bot.dispatch_bridge import DispatchBridge, bridge
from voice_dispatch.config.constants import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)


class WebSocketManager:
    """Accepts telephony WebSocket connections and runs one bridged session per connection."""

    def __init__(self, dispatch_bridge: Optional[DispatchBridge] = None):
        self.bridge = dispatch_bridge or bridge

    @property
    def active_sessions(self) -> int:
        return self.bridge.sessions.count()

    async def _optimize_socket(self, websocket: WebSocket) -> None:
        """
        Optimize the WebSocket's underlying TCP socket for low-latency transmission.

        Args:
            websocket: The FastAPI WebSocket connection
        """
        try:
            client = websocket.client
            if hasattr(client, "sock") and client.sock is not None:
                # Disable Nagle's algorithm to send packets immediately
                client.sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                logger.info("Optimized socket: TCP_NODELAY enabled for low latency")
        except Exception as e:
            logger.warning(f"Could not optimize socket: {e}")

    async def handle_websocket(self, websocket: WebSocket) -> None:
        """Handle a telephony WebSocket connection throughout its lifecycle.

        Args:
            websocket (WebSocket): The FastAPI WebSocket connection object

        The connection remains active until the telephony leg sends ``stop``,
        either leg disconnects, or the session goes idle.
        """
        await websocket.accept()
        await self._optimize_socket(websocket)
        logger.info("Telephony WebSocket connection established")

        try:
            session = await self.bridge.run_session(websocket)
            logger.info(
                f"Call {session.label} finished with status {session.status.value}"
            )
        except Exception as e:
            logger.error(f"Error in telephony WebSocket connection: {e}", exc_info=True)
