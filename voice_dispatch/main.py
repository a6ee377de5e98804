"""
FastAPI server for the voice dispatch bridge.

This module initializes and configures the FastAPI application that receives the
telephony provider's bidirectional media stream. Each WebSocket connection is one
phone call, bridged to an OpenAI Realtime session for its whole lifetime.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket

from voice_dispatch.config import settings
from voice_dispatch.config.logging_config import configure_logging
from voice_dispatch.websocket_manager import WebSocketManager

# Configure logging
logger = configure_logging()

# Create WebSocket manager
websocket_manager = WebSocketManager()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await websocket_manager.bridge.store.close()
    logger.info("Call store closed")


# Create FastAPI application
app = FastAPI(
    title="Voice Dispatch Bridge",
    description="Bridges telephony media streams to the OpenAI Realtime API",
    version="1.0.0",
    lifespan=lifespan,
)


@app.websocket("/media-stream")
async def media_stream_endpoint(websocket: WebSocket):
    """WebSocket endpoint for the telephony provider's media stream.

    The provider sends ``start``, ``media`` and ``stop`` events; synthesized
    audio is returned on the same connection as ``media`` events.
    """
    await websocket_manager.handle_websocket(websocket)


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring system status.

    Returns:
        dict: Status information, including the number of calls in progress.
    """
    return {
        "status": "healthy",
        "openai_api_key_configured": bool(settings.OPENAI_API_KEY),
        "active_sessions": websocket_manager.active_sessions,
    }


@app.get("/")
async def root():
    """Root endpoint to display basic information about the API."""
    return {
        "name": "Voice Dispatch Bridge",
        "description": "Bridges telephony media streams to the OpenAI Realtime API",
        "version": "1.0.0",
        "endpoints": {
            "/media-stream": "WebSocket endpoint for the telephony media stream",
            "/health": "Health check endpoint",
        },
    }


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting server on http://{settings.HOST}:{settings.PORT}")
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        websocket_ping_interval=5,
        websocket_max_size=16777216,  # 16MB - large enough for audio chunks
        websocket_ping_timeout=20,
        http="h11"
    )
