"""
Run script for starting the Voice Dispatch Bridge server.

This script configures and starts the FastAPI server with WebSocket settings
suited to real-time audio streaming between the telephony provider and OpenAI.

Usage:
    python run.py [--port PORT] [--host HOST] [--log-level LEVEL]
"""

import argparse
import os
import sys

import uvicorn

from voice_dispatch.config import settings
from voice_dispatch.config.logging_config import configure_logging


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Start the Voice Dispatch Bridge server"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help="Port to run the server on (default: 8000 or PORT env var)",
    )
    parser.add_argument(
        "--host",
        default=settings.HOST,
        help="Host to bind the server to (default: 0.0.0.0 or HOST env var)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO or LOG_LEVEL env var)",
    )
    return parser.parse_args(argv)


def main():
    """Main entry point for starting the server."""
    args = parse_args()
    logger = configure_logging(args.log_level)

    if not settings.OPENAI_API_KEY:
        logger.error("OPENAI_API_KEY environment variable not set")
        sys.exit(1)
    if not settings.SUPABASE_URL:
        logger.warning("SUPABASE_URL not set; call state will only be kept in memory")

    logger.info(f"Starting server on http://{args.host}:{args.port}")
    logger.info(f"Session idle timeout: {settings.SESSION_IDLE_TIMEOUT}s")

    uvicorn.run(
        "voice_dispatch.main:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
        # Use HTTP/1.1 for lower overhead than HTTP/2
        http="h11",
        # Our own logging covers requests
        access_log=False,
        websocket_ping_interval=5,
        websocket_ping_timeout=20,
        reload=os.getenv("ENV", "production").lower() == "development",
    )


if __name__ == "__main__":
    main()
