#!/usr/bin/env python3
"""Startup script for the Menteur backend"""

import logging
import os

import uvicorn

logger = logging.getLogger("menteur_engine.start")


def main():
    port = int(os.getenv("PORT", 8000))
    host = os.getenv("HOST", "0.0.0.0")
    log_level = os.getenv("LOG_LEVEL", "info").lower()
    variant = os.getenv("MENTEUR_VARIANT", "menteur")

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"Starting Menteur backend ({variant}) on {host}:{port}, websocket at /ws, health at /health")

    uvicorn.run(
        "menteur_engine.main:app",
        host=host,
        port=port,
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level=log_level
    )


if __name__ == "__main__":
    main()
