#!/usr/bin/env python
"""Entry point for running the OAuth consumer registry."""

from structlog import get_logger
from waitress import serve

from src import config
from src.server import app

logger = get_logger(__name__)

if __name__ == "__main__":
    logger.info("server_starting", url=f"http://{config.HOST}:{config.PORT}")
    serve(app, host=config.HOST, port=config.PORT)
