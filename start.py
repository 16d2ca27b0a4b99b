#!/usr/bin/env python3
"""
Production entrypoint: upgrade the schema to head, then serve the API.
"""
import os

import uvicorn
from alembic import command
from alembic.config import Config

from core.logging import logger

ALEMBIC_INI = os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini")


def run_migrations() -> bool:
    """alembic upgrade head; returns False instead of raising so the server can still start"""
    logger.info("Running database migrations...")
    try:
        command.upgrade(Config(ALEMBIC_INI), "head")
    except Exception as e:
        logger.error(f"Migrations failed: {e}", exc_info=True)
        return False
    logger.info("Migrations completed")
    return True


def start_server():
    port = int(os.getenv("PORT", "10000"))
    logger.info(f"Starting Squares Pool API on port {port}")
    uvicorn.run("main:app", host="0.0.0.0", port=port)


if __name__ == "__main__":
    if not run_migrations():
        logger.warning("Starting server with an unmigrated schema")
    start_server()
