#!/usr/bin/env python3
"""
authgate -- minimal authentication gateway.

Usage:
  python main.py
  authgate

Environment variables:
  SESSION_SECRET  Required outside DEBUG mode. Signs the session cookie (min 32 chars).
  PORT            Listen port (default 3333).
  HOST            Bind address (default 127.0.0.1).
  DEBUG           true to auto-generate a throwaway SESSION_SECRET for local dev.

The process listens until interrupted.
"""

import logging

import uvicorn

from api.main import app
from core.config import get_settings

logger = logging.getLogger("authgate")


def main() -> None:
    settings = get_settings()
    logger.info("authgate listening at http://%s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
