"""
asgi.py -- ASGI entry point for authgate.

Servers import `app` from here so the import path stays stable even if the
application module moves.

Run with:  uvicorn asgi:app --reload
           python main.py
"""

from api.main import app

__all__ = ["app"]
