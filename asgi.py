"""
asgi.py -- ASGI entry point for confreg.

Run with:  uvicorn asgi:app --reload

api/main.py builds the complete application; this module only re-exports it
so deployment configuration names a stable import path.
"""

from api.main import app

__all__ = ["app"]
