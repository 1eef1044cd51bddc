"""
asgi.py -- ASGI entry point for the SmartBee API.

Run with:  uvicorn asgi:app --reload
           uvicorn asgi:app --host 0.0.0.0 --port 8080
"""

from api.main import app

__all__ = ["app"]
