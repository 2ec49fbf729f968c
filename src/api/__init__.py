"""
REST API for the Dashboard Tabs application.

The FastAPI app is built by create_app(); ``app`` is the module-level
instance served by uvicorn.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
