"""API interface for Nexus.

This module exports the FastAPI router and app factory.
"""

from nexus.interfaces.api.routes import create_app, router

__all__ = ["router", "create_app"]
