"""API routes for video generation."""

from stillmotion.api import routes, websocket

__all__ = ["routes", "websocket"]
