"""HTTP API for QuipSync."""

from .routes import register_routes

__all__ = ["register_routes"]
