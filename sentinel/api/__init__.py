"""FastAPI application."""

from sentinel.api.app import create_app

__all__ = ["create_app"]
