"""Marketplace HTTP API package."""

from marketplace.api.errors import register_error_handlers
from marketplace.api.routes import router

__all__ = ["router", "register_error_handlers"]
