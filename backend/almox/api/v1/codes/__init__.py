"""Codes API package."""

from almox.api.v1.codes.routes import router

__all__ = ["router"]
