"""HTTP API."""

from idphoto.api.router import router

__all__ = ["router"]
