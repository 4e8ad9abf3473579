"""HTTP API for TaskHub."""

from taskhub.api.routes import router

__all__ = ["router"]
