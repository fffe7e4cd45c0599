"""Private management API routes."""

from payid_server.api.private.users import router as users_router

__all__ = ["users_router"]
