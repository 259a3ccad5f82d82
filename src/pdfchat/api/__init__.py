"""HTTP routers exposed by the PDF chat service."""

from .sessions import get_chat_service, router

__all__ = ["get_chat_service", "router"]
