"""FastAPI application wiring the chat service to HTTP routes."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from pdfchat import __version__
from pdfchat.api import router as sessions_router
from pdfchat.logging_config import configure_logging
from pdfchat.service import PDFChatService
from pdfchat.settings import Settings, get_settings
from pdfchat.telemetry import log_event

LOGGER = logging.getLogger(__name__)


def create_app(service: Optional[PDFChatService] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the application; a prepared *service* replaces the configured one."""

    settings = settings or get_settings()
    app = FastAPI(title="PDF Chat API", version=__version__)
    app.state.settings = settings
    app.state.chat_service = service or PDFChatService.from_settings(settings)
    app.include_router(sessions_router)

    @app.on_event("startup")
    async def _startup() -> None:
        configure_logging(settings.log_level, settings.log_dir)
        service: PDFChatService = app.state.chat_service
        service.start()
        preload = getattr(service.synthesizer.llm, "preload", None)
        if settings.llm_preload and callable(preload):
            LOGGER.info("Preloading language model on startup")
            await asyncio.to_thread(preload)
        log_event(
            LOGGER,
            "app.startup",
            version=__version__,
            embedding_provider=settings.embedding_provider,
            llm_provider=settings.llm_provider,
            session_ttl_seconds=settings.session_idle_ttl_seconds,
        )

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await app.state.chat_service.stop()
        log_event(LOGGER, "app.shutdown")

    @app.get("/healthz", response_class=PlainTextResponse)
    def healthcheck() -> str:
        """Liveness check used by container orchestrators."""
        return "ok"

    return app


app = create_app()
