import logging

from fastapi import FastAPI

from app.db.session import dispose_engine

logger = logging.getLogger(__name__)


def register_event_handlers(app: FastAPI) -> None:
    @app.on_event("startup")
    async def on_startup() -> None:
        logger.info("Application startup")

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        logger.info("Application shutdown; draining %d notification job(s)", app.state.dispatcher.pending)
        await app.state.dispatcher.drain(timeout=30)
        await dispose_engine()
