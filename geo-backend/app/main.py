from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.cache import build_cache_from_env
from app.config import Settings
from app.context import GeoSession
from app.logging_setup import configure_logging, logging_middleware
from app.routes import router as geo_router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, session: Optional[GeoSession] = None) -> FastAPI:
    configure_logging()
    session = session or GeoSession(settings or Settings.from_env())
    session.open()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # no-op on first startup; reopens after a previous shutdown
        session.open()
        app.state.cache = await build_cache_from_env()
        try:
            yield
        finally:
            await app.state.cache.close()
            session.close()

    app = FastAPI(title="asphalte-geo", lifespan=lifespan)
    app.state.session = session
    app.middleware("http")(logging_middleware)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})

    @app.get("/health")
    def health():
        return {"status": "ok", "projections": len(session.catalog) if session.is_open else 0}

    app.include_router(geo_router)
    return app


app = create_app()
