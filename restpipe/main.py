"""
FastAPI application wiring for a RestApi.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Iterable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

if TYPE_CHECKING:
    from restpipe.app import RestApi

logger = logging.getLogger(__name__)


def build_app(api: RestApi, *, cors_origins: Iterable[str] = ()) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI):
        # Open the store (e.g. the DB pool) once per process.
        await api.options.store.startup()
        try:
            yield
        finally:
            await api.options.store.shutdown()

    app = FastAPI(lifespan=lifespan)

    origins = list(cors_origins)
    if origins:
        # Allow a browser frontend on another origin to call the API.
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    if api.options.log_level > 0:

        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            started = time.perf_counter()
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                "%s %s -> %s (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
            )
            return response

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app
