"""Cluster Notes HTTP application.

Run with ``uvicorn main:create_app --factory``.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cluster_notes.config import load_settings
from cluster_notes.interface.api.routes import router
from cluster_notes.logging_setup import setup_logging
from cluster_notes.session import EditorSession
from cluster_notes.vault import NoteStore


def create_app() -> FastAPI:
    settings = load_settings()
    setup_logging(settings.log_level)
    logger = logging.getLogger("cluster_notes.api")

    store = NoteStore.load(settings.notes_dir)
    session = EditorSession(store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        with app.state.lock:
            store.close()

    app = FastAPI(title="Cluster Notes API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.session = session
    app.state.lock = threading.Lock()

    @app.middleware("http")
    async def request_id_and_logging(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            dt_ms = (time.perf_counter() - start) * 1000.0
            logger.exception("request_error", extra={"rid": request_id, "path": request.url.path, "ms": dt_ms})
            return JSONResponse(
                status_code=500,
                content={"detail": "internal_error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )

        dt_ms = (time.perf_counter() - start) * 1000.0
        extra = {
            "rid": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "ms": dt_ms,
        }
        if settings.api_debug_log:
            extra["query"] = request.url.query
        logger.info("request", extra=extra)
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(router)
    return app
