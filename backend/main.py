"""
Puzzle Trainer Backend - FastAPI Application

Serves puzzle bodies and applies the progress deltas sent by training
sessions. Every response carries "success"; failures also carry "error".
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.config import get_settings
from backend.db.models import Base
from backend.db.session import engine
from backend.deltas import DeltaError
from backend.routes import health, puzzles, sets, users
from trainer.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if not settings.is_production:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables ready on %s", engine.url.render_as_string(hide_password=True))
    yield
    await engine.dispose()


async def delta_error_handler(request: Request, exc: DeltaError) -> JSONResponse:
    logger.warning("Rejected delta for %s: %s", request.url.path, exc)
    return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    where = ".".join(str(part) for part in first.get("loc", ()))
    message = f"{where}: {first.get('msg', 'invalid request')}" if where else "invalid request"
    return JSONResponse(status_code=400, content={"success": False, "error": message})


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)

    app = FastAPI(
        title="Chess Puzzle Trainer API",
        version="1.0.0",
        description="Puzzle sets, puzzle bodies and training counters",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET", "PATCH"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DeltaError, delta_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # ── Routes ──
    app.include_router(health.router, tags=["health"])
    app.include_router(puzzles.router, prefix="/api/puzzles", tags=["puzzles"])
    app.include_router(sets.router, prefix="/api/sets", tags=["sets"])
    app.include_router(users.router, prefix="/api/users", tags=["users"])

    return app


app = create_app()
