"""FastAPI application factory for PMP-Engine."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pmp_engine.common.config import get_settings
from pmp_engine.common.exceptions import ConfigurationError, PMPError
from pmp_engine.common.logging import setup_logging
from pmp_engine.common.schemas import ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)


async def handle_pmp_error(request: Request, exc: PMPError) -> JSONResponse:
    message = exc.message
    if isinstance(exc, ConfigurationError):
        logger.error("Configuration error on %s: %s", request.url.path, exc.message)
        message = exc.public_message
    elif exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=message, code=exc.code).model_dump(),
    )


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from pmp_engine.deps import get_db
        db = get_db()
        await db.init()
        await db.create_all()
        yield
        # Shutdown
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_exception_handler(PMPError, handle_pmp_error)

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from pmp_engine.confessions.router import router as confessions_router
    from pmp_engine.tickets.router import router as tickets_router
    from pmp_engine.lottery.router import router as lottery_router

    prefix = settings.api_prefix
    app.include_router(confessions_router, prefix=prefix, tags=["confessions"])
    app.include_router(tickets_router, prefix=prefix, tags=["tickets"])
    app.include_router(lottery_router, prefix=prefix, tags=["lottery"])

    return app
