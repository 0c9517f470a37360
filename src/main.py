"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from config.settings import settings
from src.bm_bidding.api.admin_router import router as arbitration_router
from src.bm_bidding.api.router import router as bids_router
from src.bm_bidding.application.service import get_arbitration_engine
from src.bm_bidding.engine.sweeper import auction_sweeper
from src.bm_common.database import async_session_factory, engine
from src.bm_common.errors import AppError, InternalError
from src.bm_common.redis_client import close_redis, ping_redis
from src.bm_common.response import error_response
from src.bm_gateway.api.router import router as auth_router
from src.bm_gateway.middleware.request_log import RequestLogMiddleware
from src.bm_listing.api.router import router as listing_router
from src.bm_payment.api.router import router as payment_router
from src.bm_verification.api.router import router as verification_router
from src.bm_wishlist.api.router import router as wishlist_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, start the auction sweeper. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await ping_redis()

    sweeper: asyncio.Task[None] | None = None
    if settings.AUCTION_SWEEP_INTERVAL_SECONDS > 0:
        sweeper = asyncio.create_task(
            auction_sweeper(
                async_session_factory,
                get_arbitration_engine(),
                settings.AUCTION_SWEEP_INTERVAL_SECONDS,
            )
        )
    yield
    # Shutdown
    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


def _error_json(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(status_code=exc.http_status, content=resp.model_dump())


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _error_json(request, exc)


@app.exception_handler(SQLAlchemyError)
async def db_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error_json(request, InternalError())


app.include_router(auth_router, prefix="/api/v1")
app.include_router(listing_router, prefix="/api/v1")
app.include_router(bids_router, prefix="/api/v1")
app.include_router(arbitration_router, prefix="/api/v1")
app.include_router(verification_router, prefix="/api/v1")
app.include_router(wishlist_router, prefix="/api/v1")
app.include_router(payment_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
