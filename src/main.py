"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.pm_admin.api.router import router as admin_router
from src.pm_asset.api.router import router as asset_router
from src.pm_clearing.api.router import router as settlement_router
from src.pm_common.database import async_session_factory, engine
from src.pm_common.errors import AppError
from src.pm_common.logging_config import configure_logging
from src.pm_common.redis_client import close_redis, get_redis
from src.pm_common.response import error_response
from src.pm_gateway.api.router import router as auth_router
from src.pm_gateway.middleware.rate_limit import RateLimitMiddleware
from src.pm_gateway.middleware.request_log import RequestLogMiddleware
from src.pm_market.api.router import router as market_router
from src.pm_market.domain.models import GlobalConfig
from src.pm_market.infrastructure.persistence import SqlMarketStore

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


async def seed_registry_config() -> None:
    """Create the registry_config row from settings if it does not exist."""
    async with async_session_factory() as session:
        store = SqlMarketStore(session)
        async with store.transaction():
            await store.seed_config(
                GlobalConfig(
                    admin=settings.ADMIN_ID,
                    fee_recipient=settings.FEE_RECIPIENT_ID,
                    max_fee_bps=settings.MAX_FEE_BPS,
                )
            )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, seed config. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await seed_registry_config()
    await get_redis()
    logger.info("%s started (custody=%s)", settings.APP_NAME, settings.CUSTODY_ID)
    yield
    # Shutdown
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(auth_router, prefix="/api/v1")
app.include_router(market_router, prefix="/api/v1")
app.include_router(settlement_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(asset_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
