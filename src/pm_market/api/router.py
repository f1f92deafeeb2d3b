"""pm_market REST API: market creation and registry reads.

Reads are public; creating a market requires a bearer token.
Static paths (/count, /config) are declared before /{market_id}.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_identity
from src.pm_market.application.schemas import CreateMarketRequest
from src.pm_market.application.service import MarketApplicationService

router = APIRouter(prefix="/markets", tags=["markets"])

_service = MarketApplicationService()


@router.post("")
async def create_market(
    body: CreateMarketRequest,
    caller: Annotated[str, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_market(db, caller, body)
    return success_response(data.model_dump(), request)


@router.get("")
async def list_markets(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    state: str | None = Query(None, description="ACTIVE / RESOLVED / CANCELLED / ALL"),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_markets(db, state, offset, limit)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/count")
async def get_market_count(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_market_count(db)
    return success_response(data.model_dump(), request)


@router.get("/config")
async def get_config(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_config(db)
    return success_response(data.model_dump(), request)


@router.get("/{market_id}")
async def get_market(
    market_id: int,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_market(db, market_id)
    return success_response(data.model_dump(mode="json"), request)
