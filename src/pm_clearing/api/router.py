"""Betting and claim REST API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_clearing.application.service import SettlementApplicationService
from src.pm_clearing.application.settlement_schemas import ClaimBatchRequest, PlaceBetRequest
from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_identity

router = APIRouter(tags=["settlement"])

_service = SettlementApplicationService()


@router.post("/markets/{market_id}/bets")
async def place_bet(
    market_id: int,
    body: PlaceBetRequest,
    caller: Annotated[str, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.place_bet(db, caller, market_id, body)
    return success_response(data.model_dump(), request)


@router.post("/markets/{market_id}/claim")
async def claim_winnings(
    market_id: int,
    caller: Annotated[str, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.claim_winnings(db, caller, market_id)
    return success_response(data.model_dump(), request)


@router.post("/claims/batch")
async def claim_multiple(
    body: ClaimBatchRequest,
    caller: Annotated[str, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.claim_multiple(db, caller, body)
    return success_response(data.model_dump(), request)


@router.get("/markets/{market_id}/positions/{user}")
async def get_user_position(
    market_id: int,
    user: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_user_position(db, market_id, user)
    return success_response(data.model_dump(), request)


@router.get("/markets/{market_id}/payout/{user}")
async def calculate_payout(
    market_id: int,
    user: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.calculate_payout(db, market_id, user)
    return success_response(data.model_dump(), request)
