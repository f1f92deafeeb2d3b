# src/pm_admin/api/router.py
"""Admin REST API. The caller must be GlobalConfig.admin (checked in the domain)."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_admin.application.schemas import ResolveRequest, UpdateConfigRequest
from src.pm_admin.application.service import AdminService
from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_identity

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


@router.post("/markets/{market_id}/resolve")
async def resolve_market(
    market_id: int,
    body: ResolveRequest,
    caller: Annotated[str, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.resolve_market(db, caller, market_id, body.outcome)
    return success_response(result.model_dump(mode="json"), request)


@router.post("/markets/{market_id}/cancel")
async def cancel_market(
    market_id: int,
    caller: Annotated[str, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.cancel_market(db, caller, market_id)
    return success_response(result.model_dump(mode="json"), request)


@router.put("/config")
async def update_config(
    body: UpdateConfigRequest,
    caller: Annotated[str, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.update_config(db, caller, body.fee_recipient, body.max_fee_bps)
    return success_response(result.model_dump(), request)


@router.post("/pause")
async def pause(
    caller: Annotated[str, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.pause(db, caller)
    return success_response(result.model_dump(), request)


@router.post("/unpause")
async def unpause(
    caller: Annotated[str, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.unpause(db, caller)
    return success_response(result.model_dump(), request)


@router.get("/invariants")
async def verify_invariants(
    caller: Annotated[str, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.verify_all_invariants(db, caller)
    return success_response(result.model_dump(), request)
