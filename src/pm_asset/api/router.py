"""Asset ledger REST API: balance read plus dev funding helpers."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_asset.application.schemas import ApproveRequest, DepositRequest
from src.pm_asset.application.service import AssetApplicationService
from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_current_identity

router = APIRouter(prefix="/assets", tags=["assets"])

_service = AssetApplicationService()


@router.get("/balance")
async def get_balance(
    caller: Annotated[str, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, caller)
    return success_response(data.model_dump(), request)


@router.post("/deposit")
async def deposit(
    body: DepositRequest,
    caller: Annotated[str, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    # Minting funds is a local-development convenience only
    if not settings.DEBUG:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    data = await _service.deposit(db, caller, body.amount)
    return success_response(data.model_dump(), request)


@router.post("/approve")
async def approve(
    body: ApproveRequest,
    caller: Annotated[str, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.approve(db, caller, body.amount)
    return success_response(data.model_dump(), request)
