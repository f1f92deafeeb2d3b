"""Auth API router: dev token issuance.

Identities are managed outside this service; in DEBUG mode this endpoint
mints a bearer token for any identity so the API can be exercised locally.
"""

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel

from config.settings import settings
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.jwt_handler import create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])


class DevTokenRequest(BaseModel):
    identity: str


class DevTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


@router.post("/dev-token", response_model=ApiResponse, summary="Issue a dev bearer token")
async def dev_token(request: Request, body: DevTokenRequest) -> ApiResponse:
    if not settings.DEBUG:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    data = DevTokenResponse(
        access_token=create_access_token(body.identity),
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )
    return success_response(data.model_dump(), request)
