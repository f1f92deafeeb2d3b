"""Asset ledger request/response schemas."""

from pydantic import BaseModel, Field

from src.pm_market.domain.models import MAX_AMOUNT


class DepositRequest(BaseModel):
    amount: int = Field(..., gt=0, le=MAX_AMOUNT, description="Units to credit")


class ApproveRequest(BaseModel):
    amount: int = Field(
        ..., ge=0, le=MAX_AMOUNT, description="Allowance for custody, replaces the old one"
    )


class AssetBalanceResponse(BaseModel):
    owner: str
    balance: int
    allowance: int
