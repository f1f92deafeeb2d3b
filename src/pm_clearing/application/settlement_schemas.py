"""Pydantic schemas for betting and claim endpoints."""

from pydantic import BaseModel, Field, field_validator

from src.pm_clearing.domain.models import ClaimBatchResult
from src.pm_market.domain.models import MAX_AMOUNT, UserPosition

# One batch holds the mutation lock for its whole run
MAX_CLAIM_BATCH = 100


class PlaceBetRequest(BaseModel):
    outcome: str
    amount: int = Field(..., le=MAX_AMOUNT)

    @field_validator("outcome")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.strip().upper()


class ClaimBatchRequest(BaseModel):
    market_ids: list[int] = Field(..., max_length=MAX_CLAIM_BATCH)


class PositionResponse(BaseModel):
    market_id: int
    user: str
    yes_bet: int
    no_bet: int
    claimed: bool
    payout: int

    @classmethod
    def from_domain(cls, p: UserPosition) -> "PositionResponse":
        return cls(
            market_id=p.market_id,
            user=p.user,
            yes_bet=p.yes_bet,
            no_bet=p.no_bet,
            claimed=p.claimed,
            payout=p.payout,
        )


class ClaimResponse(BaseModel):
    market_id: int
    user: str
    payout: int


class PayoutResponse(BaseModel):
    market_id: int
    user: str
    payout: int


class ClaimBatchResponse(BaseModel):
    payouts: dict[int, int]
    skipped: list[int]
    total: int

    @classmethod
    def from_result(cls, r: ClaimBatchResult) -> "ClaimBatchResponse":
        return cls(payouts=dict(r.payouts), skipped=list(r.skipped), total=r.total)
