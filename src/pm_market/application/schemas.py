"""Pydantic schemas for pm_market API requests and responses.

Amounts are integer asset units. Timestamps are ISO-8601; naive values are
treated as UTC by the registry.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.pm_market.domain.models import MAX_AMOUNT, GlobalConfig, Market

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateMarketRequest(BaseModel):
    question: str
    resolution_ts: datetime
    fee_amount: int = Field(0, le=MAX_AMOUNT)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ConfigSnapshotOut(BaseModel):
    fee_recipient: str
    max_fee_bps: int


class MarketDetail(BaseModel):
    id: int
    question: str
    resolution_ts: datetime
    state: str
    winning_outcome: str
    yes_pool: int
    no_pool: int
    total_pool: int
    creation_fee: int
    creator: str
    created_at: datetime
    finalized_at: datetime | None
    config_snapshot: ConfigSnapshotOut

    @classmethod
    def from_domain(cls, m: Market) -> "MarketDetail":
        return cls(
            id=m.id,
            question=m.question,
            resolution_ts=m.resolution_ts,
            state=m.state.value,
            winning_outcome=m.winning_outcome.value,
            yes_pool=m.yes_pool,
            no_pool=m.no_pool,
            total_pool=m.total_pool,
            creation_fee=m.creation_fee,
            creator=m.creator,
            created_at=m.created_at,
            finalized_at=m.finalized_at,
            config_snapshot=ConfigSnapshotOut(
                fee_recipient=m.config_snapshot.fee_recipient,
                max_fee_bps=m.config_snapshot.max_fee_bps,
            ),
        )


class MarketListResponse(BaseModel):
    items: list[MarketDetail]
    offset: int
    limit: int
    has_more: bool


class CreateMarketResponse(BaseModel):
    market_id: int


class MarketCountResponse(BaseModel):
    count: int


class ConfigResponse(BaseModel):
    admin: str
    fee_recipient: str
    max_fee_bps: int
    paused: bool

    @classmethod
    def from_domain(cls, c: GlobalConfig) -> "ConfigResponse":
        return cls(
            admin=c.admin,
            fee_recipient=c.fee_recipient,
            max_fee_bps=c.max_fee_bps,
            paused=c.paused,
        )

