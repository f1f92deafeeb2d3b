"""Domain models for pm_market: pure dataclasses, no persistence dependency."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from src.pm_common.enums import MarketEventType, MarketState, Outcome

# Absolute ceiling for any configured fee cap (10%)
FEE_CAP_LIMIT_BPS = 1000

# Largest amount, pool or balance a BIGINT column holds
MAX_AMOUNT = 2**63 - 1


@dataclass(frozen=True)
class ConfigSnapshot:
    """Copy of the fee settings a market was created under. Never mutated."""

    fee_recipient: str
    max_fee_bps: int


@dataclass(frozen=True)
class GlobalConfig:
    admin: str
    fee_recipient: str
    max_fee_bps: int
    paused: bool = False

    def snapshot(self) -> ConfigSnapshot:
        return ConfigSnapshot(fee_recipient=self.fee_recipient, max_fee_bps=self.max_fee_bps)

    def with_fees(self, fee_recipient: str, max_fee_bps: int) -> "GlobalConfig":
        return replace(self, fee_recipient=fee_recipient, max_fee_bps=max_fee_bps)

    def with_paused(self, paused: bool) -> "GlobalConfig":
        return replace(self, paused=paused)


@dataclass
class Market:
    id: int
    question: str
    resolution_ts: datetime
    creator: str
    created_at: datetime
    config_snapshot: ConfigSnapshot
    creation_fee: int = 0
    state: MarketState = MarketState.ACTIVE
    winning_outcome: Outcome = Outcome.NONE
    yes_pool: int = 0
    no_pool: int = 0
    finalized_at: datetime | None = None

    @property
    def total_pool(self) -> int:
        return self.yes_pool + self.no_pool

    def pools_for(self, outcome: Outcome) -> tuple[int, int]:
        """Return (winning_pool, losing_pool) assuming `outcome` won."""
        if outcome is Outcome.YES:
            return self.yes_pool, self.no_pool
        return self.no_pool, self.yes_pool


@dataclass
class UserPosition:
    market_id: int
    user: str
    yes_bet: int = 0
    no_bet: int = 0
    claimed: bool = False
    payout: int = 0   # amount paid at claim time, 0 until claimed

    @property
    def total_stake(self) -> int:
        return self.yes_bet + self.no_bet

    def stake_on(self, outcome: Outcome) -> int:
        if outcome is Outcome.YES:
            return self.yes_bet
        if outcome is Outcome.NO:
            return self.no_bet
        return 0


@dataclass
class MarketEvent:
    event_type: MarketEventType
    actor: str
    market_id: int | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
