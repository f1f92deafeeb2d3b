"""Global enums: values must match DB CHECK constraints exactly."""

from enum import Enum


class MarketState(str, Enum):
    ACTIVE = "ACTIVE"
    RESOLVED = "RESOLVED"
    CANCELLED = "CANCELLED"

    @property
    def is_finalized(self) -> bool:
        return self is not MarketState.ACTIVE


class Outcome(str, Enum):
    """Winning-outcome selector. NONE only appears on unresolved markets."""
    NONE = "NONE"
    YES = "YES"
    NO = "NO"


class MarketEventType(str, Enum):
    """Audit trail entries written alongside every mutation."""
    MARKET_CREATED = "MARKET_CREATED"
    BET_PLACED = "BET_PLACED"
    MARKET_RESOLVED = "MARKET_RESOLVED"
    MARKET_CANCELLED = "MARKET_CANCELLED"
    WINNINGS_CLAIMED = "WINNINGS_CLAIMED"
    CONFIG_UPDATED = "CONFIG_UPDATED"
    REGISTRY_PAUSED = "REGISTRY_PAUSED"
    REGISTRY_UNPAUSED = "REGISTRY_UNPAUSED"
