"""Market invariant verification.

INV-1: yes_pool == sum(yes_bet), no_pool == sum(no_bet)
INV-2: winning_outcome is set iff state == RESOLVED
INV-3: a RESOLVED market had both pools > 0
INV-G: custody balance >= total unclaimed liability across all markets
"""

import logging

from src.pm_clearing.domain.payout import unclaimed_liability
from src.pm_common.enums import MarketState, Outcome
from src.pm_market.domain.models import Market, UserPosition

logger = logging.getLogger(__name__)


def verify_market_invariants(market: Market, positions: list[UserPosition]) -> list[str]:
    """Return violation strings for one market (empty list when healthy)."""
    violations: list[str] = []
    yes_sum = sum(p.yes_bet for p in positions)
    no_sum = sum(p.no_bet for p in positions)
    if market.yes_pool != yes_sum or market.no_pool != no_sum:
        violations.append(
            f"INV-1 violated: market={market.id} pools=({market.yes_pool}, {market.no_pool})"
            f" != positions=({yes_sum}, {no_sum})"
        )

    resolved = market.state is MarketState.RESOLVED
    if resolved != (market.winning_outcome is not Outcome.NONE):
        violations.append(
            f"INV-2 violated: market={market.id} state={market.state.value}"
            f" winning_outcome={market.winning_outcome.value}"
        )

    if resolved and (market.yes_pool == 0 or market.no_pool == 0):
        violations.append(f"INV-3 violated: market={market.id} resolved with a one-sided pool")

    for msg in violations:
        logger.error(msg)
    return violations


def verify_custody(
    custody_balance: int, books: list[tuple[Market, list[UserPosition]]]
) -> list[str]:
    """Check INV-G over every market's unclaimed liability."""
    liability = sum(unclaimed_liability(m, ps) for m, ps in books)
    if custody_balance < liability:
        msg = (
            f"INV-G violated: custody_balance({custody_balance})"
            f" < unclaimed_liability({liability})"
        )
        logger.error(msg)
        return [msg]
    logger.debug("Custody OK: balance=%d liability=%d", custody_balance, liability)
    return []
