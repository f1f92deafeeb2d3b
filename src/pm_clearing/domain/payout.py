"""Pot payout arithmetic: integer only, no float, no Decimal.

Resolved market, winning-side stake w:
    payout = w + w * losing_pool // winning_pool

The floor division leaves at most one unit of dust per winning position in
custody. Cancelled markets refund yes_bet + no_bet exactly.
"""

from src.pm_common.enums import MarketState
from src.pm_market.domain.models import Market, UserPosition


def proportional_share(stake: int, winning_pool: int, losing_pool: int) -> int:
    """Principal plus the stake's pro-rata cut of the losing pool."""
    if stake == 0:
        return 0
    return stake + stake * losing_pool // winning_pool


def compute_payout(market: Market, position: UserPosition) -> int:
    """Amount owed to `position` on a finalized market, ignoring `claimed`.

    ACTIVE markets owe nothing yet.
    """
    if market.state is MarketState.CANCELLED:
        return position.total_stake
    if market.state is MarketState.RESOLVED:
        winning_pool, losing_pool = market.pools_for(market.winning_outcome)
        stake = position.stake_on(market.winning_outcome)
        return proportional_share(stake, winning_pool, losing_pool)
    return 0


def unclaimed_liability(market: Market, positions: list[UserPosition]) -> int:
    """Total still owed to unclaimed positions of one market."""
    if not market.state.is_finalized:
        return market.total_pool
    return sum(compute_payout(market, p) for p in positions if not p.claimed)
