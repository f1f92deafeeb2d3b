"""SettlementEngine: per-market state machine, positions and claims.

    ACTIVE --resolve (admin, deadline reached, both pools > 0)--> RESOLVED
    ACTIVE --cancel  (admin, deadline reached)------------------> CANCELLED

Terminal states never change. Funds only move on place_bet (into custody)
and on claims (out of custody); resolution and cancellation are pure state
changes, payouts are computed lazily at claim time.

Every mutation holds the shared ReentrancyGuard and runs in one store
transaction. State is written before any asset transfer, so a transfer that
fails (or re-enters) rolls the whole operation back.
"""

import logging

from src.pm_asset.domain.funding import pay_out, pull_funds
from src.pm_asset.domain.repository import AssetTransferProtocol
from src.pm_clearing.domain.models import ClaimBatchResult
from src.pm_clearing.domain.payout import compute_payout
from src.pm_common.datetime_utils import Clock, utc_now
from src.pm_common.enums import MarketEventType, MarketState, Outcome
from src.pm_common.errors import (
    AlreadyClaimedError,
    BettingClosedError,
    DeadlineNotReachedError,
    InvalidAmountError,
    InvalidOutcomeError,
    MarketFinalizedError,
    MarketNotFinalizedError,
    MarketNotFoundError,
    NoOppositionError,
    NoStakeError,
    RegistryPausedError,
)
from src.pm_common.reentrancy import ReentrancyGuard
from src.pm_market.domain.models import MAX_AMOUNT, Market, MarketEvent, UserPosition
from src.pm_market.domain.registry import require_admin
from src.pm_market.domain.repository import MarketStoreProtocol

logger = logging.getLogger(__name__)


def parse_outcome(outcome: Outcome | str) -> Outcome:
    """Accept YES/NO (enum or string); NONE and anything else is invalid."""
    try:
        parsed = Outcome(outcome)
    except ValueError:
        raise InvalidOutcomeError(outcome) from None
    if parsed is Outcome.NONE:
        raise InvalidOutcomeError(outcome)
    return parsed


class SettlementEngine:
    def __init__(
        self,
        store: MarketStoreProtocol,
        assets: AssetTransferProtocol,
        guard: ReentrancyGuard | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._assets = assets
        self._guard = guard or ReentrancyGuard()
        self._clock = clock

    # ------------------------------------------------------------------
    # Betting
    # ------------------------------------------------------------------

    async def place_bet(
        self, caller: str, market_id: int, outcome: Outcome | str, amount: int
    ) -> UserPosition:
        side = parse_outcome(outcome)
        if not (0 < amount <= MAX_AMOUNT):
            raise InvalidAmountError(amount)

        with self._guard:
            async with self._store.transaction():
                config = await self._store.get_config()
                if config.paused:
                    raise RegistryPausedError()
                market = await self._load_market(market_id, for_update=True)
                if market.state is not MarketState.ACTIVE:
                    raise MarketFinalizedError(market_id, market.state.value)
                if self._clock() >= market.resolution_ts:
                    raise BettingClosedError(market_id)
                if market.yes_pool + market.no_pool + amount > MAX_AMOUNT:
                    raise InvalidAmountError(amount)

                position = await self._store.get_position(
                    market_id, caller, for_update=True
                ) or UserPosition(market_id=market_id, user=caller)
                if side is Outcome.YES:
                    market.yes_pool += amount
                    position.yes_bet += amount
                else:
                    market.no_pool += amount
                    position.no_bet += amount

                await self._store.update_market(market)
                await self._store.save_position(position)
                await self._store.record_event(
                    MarketEvent(
                        event_type=MarketEventType.BET_PLACED,
                        actor=caller,
                        market_id=market_id,
                        payload={"outcome": side.value, "amount": amount},
                    )
                )
                await pull_funds(self._assets, caller, self._assets.custody, amount)

        logger.info(
            "Bet placed: market=%d user=%s side=%s amount=%d pools=(%d, %d)",
            market_id, caller, side.value, amount, market.yes_pool, market.no_pool,
        )
        return position

    # ------------------------------------------------------------------
    # Finalization (admin)
    # ------------------------------------------------------------------

    async def resolve_market(
        self, caller: str, market_id: int, outcome: Outcome | str
    ) -> Market:
        with self._guard:
            async with self._store.transaction():
                require_admin(await self._store.get_config(), caller)
                winner = parse_outcome(outcome)
                market = await self._load_finalizable(market_id)
                if market.yes_pool == 0 or market.no_pool == 0:
                    raise NoOppositionError(market_id)

                market.state = MarketState.RESOLVED
                market.winning_outcome = winner
                market.finalized_at = self._clock()
                await self._store.update_market(market)
                await self._store.record_event(
                    MarketEvent(
                        event_type=MarketEventType.MARKET_RESOLVED,
                        actor=caller,
                        market_id=market_id,
                        payload={"outcome": winner.value},
                    )
                )

        logger.info(
            "Market resolved: id=%d outcome=%s pools=(%d, %d)",
            market_id, winner.value, market.yes_pool, market.no_pool,
        )
        return market

    async def cancel_market(self, caller: str, market_id: int) -> Market:
        with self._guard:
            async with self._store.transaction():
                require_admin(await self._store.get_config(), caller)
                market = await self._load_finalizable(market_id)

                market.state = MarketState.CANCELLED
                market.finalized_at = self._clock()
                await self._store.update_market(market)
                await self._store.record_event(
                    MarketEvent(
                        event_type=MarketEventType.MARKET_CANCELLED,
                        actor=caller,
                        market_id=market_id,
                    )
                )

        logger.info("Market cancelled: id=%d refundable=%d", market_id, market.total_pool)
        return market

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    async def claim_winnings(self, caller: str, market_id: int) -> int:
        """Pay out caller's position on a finalized market. Returns the payout."""
        with self._guard:
            async with self._store.transaction():
                market = await self._load_market(market_id)
                if not market.state.is_finalized:
                    raise MarketNotFinalizedError(market_id)
                position = await self._store.get_position(market_id, caller, for_update=True)
                if position is None or position.total_stake == 0:
                    raise NoStakeError(market_id, caller)
                if position.claimed:
                    raise AlreadyClaimedError(market_id, caller)

                payout = await self._mark_claimed(market, position)
                await pay_out(self._assets, caller, payout)

        logger.info("Claimed: market=%d user=%s payout=%d", market_id, caller, payout)
        return payout

    async def claim_multiple(self, caller: str, market_ids: list[int]) -> ClaimBatchResult:
        """Claim across markets, skipping entries that are not claimable.

        Missing, unfinalized, already-claimed and empty entries are skipped
        instead of failing the batch. The summed payout moves in one transfer.
        """
        result = ClaimBatchResult()
        with self._guard:
            async with self._store.transaction():
                for market_id in market_ids:
                    market = await self._store.get_market(market_id)
                    if market is None or not market.state.is_finalized:
                        result.skipped.append(market_id)
                        continue
                    position = await self._store.get_position(
                        market_id, caller, for_update=True
                    )
                    if position is None or position.claimed or position.total_stake == 0:
                        result.skipped.append(market_id)
                        continue
                    result.payouts[market_id] = await self._mark_claimed(market, position)

                await pay_out(self._assets, caller, result.total)

        logger.info(
            "Batch claim: user=%s claimed=%d skipped=%d total=%d",
            caller, len(result.payouts), len(result.skipped), result.total,
        )
        return result

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_user_position(self, market_id: int, user: str) -> UserPosition:
        await self._load_market(market_id)
        position = await self._store.get_position(market_id, user)
        return position or UserPosition(market_id=market_id, user=user)

    async def calculate_payout(self, market_id: int, user: str) -> int:
        """What claim_winnings would pay right now, without mutating anything."""
        market = await self._load_market(market_id)
        position = await self._store.get_position(market_id, user)
        if position is None or position.claimed:
            return 0
        return compute_payout(market, position)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _load_market(self, market_id: int, for_update: bool = False) -> Market:
        market = await self._store.get_market(market_id, for_update=for_update)
        if market is None:
            raise MarketNotFoundError(market_id)
        return market

    async def _load_finalizable(self, market_id: int) -> Market:
        market = await self._load_market(market_id, for_update=True)
        if market.state is not MarketState.ACTIVE:
            raise MarketFinalizedError(market_id, market.state.value)
        if self._clock() < market.resolution_ts:
            raise DeadlineNotReachedError(market_id)
        return market

    async def _mark_claimed(self, market: Market, position: UserPosition) -> int:
        payout = compute_payout(market, position)
        position.claimed = True
        position.payout = payout
        await self._store.save_position(position)
        await self._store.record_event(
            MarketEvent(
                event_type=MarketEventType.WINNINGS_CLAIMED,
                actor=position.user,
                market_id=market.id,
                payload={"payout": payout},
            )
        )
        return payout
