"""SettlementApplicationService: bets, claims and position reads."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_clearing.application.settlement_schemas import (
    ClaimBatchRequest,
    ClaimBatchResponse,
    ClaimResponse,
    PayoutResponse,
    PlaceBetRequest,
    PositionResponse,
)
from src.pm_market.application.context import ContextFactory, mutation_lock, sql_context


class SettlementApplicationService:
    def __init__(self, context_factory: ContextFactory | None = None) -> None:
        self._context_factory: ContextFactory = context_factory or sql_context

    async def place_bet(
        self, db: AsyncSession, caller: str, market_id: int, body: PlaceBetRequest
    ) -> PositionResponse:
        ctx = self._context_factory(db)
        async with mutation_lock():
            position = await ctx.engine.place_bet(caller, market_id, body.outcome, body.amount)
        return PositionResponse.from_domain(position)

    async def claim_winnings(
        self, db: AsyncSession, caller: str, market_id: int
    ) -> ClaimResponse:
        ctx = self._context_factory(db)
        async with mutation_lock():
            payout = await ctx.engine.claim_winnings(caller, market_id)
        return ClaimResponse(market_id=market_id, user=caller, payout=payout)

    async def claim_multiple(
        self, db: AsyncSession, caller: str, body: ClaimBatchRequest
    ) -> ClaimBatchResponse:
        ctx = self._context_factory(db)
        async with mutation_lock():
            result = await ctx.engine.claim_multiple(caller, body.market_ids)
        return ClaimBatchResponse.from_result(result)

    async def get_user_position(
        self, db: AsyncSession, market_id: int, user: str
    ) -> PositionResponse:
        position = await self._context_factory(db).engine.get_user_position(market_id, user)
        return PositionResponse.from_domain(position)

    async def calculate_payout(
        self, db: AsyncSession, market_id: int, user: str
    ) -> PayoutResponse:
        payout = await self._context_factory(db).engine.calculate_payout(market_id, user)
        return PayoutResponse(market_id=market_id, user=user, payout=payout)
