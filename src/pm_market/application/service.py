"""MarketApplicationService: thin composition layer over MarketRegistry.

The caller (router) passes the db session; the service builds a
LedgerContext for it and converts domain objects into schemas.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import MarketState
from src.pm_common.errors import InvalidStateFilterError
from src.pm_market.application.context import ContextFactory, mutation_lock, sql_context
from src.pm_market.application.schemas import (
    ConfigResponse,
    CreateMarketResponse,
    CreateMarketRequest,
    MarketCountResponse,
    MarketDetail,
    MarketListResponse,
)


class MarketApplicationService:
    def __init__(self, context_factory: ContextFactory | None = None) -> None:
        self._context_factory: ContextFactory = context_factory or sql_context

    async def create_market(
        self, db: AsyncSession, caller: str, body: CreateMarketRequest
    ) -> CreateMarketResponse:
        ctx = self._context_factory(db)
        async with mutation_lock():
            market_id = await ctx.registry.create_market(
                caller, body.question, body.resolution_ts, body.fee_amount
            )
        return CreateMarketResponse(market_id=market_id)

    async def get_market(self, db: AsyncSession, market_id: int) -> MarketDetail:
        market = await self._context_factory(db).registry.get_market(market_id)
        return MarketDetail.from_domain(market)

    async def list_markets(
        self, db: AsyncSession, state: str | None, offset: int, limit: int
    ) -> MarketListResponse:
        state_filter = _parse_state(state)
        # Fetch limit+1 to detect has_more without COUNT(*)
        markets = await self._context_factory(db).registry.list_markets(
            state_filter, offset, limit + 1
        )
        has_more = len(markets) > limit
        items = [MarketDetail.from_domain(m) for m in markets[:limit]]
        return MarketListResponse(items=items, offset=offset, limit=limit, has_more=has_more)

    async def get_market_count(self, db: AsyncSession) -> MarketCountResponse:
        count = await self._context_factory(db).registry.get_market_count()
        return MarketCountResponse(count=count)

    async def get_config(self, db: AsyncSession) -> ConfigResponse:
        config = await self._context_factory(db).registry.get_config()
        return ConfigResponse.from_domain(config)


def _parse_state(state: str | None) -> MarketState | None:
    # state=None or 'ALL' → no filter
    if state is None or state.upper() == "ALL":
        return None
    try:
        return MarketState(state.upper())
    except ValueError:
        raise InvalidStateFilterError(state) from None
