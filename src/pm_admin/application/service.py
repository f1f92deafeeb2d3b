# src/pm_admin/application/service.py
"""Admin application service.

Admin identity is checked inside the domain (registry / engine) against
the stored GlobalConfig, not here: the router only authenticates.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_admin.application.schemas import InvariantReport
from src.pm_clearing.domain.invariants import verify_custody, verify_market_invariants
from src.pm_market.application.context import ContextFactory, mutation_lock, sql_context
from src.pm_market.application.schemas import ConfigResponse, MarketDetail
from src.pm_market.domain.models import Market, UserPosition
from src.pm_market.domain.registry import require_admin
from src.pm_market.domain.repository import MarketStoreProtocol

logger = logging.getLogger(__name__)

_AUDIT_PAGE = 200


class AdminService:
    def __init__(self, context_factory: ContextFactory | None = None) -> None:
        self._context_factory: ContextFactory = context_factory or sql_context

    async def resolve_market(
        self, db: AsyncSession, caller: str, market_id: int, outcome: str
    ) -> MarketDetail:
        ctx = self._context_factory(db)
        async with mutation_lock():
            market = await ctx.engine.resolve_market(caller, market_id, outcome)
        return MarketDetail.from_domain(market)

    async def cancel_market(
        self, db: AsyncSession, caller: str, market_id: int
    ) -> MarketDetail:
        ctx = self._context_factory(db)
        async with mutation_lock():
            market = await ctx.engine.cancel_market(caller, market_id)
        return MarketDetail.from_domain(market)

    async def update_config(
        self, db: AsyncSession, caller: str, fee_recipient: str, max_fee_bps: int
    ) -> ConfigResponse:
        ctx = self._context_factory(db)
        async with mutation_lock():
            config = await ctx.registry.update_config(caller, fee_recipient, max_fee_bps)
        return ConfigResponse.from_domain(config)

    async def pause(self, db: AsyncSession, caller: str) -> ConfigResponse:
        ctx = self._context_factory(db)
        async with mutation_lock():
            config = await ctx.registry.pause(caller)
        return ConfigResponse.from_domain(config)

    async def unpause(self, db: AsyncSession, caller: str) -> ConfigResponse:
        ctx = self._context_factory(db)
        async with mutation_lock():
            config = await ctx.registry.unpause(caller)
        return ConfigResponse.from_domain(config)

    async def verify_all_invariants(self, db: AsyncSession, caller: str) -> InvariantReport:
        """Run per-market (INV-1/2/3) and custody (INV-G) checks over every market.

        Markets, positions and the custody balance are read under the mutation
        lock and inside one snapshot, so a claim committing mid-audit cannot
        show up as a custody shortfall.
        """
        ctx = self._context_factory(db)
        async with mutation_lock(), ctx.store.snapshot_read():
            require_admin(await ctx.store.get_config(), caller)
            books = await _load_books(ctx.store)
            custody_balance = await ctx.assets.balance_of(ctx.assets.custody)

        violations: list[str] = []
        for market, positions in books:
            violations.extend(verify_market_invariants(market, positions))
        violations.extend(verify_custody(custody_balance, books))

        if violations:
            logger.error("Invariant audit found %d violation(s)", len(violations))
        return InvariantReport(
            ok=not violations, markets_checked=len(books), violations=violations
        )


async def _load_books(store: MarketStoreProtocol) -> list[tuple[Market, list[UserPosition]]]:
    books: list[tuple[Market, list[UserPosition]]] = []
    offset = 0
    while True:
        page = await store.list_markets(None, offset, _AUDIT_PAGE)
        for market in page:
            books.append((market, await store.list_positions(market.id)))
        if len(page) < _AUDIT_PAGE:
            return books
        offset += _AUDIT_PAGE
