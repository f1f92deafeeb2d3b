"""AssetApplicationService: dev helpers around the asset ledger.

Deposit and approve commit their own transaction; the balance read runs
without one.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_asset.application.schemas import AssetBalanceResponse
from src.pm_market.application.context import ContextFactory, mutation_lock, sql_context


class AssetApplicationService:
    def __init__(self, context_factory: ContextFactory | None = None) -> None:
        self._context_factory: ContextFactory = context_factory or sql_context

    async def get_balance(self, db: AsyncSession, owner: str) -> AssetBalanceResponse:
        assets = self._context_factory(db).assets
        return AssetBalanceResponse(
            owner=owner,
            balance=await assets.balance_of(owner),
            allowance=await assets.spendable_allowance(owner),
        )

    async def deposit(self, db: AsyncSession, owner: str, amount: int) -> AssetBalanceResponse:
        ctx = self._context_factory(db)
        async with mutation_lock():
            async with ctx.store.transaction():
                await ctx.assets.deposit(owner, amount)
        return await self.get_balance(db, owner)

    async def approve(self, db: AsyncSession, owner: str, amount: int) -> AssetBalanceResponse:
        ctx = self._context_factory(db)
        async with mutation_lock():
            async with ctx.store.transaction():
                await ctx.assets.approve(owner, amount)
        return await self.get_balance(db, owner)
