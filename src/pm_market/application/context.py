"""Unit-of-work wiring for the application services.

Each request gets its own store and asset ledger bound to its DB session.
The ReentrancyGuard and the mutation lock are process-wide: the lock
serializes mutating calls (single-process deployment), the guard rejects
re-entry while one of them is in flight.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pm_asset.domain.repository import FundableAssetProtocol
from src.pm_asset.infrastructure.persistence import SqlAssetLedger
from src.pm_clearing.domain.settlement import SettlementEngine
from src.pm_common.datetime_utils import Clock, utc_now
from src.pm_common.reentrancy import ReentrancyGuard
from src.pm_market.domain.registry import MarketRegistry
from src.pm_market.domain.repository import MarketStoreProtocol
from src.pm_market.infrastructure.persistence import SqlMarketStore

_guard = ReentrancyGuard()
_mutation_lock = asyncio.Lock()


@dataclass
class LedgerContext:
    store: MarketStoreProtocol
    assets: FundableAssetProtocol
    registry: MarketRegistry
    engine: SettlementEngine


ContextFactory = Callable[[AsyncSession], LedgerContext]


def build_context(
    store: MarketStoreProtocol,
    assets: FundableAssetProtocol,
    guard: ReentrancyGuard | None = None,
    clock: Clock = utc_now,
) -> LedgerContext:
    guard = guard or _guard
    return LedgerContext(
        store=store,
        assets=assets,
        registry=MarketRegistry(store, assets, guard=guard, clock=clock),
        engine=SettlementEngine(store, assets, guard=guard, clock=clock),
    )


def sql_context(db: AsyncSession) -> LedgerContext:
    return build_context(SqlMarketStore(db), SqlAssetLedger(db, settings.CUSTODY_ID))


def mutation_lock() -> asyncio.Lock:
    return _mutation_lock
