"""InMemoryMarketStore: process-local implementation of MarketStoreProtocol.

Used by unit tests and local runs without PostgreSQL. transaction()
snapshots the whole state and restores it if the body raises, so a failed
operation leaves no partial effects.
"""

import copy
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace

from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import MarketState
from src.pm_market.domain.models import GlobalConfig, Market, MarketEvent, UserPosition


class InMemoryMarketStore:
    def __init__(self, config: GlobalConfig) -> None:
        self._config = config
        self._market_count = 0
        self._markets: dict[int, Market] = {}
        self._positions: dict[tuple[int, str], UserPosition] = {}
        self.events: list[MarketEvent] = []

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        saved = copy.deepcopy(
            (self._config, self._market_count, self._markets, self._positions, self.events)
        )
        try:
            yield
        except Exception:
            (
                self._config,
                self._market_count,
                self._markets,
                self._positions,
                self.events,
            ) = saved
            raise

    @asynccontextmanager
    async def snapshot_read(self) -> AsyncIterator[None]:
        # Single-threaded state; callers serialize against writers
        yield

    async def get_config(self) -> GlobalConfig:
        return self._config

    async def save_config(self, config: GlobalConfig) -> None:
        self._config = config

    async def allocate_market_id(self) -> int:
        self._market_count += 1
        return self._market_count

    async def get_market_count(self) -> int:
        return self._market_count

    # Copies go in and out so callers never alias stored records
    async def get_market(self, market_id: int, for_update: bool = False) -> Market | None:
        market = self._markets.get(market_id)
        return replace(market) if market is not None else None

    async def insert_market(self, market: Market) -> None:
        self._markets[market.id] = replace(market)

    async def update_market(self, market: Market) -> None:
        self._markets[market.id] = replace(market)

    async def list_markets(
        self, state: MarketState | None, offset: int, limit: int
    ) -> list[Market]:
        rows = [
            replace(m)
            for _, m in sorted(self._markets.items())
            if state is None or m.state is state
        ]
        return rows[offset:offset + limit]

    async def get_position(
        self, market_id: int, user: str, for_update: bool = False
    ) -> UserPosition | None:
        position = self._positions.get((market_id, user))
        return replace(position) if position is not None else None

    async def save_position(self, position: UserPosition) -> None:
        self._positions[(position.market_id, position.user)] = replace(position)

    async def list_positions(self, market_id: int) -> list[UserPosition]:
        return [
            replace(p) for (mid, _), p in sorted(self._positions.items()) if mid == market_id
        ]

    async def record_event(self, event: MarketEvent) -> None:
        if event.created_at is None:
            event = replace(event, created_at=utc_now())
        self.events.append(event)
