# src/pm_market/domain/repository.py
"""Store Protocol: dependency inversion for testability.

A store is bound to one unit of work (one DB session, or one in-memory
ledger). The registry and the settlement engine only talk to this
Protocol; infrastructure provides the SQL and in-memory implementations.
"""

from contextlib import AbstractAsyncContextManager
from typing import Protocol

from src.pm_common.enums import MarketState
from src.pm_market.domain.models import GlobalConfig, Market, MarketEvent, UserPosition


class MarketStoreProtocol(Protocol):
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Commit on clean exit, roll back every write on exception."""
        ...

    def snapshot_read(self) -> AbstractAsyncContextManager[None]:
        """Read-only scope in which every read sees one consistent state."""
        ...

    async def get_config(self) -> GlobalConfig: ...

    async def save_config(self, config: GlobalConfig) -> None: ...

    async def allocate_market_id(self) -> int: ...

    async def get_market_count(self) -> int: ...

    async def get_market(self, market_id: int, for_update: bool = False) -> Market | None: ...

    async def insert_market(self, market: Market) -> None: ...

    async def update_market(self, market: Market) -> None: ...

    async def list_markets(
        self, state: MarketState | None, offset: int, limit: int
    ) -> list[Market]: ...

    async def get_position(
        self, market_id: int, user: str, for_update: bool = False
    ) -> UserPosition | None: ...

    async def save_position(self, position: UserPosition) -> None: ...

    async def list_positions(self, market_id: int) -> list[UserPosition]: ...

    async def record_event(self, event: MarketEvent) -> None: ...
