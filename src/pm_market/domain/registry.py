"""MarketRegistry: market creation and global configuration.

Owns id allocation and the GlobalConfig singleton. Every mutating call
holds the shared ReentrancyGuard and runs inside one store transaction.
"""

import logging
from datetime import datetime

from src.pm_asset.domain.funding import pull_funds
from src.pm_asset.domain.repository import AssetTransferProtocol
from src.pm_common.datetime_utils import Clock, ensure_utc, utc_now
from src.pm_common.enums import MarketEventType, MarketState
from src.pm_common.errors import (
    AlreadyPausedError,
    EmptyQuestionError,
    FeeCapExceededError,
    InvalidAmountError,
    InvalidFeeRecipientError,
    MarketNotFoundError,
    NotAdminError,
    NotPausedError,
    RegistryPausedError,
    ResolutionNotInFutureError,
)
from src.pm_common.reentrancy import ReentrancyGuard
from src.pm_market.domain.models import (
    FEE_CAP_LIMIT_BPS,
    MAX_AMOUNT,
    GlobalConfig,
    Market,
    MarketEvent,
)
from src.pm_market.domain.repository import MarketStoreProtocol

logger = logging.getLogger(__name__)


def require_admin(config: GlobalConfig, caller: str) -> None:
    if caller != config.admin:
        logger.warning("Rejected admin operation from %s", caller)
        raise NotAdminError(caller)


class MarketRegistry:
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
    # Mutations
    # ------------------------------------------------------------------

    async def create_market(
        self, caller: str, question: str, resolution_ts: datetime, fee_amount: int = 0
    ) -> int:
        """Create an ACTIVE market and return its id.

        The creation fee is a flat amount paid to the configured fee
        recipient. It is not checked against max_fee_bps: there is no stake
        yet to take a percentage of.
        """
        with self._guard:
            async with self._store.transaction():
                config = await self._store.get_config()
                if config.paused:
                    raise RegistryPausedError()
                if not question or not question.strip():
                    raise EmptyQuestionError()
                resolution_ts = ensure_utc(resolution_ts)
                now = self._clock()
                if resolution_ts <= now:
                    raise ResolutionNotInFutureError()
                if not (0 <= fee_amount <= MAX_AMOUNT):
                    raise InvalidAmountError(fee_amount)

                market_id = await self._store.allocate_market_id()
                market = Market(
                    id=market_id,
                    question=question,
                    resolution_ts=resolution_ts,
                    creator=caller,
                    created_at=now,
                    config_snapshot=config.snapshot(),
                    creation_fee=fee_amount,
                )
                await self._store.insert_market(market)
                await self._store.record_event(
                    MarketEvent(
                        event_type=MarketEventType.MARKET_CREATED,
                        actor=caller,
                        market_id=market_id,
                        payload={
                            "question": question,
                            "resolution_ts": resolution_ts.isoformat(),
                            "creation_fee": fee_amount,
                        },
                    )
                )
                if fee_amount > 0:
                    await pull_funds(
                        self._assets, caller, market.config_snapshot.fee_recipient, fee_amount
                    )

        logger.info(
            "Market created: id=%d creator=%s deadline=%s fee=%d",
            market_id, caller, resolution_ts.isoformat(), fee_amount,
        )
        return market_id

    async def update_config(
        self, caller: str, fee_recipient: str, max_fee_bps: int
    ) -> GlobalConfig:
        with self._guard:
            async with self._store.transaction():
                config = await self._store.get_config()
                require_admin(config, caller)
                if not (0 <= max_fee_bps <= FEE_CAP_LIMIT_BPS):
                    raise FeeCapExceededError(max_fee_bps, FEE_CAP_LIMIT_BPS)
                if not fee_recipient or not fee_recipient.strip():
                    raise InvalidFeeRecipientError()
                updated = config.with_fees(fee_recipient, max_fee_bps)
                await self._store.save_config(updated)
                await self._store.record_event(
                    MarketEvent(
                        event_type=MarketEventType.CONFIG_UPDATED,
                        actor=caller,
                        payload={"fee_recipient": fee_recipient, "max_fee_bps": max_fee_bps},
                    )
                )
        logger.info("Config updated: fee_recipient=%s max_fee_bps=%d", fee_recipient, max_fee_bps)
        return updated

    async def pause(self, caller: str) -> GlobalConfig:
        return await self._set_paused(caller, True)

    async def unpause(self, caller: str) -> GlobalConfig:
        return await self._set_paused(caller, False)

    async def _set_paused(self, caller: str, paused: bool) -> GlobalConfig:
        with self._guard:
            async with self._store.transaction():
                config = await self._store.get_config()
                require_admin(config, caller)
                if config.paused == paused:
                    raise AlreadyPausedError() if paused else NotPausedError()
                updated = config.with_paused(paused)
                await self._store.save_config(updated)
                await self._store.record_event(
                    MarketEvent(
                        event_type=(
                            MarketEventType.REGISTRY_PAUSED
                            if paused
                            else MarketEventType.REGISTRY_UNPAUSED
                        ),
                        actor=caller,
                    )
                )
        logger.info("Registry %s by %s", "paused" if paused else "unpaused", caller)
        return updated

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_market(self, market_id: int) -> Market:
        market = await self._store.get_market(market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        return market

    async def get_config(self) -> GlobalConfig:
        return await self._store.get_config()

    async def get_market_count(self) -> int:
        return await self._store.get_market_count()

    async def list_markets(
        self, state: MarketState | None = None, offset: int = 0, limit: int = 20
    ) -> list[Market]:
        return await self._store.list_markets(state, offset, limit)
