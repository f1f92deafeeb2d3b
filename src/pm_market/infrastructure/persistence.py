"""SqlMarketStore: PostgreSQL implementation of MarketStoreProtocol.

All queries use raw text() SQL (no ORM). The store is bound to one
AsyncSession; transaction() commits or rolls back that session, so the
asset ledger sharing the same session is covered by the same unit of work.
"""

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.enums import MarketState, Outcome
from src.pm_common.errors import InternalError
from src.pm_market.domain.models import (
    ConfigSnapshot,
    GlobalConfig,
    Market,
    MarketEvent,
    UserPosition,
)

# ---------------------------------------------------------------------------
# SQL: registry_config (singleton row id = 1)
# ---------------------------------------------------------------------------

_GET_CONFIG_SQL = text("""
    SELECT admin_id, fee_recipient, max_fee_bps, paused
    FROM registry_config
    WHERE id = 1
""")

_SEED_CONFIG_SQL = text("""
    INSERT INTO registry_config (id, admin_id, fee_recipient, max_fee_bps, paused)
    VALUES (1, :admin_id, :fee_recipient, :max_fee_bps, :paused)
    ON CONFLICT (id) DO NOTHING
""")

_SAVE_CONFIG_SQL = text("""
    UPDATE registry_config
    SET admin_id = :admin_id,
        fee_recipient = :fee_recipient,
        max_fee_bps = :max_fee_bps,
        paused = :paused,
        updated_at = NOW()
    WHERE id = 1
""")

_ALLOCATE_ID_SQL = text("""
    UPDATE registry_config
    SET market_count = market_count + 1,
        updated_at = NOW()
    WHERE id = 1
    RETURNING market_count
""")

_MARKET_COUNT_SQL = text("SELECT market_count FROM registry_config WHERE id = 1")

_REPEATABLE_READ_SQL = text("SET TRANSACTION ISOLATION LEVEL REPEATABLE READ READ ONLY")

# ---------------------------------------------------------------------------
# SQL: markets
# ---------------------------------------------------------------------------

_MARKET_COLUMNS = """
    id, question, resolution_ts, state, winning_outcome,
    yes_pool, no_pool, creation_fee, creator, created_at,
    snapshot_fee_recipient, snapshot_max_fee_bps, finalized_at
"""

_GET_MARKET_SQL = text(f"SELECT {_MARKET_COLUMNS} FROM markets WHERE id = :market_id")

_GET_MARKET_FOR_UPDATE_SQL = text(
    f"SELECT {_MARKET_COLUMNS} FROM markets WHERE id = :market_id FOR UPDATE"
)

_LIST_MARKETS_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM markets
    WHERE (CAST(:state AS TEXT) IS NULL OR state = CAST(:state AS TEXT))
    ORDER BY id ASC
    OFFSET :offset
    LIMIT :limit
""")

_INSERT_MARKET_SQL = text("""
    INSERT INTO markets
        (id, question, resolution_ts, state, winning_outcome,
         yes_pool, no_pool, creation_fee, creator, created_at,
         snapshot_fee_recipient, snapshot_max_fee_bps)
    VALUES
        (:id, :question, :resolution_ts, :state, :winning_outcome,
         :yes_pool, :no_pool, :creation_fee, :creator, :created_at,
         :snapshot_fee_recipient, :snapshot_max_fee_bps)
""")

# Snapshot columns are deliberately absent: they never change after insert
_UPDATE_MARKET_SQL = text("""
    UPDATE markets
    SET state = :state,
        winning_outcome = :winning_outcome,
        yes_pool = :yes_pool,
        no_pool = :no_pool,
        finalized_at = :finalized_at,
        updated_at = NOW()
    WHERE id = :id
""")

# ---------------------------------------------------------------------------
# SQL: positions
# ---------------------------------------------------------------------------

_GET_POSITION_SQL = text("""
    SELECT market_id, user_id, yes_bet, no_bet, claimed, payout
    FROM positions
    WHERE market_id = :market_id AND user_id = :user_id
""")

_GET_POSITION_FOR_UPDATE_SQL = text("""
    SELECT market_id, user_id, yes_bet, no_bet, claimed, payout
    FROM positions
    WHERE market_id = :market_id AND user_id = :user_id
    FOR UPDATE
""")

_UPSERT_POSITION_SQL = text("""
    INSERT INTO positions (market_id, user_id, yes_bet, no_bet, claimed, payout)
    VALUES (:market_id, :user_id, :yes_bet, :no_bet, :claimed, :payout)
    ON CONFLICT (market_id, user_id) DO UPDATE
        SET yes_bet = EXCLUDED.yes_bet,
            no_bet = EXCLUDED.no_bet,
            claimed = EXCLUDED.claimed,
            payout = EXCLUDED.payout,
            updated_at = NOW()
""")

_LIST_POSITIONS_SQL = text("""
    SELECT market_id, user_id, yes_bet, no_bet, claimed, payout
    FROM positions
    WHERE market_id = :market_id
    ORDER BY user_id
""")

# ---------------------------------------------------------------------------
# SQL: market_events
# ---------------------------------------------------------------------------

_INSERT_EVENT_SQL = text("""
    INSERT INTO market_events (market_id, event_type, actor, payload)
    VALUES (:market_id, :event_type, :actor, :payload)
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_market(row: object) -> Market:
    return Market(
        id=row.id,  # type: ignore[attr-defined]
        question=row.question,  # type: ignore[attr-defined]
        resolution_ts=row.resolution_ts,  # type: ignore[attr-defined]
        state=MarketState(row.state),  # type: ignore[attr-defined]
        winning_outcome=Outcome(row.winning_outcome),  # type: ignore[attr-defined]
        yes_pool=row.yes_pool,  # type: ignore[attr-defined]
        no_pool=row.no_pool,  # type: ignore[attr-defined]
        creation_fee=row.creation_fee,  # type: ignore[attr-defined]
        creator=row.creator,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        config_snapshot=ConfigSnapshot(
            fee_recipient=row.snapshot_fee_recipient,  # type: ignore[attr-defined]
            max_fee_bps=row.snapshot_max_fee_bps,  # type: ignore[attr-defined]
        ),
        finalized_at=row.finalized_at,  # type: ignore[attr-defined]
    )


def _row_to_position(row: object) -> UserPosition:
    return UserPosition(
        market_id=row.market_id,  # type: ignore[attr-defined]
        user=row.user_id,  # type: ignore[attr-defined]
        yes_bet=row.yes_bet,  # type: ignore[attr-defined]
        no_bet=row.no_bet,  # type: ignore[attr-defined]
        claimed=row.claimed,  # type: ignore[attr-defined]
        payout=row.payout,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class SqlMarketStore:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        try:
            yield
            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise

    @asynccontextmanager
    async def snapshot_read(self) -> AsyncIterator[None]:
        """REPEATABLE READ scope: every query sees the snapshot taken by the first one.

        Must open the session's transaction. Nothing is written, so it always
        ends with a rollback.
        """
        await self._db.execute(_REPEATABLE_READ_SQL)
        try:
            yield
        finally:
            await self._db.rollback()

    async def seed_config(self, config: GlobalConfig) -> None:
        """Insert the singleton config row if it does not exist yet."""
        await self._db.execute(
            _SEED_CONFIG_SQL,
            {
                "admin_id": config.admin,
                "fee_recipient": config.fee_recipient,
                "max_fee_bps": config.max_fee_bps,
                "paused": config.paused,
            },
        )

    async def get_config(self) -> GlobalConfig:
        row = (await self._db.execute(_GET_CONFIG_SQL)).fetchone()
        if row is None:
            raise InternalError("Registry config not initialized")
        return GlobalConfig(
            admin=row.admin_id,
            fee_recipient=row.fee_recipient,
            max_fee_bps=row.max_fee_bps,
            paused=row.paused,
        )

    async def save_config(self, config: GlobalConfig) -> None:
        await self._db.execute(
            _SAVE_CONFIG_SQL,
            {
                "admin_id": config.admin,
                "fee_recipient": config.fee_recipient,
                "max_fee_bps": config.max_fee_bps,
                "paused": config.paused,
            },
        )

    async def allocate_market_id(self) -> int:
        result = await self._db.execute(_ALLOCATE_ID_SQL)
        return int(result.scalar_one())

    async def get_market_count(self) -> int:
        result = await self._db.execute(_MARKET_COUNT_SQL)
        return int(result.scalar_one_or_none() or 0)

    async def get_market(self, market_id: int, for_update: bool = False) -> Market | None:
        sql = _GET_MARKET_FOR_UPDATE_SQL if for_update else _GET_MARKET_SQL
        row = (await self._db.execute(sql, {"market_id": market_id})).fetchone()
        return _row_to_market(row) if row else None

    async def insert_market(self, market: Market) -> None:
        await self._db.execute(
            _INSERT_MARKET_SQL,
            {
                "id": market.id,
                "question": market.question,
                "resolution_ts": market.resolution_ts,
                "state": market.state.value,
                "winning_outcome": market.winning_outcome.value,
                "yes_pool": market.yes_pool,
                "no_pool": market.no_pool,
                "creation_fee": market.creation_fee,
                "creator": market.creator,
                "created_at": market.created_at,
                "snapshot_fee_recipient": market.config_snapshot.fee_recipient,
                "snapshot_max_fee_bps": market.config_snapshot.max_fee_bps,
            },
        )

    async def update_market(self, market: Market) -> None:
        await self._db.execute(
            _UPDATE_MARKET_SQL,
            {
                "id": market.id,
                "state": market.state.value,
                "winning_outcome": market.winning_outcome.value,
                "yes_pool": market.yes_pool,
                "no_pool": market.no_pool,
                "finalized_at": market.finalized_at,
            },
        )

    async def list_markets(
        self, state: MarketState | None, offset: int, limit: int
    ) -> list[Market]:
        result = await self._db.execute(
            _LIST_MARKETS_SQL,
            {
                "state": state.value if state is not None else None,
                "offset": offset,
                "limit": limit,
            },
        )
        return [_row_to_market(row) for row in result.fetchall()]

    async def get_position(
        self, market_id: int, user: str, for_update: bool = False
    ) -> UserPosition | None:
        sql = _GET_POSITION_FOR_UPDATE_SQL if for_update else _GET_POSITION_SQL
        row = (
            await self._db.execute(sql, {"market_id": market_id, "user_id": user})
        ).fetchone()
        return _row_to_position(row) if row else None

    async def save_position(self, position: UserPosition) -> None:
        await self._db.execute(
            _UPSERT_POSITION_SQL,
            {
                "market_id": position.market_id,
                "user_id": position.user,
                "yes_bet": position.yes_bet,
                "no_bet": position.no_bet,
                "claimed": position.claimed,
                "payout": position.payout,
            },
        )

    async def list_positions(self, market_id: int) -> list[UserPosition]:
        result = await self._db.execute(_LIST_POSITIONS_SQL, {"market_id": market_id})
        return [_row_to_position(row) for row in result.fetchall()]

    async def record_event(self, event: MarketEvent) -> None:
        await self._db.execute(
            _INSERT_EVENT_SQL,
            {
                "market_id": event.market_id,
                "event_type": event.event_type.value,
                "actor": event.actor,
                "payload": json.dumps(event.payload, default=str),
            },
        )
