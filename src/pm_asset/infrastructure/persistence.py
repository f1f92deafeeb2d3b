"""SqlAssetLedger: PostgreSQL implementation of AssetTransferProtocol.

Debits use atomic UPDATE ... WHERE balance >= :amount RETURNING; zero rows
returned means the constraint was violated and the transfer reports False.

Transaction ownership: the CALLER commits. The ledger shares its session
with SqlMarketStore so pool updates and transfers commit together.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

_BALANCE_SQL = text("SELECT balance FROM asset_balances WHERE owner_id = :owner_id")

_ALLOWANCE_SQL = text("""
    SELECT amount FROM asset_allowances
    WHERE owner_id = :owner_id AND spender_id = :spender_id
""")

_DEBIT_SQL = text("""
    UPDATE asset_balances
    SET balance = balance - :amount,
        updated_at = NOW()
    WHERE owner_id = :owner_id AND balance >= :amount
    RETURNING balance
""")

_CREDIT_SQL = text("""
    INSERT INTO asset_balances (owner_id, balance)
    VALUES (:owner_id, :amount)
    ON CONFLICT (owner_id) DO UPDATE
        SET balance = asset_balances.balance + EXCLUDED.balance,
            updated_at = NOW()
    RETURNING balance
""")

_SPEND_ALLOWANCE_SQL = text("""
    UPDATE asset_allowances
    SET amount = amount - :amount,
        updated_at = NOW()
    WHERE owner_id = :owner_id AND spender_id = :spender_id AND amount >= :amount
    RETURNING amount
""")

_APPROVE_SQL = text("""
    INSERT INTO asset_allowances (owner_id, spender_id, amount)
    VALUES (:owner_id, :spender_id, :amount)
    ON CONFLICT (owner_id, spender_id) DO UPDATE
        SET amount = EXCLUDED.amount,
            updated_at = NOW()
    RETURNING amount
""")


class SqlAssetLedger:
    def __init__(self, db: AsyncSession, custody: str) -> None:
        self._db = db
        self._custody = custody

    @property
    def custody(self) -> str:
        return self._custody

    async def deposit(self, owner: str, amount: int) -> int:
        result = await self._db.execute(_CREDIT_SQL, {"owner_id": owner, "amount": amount})
        return int(result.scalar_one())

    async def approve(self, owner: str, amount: int) -> int:
        result = await self._db.execute(
            _APPROVE_SQL,
            {"owner_id": owner, "spender_id": self._custody, "amount": amount},
        )
        return int(result.scalar_one())

    async def balance_of(self, owner: str) -> int:
        result = await self._db.execute(_BALANCE_SQL, {"owner_id": owner})
        return int(result.scalar_one_or_none() or 0)

    async def spendable_allowance(self, owner: str) -> int:
        result = await self._db.execute(
            _ALLOWANCE_SQL, {"owner_id": owner, "spender_id": self._custody}
        )
        return int(result.scalar_one_or_none() or 0)

    async def transfer_from(self, owner: str, recipient: str, amount: int) -> bool:
        if amount <= 0:
            return False
        spent = await self._db.execute(
            _SPEND_ALLOWANCE_SQL,
            {"owner_id": owner, "spender_id": self._custody, "amount": amount},
        )
        if spent.fetchone() is None:
            return False
        return await self._move(owner, recipient, amount)

    async def transfer(self, recipient: str, amount: int) -> bool:
        if amount <= 0:
            return False
        return await self._move(self._custody, recipient, amount)

    async def _move(self, source: str, recipient: str, amount: int) -> bool:
        debited = await self._db.execute(_DEBIT_SQL, {"owner_id": source, "amount": amount})
        if debited.fetchone() is None:
            return False
        await self._db.execute(_CREDIT_SQL, {"owner_id": recipient, "amount": amount})
        return True
