"""Asset-transfer collaborator Protocol.

The ledger is bound to one custody identity: `spendable_allowance` is what
`owner` has approved custody to move, `transfer_from` is executed by custody
as spender, and `transfer` pays out of custody's own balance. Every debit
and credit the market engine performs goes through these four calls.
"""

from typing import Protocol


class AssetTransferProtocol(Protocol):
    @property
    def custody(self) -> str: ...

    async def balance_of(self, owner: str) -> int: ...

    async def spendable_allowance(self, owner: str) -> int: ...

    async def transfer_from(self, owner: str, recipient: str, amount: int) -> bool: ...

    async def transfer(self, recipient: str, amount: int) -> bool: ...


class FundableAssetProtocol(AssetTransferProtocol, Protocol):
    """Ledger that can also mint test funds and record approvals."""

    async def deposit(self, owner: str, amount: int) -> int: ...

    async def approve(self, owner: str, amount: int) -> int: ...
