"""InMemoryAssetLedger: dict-backed fungible asset for tests and local runs.

Transfers validate before mutating, so a failed transfer never leaves a
half-applied debit.
"""

from collections import defaultdict


class InMemoryAssetLedger:
    def __init__(self, custody: str) -> None:
        self._custody = custody
        self._balances: dict[str, int] = defaultdict(int)
        self._allowances: dict[tuple[str, str], int] = defaultdict(int)

    @property
    def custody(self) -> str:
        return self._custody

    # -- dev helpers -------------------------------------------------------

    async def deposit(self, owner: str, amount: int) -> int:
        self._balances[owner] += amount
        return self._balances[owner]

    async def approve(self, owner: str, amount: int) -> int:
        """Set (not add) the allowance owner grants to custody."""
        self._allowances[(owner, self._custody)] = amount
        return amount

    # -- AssetTransferProtocol ---------------------------------------------

    async def balance_of(self, owner: str) -> int:
        return self._balances.get(owner, 0)

    async def spendable_allowance(self, owner: str) -> int:
        return self._allowances.get((owner, self._custody), 0)

    async def transfer_from(self, owner: str, recipient: str, amount: int) -> bool:
        key = (owner, self._custody)
        if amount <= 0 or self._balances[owner] < amount or self._allowances[key] < amount:
            return False
        self._allowances[key] -= amount
        self._balances[owner] -= amount
        self._balances[recipient] += amount
        return True

    async def transfer(self, recipient: str, amount: int) -> bool:
        if amount <= 0 or self._balances[self._custody] < amount:
            return False
        self._balances[self._custody] -= amount
        self._balances[recipient] += amount
        return True
