"""Funding helpers: turn collaborator results into typed errors."""

from src.pm_asset.domain.repository import AssetTransferProtocol
from src.pm_common.errors import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    TransferFailedError,
)


async def pull_funds(
    assets: AssetTransferProtocol, owner: str, recipient: str, amount: int
) -> None:
    """Move `amount` from owner to recipient, custody acting as spender.

    Balance is checked before allowance so callers see the more actionable
    error first.
    """
    available = await assets.balance_of(owner)
    if available < amount:
        raise InsufficientBalanceError(required=amount, available=available)
    allowed = await assets.spendable_allowance(owner)
    if allowed < amount:
        raise InsufficientAllowanceError(required=amount, allowed=allowed)
    if not await assets.transfer_from(owner, recipient, amount):
        raise TransferFailedError(f"transfer_from {owner} -> {recipient} ({amount})")


async def pay_out(assets: AssetTransferProtocol, recipient: str, amount: int) -> None:
    """Pay `amount` out of custody. Zero amounts are a no-op."""
    if amount == 0:
        return
    if not await assets.transfer(recipient, amount):
        raise TransferFailedError(f"transfer {assets.custody} -> {recipient} ({amount})")
