"""Test helpers shared across unit tests (constants, fake clock, funding)."""

from datetime import UTC, datetime, timedelta

from src.pm_asset.infrastructure.memory import InMemoryAssetLedger

ADMIN = "admin"
FEE_RECIPIENT = "treasury"
CUSTODY = "custody"
T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
DEADLINE = T0 + timedelta(days=1)


class FakeClock:
    """Settable clock injected into registry and engine."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


async def fund(assets: InMemoryAssetLedger, owner: str, amount: int) -> None:
    """Deposit and approve custody for the full amount."""
    await assets.deposit(owner, amount)
    await assets.approve(owner, amount)
