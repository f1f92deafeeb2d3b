"""Shared test fixtures.

Environment defaults are set before any src/config import so Settings()
can be built without a .env file.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest  # noqa: E402

from src.pm_asset.infrastructure.memory import InMemoryAssetLedger  # noqa: E402
from src.pm_common.reentrancy import ReentrancyGuard  # noqa: E402
from src.pm_market.application.context import LedgerContext, build_context  # noqa: E402
from src.pm_market.domain.models import GlobalConfig  # noqa: E402
from src.pm_market.infrastructure.memory import InMemoryMarketStore  # noqa: E402
from tests.helpers import ADMIN, CUSTODY, FEE_RECIPIENT, FakeClock  # noqa: E402


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def assets() -> InMemoryAssetLedger:
    return InMemoryAssetLedger(custody=CUSTODY)


@pytest.fixture
def store() -> InMemoryMarketStore:
    return InMemoryMarketStore(
        GlobalConfig(admin=ADMIN, fee_recipient=FEE_RECIPIENT, max_fee_bps=500)
    )


@pytest.fixture
def ctx(
    store: InMemoryMarketStore, assets: InMemoryAssetLedger, clock: FakeClock
) -> LedgerContext:
    return build_context(store, assets, guard=ReentrancyGuard(), clock=clock)
