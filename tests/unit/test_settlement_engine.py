"""Unit tests for SettlementEngine: bets, finalization, claims, atomicity."""

from datetime import timedelta

import pytest

from src.pm_asset.infrastructure.memory import InMemoryAssetLedger
from src.pm_common.enums import MarketEventType, MarketState, Outcome
from src.pm_common.errors import (
    AlreadyClaimedError,
    BettingClosedError,
    DeadlineNotReachedError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidOutcomeError,
    MarketFinalizedError,
    MarketNotFinalizedError,
    MarketNotFoundError,
    NoOppositionError,
    NoStakeError,
    NotAdminError,
    RegistryPausedError,
    ReentrantCallError,
    TransferFailedError,
)
from src.pm_common.reentrancy import ReentrancyGuard
from src.pm_market.application.context import build_context
from src.pm_market.domain.models import MAX_AMOUNT
from tests.helpers import ADMIN, CUSTODY, DEADLINE, fund

PAST_DEADLINE = timedelta(days=1)


async def _open_market(ctx) -> int:
    return await ctx.registry.create_market("creator", "Will it rain?", DEADLINE)


async def _bet(ctx, assets, user: str, market_id: int, outcome: str, amount: int) -> None:
    await fund(assets, user, amount)
    await ctx.engine.place_bet(user, market_id, outcome, amount)


# ---------------------------------------------------------------------------
# Worked scenarios
# ---------------------------------------------------------------------------

class TestScenarios:
    async def test_winner_takes_losing_pool(self, ctx, assets, clock) -> None:
        mid = await _open_market(ctx)
        await _bet(ctx, assets, "alice", mid, "YES", 100)
        await _bet(ctx, assets, "bob", mid, "NO", 50)
        clock.advance(PAST_DEADLINE)
        await ctx.engine.resolve_market(ADMIN, mid, "YES")

        assert await ctx.engine.claim_winnings("alice", mid) == 150
        assert await ctx.engine.claim_winnings("bob", mid) == 0
        assert await assets.balance_of("alice") == 150
        assert await assets.balance_of("bob") == 0
        assert await assets.balance_of(CUSTODY) == 0

    async def test_hedged_position_wins_only_its_winning_side(
        self, ctx, assets, clock
    ) -> None:
        mid = await _open_market(ctx)
        await fund(assets, "alice", 150)
        await ctx.engine.place_bet("alice", mid, "YES", 100)
        await ctx.engine.place_bet("alice", mid, "NO", 50)
        await _bet(ctx, assets, "bob", mid, "NO", 100)
        clock.advance(PAST_DEADLINE)
        await ctx.engine.resolve_market(ADMIN, mid, "YES")

        # Only YES bettor: 100 + 100 * 150 // 100
        assert await ctx.engine.claim_winnings("alice", mid) == 250
        assert await ctx.engine.claim_winnings("bob", mid) == 0
        assert await assets.balance_of(CUSTODY) == 0

    async def test_one_sided_market_is_cancelled_and_refunded(
        self, ctx, assets, clock
    ) -> None:
        mid = await _open_market(ctx)
        await _bet(ctx, assets, "alice", mid, "YES", 100)
        clock.advance(PAST_DEADLINE)

        with pytest.raises(NoOppositionError):
            await ctx.engine.resolve_market(ADMIN, mid, "YES")
        await ctx.engine.cancel_market(ADMIN, mid)

        assert await ctx.engine.claim_winnings("alice", mid) == 100
        assert await assets.balance_of("alice") == 100

    async def test_three_way_split_truncates(self, ctx, assets, clock) -> None:
        mid = await _open_market(ctx)
        await _bet(ctx, assets, "u1", mid, "YES", 60)
        await _bet(ctx, assets, "u2", mid, "YES", 60)
        await _bet(ctx, assets, "u3", mid, "YES", 55)
        await _bet(ctx, assets, "loser", mid, "NO", 100)
        clock.advance(PAST_DEADLINE)
        await ctx.engine.resolve_market(ADMIN, mid, "YES")

        paid = [await ctx.engine.claim_winnings(u, mid) for u in ("u1", "u2", "u3")]
        assert paid == [94, 94, 86]
        assert sum(paid) <= 275
        assert 275 - sum(paid) <= 2
        assert await assets.balance_of(CUSTODY) == 275 - sum(paid)


# ---------------------------------------------------------------------------
# place_bet
# ---------------------------------------------------------------------------

class TestPlaceBet:
    async def test_accumulates_pools_and_position(self, ctx, assets) -> None:
        mid = await _open_market(ctx)
        await _bet(ctx, assets, "alice", mid, "YES", 30)
        await _bet(ctx, assets, "alice", mid, "YES", 20)
        await _bet(ctx, assets, "bob", mid, "NO", 5)

        market = await ctx.registry.get_market(mid)
        assert (market.yes_pool, market.no_pool) == (50, 5)
        position = await ctx.engine.get_user_position(mid, "alice")
        assert (position.yes_bet, position.no_bet) == (50, 0)
        assert await assets.balance_of(CUSTODY) == 55

    async def test_accepts_outcome_enum(self, ctx, assets) -> None:
        mid = await _open_market(ctx)
        await fund(assets, "alice", 10)
        position = await ctx.engine.place_bet("alice", mid, Outcome.NO, 10)
        assert position.no_bet == 10

    @pytest.mark.parametrize("amount", [0, -5])
    async def test_rejects_non_positive_amount(self, ctx, amount) -> None:
        mid = await _open_market(ctx)
        with pytest.raises(InvalidAmountError):
            await ctx.engine.place_bet("alice", mid, "YES", amount)

    @pytest.mark.parametrize("outcome", ["NONE", "MAYBE", ""])
    async def test_rejects_invalid_outcome(self, ctx, outcome) -> None:
        mid = await _open_market(ctx)
        with pytest.raises(InvalidOutcomeError):
            await ctx.engine.place_bet("alice", mid, outcome, 10)

    async def test_rejects_amount_beyond_bigint(self, ctx) -> None:
        mid = await _open_market(ctx)
        with pytest.raises(InvalidAmountError):
            await ctx.engine.place_bet("alice", mid, "YES", MAX_AMOUNT + 1)

    async def test_rejects_bet_that_would_overflow_the_pot(self, ctx, assets) -> None:
        mid = await _open_market(ctx)
        await _bet(ctx, assets, "whale", mid, "YES", MAX_AMOUNT)
        await fund(assets, "bob", 1)
        with pytest.raises(InvalidAmountError):
            await ctx.engine.place_bet("bob", mid, "NO", 1)
        market = await ctx.registry.get_market(mid)
        assert (market.yes_pool, market.no_pool) == (MAX_AMOUNT, 0)
        assert await assets.balance_of("bob") == 1

    async def test_unknown_market(self, ctx) -> None:
        with pytest.raises(MarketNotFoundError):
            await ctx.engine.place_bet("alice", 99, "YES", 10)

    async def test_bet_just_before_deadline_succeeds(self, ctx, assets, clock) -> None:
        mid = await _open_market(ctx)
        clock.now = DEADLINE - timedelta(microseconds=1)
        await _bet(ctx, assets, "alice", mid, "YES", 10)
        assert (await ctx.registry.get_market(mid)).yes_pool == 10

    async def test_bet_at_deadline_is_rejected(self, ctx, assets, clock) -> None:
        mid = await _open_market(ctx)
        clock.now = DEADLINE
        await fund(assets, "alice", 10)
        with pytest.raises(BettingClosedError):
            await ctx.engine.place_bet("alice", mid, "YES", 10)

    async def test_bet_on_finalized_market_is_rejected(self, ctx, assets, clock) -> None:
        mid = await _open_market(ctx)
        clock.advance(PAST_DEADLINE)
        await ctx.engine.cancel_market(ADMIN, mid)
        await fund(assets, "alice", 10)
        with pytest.raises(MarketFinalizedError):
            await ctx.engine.place_bet("alice", mid, "YES", 10)

    async def test_paused_registry_rejects_bets(self, ctx, assets) -> None:
        mid = await _open_market(ctx)
        await ctx.registry.pause(ADMIN)
        await fund(assets, "alice", 10)
        with pytest.raises(RegistryPausedError):
            await ctx.engine.place_bet("alice", mid, "YES", 10)

    async def test_insufficient_balance_leaves_no_trace(self, ctx, assets, store) -> None:
        mid = await _open_market(ctx)
        await assets.approve("alice", 10)
        events_before = len(store.events)
        with pytest.raises(InsufficientBalanceError):
            await ctx.engine.place_bet("alice", mid, "YES", 10)

        market = await ctx.registry.get_market(mid)
        assert market.yes_pool == 0
        assert (await ctx.engine.get_user_position(mid, "alice")).yes_bet == 0
        assert len(store.events) == events_before

    async def test_insufficient_allowance(self, ctx, assets) -> None:
        mid = await _open_market(ctx)
        await assets.deposit("alice", 10)
        await assets.approve("alice", 9)
        with pytest.raises(InsufficientAllowanceError):
            await ctx.engine.place_bet("alice", mid, "YES", 10)
        assert await assets.balance_of("alice") == 10


# ---------------------------------------------------------------------------
# resolve / cancel
# ---------------------------------------------------------------------------

class TestFinalization:
    async def test_resolve_before_deadline_fails(self, ctx, assets) -> None:
        mid = await _open_market(ctx)
        await _bet(ctx, assets, "alice", mid, "YES", 10)
        await _bet(ctx, assets, "bob", mid, "NO", 10)
        with pytest.raises(DeadlineNotReachedError):
            await ctx.engine.resolve_market(ADMIN, mid, "YES")

    async def test_cancel_before_deadline_fails(self, ctx) -> None:
        mid = await _open_market(ctx)
        with pytest.raises(DeadlineNotReachedError):
            await ctx.engine.cancel_market(ADMIN, mid)

    async def test_resolve_exactly_at_deadline(self, ctx, assets, clock) -> None:
        mid = await _open_market(ctx)
        await _bet(ctx, assets, "alice", mid, "YES", 10)
        await _bet(ctx, assets, "bob", mid, "NO", 10)
        clock.now = DEADLINE
        market = await ctx.engine.resolve_market(ADMIN, mid, "NO")
        assert market.state is MarketState.RESOLVED
        assert market.winning_outcome is Outcome.NO
        assert market.finalized_at == DEADLINE

    async def test_finalization_requires_admin(self, ctx, clock) -> None:
        mid = await _open_market(ctx)
        clock.advance(PAST_DEADLINE)
        with pytest.raises(NotAdminError):
            await ctx.engine.cancel_market("mallory", mid)
        with pytest.raises(NotAdminError):
            await ctx.engine.resolve_market("mallory", mid, "YES")

    async def test_resolve_rejects_none_outcome(self, ctx, assets, clock) -> None:
        mid = await _open_market(ctx)
        await _bet(ctx, assets, "alice", mid, "YES", 10)
        await _bet(ctx, assets, "bob", mid, "NO", 10)
        clock.advance(PAST_DEADLINE)
        with pytest.raises(InvalidOutcomeError):
            await ctx.engine.resolve_market(ADMIN, mid, "NONE")

    async def test_terminal_states_never_change(self, ctx, assets, clock) -> None:
        mid = await _open_market(ctx)
        await _bet(ctx, assets, "alice", mid, "YES", 10)
        await _bet(ctx, assets, "bob", mid, "NO", 10)
        clock.advance(PAST_DEADLINE)
        await ctx.engine.resolve_market(ADMIN, mid, "YES")

        with pytest.raises(MarketFinalizedError):
            await ctx.engine.resolve_market(ADMIN, mid, "NO")
        with pytest.raises(MarketFinalizedError):
            await ctx.engine.cancel_market(ADMIN, mid)
        market = await ctx.registry.get_market(mid)
        assert market.state is MarketState.RESOLVED
        assert market.winning_outcome is Outcome.YES

    async def test_cancel_empty_market(self, ctx, store, clock) -> None:
        mid = await _open_market(ctx)
        clock.advance(PAST_DEADLINE)
        market = await ctx.engine.cancel_market(ADMIN, mid)
        assert market.state is MarketState.CANCELLED
        assert market.winning_outcome is Outcome.NONE
        assert store.events[-1].event_type is MarketEventType.MARKET_CANCELLED


# ---------------------------------------------------------------------------
# Claims
# ---------------------------------------------------------------------------

class TestClaims:
    async def test_claim_on_active_market_fails(self, ctx, assets) -> None:
        mid = await _open_market(ctx)
        await _bet(ctx, assets, "alice", mid, "YES", 10)
        with pytest.raises(MarketNotFinalizedError):
            await ctx.engine.claim_winnings("alice", mid)

    async def test_claim_without_stake_fails(self, ctx, clock) -> None:
        mid = await _open_market(ctx)
        clock.advance(PAST_DEADLINE)
        await ctx.engine.cancel_market(ADMIN, mid)
        with pytest.raises(NoStakeError):
            await ctx.engine.claim_winnings("stranger", mid)

    async def test_claim_unknown_market(self, ctx) -> None:
        with pytest.raises(MarketNotFoundError):
            await ctx.engine.claim_winnings("alice", 42)

    async def test_second_claim_fails_and_pays_nothing(self, ctx, assets, clock) -> None:
        mid = await _open_market(ctx)
        await _bet(ctx, assets, "alice", mid, "YES", 100)
        await _bet(ctx, assets, "bob", mid, "NO", 50)
        clock.advance(PAST_DEADLINE)
        await ctx.engine.resolve_market(ADMIN, mid, "YES")
        await ctx.engine.claim_winnings("alice", mid)

        with pytest.raises(AlreadyClaimedError):
            await ctx.engine.claim_winnings("alice", mid)
        assert await assets.balance_of("alice") == 150
        position = await ctx.engine.get_user_position(mid, "alice")
        assert position.claimed is True
        assert position.payout == 150

    async def test_cancel_refunds_both_sides(self, ctx, assets, clock) -> None:
        mid = await _open_market(ctx)
        await fund(assets, "alice", 70)
        await ctx.engine.place_bet("alice", mid, "YES", 30)
        await ctx.engine.place_bet("alice", mid, "NO", 40)
        await _bet(ctx, assets, "bob", mid, "NO", 25)
        clock.advance(PAST_DEADLINE)
        await ctx.engine.cancel_market(ADMIN, mid)

        assert await ctx.engine.claim_winnings("alice", mid) == 70
        assert await ctx.engine.claim_winnings("bob", mid) == 25
        assert await assets.balance_of(CUSTODY) == 0

    async def test_failed_payout_rolls_back_claim(self, store, clock) -> None:
        class RefusingLedger(InMemoryAssetLedger):
            async def transfer(self, recipient: str, amount: int) -> bool:
                return False

        assets = RefusingLedger(CUSTODY)
        ctx = build_context(store, assets, guard=ReentrancyGuard(), clock=clock)
        mid = await _open_market(ctx)
        await _bet(ctx, assets, "alice", mid, "YES", 10)
        await _bet(ctx, assets, "bob", mid, "NO", 10)
        clock.advance(PAST_DEADLINE)
        await ctx.engine.resolve_market(ADMIN, mid, "YES")

        with pytest.raises(TransferFailedError):
            await ctx.engine.claim_winnings("alice", mid)
        position = await ctx.engine.get_user_position(mid, "alice")
        assert position.claimed is False
        assert await ctx.engine.calculate_payout(mid, "alice") == 20

    async def test_reentrant_claim_is_rejected(self, store, clock) -> None:
        holder: dict = {}

        class ReenteringLedger(InMemoryAssetLedger):
            async def transfer(self, recipient: str, amount: int) -> bool:
                await holder["ctx"].engine.claim_winnings(recipient, holder["mid"])
                return await super().transfer(recipient, amount)

        assets = ReenteringLedger(CUSTODY)
        ctx = build_context(store, assets, guard=ReentrancyGuard(), clock=clock)
        mid = await _open_market(ctx)
        holder.update(ctx=ctx, mid=mid)
        await _bet(ctx, assets, "alice", mid, "YES", 10)
        await _bet(ctx, assets, "bob", mid, "NO", 10)
        clock.advance(PAST_DEADLINE)
        await ctx.engine.resolve_market(ADMIN, mid, "YES")

        with pytest.raises(ReentrantCallError):
            await ctx.engine.claim_winnings("alice", mid)
        assert (await ctx.engine.get_user_position(mid, "alice")).claimed is False
        assert await assets.balance_of("alice") == 0

        # Guard is released after the failure
        await ctx.engine.cancel_market(ADMIN, await _open_market_after(ctx, clock))

    async def test_calculate_payout(self, ctx, assets, clock) -> None:
        mid = await _open_market(ctx)
        await _bet(ctx, assets, "alice", mid, "YES", 100)
        await _bet(ctx, assets, "bob", mid, "NO", 50)
        assert await ctx.engine.calculate_payout(mid, "alice") == 0

        clock.advance(PAST_DEADLINE)
        await ctx.engine.resolve_market(ADMIN, mid, "YES")
        assert await ctx.engine.calculate_payout(mid, "alice") == 150
        assert await ctx.engine.calculate_payout(mid, "bob") == 0
        assert await ctx.engine.calculate_payout(mid, "stranger") == 0

        await ctx.engine.claim_winnings("alice", mid)
        assert await ctx.engine.calculate_payout(mid, "alice") == 0

    async def test_position_of_unknown_market(self, ctx) -> None:
        with pytest.raises(MarketNotFoundError):
            await ctx.engine.get_user_position(7, "alice")


async def _open_market_after(ctx, clock) -> int:
    """Open a market and move the clock past its deadline."""
    deadline = clock.now + timedelta(hours=1)
    market_id = await ctx.registry.create_market("creator", "Later?", deadline)
    clock.now = deadline
    return market_id


# ---------------------------------------------------------------------------
# claim_multiple
# ---------------------------------------------------------------------------

class TestClaimMultiple:
    async def test_claims_eligible_and_skips_the_rest(self, ctx, assets, clock) -> None:
        resolved = await _open_market(ctx)
        cancelled = await _open_market(ctx)
        active = await ctx.registry.create_market(
            "creator", "Later?", DEADLINE + timedelta(days=30)
        )
        no_stake = await _open_market(ctx)

        await _bet(ctx, assets, "alice", resolved, "YES", 100)
        await _bet(ctx, assets, "bob", resolved, "NO", 50)
        await _bet(ctx, assets, "alice", cancelled, "NO", 40)
        await _bet(ctx, assets, "alice", active, "YES", 5)
        clock.advance(PAST_DEADLINE)
        await ctx.engine.resolve_market(ADMIN, resolved, "YES")
        await ctx.engine.cancel_market(ADMIN, cancelled)
        await ctx.engine.cancel_market(ADMIN, no_stake)

        result = await ctx.engine.claim_multiple(
            "alice", [resolved, cancelled, active, no_stake, 999, resolved]
        )
        assert result.payouts == {resolved: 150, cancelled: 40}
        assert result.skipped == [active, no_stake, 999, resolved]
        assert result.total == 190
        assert await assets.balance_of("alice") == 190

    async def test_already_claimed_market_is_skipped(self, ctx, assets, clock) -> None:
        mid = await _open_market(ctx)
        await _bet(ctx, assets, "alice", mid, "YES", 10)
        clock.advance(PAST_DEADLINE)
        await ctx.engine.cancel_market(ADMIN, mid)
        await ctx.engine.claim_winnings("alice", mid)

        result = await ctx.engine.claim_multiple("alice", [mid])
        assert result.payouts == {}
        assert result.skipped == [mid]
        assert await assets.balance_of("alice") == 10

    async def test_empty_batch_pays_nothing(self, ctx) -> None:
        result = await ctx.engine.claim_multiple("alice", [])
        assert result.total == 0

    async def test_losing_positions_are_marked_claimed(self, ctx, assets, clock) -> None:
        mid = await _open_market(ctx)
        await _bet(ctx, assets, "alice", mid, "YES", 10)
        await _bet(ctx, assets, "bob", mid, "NO", 10)
        clock.advance(PAST_DEADLINE)
        await ctx.engine.resolve_market(ADMIN, mid, "YES")

        result = await ctx.engine.claim_multiple("bob", [mid])
        assert result.payouts == {mid: 0}
        assert (await ctx.engine.get_user_position(mid, "bob")).claimed is True

    async def test_failed_batch_transfer_rolls_back_every_claim(self, store, clock) -> None:
        class RefusingLedger(InMemoryAssetLedger):
            async def transfer(self, recipient: str, amount: int) -> bool:
                return False

        assets = RefusingLedger(CUSTODY)
        ctx = build_context(store, assets, guard=ReentrancyGuard(), clock=clock)
        resolved = await _open_market(ctx)
        cancelled = await _open_market(ctx)
        await _bet(ctx, assets, "alice", resolved, "YES", 100)
        await _bet(ctx, assets, "bob", resolved, "NO", 50)
        await _bet(ctx, assets, "alice", cancelled, "NO", 40)
        clock.advance(PAST_DEADLINE)
        await ctx.engine.resolve_market(ADMIN, resolved, "YES")
        await ctx.engine.cancel_market(ADMIN, cancelled)
        events_before = len(store.events)

        with pytest.raises(TransferFailedError):
            await ctx.engine.claim_multiple("alice", [resolved, cancelled])

        for market_id in (resolved, cancelled):
            position = await ctx.engine.get_user_position(market_id, "alice")
            assert position.claimed is False
            assert position.payout == 0
        assert await ctx.engine.calculate_payout(resolved, "alice") == 150
        assert await ctx.engine.calculate_payout(cancelled, "alice") == 40
        assert len(store.events) == events_before
        assert await assets.balance_of(CUSTODY) == 190
