"""Domain models for pm_clearing."""

from dataclasses import dataclass, field


@dataclass
class ClaimBatchResult:
    """Outcome of claim_multiple: what was paid and what was skipped."""

    payouts: dict[int, int] = field(default_factory=dict)   # market_id -> amount
    skipped: list[int] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(self.payouts.values())
