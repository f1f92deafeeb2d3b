"""Unified error codes and custom exceptions.

Every caller-visible failure is an AppError subclass carrying an ErrorCode.
Callers match on ``exc.code`` (or the subclass) instead of parsing messages.

Error code ranges:
  1xxx: Authorization
  2xxx: Funding (asset collaborator)
  3xxx: Market state machine
  4xxx: Input validation
  5xxx: Claim
  6xxx: Operational (registry / guard)
  9xxx: System
"""

from enum import IntEnum


class ErrorCode(IntEnum):
    # 1xxx: Authorization
    INVALID_CREDENTIALS = 1003
    NOT_ADMIN = 1010
    # 2xxx: Funding
    INSUFFICIENT_BALANCE = 2001
    INSUFFICIENT_ALLOWANCE = 2003
    TRANSFER_FAILED = 2004
    # 3xxx: Market state machine
    MARKET_NOT_FOUND = 3001
    MARKET_FINALIZED = 3002
    BETTING_CLOSED = 3003
    DEADLINE_NOT_REACHED = 3004
    NO_OPPOSITION = 3005
    # 4xxx: Input validation
    EMPTY_QUESTION = 4010
    INVALID_AMOUNT = 4011
    INVALID_OUTCOME = 4012
    RESOLUTION_NOT_IN_FUTURE = 4013
    INVALID_FEE_RECIPIENT = 4014
    INVALID_STATE_FILTER = 4015
    # 5xxx: Claim
    MARKET_NOT_FINALIZED = 5010
    ALREADY_CLAIMED = 5011
    NO_STAKE = 5012
    # 6xxx: Operational
    REGISTRY_PAUSED = 6001
    ALREADY_PAUSED = 6002
    NOT_PAUSED = 6003
    FEE_CAP_EXCEEDED = 6004
    REENTRANT_CALL = 6005
    # 9xxx: System
    RATE_LIMITED = 9001
    INTERNAL = 9002


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Authorization ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.INVALID_CREDENTIALS, "Invalid or expired credentials", 401)


class NotAdminError(AppError):
    def __init__(self, caller: str) -> None:
        super().__init__(ErrorCode.NOT_ADMIN, f"Admin privileges required: {caller}", 403)


# --- 2xxx: Funding ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            ErrorCode.INSUFFICIENT_BALANCE,
            f"Insufficient balance: required {required}, available {available}",
            422,
        )


class InsufficientAllowanceError(AppError):
    def __init__(self, required: int, allowed: int) -> None:
        super().__init__(
            ErrorCode.INSUFFICIENT_ALLOWANCE,
            f"Insufficient allowance: required {required}, allowed {allowed}",
            422,
        )


class TransferFailedError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(ErrorCode.TRANSFER_FAILED, f"Asset transfer failed: {detail}", 502)


# --- 3xxx: Market state machine ---

class MarketNotFoundError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(ErrorCode.MARKET_NOT_FOUND, f"Market not found: {market_id}", 404)


class MarketFinalizedError(AppError):
    def __init__(self, market_id: int, state: str) -> None:
        super().__init__(
            ErrorCode.MARKET_FINALIZED,
            f"Market {market_id} is already finalized (state={state})",
            422,
        )


class BettingClosedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(
            ErrorCode.BETTING_CLOSED, f"Betting window has closed for market {market_id}", 422
        )


class DeadlineNotReachedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(
            ErrorCode.DEADLINE_NOT_REACHED,
            f"Resolution time not reached for market {market_id}",
            422,
        )


class NoOppositionError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(
            ErrorCode.NO_OPPOSITION,
            f"Market {market_id} has no opposition: both pools must be non-empty to resolve",
            422,
        )


# --- 4xxx: Input validation ---

class EmptyQuestionError(AppError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.EMPTY_QUESTION, "Question must not be empty", 422)


class InvalidAmountError(AppError):
    def __init__(self, amount: int) -> None:
        super().__init__(ErrorCode.INVALID_AMOUNT, f"Invalid amount: {amount}", 422)


class InvalidOutcomeError(AppError):
    def __init__(self, outcome: object) -> None:
        super().__init__(ErrorCode.INVALID_OUTCOME, f"Invalid outcome: {outcome}", 422)


class ResolutionNotInFutureError(AppError):
    def __init__(self) -> None:
        super().__init__(
            ErrorCode.RESOLUTION_NOT_IN_FUTURE, "Resolution time must be in the future", 422
        )


class InvalidFeeRecipientError(AppError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.INVALID_FEE_RECIPIENT, "Fee recipient must not be empty", 422)


class InvalidStateFilterError(AppError):
    def __init__(self, state: str) -> None:
        super().__init__(ErrorCode.INVALID_STATE_FILTER, f"Unknown market state: {state}", 422)


# --- 5xxx: Claim ---

class MarketNotFinalizedError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(
            ErrorCode.MARKET_NOT_FINALIZED, f"Market {market_id} is not finalized", 422
        )


class AlreadyClaimedError(AppError):
    def __init__(self, market_id: int, user: str) -> None:
        super().__init__(
            ErrorCode.ALREADY_CLAIMED,
            f"Position already claimed: {user} on market {market_id}",
            409,
        )


class NoStakeError(AppError):
    def __init__(self, market_id: int, user: str) -> None:
        super().__init__(
            ErrorCode.NO_STAKE, f"No stake for {user} on market {market_id}", 422
        )


# --- 6xxx: Operational ---

class RegistryPausedError(AppError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.REGISTRY_PAUSED, "Registry is paused", 503)


class AlreadyPausedError(AppError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.ALREADY_PAUSED, "Registry is already paused", 409)


class NotPausedError(AppError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.NOT_PAUSED, "Registry is not paused", 409)


class FeeCapExceededError(AppError):
    def __init__(self, requested: int, limit: int) -> None:
        super().__init__(
            ErrorCode.FEE_CAP_EXCEEDED,
            f"Fee cap out of range: {requested} bps (allowed 0-{limit})",
            422,
        )


class ReentrantCallError(AppError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.REENTRANT_CALL, "Reentrant call rejected", 409)


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(ErrorCode.RATE_LIMITED, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(ErrorCode.INTERNAL, detail, 500)
