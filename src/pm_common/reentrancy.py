"""Reentrancy guard shared by the registry and the settlement engine.

The flag is held for the whole of every externally-callable mutating
operation. An asset collaborator that calls back into the engine while a
transfer is in flight hits ReentrantCallError instead of seeing
half-updated pools.
"""

from types import TracebackType

from src.pm_common.errors import ReentrantCallError


class ReentrancyGuard:
    def __init__(self) -> None:
        self._entered = False

    @property
    def locked(self) -> bool:
        return self._entered

    def __enter__(self) -> "ReentrancyGuard":
        if self._entered:
            raise ReentrantCallError()
        self._entered = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._entered = False
