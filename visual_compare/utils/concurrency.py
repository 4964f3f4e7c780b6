"""Join-all helper that collects every task's outcome without short-circuiting."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, Iterable, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Settled(Generic[T]):
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_all(awaitables: Iterable[Awaitable[T]]) -> list[Settled[T]]:
    """Await everything and return one ``Settled`` per input, in input order.

    A failing task never cancels its siblings. Cancellation of the caller
    still propagates.
    """
    outcomes: list[Any] = await asyncio.gather(*awaitables, return_exceptions=True)
    settled: list[Settled[T]] = []
    for outcome in outcomes:
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, BaseException):
            settled.append(Settled(error=outcome))
        else:
            settled.append(Settled(value=outcome))
    return settled
