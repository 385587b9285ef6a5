"""
Best-effort channel for observing internal role events from test code.

The channel is a bounded queue holding at most one pending event. Roles
offer events without ever blocking: when the slot is already occupied
the new event is dropped and the reporter carries on. Test code that
wants to observe events receives them from the slot.
"""

import asyncio
from enum import Enum
from typing import Any, AsyncIterator


class ReportOutcome(Enum):
    DELIVERED = "delivered"
    DROPPED = "dropped"


class ReportChannel:
    def __init__(self) -> None:
        self._slot: asyncio.Queue[Any] = asyncio.Queue(maxsize=1)
        self._delivered = 0
        self._dropped = 0

    @property
    def delivered_count(self) -> int:
        return self._delivered

    @property
    def dropped_count(self) -> int:
        return self._dropped

    @property
    def pending(self) -> bool:
        return self._slot.full()

    def report(self, info: Any) -> ReportOutcome:
        try:
            self._slot.put_nowait(info)

        except asyncio.QueueFull:
            self._dropped += 1
            return ReportOutcome.DROPPED

        self._delivered += 1
        return ReportOutcome.DELIVERED

    async def report_refused(
        self,
        request: Any,
        response: Any,
        error: BaseException | None,
        method: str,
    ) -> None:
        """Acknowledge an RPC refused by a role. Nothing is queued."""
        return None

    async def receive(self, timeout: float | None = None) -> Any:
        """
        Wait for the next reported event.

        Raises asyncio.TimeoutError (TimeoutError) if nothing is reported
        within the timeout.
        """
        if timeout is None:
            return await self._slot.get()

        return await asyncio.wait_for(self._slot.get(), timeout=timeout)

    def receive_nowait(self) -> Any | None:
        try:
            return self._slot.get_nowait()

        except asyncio.QueueEmpty:
            return None

    async def events(self, timeout: float) -> AsyncIterator[Any]:
        """Yield reported events until none arrives within the timeout."""
        while True:
            try:
                yield await self.receive(timeout=timeout)

            except asyncio.TimeoutError:
                return

    def clear(self) -> None:
        while not self._slot.empty():
            self._slot.get_nowait()
