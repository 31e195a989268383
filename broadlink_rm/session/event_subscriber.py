# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
SessionEventSubscriber -- an async context manager/iterable that queues a session's
events for consumption by a coroutine.
"""

from __future__ import annotations

import asyncio
import time

from ..internal_types import *
from ..pkg_logging import logger
from .events import SessionEvent, SessionEventKind

if TYPE_CHECKING:
    from .device_session import DeviceSession

class SessionEventSubscriber(
        AsyncContextManager['SessionEventSubscriber'],
        AsyncIterable[SessionEvent]
      ):
    """Queues events emitted by a DeviceSession while the context is entered.

    Usage:
        async with session.subscribe([SessionEventKind.TEMPERATURE]) as subscriber:
            session.check_temperature()
            event = await subscriber.wait_for(SessionEventKind.TEMPERATURE, timeout=5.0)
    """

    session: DeviceSession
    kinds: Optional[FrozenSet[SessionEventKind]]
    """The event kinds to queue, or None for all kinds."""

    queue: asyncio.Queue[SessionEvent]
    handler_id: Optional[int] = None

    def __init__(self, session: DeviceSession, kinds: Optional[Iterable[SessionEventKind]]=None) -> None:
        self.session = session
        self.kinds = None if kinds is None else frozenset(kinds)
        self.queue = asyncio.Queue()

    def _on_event(self, event: SessionEvent) -> None:
        if self.kinds is None or event.kind in self.kinds:
            self.queue.put_nowait(event)

    async def __aenter__(self) -> SessionEventSubscriber:
        assert self.handler_id is None
        self.handler_id = self.session.add_event_handler(self._on_event)
        return self

    async def __aexit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> None:
        if self.handler_id is not None:
            self.session.remove_event_handler(self.handler_id)
            self.handler_id = None

    async def receive(self) -> SessionEvent:
        """Waits for and returns the next queued event."""
        return await self.queue.get()

    async def wait_for(self, kind: SessionEventKind, timeout: Optional[float]=None) -> SessionEvent:
        """Waits for the next event of a given kind, discarding others.

        Raises asyncio.TimeoutError if no such event arrives within timeout seconds.
        """
        end_time = None if timeout is None else time.monotonic() + timeout
        while True:
            remaining_time = None if end_time is None else max(end_time - time.monotonic(), 0.0)
            event = await asyncio.wait_for(self.receive(), remaining_time)
            if event.kind == kind:
                return event
            logger.debug(f"{self.session}: discarding {event} while waiting for {kind.name}")

    async def iter_events(self) -> AsyncIterator[SessionEvent]:
        while True:
            yield await self.receive()

    def __aiter__(self) -> AsyncIterator[SessionEvent]:
        return self.iter_events()
