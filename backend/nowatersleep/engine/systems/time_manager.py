# backend/nowatersleep/engine/systems/time_manager.py
"""
TimeEventManager - Scheduled events and recurring timers.

Provides:
- One-shot and recurring event scheduling (priority queue ordered by due time)
- Cancellation by event ID or through a TimerHandle
- A background loop that fires due events on the asyncio event loop
- Manual time control (ManualClock + advance) for deterministic simulation

All callbacks run on the single event loop that drives the manager, so
systems scheduling events never need locks.
"""

from __future__ import annotations

import asyncio
import contextlib
import heapq
import logging
import time
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, List

from ..world import TimeEvent

if TYPE_CHECKING:
    from .context import GameContext

logger = logging.getLogger(__name__)

Callback = Callable[[], Awaitable[None]]


class ManualClock:
    """
    A clock that only moves when told to.

    Usage:
        clock = ManualClock()
        time_manager = TimeEventManager(ctx, clock=clock)
        await time_manager.advance(30)
    """

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("Cannot move a clock backwards")
        self.now += seconds
        return self.now


@dataclass
class TimerHandle:
    """
    Cancellable reference to a scheduled event.

    destroy() flags the event as cancelled; the manager checks the flag before
    every fire, so a destroyed timer never fires again.
    """
    event_id: str
    manager: "TimeEventManager"
    cancelled: bool = False

    def destroy(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        self.manager.cancel(self.event_id)

    @property
    def is_active(self) -> bool:
        return not self.cancelled and self.manager.is_scheduled(self.event_id)


class TimeEventManager:
    """
    Priority-queue scheduler for time events.

    Usage:
        time_manager = TimeEventManager(ctx)
        await time_manager.start()
        time_manager.schedule(5.0, callback, event_id="my_event")
        time_manager.cancel("my_event")
        await time_manager.stop()
    """

    def __init__(
        self,
        ctx: "GameContext | None" = None,
        clock: Callable[[], float] | None = None,
        tick_interval: float = 0.05,
    ) -> None:
        self.ctx = ctx
        self.clock = clock or time.monotonic
        self.tick_interval = tick_interval

        self._events: List[TimeEvent] = []
        self._event_index: Dict[str, TimeEvent] = {}
        self._task: asyncio.Task | None = None
        self._running = False

        # Due time of the event being dispatched (None outside dispatch)
        self._dispatch_time: float | None = None

    # ---------- Lifecycle ----------

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background processing loop. Calling twice is a no-op."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Time event system started")

    async def stop(self) -> None:
        """Stop the background processing loop. Scheduled events are kept."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info("Time event system stopped")

    async def _run_loop(self) -> None:
        while self._running:
            await self.process_due_events()
            await asyncio.sleep(self.tick_interval)

    # ---------- Scheduling ----------

    def now(self) -> float:
        """
        Current scheduler time.

        While an event is being dispatched this is the event's due time, so
        anything scheduled from a callback is spaced from when the event was
        due rather than when the loop got around to it.
        """
        if self._dispatch_time is not None:
            return self._dispatch_time
        return self.clock()

    def schedule(
        self,
        delay_seconds: float,
        callback: Callback,
        event_id: str | None = None,
        recurring: bool = False,
        repetitions: int = 0,
    ) -> str:
        """
        Schedule a time event.

        Args:
            delay_seconds: Seconds until the first execution (also the interval
                between recurrences when recurring)
            callback: Async function to call
            event_id: Optional ID; generated if omitted. Reusing the ID of a
                live event replaces it.
            recurring: If True, reschedule after every execution
            repetitions: For recurring events, how many times to fire
                (0 = forever)

        Returns:
            The event ID
        """
        if delay_seconds < 0:
            raise ValueError(f"delay_seconds must be >= 0, got {delay_seconds}")
        if recurring and delay_seconds <= 0:
            raise ValueError("Recurring events need a positive interval")
        if repetitions < 0:
            raise ValueError(f"repetitions must be >= 0, got {repetitions}")

        if event_id is None:
            event_id = str(uuid.uuid4())
        elif event_id in self._event_index:
            self.cancel(event_id)

        event = TimeEvent(
            execute_at=self.now() + delay_seconds,
            callback=callback,
            event_id=event_id,
            recurring=recurring,
            interval=delay_seconds if recurring else 0.0,
            remaining_runs=repetitions if recurring and repetitions > 0 else None,
        )
        heapq.heappush(self._events, event)
        self._event_index[event_id] = event
        return event_id

    def cancel(self, event_id: str) -> bool:
        """
        Cancel a scheduled event.

        Returns:
            True if a live event was cancelled, False if none was scheduled
        """
        event = self._event_index.pop(event_id, None)
        if event is None:
            return False
        event.cancelled = True
        return True

    def cancel_all(self) -> int:
        """Cancel every scheduled event. Returns how many were cancelled."""
        count = len(self._event_index)
        for event in self._event_index.values():
            event.cancelled = True
        self._event_index.clear()
        self._events.clear()
        return count

    def is_scheduled(self, event_id: str) -> bool:
        return event_id in self._event_index

    @property
    def pending_count(self) -> int:
        return len(self._event_index)

    def once(self, delay_seconds: float, callback: Callback) -> TimerHandle:
        """Schedule a one-shot event and return a handle to it."""
        return TimerHandle(self.schedule(delay_seconds, callback), self)

    def repeat(self, interval: float, repetitions: int, callback: Callback) -> TimerHandle:
        """Schedule a recurring event (repetitions=0 repeats forever)."""
        event_id = self.schedule(interval, callback, recurring=True, repetitions=repetitions)
        return TimerHandle(event_id, self)

    def next_tick(self, callback: Callback) -> TimerHandle:
        """Run a callback on the next pass of the scheduler."""
        return self.once(0.0, callback)

    # ---------- Dispatch ----------

    async def process_due_events(self) -> int:
        """
        Fire every event that is due, in due-time order.

        Events scheduled by callbacks that are already due are fired in the
        same pass. A callback that raises is logged; a recurring event keeps
        its schedule.

        Returns:
            Number of callbacks executed
        """
        now = self.clock()
        executed = 0

        while self._events and self._events[0].execute_at <= now:
            event = heapq.heappop(self._events)
            if event.cancelled:
                continue

            self._dispatch_time = event.execute_at
            try:
                await event.callback()
            except Exception:
                logger.exception("Error in time event %s", event.event_id)
            finally:
                self._dispatch_time = None
            executed += 1

            if event.cancelled:
                continue

            if event.recurring:
                if event.remaining_runs is not None:
                    event.remaining_runs -= 1
                if event.remaining_runs is None or event.remaining_runs > 0:
                    event.execute_at += event.interval
                    heapq.heappush(self._events, event)
                    continue

            # Finished: drop from the index unless the ID was reused
            if self._event_index.get(event.event_id) is event:
                del self._event_index[event.event_id]

        return executed

    async def advance(self, seconds: float) -> int:
        """
        Move a ManualClock forward and fire everything that became due.

        Returns:
            Number of callbacks executed
        """
        if not isinstance(self.clock, ManualClock):
            raise TypeError("advance() requires a ManualClock")
        self.clock.advance(seconds)
        return await self.process_due_events()
