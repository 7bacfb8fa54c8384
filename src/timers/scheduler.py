# MHTimer - Discord Timer and Reminder Bot
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
Announcement Scheduler Module

Keeps one wake-up task per timer definition. Each timer starts armed for a
single early wake-up (its next occurrence minus the advance notice) and,
after that first firing, repeats every recurrence interval.

Uses absolute deadlines so the cadence does not drift with the time spent
delivering each announcement.
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Optional

from errors import InvalidTimerDefinition

from .definitions import TimerDefinition
from .occurrence import next_occurrence, utcnow

logger = logging.getLogger("mhtimer.timers.scheduler")


class TimerState(Enum):
    IDLE = "idle"
    ARMED_ONCE = "armed_once"
    REPEATING = "repeating"


class AnnouncementScheduler:
    """
    Schedules timer announcements.

    Each timer runs in its own task, so a slow or failing firing for one
    timer never delays another, and the firings of a single timer are
    strictly sequential.
    """

    def __init__(
        self,
        timers: Iterable[TimerDefinition],
        on_fire: Callable[[TimerDefinition], Awaitable[Any]],
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the scheduler.

        Args:
            timers: Timer definitions to schedule
            on_fire: Coroutine called on every activation (the dispatcher)
            clock: Source of the current UTC time
        """
        self.timers = list(timers)
        self.on_fire = on_fire
        self.clock = clock
        self._tasks: dict[int, asyncio.Task] = {}
        self._states: dict[int, TimerState] = {i: TimerState.IDLE for i in range(len(self.timers))}
        self._wakeups: dict[int, datetime] = {}
        self._started = False

    @property
    def running(self) -> bool:
        return self._started

    def state(self, timer: TimerDefinition) -> TimerState:
        return self._states[self._index(timer)]

    def next_wakeup(self, timer: TimerDefinition) -> Optional[datetime]:
        return self._wakeups.get(self._index(timer))

    def _index(self, timer: TimerDefinition) -> int:
        for i, candidate in enumerate(self.timers):
            if candidate is timer:
                return i
        return self.timers.index(timer)

    def start(self) -> int:
        """
        Arm every timer for its first wake-up.

        Timers whose schedule cannot be computed are logged and skipped.

        Returns:
            Number of timers armed
        """
        if self._started:
            return len(self._tasks)

        now = self.clock()
        for index, timer in enumerate(self.timers):
            try:
                first_wakeup = next_occurrence(timer, now) - timer.advance_notice
            except InvalidTimerDefinition as e:
                logger.error(f"Not scheduling {timer.name}: {e}")
                continue

            self._states[index] = TimerState.ARMED_ONCE
            self._wakeups[index] = first_wakeup
            self._tasks[index] = asyncio.create_task(
                self._run(index, timer, first_wakeup),
                name=f"timer:{timer.name}",
            )

        self._started = True
        logger.info(f"Armed {len(self._tasks)} of {len(self.timers)} timer(s)")
        return len(self._tasks)

    async def stop(self) -> None:
        """Cancel every pending wake-up and wait for the tasks to finish."""
        if not self._tasks:
            self._started = False
            return

        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self._tasks.clear()
        self._wakeups.clear()
        for index in self._states:
            self._states[index] = TimerState.IDLE
        self._started = False
        logger.info("Announcement scheduler stopped")

    async def _sleep_until(self, when: datetime) -> None:
        # Loop because the event loop clock and wall clock can disagree slightly
        while True:
            delay = (when - self.clock()).total_seconds()
            if delay <= 0:
                return
            await asyncio.sleep(delay)

    async def _fire(self, timer: TimerDefinition) -> None:
        try:
            await self.on_fire(timer)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error announcing {timer.name}: {e}", exc_info=True)

    async def _run(self, index: int, timer: TimerDefinition, wakeup: datetime) -> None:
        interval = timer.recurrence_interval
        while True:
            self._wakeups[index] = wakeup
            await self._sleep_until(wakeup)
            await self._fire(timer)

            if self._states[index] is TimerState.ARMED_ONCE:
                self._states[index] = TimerState.REPEATING
                logger.debug(f"{timer.name} now repeats every {interval}")

            wakeup += interval
            now = self.clock()
            if wakeup <= now:
                # Fell behind (e.g. the host was suspended); skip the missed cycles
                missed = (now - wakeup) // interval + 1
                logger.warning(f"{timer.name} skipped {missed} missed activation(s)")
                wakeup += missed * interval
