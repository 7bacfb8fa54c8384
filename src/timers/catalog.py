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
Timer Catalog Module

Read-only view over the loaded timer definitions: lookups by area and
sub-area, the "known timers" listing, and upcoming schedules.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from errors import InvalidTimerDefinition

from .definitions import TimerDefinition
from .occurrence import next_occurrence, time_left, upcoming, utcnow

logger = logging.getLogger("mhtimer.timers.catalog")

# Schedule lookahead bounds, in hours
DEFAULT_SCHEDULE_HOURS = 24
MAX_SCHEDULE_HOURS = 240
MAX_SCHEDULE_ENTRIES = 24


@dataclass
class ScheduleEntry:
    """One upcoming activation in a schedule listing."""

    time: datetime
    timer: TimerDefinition


class TimerCatalog:
    """
    Holds the timer definitions loaded at startup.

    The catalog never changes after construction; the scheduler, dispatcher,
    alias resolver, and commands all read from the same instance.
    """

    def __init__(self, timers: Iterable[TimerDefinition]):
        self.timers: list[TimerDefinition] = list(timers)

    def __len__(self) -> int:
        return len(self.timers)

    def __iter__(self):
        return iter(self.timers)

    @property
    def areas(self) -> list[str]:
        """Distinct areas in definition order."""
        return list(dict.fromkeys(t.area for t in self.timers))

    @property
    def sub_areas(self) -> dict[str, str]:
        """Mapping of each known sub-area to its parent area."""
        mapping = {}
        for timer in self.timers:
            if timer.sub_area and timer.sub_area not in mapping:
                mapping[timer.sub_area] = timer.area
        return mapping

    def matching(self, area: Optional[str], sub_area: Optional[str] = None) -> list[TimerDefinition]:
        """All timers in the area, narrowed to the sub-area when one is given."""
        return [
            t for t in self.timers
            if t.area == area and (not sub_area or t.sub_area == sub_area)
        ]

    def soonest(
        self,
        area: Optional[str],
        sub_area: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[tuple[TimerDefinition, datetime]]:
        """
        Find the matching timer that activates first.

        Returns:
            Tuple of (timer, next occurrence), or None if nothing matched
        """
        if now is None:
            now = utcnow()

        best = None
        for timer in self.matching(area, sub_area):
            try:
                when = next_occurrence(timer, now)
            except InvalidTimerDefinition as e:
                logger.warning(f"Ignoring timer {timer.name}: {e}")
                continue
            if best is None or when < best[1]:
                best = (timer, when)
        return best

    def describe(self) -> str:
        """List the known areas and their sub-areas for "did you mean" replies."""
        details: dict[str, list[str]] = {}
        for timer in self.timers:
            subs = details.setdefault(timer.area, [])
            if timer.sub_area and timer.sub_area not in subs:
                subs.append(timer.sub_area)

        names = []
        for area, subs in details.items():
            description = f"`{area}`"
            if subs:
                description += f" ({', '.join(subs)})"
            names.append(description)
        return "I do not know that timer, but I do know:\n" + "\n".join(names)

    def schedule(
        self,
        area: Optional[str] = None,
        hours: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> tuple[list[ScheduleEntry], int]:
        """
        Collect upcoming activations, soonest first.

        Args:
            area: Restrict to one area (None for all)
            hours: Lookahead window; out of range values are clamped
            now: Reference time

        Returns:
            Tuple of (entries, effective hours)
        """
        if now is None:
            now = utcnow()
        if not hours or hours <= 0:
            hours = DEFAULT_SCHEDULE_HOURS
        hours = min(hours, MAX_SCHEDULE_HOURS)

        until = now + timedelta(hours=hours)
        entries = []
        for timer in self.timers:
            if area and timer.area != area:
                continue
            try:
                entries.extend(ScheduleEntry(when, timer) for when in upcoming(timer, until, now))
            except InvalidTimerDefinition as e:
                logger.warning(f"Ignoring timer {timer.name}: {e}")

        entries.sort(key=lambda entry: entry.time)
        return entries, hours

    def build_schedule(
        self,
        area: Optional[str] = None,
        hours: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """Render the upcoming schedule as a ready-to-send message."""
        if now is None:
            now = utcnow()
        entries, hours = self.schedule(area, hours, now)

        text = f"I have {len(entries)} timers coming up in the next {hours} hours"
        if len(entries) > MAX_SCHEDULE_ENTRIES:
            text += f". Here are the next {MAX_SCHEDULE_ENTRIES} of them"
            entries = entries[:MAX_SCHEDULE_ENTRIES]
        text += ":\n" if entries else "."

        for entry in entries:
            text += f"{entry.timer.demand_text} {time_left(entry.time, now)}\n"
        return text
