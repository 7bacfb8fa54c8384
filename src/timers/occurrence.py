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
Occurrence Calculator Module

Pure functions for computing when a periodic timer activates next.
Occurrences are anchor_time + k * recurrence_interval for integer k.
"""

from datetime import datetime, timedelta
from typing import Iterator, Optional

import pytz

from errors import InvalidTimerDefinition

from .definitions import TimerDefinition


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(pytz.UTC)


def _check_interval(timer: TimerDefinition) -> timedelta:
    interval = timer.recurrence_interval
    if interval <= timedelta(0):
        raise InvalidTimerDefinition(
            f"Timer '{timer.name}' has a non-positive recurrence interval ({interval})"
        )
    return interval


def next_occurrence(timer: TimerDefinition, from_time: Optional[datetime] = None) -> datetime:
    """
    Get the first occurrence strictly after the given time.

    An occurrence that falls exactly on from_time is skipped, so a timer that
    has just elapsed is not reported again.

    Args:
        timer: The timer definition
        from_time: Reference time (defaults to now)

    Returns:
        The next occurrence as an aware UTC datetime

    Raises:
        InvalidTimerDefinition: If the recurrence interval is not positive
    """
    interval = _check_interval(timer)
    if from_time is None:
        from_time = utcnow()

    # timedelta floor division is exact (integer microseconds)
    elapsed_periods = (from_time - timer.anchor_time) // interval
    return timer.anchor_time + (elapsed_periods + 1) * interval


def upcoming(
    timer: TimerDefinition,
    until_time: datetime,
    from_time: Optional[datetime] = None,
) -> Iterator[datetime]:
    """
    Lazily yield every occurrence after from_time and no later than until_time.

    The generator holds no shared state; call again to restart.
    """
    interval = _check_interval(timer)
    occurrence = next_occurrence(timer, from_time)
    while occurrence <= until_time:
        yield occurrence
        occurrence += interval


def time_left(when: datetime, now: Optional[datetime] = None) -> str:
    """
    Describe how long until the given time, e.g. "in 2 days, 3 hours and 1 minute".

    Args:
        when: The upcoming time
        now: Reference time (defaults to now)

    Returns:
        Human-readable remaining time
    """
    if now is None:
        now = utcnow()
    remaining = when - now
    if remaining < timedelta(minutes=1):
        return "in less than a minute"

    total_minutes = int(remaining.total_seconds() // 60)
    days, rest = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rest, 60)

    labels = []
    for value, unit in ((days, "day"), (hours, "hour"), (minutes, "minute")):
        if value:
            labels.append(f"{value} {unit}" if value == 1 else f"{value} {unit}s")

    if len(labels) == 1:
        return f"in {labels[0]}"
    return "in " + ", ".join(labels[:-1]) + " and " + labels[-1]
