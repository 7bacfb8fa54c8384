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
Timers Package

Recurring timer definitions, occurrence math, and the announcement
scheduler and dispatcher.
"""

from .definitions import (
    TimerDefinition,
    load_timer_definitions,
    parse_anchor_time,
    parse_duration,
    timer_from_record,
)
from .occurrence import next_occurrence, time_left, upcoming, utcnow
from .catalog import ScheduleEntry, TimerCatalog
from .dispatcher import DispatchStats, NotificationDispatcher, NotificationSink
from .scheduler import AnnouncementScheduler, TimerState

__all__ = [
    "TimerDefinition",
    "load_timer_definitions",
    "parse_anchor_time",
    "parse_duration",
    "timer_from_record",
    "next_occurrence",
    "time_left",
    "upcoming",
    "utcnow",
    "ScheduleEntry",
    "TimerCatalog",
    "DispatchStats",
    "NotificationDispatcher",
    "NotificationSink",
    "AnnouncementScheduler",
    "TimerState",
]
