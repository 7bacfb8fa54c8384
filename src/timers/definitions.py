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
Timer Definitions Module

Loads the recurring timer records from the timer settings file.

Each record looks like:

    {
        "area": "fg",
        "sub_area": "close",
        "seed_time": "2017-07-24T12:00:00.000Z",
        "repeat_time": {"hours": 20},
        "announce_offset": {"minutes": 15},
        "demand_string": "The Forbidden Grove closes",
        "announce_string": "The Forbidden Grove is closing soon"
    }
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional, Union

import dateparser
import pytz

from errors import InvalidTimerDefinition

logger = logging.getLogger("mhtimer.timers.definitions")

# Units accepted in duration objects, e.g. {"hours": 3, "minutes": 30}
DURATION_UNITS = ("weeks", "days", "hours", "minutes", "seconds", "milliseconds")


@dataclass(frozen=True)
class TimerDefinition:
    """A recurring event, fully determined by its anchor time and interval."""

    area: str
    sub_area: Optional[str]
    demand_text: str
    announce_text: str
    recurrence_interval: timedelta
    advance_notice: timedelta
    anchor_time: datetime  # UTC

    @property
    def name(self) -> str:
        """Short label, e.g. 'fg: close'."""
        return f"{self.area}: {self.sub_area}" if self.sub_area else self.area


def parse_duration(value: Any, field_name: str = "duration") -> timedelta:
    """
    Convert a duration object into a timedelta.

    Args:
        value: Mapping of unit to amount, or a number of seconds
        field_name: Field being parsed (for error messages)

    Returns:
        The equivalent timedelta

    Raises:
        InvalidTimerDefinition: If the value has unknown units or bad amounts
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return timedelta(seconds=value)
    if not isinstance(value, dict) or not value:
        raise InvalidTimerDefinition(f"'{field_name}' must be a duration object, got {value!r}")

    unknown = set(value) - set(DURATION_UNITS)
    if unknown:
        raise InvalidTimerDefinition(
            f"'{field_name}' has unsupported units: {', '.join(sorted(unknown))}"
        )
    try:
        return timedelta(**{unit: float(amount) for unit, amount in value.items()})
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidTimerDefinition(f"'{field_name}' is not a valid duration: {e}")


def parse_anchor_time(value: Any) -> datetime:
    """
    Parse a seed timestamp into an aware UTC datetime.

    Naive timestamps are interpreted as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        parsed = dateparser.parse(
            value,
            settings={
                "TIMEZONE": "UTC",
                "TO_TIMEZONE": "UTC",
                "RETURN_AS_TIMEZONE_AWARE": True,
            },
        )
    else:
        parsed = None

    if parsed is None:
        raise InvalidTimerDefinition(f"Could not parse seed time {value!r}")
    if parsed.tzinfo is None:
        parsed = pytz.UTC.localize(parsed)
    return parsed.astimezone(pytz.UTC)


def timer_from_record(record: dict) -> TimerDefinition:
    """
    Build a TimerDefinition from one settings record.

    Raises:
        InvalidTimerDefinition: If a required field is missing or malformed,
            or the recurrence interval is not positive
    """
    if not isinstance(record, dict):
        raise InvalidTimerDefinition(f"Timer record must be an object, got {type(record).__name__}")

    area = str(record.get("area") or "").strip().lower()
    if not area:
        raise InvalidTimerDefinition("Timer record has no area")
    sub_area = record.get("sub_area")
    sub_area = str(sub_area).strip().lower() if sub_area else None

    if "repeat_time" not in record:
        raise InvalidTimerDefinition(f"Timer '{area}' has no repeat_time")
    interval = parse_duration(record["repeat_time"], "repeat_time")
    if interval <= timedelta(0):
        raise InvalidTimerDefinition(f"Timer '{area}' repeats every {interval}, which is not positive")

    notice = parse_duration(record.get("announce_offset", 0), "announce_offset")

    return TimerDefinition(
        area=area,
        sub_area=sub_area,
        demand_text=record.get("demand_string") or f"{area} timer",
        announce_text=record.get("announce_string") or f"{area} timer activated",
        recurrence_interval=interval,
        advance_notice=notice,
        anchor_time=parse_anchor_time(record.get("seed_time")),
    )


def load_timer_definitions(path: Union[str, Path]) -> list[TimerDefinition]:
    """
    Read timer definitions from a JSON settings file.

    Malformed records are logged and skipped so that one bad timer does not
    prevent the others from being scheduled. A missing or unreadable file
    raises, since the bot has nothing to announce without it.

    Args:
        path: Path to the timer settings file

    Returns:
        Timer definitions in file order
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        records = json.load(f)

    if not isinstance(records, list):
        raise InvalidTimerDefinition(f"{path} must contain a list of timers")

    timers = []
    for index, record in enumerate(records):
        try:
            timers.append(timer_from_record(record))
        except InvalidTimerDefinition as e:
            logger.error(f"Skipping timer #{index} in {path}: {e}")

    logger.info(f"Loaded {len(timers)} of {len(records)} timer(s) from {path}")
    return timers
