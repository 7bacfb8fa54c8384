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
Reminder Store Module

Owns the per-user reminder subscriptions and their JSON persistence.

A reminder's remaining count is a countdown of activations: a positive value
is decremented on each successful delivery, -1 means "until stopped", and 0
marks the reminder inactive until compaction removes it.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import pytz

from errors import PersistenceFailure
from storage import write_atomic

logger = logging.getLogger("mhtimer.reminders.store")

INFINITE = -1
# Consecutive delivery failures before a reminder is turned off
MAX_CONSECUTIVE_FAILURES = 10


@dataclass(eq=False)
class Reminder:
    """A user's subscription to one timer area (and optionally a sub-area)."""

    owner_id: str
    area: str
    sub_area: Optional[str] = None
    remaining_count: int = 1
    failure_count: int = 0

    @property
    def is_active(self) -> bool:
        return self.remaining_count != 0

    @property
    def key(self) -> tuple[str, str, Optional[str]]:
        return (self.owner_id, self.area, self.sub_area)

    @property
    def name(self) -> str:
        return f"{self.area}: {self.sub_area}" if self.sub_area else self.area

    def to_record(self) -> dict:
        """Serialize using the reminder file's field names."""
        record = {
            "area": self.area,
            "count": self.remaining_count,
            "fail": self.failure_count,
            "user": self.owner_id,
        }
        if self.sub_area:
            record["sub_area"] = self.sub_area
        return record

    @classmethod
    def from_record(cls, record: dict) -> "Reminder":
        """Build a reminder from a file record; raises ValueError if malformed."""
        if not isinstance(record, dict):
            raise ValueError(f"expected an object, got {type(record).__name__}")
        if not record.get("user") or not record.get("area"):
            raise ValueError("missing 'user' or 'area'")
        return cls(
            owner_id=str(record["user"]),
            area=str(record["area"]),
            sub_area=record.get("sub_area") or None,
            remaining_count=int(record.get("count", 1)),
            failure_count=int(record.get("fail") or 0),
        )


class AddOutcome(Enum):
    CREATED = "created"
    UPDATED = "updated"
    REMOVED = "removed"
    NOT_FOUND = "not_found"


@dataclass
class AddResult:
    """What an add request did, for building the reply."""

    outcome: AddOutcome
    reminder: Optional[Reminder] = None
    previous_count: Optional[int] = None


class ReminderStore:
    """
    In-memory reminder list backed by a JSON file.

    Mutating methods are synchronous and never yield to the event loop, so
    each one is atomic with respect to other tasks. Callers that combine
    several mutations, or a mutation with a later persist, hold `lock` so
    the sequence is not interleaved with another writer.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize the reminder store.

        Args:
            path: Location of the reminder file
        """
        self.path = Path(path)
        self.lock = asyncio.Lock()
        self.dirty = False
        self.last_saved: Optional[datetime] = None
        self._reminders: list[Reminder] = []

    def __len__(self) -> int:
        return len(self._reminders)

    @property
    def reminders(self) -> list[Reminder]:
        """All records, including inactive ones awaiting compaction."""
        return list(self._reminders)

    def active(self) -> list[Reminder]:
        return [r for r in self._reminders if r.is_active]

    # =========================================================================
    # Lookup
    # =========================================================================

    def get(self, owner_id: str, area: str, sub_area: Optional[str] = None) -> Optional[Reminder]:
        """Find the active reminder for the (owner, area, sub-area) tuple."""
        key = (str(owner_id), area, sub_area or None)
        for reminder in self._reminders:
            if reminder.is_active and reminder.key == key:
                return reminder
        return None

    def for_owner(self, owner_id: str) -> list[Reminder]:
        """Active reminders belonging to one user."""
        owner_id = str(owner_id)
        return [r for r in self._reminders if r.is_active and r.owner_id == owner_id]

    def find_matches(self, area: str, sub_area: Optional[str] = None) -> list[Reminder]:
        """
        Get the active reminders that a firing of (area, sub_area) activates.

        A reminder without a sub-area matches every sub-area of its area.
        """
        return [
            r for r in self._reminders
            if r.is_active
            and r.area == area
            and (r.sub_area is None or r.sub_area == sub_area)
        ]

    # =========================================================================
    # Mutation
    # =========================================================================

    def add(self, owner_id: str, area: str, sub_area: Optional[str], count: int) -> AddResult:
        """
        Create a reminder, or update the count of the existing one.

        A count of 0 turns the reminder off instead.

        Args:
            owner_id: Discord user ID
            area: Timer area
            sub_area: Timer sub-area, or None for every sub-area
            count: Activations remaining (-1 for unlimited)

        Returns:
            AddResult describing the change
        """
        owner_id = str(owner_id)
        sub_area = sub_area or None

        if count == 0:
            removed = self.remove(owner_id, area, sub_area)
            return AddResult(AddOutcome.REMOVED if removed else AddOutcome.NOT_FOUND)

        existing = self.get(owner_id, area, sub_area)
        if existing is not None:
            previous = existing.remaining_count
            existing.remaining_count = count
            self.dirty = True
            logger.info(
                f"Updated reminder {existing.name} for user {owner_id}: {previous} -> {count}"
            )
            return AddResult(AddOutcome.UPDATED, existing, previous)

        reminder = Reminder(owner_id=owner_id, area=area, sub_area=sub_area, remaining_count=count)
        self._reminders.append(reminder)
        self.dirty = True
        logger.info(f"Created reminder {reminder.name} for user {owner_id} (count={count})")
        return AddResult(AddOutcome.CREATED, reminder)

    def remove(self, owner_id: str, area: str, sub_area: Optional[str] = None) -> int:
        """
        Turn off the matching active reminder.

        Returns:
            Number of reminders turned off (0 or 1)
        """
        key = (str(owner_id), area, sub_area or None)
        removed = 0
        for reminder in self._reminders:
            if reminder.is_active and reminder.key == key:
                reminder.remaining_count = 0
                removed += 1
        if removed:
            self.dirty = True
            logger.info(f"Turned off {removed} reminder(s) for user {owner_id} in {area}")
        return removed

    def decrement(self, reminder: Reminder) -> None:
        """Use up one activation of a finite reminder."""
        if reminder.remaining_count > 0:
            reminder.remaining_count -= 1
            self.dirty = True

    def record_success(self, reminder: Reminder) -> None:
        if reminder.failure_count:
            reminder.failure_count = 0
            self.dirty = True

    def record_failure(self, reminder: Reminder) -> bool:
        """
        Count a failed delivery.

        Returns:
            True if this failure turned the reminder off
        """
        reminder.failure_count += 1
        self.dirty = True
        if reminder.failure_count >= MAX_CONSECUTIVE_FAILURES and reminder.is_active:
            reminder.remaining_count = 0
            logger.warning(
                f"Removing reminder {reminder.name} for user {reminder.owner_id} "
                f"after {reminder.failure_count} consecutive failures"
            )
            return True
        return False

    # =========================================================================
    # Persistence
    # =========================================================================

    def compact(self) -> int:
        """
        Move inactive reminders to the end and drop the inactive suffix.

        Returns:
            Number of records dropped
        """
        active = [r for r in self._reminders if r.is_active]
        expired = len(self._reminders) - len(active)
        if expired:
            self._reminders = active
            logger.info(f"Discarded {expired} expired reminder(s), {len(active)} remaining")
        return expired

    def serialize(self) -> str:
        return json.dumps(
            [r.to_record() for r in self._reminders],
            indent=1,
            sort_keys=True,
        ) + "\n"

    def _write(self, payload: str) -> None:
        write_atomic(self.path, payload)

    async def persist(self) -> bool:
        """
        Compact and write the reminders to disk.

        Failures are logged and reported through the return value; the
        in-memory state is kept so the next save can retry.

        Returns:
            True if the file was written
        """
        async with self.lock:
            self.compact()
            payload = self.serialize()
            try:
                await asyncio.to_thread(self._write, payload)
            except PersistenceFailure as e:
                logger.error(f"Failed to save reminders: {e}")
                return False

            self.dirty = False
            self.last_saved = datetime.now(pytz.UTC)
            logger.info(f"Saved {len(self._reminders)} reminder(s) to {self.path}")
            return True

    def load(self) -> int:
        """
        Replace the in-memory reminders with the file contents.

        A missing file is treated as an empty store. Malformed records are
        skipped.

        Returns:
            Number of reminders loaded
        """
        try:
            with self.path.open("r", encoding="utf-8") as f:
                records = json.load(f)
        except FileNotFoundError:
            logger.info(f"No reminder file at {self.path}, starting empty")
            self._reminders = []
            return 0

        if not isinstance(records, list):
            raise ValueError(f"{self.path} must contain a list of reminders")

        reminders = []
        seen = set()
        for index, record in enumerate(records):
            try:
                reminder = Reminder.from_record(record)
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping reminder #{index} in {self.path}: {e}")
                continue
            if reminder.is_active:
                # Only one active reminder per (owner, area, sub-area)
                if reminder.key in seen:
                    logger.warning(f"Skipping duplicate reminder #{index} in {self.path}")
                    continue
                seen.add(reminder.key)
            reminders.append(reminder)

        self._reminders = reminders
        self.dirty = False
        logger.info(f"Loaded {len(reminders)} reminder(s) from {self.path}")
        return len(reminders)
