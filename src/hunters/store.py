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
Hunter Registry Module

Self-volunteered hunter details: each Discord user may register their
in-game hunter ID and, once registered, a snuid, rank, and hunting location.
Other users can look hunters up by ID, or find random hunters by rank or
location.

The registry is a JSON object keyed by Discord user ID.
"""

import asyncio
import json
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import pytz

from errors import NotRegistered, PersistenceFailure
from storage import write_atomic

logger = logging.getLogger("mhtimer.hunters.store")

HUNTER_PROPERTIES = ("hid", "snuid", "rank", "location")
# Most hunters returned by a rank or location search
MAX_RANDOM_HUNTERS = 5


@dataclass(eq=False)
class Hunter:
    """One Discord user's registered hunter details."""

    discord_id: str
    hid: str
    snuid: Optional[str] = None
    rank: Optional[str] = None
    location: Optional[str] = None

    def to_record(self) -> dict:
        return {
            prop: getattr(self, prop)
            for prop in HUNTER_PROPERTIES
            if getattr(self, prop) is not None
        }

    @classmethod
    def from_record(cls, discord_id: str, record: dict) -> "Hunter":
        if not isinstance(record, dict):
            raise TypeError(f"hunter record must be an object, got {type(record).__name__}")
        if not record.get("hid"):
            raise ValueError("hunter record has no hid")
        values = {
            prop: str(record[prop]) for prop in HUNTER_PROPERTIES if record.get(prop) is not None
        }
        return cls(discord_id=str(discord_id), **values)


class HunterStore:
    """
    In-memory hunter registry backed by a JSON file.

    Mutations are synchronous, so each is atomic with respect to other
    tasks; persist holds `lock` while it snapshots and writes.
    """

    def __init__(self, path: Union[str, Path], rng: Optional[random.Random] = None):
        """
        Initialize the hunter store.

        Args:
            path: Location of the hunters file
            rng: Random source for property searches
        """
        self.path = Path(path)
        self.lock = asyncio.Lock()
        self.dirty = False
        self.last_saved: Optional[datetime] = None
        self._rng = rng or random.Random()
        self._hunters: dict[str, Hunter] = {}

    def __len__(self) -> int:
        return len(self._hunters)

    def get(self, discord_id) -> Optional[Hunter]:
        return self._hunters.get(str(discord_id))

    # =========================================================================
    # Registration
    # =========================================================================

    def set_id(self, discord_id, hid: str) -> Optional[str]:
        """
        Register or change a user's hunter ID.

        Returns:
            The previous hunter ID, if there was one
        """
        discord_id = str(discord_id)
        hunter = self._hunters.get(discord_id)
        if hunter is None:
            self._hunters[discord_id] = Hunter(discord_id, str(hid))
            self.dirty = True
            logger.info(f"New hunter registered for user {discord_id}")
            return None

        previous = hunter.hid
        hunter.hid = str(hid)
        self.dirty = True
        return previous

    def unset(self, discord_id) -> bool:
        """
        Forget everything a user registered.

        Returns:
            True if the user was registered
        """
        if self._hunters.pop(str(discord_id), None) is None:
            return False
        self.dirty = True
        return True

    def set_property(self, discord_id, prop: str, value: str) -> Optional[str]:
        """
        Set a registered user's snuid, rank, or location.

        Returns:
            The previous value, if there was one

        Raises:
            NotRegistered: If the user has no hunter ID yet
            ValueError: If prop is not a hunter property
        """
        if prop not in HUNTER_PROPERTIES or prop == "hid":
            raise ValueError(f"Unknown hunter property '{prop}'")
        hunter = self.get(discord_id)
        if hunter is None:
            raise NotRegistered(f"User {discord_id} has not registered a hunter ID")

        previous = getattr(hunter, prop)
        setattr(hunter, prop, value)
        self.dirty = True
        return previous

    # =========================================================================
    # Lookups
    # =========================================================================

    def find_by(self, prop: str, value: str) -> Optional[str]:
        """Discord ID of the first hunter whose property equals value."""
        value = str(value).strip().lower()
        for discord_id, hunter in self._hunters.items():
            stored = getattr(hunter, prop, None)
            if stored is not None and stored.lower() == value:
                return discord_id
        return None

    def hunter_id_for(self, discord_id) -> Optional[str]:
        hunter = self.get(discord_id)
        return hunter.hid if hunter else None

    def random_by_property(self, prop: str, criterion: str, limit: int = MAX_RANDOM_HUNTERS) -> list[str]:
        """Up to `limit` random hunter IDs whose property matches exactly."""
        matches = [
            hunter.hid for hunter in self._hunters.values()
            if getattr(hunter, prop, None) == criterion
        ]
        self._rng.shuffle(matches)
        return matches[:limit]

    # =========================================================================
    # Persistence
    # =========================================================================

    def serialize(self) -> str:
        return json.dumps(
            {discord_id: hunter.to_record() for discord_id, hunter in self._hunters.items()},
            indent=1,
            sort_keys=True,
        ) + "\n"

    async def persist(self) -> bool:
        """
        Write the registry to disk.

        Returns:
            True if the file was written
        """
        async with self.lock:
            payload = self.serialize()
            try:
                await asyncio.to_thread(write_atomic, self.path, payload)
            except PersistenceFailure as e:
                logger.error(f"Failed to save hunters: {e}")
                return False

            self.dirty = False
            self.last_saved = datetime.now(pytz.UTC)
            logger.info(f"Saved {len(self._hunters)} hunter(s) to {self.path}")
            return True

    def load(self) -> int:
        """
        Replace the in-memory registry with the file contents.

        A missing file is treated as an empty registry. Malformed records
        are skipped.

        Returns:
            Number of hunters loaded
        """
        try:
            with self.path.open("r", encoding="utf-8") as f:
                records = json.load(f)
        except FileNotFoundError:
            logger.info(f"No hunters file at {self.path}, starting empty")
            self._hunters = {}
            return 0

        if not isinstance(records, dict):
            raise ValueError(f"{self.path} must map Discord IDs to hunters")

        hunters = {}
        for discord_id, record in records.items():
            try:
                hunters[str(discord_id)] = Hunter.from_record(discord_id, record)
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping hunter {discord_id} in {self.path}: {e}")

        self._hunters = hunters
        self.dirty = False
        logger.info(f"{len(hunters)} hunters loaded from {self.path}")
        return len(hunters)
