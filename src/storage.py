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
Storage Helpers

Shared pieces of the JSON-file stores: a whole-file atomic write and the
background loop that periodically saves a store.
Uses discord.ext.tasks for reliable scheduling.
"""

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from discord.ext import tasks

from errors import PersistenceFailure

logger = logging.getLogger("mhtimer.storage")


def write_atomic(path: Path, payload: str) -> None:
    """
    Replace a file in one step.

    The payload goes to a temporary file in the same directory, which is
    then renamed over the target, so readers never see a partial file.

    Raises:
        PersistenceFailure: If the file could not be written
    """
    directory = path.parent
    try:
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
    except OSError as e:
        raise PersistenceFailure(f"Could not write {path}: {e}") from e


class PersistentStore(Protocol):
    """A store with unsaved-change tracking."""

    dirty: bool

    async def persist(self) -> bool:
        ...


class StoreSaver:
    """
    Periodic store persistence.

    Anything lost in a crash is limited to the changes made since the last
    save interval; the file itself is always replaced whole.
    """

    def __init__(self, store: PersistentStore, minutes: float = 5.0, name: str = "store"):
        """
        Initialize the saver.

        Args:
            store: Store to persist
            minutes: Interval between saves
            name: What is being saved, for logs
        """
        self.store = store
        self.minutes = minutes
        self.name = name
        self._started = False

    def start(self) -> None:
        """Start the save loop."""
        if not self._started:
            self._save.change_interval(minutes=self.minutes)
            self._save.start()
            self._started = True
            logger.info(f"Saving {self.name} every ~{self.minutes} minutes")

    def stop(self) -> None:
        """Stop the save loop."""
        if self._started:
            self._save.cancel()
            self._started = False
            logger.info(f"Saver for {self.name} stopped")

    @tasks.loop(minutes=5)
    async def _save(self) -> None:
        """Write the store if anything changed."""
        try:
            if self.store.dirty:
                await self.store.persist()
        except Exception as e:
            logger.error(f"Error in {self.name} save loop: {e}", exc_info=True)

    @_save.before_loop
    async def _before_save(self) -> None:
        """Skip the immediate first iteration; the store was just loaded."""
        await asyncio.sleep(self.minutes * 60)
