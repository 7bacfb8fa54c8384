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
Nickname Tables

Community-maintained nicknames (e.g. "gg" -> "gilded gold") published as
CSV sheets. The sheet URLs are listed per nickname type in a JSON file:

    {"mice": "https://...output=csv", "loot": "https://...output=csv"}
"""

import asyncio
import csv
import io
import json
import logging
from pathlib import Path
from typing import Optional, Union

import httpx
from discord.ext import tasks

logger = logging.getLogger("mhtimer.tools.nicknames")


def parse_nickname_csv(text: str) -> dict[str, str]:
    """
    Parse a nickname sheet: a header row, then "nickname,value" rows.

    Keys and values are lower-cased; rows with fewer than two columns are
    ignored.
    """
    rows = csv.reader(io.StringIO(text))
    next(rows, None)  # header
    table = {}
    for row in rows:
        if len(row) < 2:
            continue
        nickname, value = row[0].strip().lower(), row[1].strip().lower()
        if nickname and value:
            table[nickname] = value
    return table


class NicknameTable:
    """Static string lookups per nickname type, refreshed periodically."""

    def __init__(
        self,
        urls_file: Union[str, Path],
        refresh_minutes: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.urls_file = Path(urls_file)
        self.refresh_minutes = refresh_minutes
        self.urls: dict[str, str] = {}
        self._tables: dict[str, dict[str, str]] = {}
        self._client = client or httpx.AsyncClient(timeout=30.0, follow_redirects=True)
        self._started = False

    def get(self, kind: str) -> dict[str, str]:
        """The nickname mapping for one type (empty if unknown)."""
        return self._tables.get(kind, {})

    def translate(self, kind: str, text: str) -> str:
        """Replace text with its canonical value if it is a known nickname."""
        key = text.strip().lower()
        return self.get(kind).get(key, key)

    def load_urls(self) -> int:
        """
        Read the nickname sheet URLs.

        A missing file is not an error: no nicknames are used.
        """
        try:
            with self.urls_file.open("r", encoding="utf-8") as f:
                urls = json.load(f)
        except FileNotFoundError:
            logger.info(f"No nickname URL file at {self.urls_file}")
            return 0

        if not isinstance(urls, dict):
            raise ValueError(f"{self.urls_file} must map nickname types to URLs")
        self.urls = {str(k): str(v) for k, v in urls.items() if v}
        logger.info(f"{len(self.urls)} nickname URLs loaded from {self.urls_file}")
        return len(self.urls)

    async def refresh(self, kind: str) -> int:
        """
        Download one nickname sheet.

        The previous table is kept if the download fails.

        Returns:
            Number of nicknames now known for the type
        """
        url = self.urls.get(kind)
        if not url:
            logger.warning(f"Received '{kind}' but I don't know that URL")
            return 0

        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Failed to load '{kind}' nicknames: {e}")
            return len(self.get(kind))

        self._tables[kind] = parse_nickname_csv(response.text)
        logger.info(f"Loaded {len(self._tables[kind])} nicknames of type '{kind}'")
        return len(self._tables[kind])

    async def refresh_all(self) -> None:
        for kind in self.urls:
            await self.refresh(kind)

    def start(self) -> None:
        if not self._started:
            self._refresh_loop.change_interval(minutes=self.refresh_minutes)
            self._refresh_loop.start()
            self._started = True

    def stop(self) -> None:
        if self._started:
            self._refresh_loop.cancel()
            self._started = False

    async def close(self) -> None:
        self.stop()
        await self._client.aclose()

    @tasks.loop(minutes=60)
    async def _refresh_loop(self) -> None:
        try:
            await self.refresh_all()
        except Exception as e:
            logger.error(f"Error refreshing nicknames: {e}", exc_info=True)

    @_refresh_loop.before_loop
    async def _before_refresh(self) -> None:
        # The bot loads the tables once during startup
        await asyncio.sleep(self.refresh_minutes * 60)
