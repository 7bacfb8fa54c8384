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
MHCT Lookup Client

Client for the MouseHunt Community Tools (MHCT) statistics API: mouse
attraction rates and loot drop rates, plus the cached lists of known mice,
loot, and time filters used to resolve user searches.
"""

import asyncio
import logging
import os
from typing import Optional

import httpx
from discord.ext import tasks

from errors import LookupFailure
from search.picker import SearchCandidate
from tools.nicknames import NicknameTable
from tools.tables import Column, calculate_rate, int_to_human, pretty_print_table

logger = logging.getLogger("mhtimer.tools.mhct")

MOUSE = "mouse"
LOOT = "loot"
# Nickname sheet type for each searchable kind
NICKNAME_TYPES = {MOUSE: "mice", LOOT: "loot"}

# Rows with fewer attempts than this are too noisy to report
MIN_SAMPLE_SIZE = 100
PUBLIC_ROW_LIMIT = 10
PRIVATE_ROW_LIMIT = 100
NO_STAGE = " N/A "


class MHCTClient:
    """Cached MHCT lists and per-entity statistics lookups."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        nicknames: Optional[NicknameTable] = None,
        refresh_minutes: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the MHCT client.

        Args:
            base_url: API root (defaults to MHCT_BASE_URL or agiletravels.com)
            nicknames: Nickname tables used to translate search input
            refresh_minutes: Interval between list refreshes
            client: Preconfigured HTTP client (for tests)
        """
        self.base_url = base_url or os.getenv("MHCT_BASE_URL", "https://www.agiletravels.com")
        self.nicknames = nicknames
        self.refresh_minutes = refresh_minutes
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Accept": "application/json"},
            timeout=30.0,
        )
        self._lists: dict[str, list[SearchCandidate]] = {MOUSE: [], LOOT: []}
        self.filters: list[dict] = []
        self._started = False

    async def close(self) -> None:
        """Stop refreshing and close the HTTP client."""
        self.stop()
        await self._client.aclose()

    def entities(self, kind: str) -> list[SearchCandidate]:
        return list(self._lists.get(kind, []))

    # =========================================================================
    # Cached lists
    # =========================================================================

    async def _get_json(self, path: str, params: Optional[dict] = None):
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise LookupFailure(f"{path} returned HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise LookupFailure(f"{path} request failed: {e}") from e

    async def refresh_list(self, kind: str) -> int:
        """
        Reload the list of known mice or loot.

        The previous list is kept if the request fails.

        Returns:
            Number of entities known after the refresh
        """
        try:
            body = await self._get_json("/searchByItem.php", {"item_type": kind, "item_id": "all"})
        except LookupFailure as e:
            logger.warning(f"Could not refresh {kind} list: {e}")
            return len(self._lists[kind])

        if isinstance(body, list):
            self._lists[kind] = [
                SearchCandidate(id=str(entry["id"]), label=str(entry["value"]))
                for entry in body
                if isinstance(entry, dict) and "id" in entry and "value" in entry
            ]
            logger.info(f"Got a new {kind} list ({len(self._lists[kind])} entries)")
        return len(self._lists[kind])

    async def refresh_filters(self) -> int:
        try:
            body = await self._get_json("/filters.php")
        except LookupFailure as e:
            logger.warning(f"Could not refresh filters: {e}")
            return len(self.filters)

        if isinstance(body, list):
            self.filters = [f for f in body if isinstance(f, dict) and f.get("code_name")]
            logger.info(f"Got a new filter list ({len(self.filters)} entries)")
        return len(self.filters)

    async def refresh_all(self) -> None:
        await asyncio.gather(
            self.refresh_list(MOUSE),
            self.refresh_list(LOOT),
            self.refresh_filters(),
        )

    def start(self) -> None:
        """Start refreshing the cached lists."""
        if not self._started:
            self._refresh_loop.change_interval(minutes=self.refresh_minutes)
            self._refresh_loop.start()
            self._started = True
            logger.info(f"Refreshing MHCT lists every {self.refresh_minutes} minutes")

    def stop(self) -> None:
        if self._started:
            self._refresh_loop.cancel()
            self._started = False

    @tasks.loop(minutes=5)
    async def _refresh_loop(self) -> None:
        try:
            await self.refresh_all()
        except Exception as e:
            logger.error(f"Error refreshing MHCT lists: {e}", exc_info=True)

    @_refresh_loop.before_loop
    async def _before_refresh(self) -> None:
        # Lists are loaded once during startup
        await asyncio.sleep(self.refresh_minutes * 60)

    # =========================================================================
    # Searching
    # =========================================================================

    def search(self, kind: str, text: str) -> list[SearchCandidate]:
        """
        Find known entities matching the user's text.

        Nicknames are translated first. Results are ranked exact match, then
        prefix match, then substring match, alphabetically within each rank.
        """
        needle = text.strip().lower()
        if self.nicknames is not None:
            needle = self.nicknames.translate(NICKNAME_TYPES.get(kind, kind), needle)
        if not needle:
            return []

        ranked = []
        for candidate in self._lists.get(kind, []):
            label = candidate.label.lower()
            if label == needle:
                rank = 0
            elif label.startswith(needle):
                rank = 1
            elif needle in label:
                rank = 2
            else:
                continue
            ranked.append((rank, label, candidate))

        ranked.sort(key=lambda item: (item[0], item[1]))
        return [candidate for _, _, candidate in ranked]

    def get_filter(self, text: Optional[str]) -> Optional[str]:
        """
        Resolve a time filter name, e.g. "3" -> "3_days", "all" -> "alltime",
        "current" -> the running event's filter.

        Returns:
            The filter code name, or None if the text is not a filter
        """
        if not text:
            return None
        tester = str(text).lower()
        if tester.startswith("3"):
            tester = "3_days"
        elif tester.startswith("all"):
            tester = "alltime"
        elif tester == "current":
            tester = "1_month"
            for f in self.filters:
                if f.get("start_time") and not f.get("end_time") and f["code_name"] != tester:
                    tester = f["code_name"]
                    break

        for f in self.filters:
            if f["code_name"].lower() == tester:
                return f["code_name"]
        for f in self.filters:
            if f["code_name"].lower().startswith(tester):
                return f["code_name"]
        return None

    def list_filters(self) -> str:
        return ", ".join(f"`{f['code_name']}`" for f in self.filters)

    # =========================================================================
    # Statistics
    # =========================================================================

    async def find_thing(self, kind: str, entity_id: str, timefilter: Optional[str] = None) -> list[dict]:
        """
        Query MHCT statistics for one entity.

        Raises:
            LookupFailure: If the request fails or returns something unexpected
        """
        params = {"item_type": kind, "item_id": entity_id}
        if timefilter:
            params["timefilter"] = timefilter
        body = await self._get_json("/searchByItem.php", params)
        if not isinstance(body, list):
            raise LookupFailure(f"Unexpected {kind} response for {entity_id}")
        return body

    def entity_url(self, kind: str, entity_id: str, timefilter: Optional[str] = None) -> str:
        """Link to the HTML statistics page for a mouse or loot item."""
        page, key = ("attractions.php", "mouse") if kind == MOUSE else ("loot.php", "item")
        url = f"{self.base_url}/{page}?{key}={entity_id}"
        if timefilter:
            url += f"&timefilter={timefilter}"
        return url

    async def format_mouse(
        self,
        mouse: SearchCandidate,
        is_private: bool = False,
        timefilter: Optional[str] = None,
    ) -> str:
        """Render the best attraction rates for a mouse as a table."""
        target_url = f"<{self.entity_url(MOUSE, mouse.id, timefilter)}>"
        try:
            results = await self.find_thing(MOUSE, mouse.id, timefilter)
        except LookupFailure as e:
            logger.warning(f"Mouse lookup failed for {mouse.label}: {e}")
            return f"Could not process results for '{mouse.label}', see {target_url}"

        rows = []
        for setup in results:
            if (setup.get("total_hunts") or 0) < MIN_SAMPLE_SIZE:
                continue
            rows.append({
                "location": str(setup.get("location", ""))[:20],
                "stage": NO_STAGE if setup.get("stage") is None else str(setup["stage"])[:20],
                "cheese": str(setup.get("cheese", ""))[:15],
                "total_hunts": int_to_human(setup["total_hunts"]),
                "ar": float(setup.get("rate") or 0) / 100,
            })
        if not rows:
            return (
                f"There were no results with {MIN_SAMPLE_SIZE} or more hunts for "
                f"{mouse.label}, see more at {target_url}"
            )

        rows.sort(key=lambda r: r["ar"], reverse=True)
        rows = rows[:PRIVATE_ROW_LIMIT if is_private else PUBLIC_ROW_LIMIT]
        for row in rows:
            row["ar"] = f"{row['ar']:.2f}"

        columns = [
            Column("location", "Location"),
            Column("stage", "Stage"),
            Column("cheese", "Cheese"),
            Column("ar", "/Hunt", align_right=True, width=7, fixed_width=True, suffix="%"),
            Column("total_hunts", "Hunts", align_right=True),
        ]
        if all(row["stage"] == NO_STAGE for row in rows):
            columns = [c for c in columns if c.key != "stage"]

        table = pretty_print_table(rows, columns)
        return (
            f"{mouse.label} (mouse) can be found the following ways:\n"
            f"```\n{table}\n```\nHTML version at: {target_url}"
        )

    async def format_loot(
        self,
        loot: SearchCandidate,
        is_private: bool = False,
        timefilter: Optional[str] = None,
    ) -> str:
        """Render the best drop rates for a loot item as a table."""
        target_url = f"<{self.entity_url(LOOT, loot.id, timefilter)}>"
        try:
            results = await self.find_thing(LOOT, loot.id, timefilter)
        except LookupFailure as e:
            logger.warning(f"Loot lookup failed for {loot.label}: {e}")
            return f"Could not process results for '{loot.label}', see {target_url}"

        rows = []
        for drop in results:
            if (drop.get("total_catches") or 0) < MIN_SAMPLE_SIZE:
                continue
            rows.append({
                "location": str(drop.get("location", ""))[:20],
                "stage": NO_STAGE if drop.get("stage") is None else str(drop["stage"])[:20],
                "cheese": str(drop.get("cheese", ""))[:15],
                "pct": drop.get("drop_pct", ""),
                "dr": calculate_rate(drop["total_catches"], drop.get("total_drops")),
                "total_catches": int_to_human(drop["total_catches"]),
            })
        if not rows:
            return (
                f"There were no results with {MIN_SAMPLE_SIZE} or more catches for "
                f"{loot.label}, see more at {target_url}"
            )

        def _rate(row: dict) -> float:
            try:
                return float(row["dr"])
            except ValueError:
                return 0.0

        rows.sort(key=_rate, reverse=True)
        rows = rows[:PRIVATE_ROW_LIMIT if is_private else PUBLIC_ROW_LIMIT]

        columns = [
            Column("location", "Location"),
            Column("stage", "Stage"),
            Column("cheese", "Cheese"),
            Column("pct", "Chance", align_right=True, width=7, fixed_width=True, suffix="%"),
            Column("dr", "/Catch", align_right=True, width=7, fixed_width=True),
            Column("total_catches", "Catches", align_right=True),
        ]
        if all(row["stage"] == NO_STAGE for row in rows):
            columns = [c for c in columns if c.key != "stage"]

        table = pretty_print_table(rows, columns)
        return (
            f"{loot.label} (loot) can be found the following ways:\n"
            f"```\n{table}\n```\nHTML version at: {target_url}"
        )
