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
Candidate Picker Module

When a search matches several entities, the first match is answered right
away and the rest are offered as a numbered menu. The requester may pick one
entry within the selection window; the pick is answered privately.

Each session owns a single future. The first valid selection resolves it,
and everything after that is ignored.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Sequence

from errors import SelectionTimeout

logger = logging.getLogger("mhtimer.search.picker")

SELECTOR_SYMBOLS = (
    "1️⃣",
    "2️⃣",
    "3️⃣",
    "4️⃣",
    "5️⃣",
    "6️⃣",
    "7️⃣",
    "8️⃣",
    "9️⃣",
    "\U0001f51f",
)
MAX_CANDIDATES = len(SELECTOR_SYMBOLS)
SELECTION_TIMEOUT = 300.0  # 5 minutes


@dataclass(frozen=True)
class SearchCandidate:
    """An entity a search can return, e.g. a mouse or a loot item."""

    id: str
    label: str


# (candidate, is_private) -> reply text, or None when there is nothing to show
Formatter = Callable[[SearchCandidate, bool], Awaitable[Optional[str]]]
Reply = Callable[[str], Awaitable[Any]]


class SessionState(Enum):
    OPEN = "open"
    SELECTED = "selected"
    EXPIRED = "expired"
    CLOSED = "closed"


class PickSession:
    """A single search result menu and its selection window."""

    def __init__(
        self,
        candidates: Sequence[SearchCandidate],
        requester_id: Any,
        formatter: Formatter,
        reply: Reply,
        reply_private: Reply,
        is_private: bool = False,
        timeout: float = SELECTION_TIMEOUT,
        search_text: str = "",
    ):
        if not candidates:
            raise ValueError("A pick session needs at least one candidate")
        if len(candidates) > MAX_CANDIDATES:
            raise ValueError(f"At most {MAX_CANDIDATES} candidates can be offered")

        self.options: list[tuple[str, SearchCandidate]] = list(zip(SELECTOR_SYMBOLS, candidates))
        self.requester_id = str(requester_id)
        self.formatter = formatter
        self.reply = reply
        self.reply_private = reply_private
        self.is_private = is_private
        self.timeout = timeout
        self.search_text = search_text
        self.state = SessionState.OPEN
        self.selected: Optional[SearchCandidate] = None
        self.on_close: Optional[Callable[[], Awaitable[Any]]] = None
        self._choice: asyncio.Future = asyncio.get_running_loop().create_future()

    @property
    def interactive(self) -> bool:
        """Whether there is anything to choose between."""
        return len(self.options) > 1

    @property
    def default(self) -> SearchCandidate:
        return self.options[0][1]

    @property
    def symbols(self) -> list[str]:
        return [symbol for symbol, _ in self.options]

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN and not self._choice.done()

    def select(self, user_id: Any, symbol: str) -> Optional[SearchCandidate]:
        """
        Offer a selection from a user.

        Only the requester can select, only once, and only while the window
        is open.

        Returns:
            The chosen candidate if the selection was accepted, else None
        """
        if not self.interactive or not self.is_open:
            return None
        if str(user_id) != self.requester_id:
            return None
        for option_symbol, candidate in self.options:
            if option_symbol == symbol:
                self._choice.set_result(candidate)
                return candidate
        return None

    async def wait_for_selection(self) -> SearchCandidate:
        """
        Wait for the requester's pick.

        Raises:
            SelectionTimeout: If the window lapses first
        """
        try:
            return await asyncio.wait_for(asyncio.shield(self._choice), self.timeout)
        except asyncio.TimeoutError:
            raise SelectionTimeout(f"No selection for '{self.search_text}' within {self.timeout}s")

    async def _render(self, candidate: SearchCandidate, is_private: bool) -> str:
        try:
            text = await self.formatter(candidate, is_private)
        except Exception as e:
            logger.warning(f"Formatter failed for {candidate.label}: {e}")
            text = None
        return text or f"Not enough quality data for {candidate.label}"

    async def _send(self, send: Reply, candidate: SearchCandidate, is_private: bool) -> None:
        content = await self._render(candidate, is_private)
        try:
            await send(content)
        except Exception as e:
            logger.warning(f"Failed to send result for {candidate.label}: {e}")

    async def _send_default(self) -> None:
        await self._send(self.reply, self.default, self.is_private)

    async def _await_pick(self) -> None:
        if not self.interactive:
            return
        try:
            candidate = await self.wait_for_selection()
        except SelectionTimeout as e:
            self.state = SessionState.EXPIRED
            logger.debug(str(e))
            return

        self.state = SessionState.SELECTED
        self.selected = candidate
        logger.info(f"User {self.requester_id} picked {candidate.label}")
        await self._send(self.reply_private, candidate, True)

    async def run(self) -> None:
        """Deliver the default answer and serve the selection window."""
        try:
            await asyncio.gather(self._send_default(), self._await_pick())
        finally:
            await self.close()

    async def close(self) -> None:
        """End the selection window and tear down the menu."""
        if not self._choice.done():
            self._choice.cancel()
        if self.state is SessionState.OPEN:
            self.state = SessionState.CLOSED
        await self._close()

    async def _close(self) -> None:
        if self.on_close is None:
            return
        on_close, self.on_close = self.on_close, None
        try:
            await on_close()
        except Exception as e:
            logger.debug(f"Could not tear down pick menu: {e}")


class CandidatePicker:
    """
    Creates and tracks pick sessions.

    Sessions are independent of each other; the picker only keeps their
    tasks so they can be cancelled together at shutdown.
    """

    def __init__(self, timeout: float = SELECTION_TIMEOUT, max_items: int = MAX_CANDIDATES):
        if max_items < 1:
            raise ValueError(f"max_items must be at least 1, got {max_items}")
        self.timeout = timeout
        self.max_items = min(max_items, MAX_CANDIDATES)
        self._sessions: dict[PickSession, asyncio.Task] = {}

    @property
    def open_sessions(self) -> list[PickSession]:
        return list(self._sessions)

    async def present(
        self,
        candidates: Sequence[SearchCandidate],
        *,
        requester_id: Any,
        formatter: Formatter,
        reply: Reply,
        reply_private: Reply,
        show_menu: Optional[Callable[[PickSession], Awaitable[Any]]] = None,
        is_private: bool = False,
        max_items: Optional[int] = None,
        search_text: str = "",
    ) -> PickSession:
        """
        Start a pick session.

        Args:
            candidates: Ordered search results (best first)
            requester_id: User allowed to pick
            formatter: Turns a candidate into reply text
            reply: Sends to where the search was requested
            reply_private: Sends privately to the requester
            show_menu: Publishes the numbered menu (only for several candidates)
            is_private: Whether the request itself was private
            max_items: Truncation limit (capped at MAX_CANDIDATES)
            search_text: The user's search, for logs and fallbacks

        Returns:
            The running session

        Raises:
            ValueError: If there are no candidates or max_items is below 1
        """
        limit = self.max_items if max_items is None else max_items
        if limit < 1:
            raise ValueError(f"max_items must be at least 1, got {limit}")
        limit = min(limit, MAX_CANDIDATES)
        session = PickSession(
            list(candidates)[:limit],
            requester_id,
            formatter,
            reply,
            reply_private,
            is_private=is_private,
            timeout=self.timeout,
            search_text=search_text,
        )

        if session.interactive and show_menu is not None:
            try:
                await show_menu(session)
            except Exception as e:
                logger.warning(f"Could not show pick menu for '{search_text}': {e}")

        task = asyncio.create_task(session.run(), name=f"pick:{session.requester_id}")
        self._sessions[session] = task
        task.add_done_callback(lambda _: self._sessions.pop(session, None))
        return session

    async def close_all(self) -> None:
        """Cancel every open session."""
        sessions = list(self._sessions.items())
        for _, task in sessions:
            task.cancel()
        if sessions:
            await asyncio.gather(*(task for _, task in sessions), return_exceptions=True)
            # A task cancelled before its first step never runs its cleanup
            for session, _ in sessions:
                await session.close()
            logger.info(f"Closed {len(sessions)} pick session(s)")
        self._sessions.clear()
