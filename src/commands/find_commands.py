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
Find Commands

Prefix commands that look up mouse attraction rates and loot drop rates
from MHCT. Searches with several matches answer the best match right away
and offer the rest as a numbered menu.
"""

import logging
from typing import Optional

import discord
from discord.ext import commands

from reminders import split_tokens
from search import CandidatePicker, PickSession, SearchCandidate
from tools import LOOT, MOUSE, MHCTClient

from commands.formatting import send_chunked
from commands.views import CandidatePickerView

logger = logging.getLogger("mhtimer.commands.find")

MIN_SEARCH_LENGTH = 3
KIND_NAMES = {MOUSE: "mouse", LOOT: "loot"}
FIND_COMMANDS = {MOUSE: "find", LOOT: "ifind"}


class FindCommands(commands.Cog):
    """
    Prefix commands for MHCT lookups.

    Commands:
    - find / mfind - Best attraction rates for a mouse
    - ifind - Best drop rates for a loot item
    """

    def __init__(
        self,
        bot: commands.Bot,
        mhct: MHCTClient,
        picker: CandidatePicker,
        command_prefix: str = "-mh ",
    ):
        self.bot = bot
        self.mhct = mhct
        self.picker = picker
        self.prefix = command_prefix

    def parse_search(self, text: str) -> tuple[Optional[str], Optional[str], str]:
        """
        Split a search into its time filter and search text.

        Returns:
            Tuple of (filter code name, unknown filter text, search text)
        """
        tokens = split_tokens(text)
        timefilter = None
        bad_filter = None
        if tokens and tokens[0] == "-e":
            tokens.pop(0)
            if tokens:
                requested = tokens.pop(0)
                timefilter = self.mhct.get_filter(requested)
                if timefilter is None:
                    bad_filter = requested
        return timefilter, bad_filter, " ".join(tokens).strip().lower()

    def _formatter(self, kind: str, timefilter: Optional[str]):
        format_entity = self.mhct.format_mouse if kind == MOUSE else self.mhct.format_loot

        async def formatter(candidate: SearchCandidate, is_private: bool) -> str:
            return await format_entity(candidate, is_private, timefilter)

        return formatter

    def build_menu_embed(
        self, session: PickSession, kind: str, timefilter: Optional[str]
    ) -> discord.Embed:
        """List the session's candidates with their symbols and links."""
        description = f"I found {len(session.options)} good results:"
        for symbol, candidate in session.options:
            url = self.mhct.entity_url(kind, candidate.id, timefilter)
            description += f"\n\t{symbol}:\t[{candidate.label}]({url})"

        embed = discord.Embed(
            title=f"Search Results for '{session.search_text}'",
            description=description,
        )
        embed.set_footer(
            text=f"For any button you select, I'll {'send' if session.is_private else 'PM'} "
            "you that information."
        )
        return embed

    async def search(self, ctx: commands.Context, kind: str, text: str) -> Optional[PickSession]:
        """
        Run a find or ifind request.

        Returns:
            The pick session, or None if the request was answered directly
        """
        if not text.strip():
            await ctx.send(
                "You have to supply mice to find." if kind == MOUSE
                else "You have to supply an item to find."
            )
            return None

        timefilter, bad_filter, search_text = self.parse_search(text)
        if bad_filter is not None:
            await ctx.send(
                f"I don't know the filter '{bad_filter}'. I know: {self.mhct.list_filters()}"
            )
            return None
        if kind == MOUSE and search_text.endswith(" mouse"):
            search_text = search_text[: -len(" mouse")]
        if len(search_text) < MIN_SEARCH_LENGTH:
            await ctx.send("Your search string was too short, try again.")
            return None

        candidates = self.mhct.search(kind, search_text)
        if not candidates:
            await ctx.send(self._not_found_message(kind, search_text))
            return None

        logger.info(
            f"{FIND_COMMANDS[kind]} '{search_text}' for user {ctx.author.id}: "
            f"{len(candidates)} match(es)"
        )

        async def reply(content: str):
            await send_chunked(ctx.channel, content)

        async def reply_private(content: str):
            await send_chunked(ctx.author, content)

        async def show_menu(session: PickSession):
            view = CandidatePickerView(session)
            message = await ctx.send(embed=self.build_menu_embed(session, kind, timefilter), view=view)

            async def close_menu():
                view.stop()
                await message.delete()

            session.on_close = close_menu

        return await self.picker.present(
            candidates,
            requester_id=ctx.author.id,
            formatter=self._formatter(kind, timefilter),
            reply=reply,
            reply_private=reply_private,
            show_menu=show_menu,
            is_private=ctx.guild is None,
            search_text=search_text,
        )

    def _not_found_message(self, kind: str, search_text: str) -> str:
        other = LOOT if kind == MOUSE else MOUSE
        if self.mhct.search(other, search_text):
            return (
                f"I don't know anything about the {KIND_NAMES[kind]} \"{search_text}\", "
                f"but I found some {KIND_NAMES[other]}. Try `{self.prefix}{FIND_COMMANDS[other]} {search_text}`."
            )
        return f"I don't know anything about the {KIND_NAMES[kind]} \"{search_text}\"."

    @commands.command(name="find", aliases=["mfind"])
    async def find_mouse(self, ctx: commands.Context, *, text: str = ""):
        """Best attraction rates for a mouse."""
        await self.search(ctx, MOUSE, text)

    @commands.command(name="ifind")
    async def find_loot(self, ctx: commands.Context, *, text: str = ""):
        """Best drop rates for a loot item."""
        await self.search(ctx, LOOT, text)
