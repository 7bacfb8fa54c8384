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
Hunter Commands

Prefix commands for the self-registered hunter directory:
- iam - Register your hunter ID, rank, location, or snuid
- whois - Look up a registered hunter, or find random hunters by rank or location
"""

import logging
from typing import Optional

import discord
from discord.ext import commands

from errors import NotRegistered
from hunters import HunterStore
from reminders import split_tokens
from tools import NicknameTable

from commands.formatting import send_chunked

logger = logging.getLogger("mhtimer.commands.hunters")

PROFILE_URL = "https://mshnt.ca/p/{hid}"
RANK_WORDS = ("rank", "title", "a")
# Lookups that would reveal who someone is are only allowed in servers
SERVER_ONLY_LOOKUPS = ("hid", "snuid", "name")
LOOKUP_NAMES = {"hid": "hunter ID", "snuid": "snuid", "name": "name"}

IAM_USAGE = (
    "I'm not sure what to do with that:\n"
    "  `{prefix}iam ###` to set a hunter ID.\n"
    "  `{prefix}iam rank <rank>` to set a rank.\n"
    "  `{prefix}iam in <location>` to set a location"
)
WHOIS_USAGE = (
    "I'm not sure what to do with that:\n"
    "  `{prefix}whois [###|<mention>]` to look up specific hunters.\n"
    "  `{prefix}whois [in|a] [<location>|<rank>]` to find up to 5 random new friends."
)


class HunterCommands(commands.Cog):
    """
    Prefix commands for the hunter directory.

    Commands:
    - iam - Register details about yourself
    - whois - Find other hunters
    """

    def __init__(
        self,
        bot: commands.Bot,
        store: HunterStore,
        nicknames: Optional[NicknameTable] = None,
        command_prefix: str = "-mh ",
    ):
        self.bot = bot
        self.store = store
        self.nicknames = nicknames
        self.prefix = command_prefix

    def _canonical(self, kind: str, text: str) -> str:
        if self.nicknames is None:
            return text
        return self.nicknames.translate(kind, text)

    # =========================================================================
    # iam
    # =========================================================================

    def register(self, discord_id: str, tokens: list[str]) -> str:
        """
        Apply an iam request and describe the result.

        Args:
            discord_id: Discord user ID of the requester
            tokens: Words following the command

        Returns:
            The reply text
        """
        if not tokens:
            return "Yes, you are. Provide a hunter ID number to set that."

        first = tokens[0].lower()
        if len(tokens) == 1 and first.isdigit():
            previous = self.store.set_id(discord_id, first)
            reply = f"You used to be known as `{previous}`. " if previous else ""
            return reply + f"If people look you up they'll see `{first}`."

        if len(tokens) == 1 and first == "not":
            if self.store.unset(discord_id):
                return "*POOF*, you're gone!"
            return "I didn't do anything but that's because you didn't do anything either."

        # Nobody needs more than a few words to name a rank or location
        text = " ".join(tokens[1:10]).strip().lower()
        if first == "in" and text:
            prop, value = "location", self._canonical("locations", text)
        elif first in RANK_WORDS and text:
            prop, value = "rank", self._canonical("ranks", text)
        elif first.startswith("snu") and text:
            prop, value = "snuid", text
        else:
            return IAM_USAGE.format(prefix=self.prefix)

        try:
            previous = self.store.set_property(discord_id, prop, value)
        except NotRegistered:
            return "I don't know who you are so you can't set that now; set your hunter ID first."

        reply = f"Your {prop} used to be `{previous}`. " if previous else ""
        return reply + f"Your {prop} is set to `{value}`"

    @commands.command(name="iam")
    async def iam(self, ctx: commands.Context, *, text: str = ""):
        """Register your hunter ID, rank, location, or snuid."""
        await send_chunked(ctx.channel, self.register(str(ctx.author.id), split_tokens(text)))

    # =========================================================================
    # whois
    # =========================================================================

    def find_by_property(self, search_type: str, tokens: list[str]) -> str:
        """Describe up to five random hunters in a location or with a rank."""
        search = " ".join(tokens).strip().lower()
        if search_type == "in":
            prop, search = "location", self._canonical("locations", search)
        elif search_type in RANK_WORDS:
            prop, search = "rank", self._canonical("ranks", search)
        else:
            return WHOIS_USAGE.format(prefix=self.prefix)

        hids = self.store.random_by_property(prop, search)
        if not hids:
            return f"I couldn't find any hunters with `{prop}` matching `{search}`"
        return f"{len(hids)} random hunters: `" + "`, `".join(hids) + "`"

    def _member_by_name(self, ctx: commands.Context, name: str) -> Optional[discord.Member]:
        if ctx.message.mentions:
            return ctx.message.mentions[0]
        name = name.lower()
        return discord.utils.find(lambda m: m.display_name.lower() == name, ctx.guild.members)

    async def find_hunter(self, ctx: commands.Context, value: str, lookup: str) -> str:
        """
        Look up one registered hunter by hunter ID, snuid, or Discord name.

        Returns:
            The reply text
        """
        if ctx.guild is None and lookup in SERVER_ONLY_LOOKUPS:
            return f"Searching by {lookup} isn't allowed via PM."

        if lookup == "name":
            member = self._member_by_name(ctx, value)
            discord_id = str(member.id) if member else None
        else:
            discord_id = self.store.find_by(lookup, value)

        hid = self.store.hunter_id_for(discord_id) if discord_id else None
        if hid is None:
            return f"I did not find a registered hunter with `{value}` as a {LOOKUP_NAMES[lookup]}."

        member = ctx.guild.get_member(int(discord_id))
        if member is None:
            try:
                member = await ctx.guild.fetch_member(int(discord_id))
            except discord.NotFound:
                return "That person may not be on this server."
            except discord.HTTPException as e:
                logger.warning(f"Could not fetch member {discord_id}: {e}")
                return "That person may not have a Discord account any longer."

        return f"`{value}` is {member.display_name} <{PROFILE_URL.format(hid=hid)}>"

    async def lookup(self, ctx: commands.Context, tokens: list[str]) -> str:
        """Route a whois request to the right kind of search."""
        if not tokens:
            return "Who's who? Who's on first?"

        search_type = tokens[0].lower()
        rest = tokens[1:]
        if search_type.isdigit():
            return await self.find_hunter(ctx, search_type, "hid")
        if search_type.startswith("snu"):
            if not rest:
                return WHOIS_USAGE.format(prefix=self.prefix)
            return await self.find_hunter(ctx, rest[0], "snuid")
        if not rest:
            return await self.find_hunter(ctx, tokens[0], "name")
        return self.find_by_property(search_type, rest)

    @commands.command(name="whois")
    async def whois(self, ctx: commands.Context, *, text: str = ""):
        """Look up registered hunters."""
        await send_chunked(ctx.channel, await self.lookup(ctx, split_tokens(text)))
