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
Timer Commands

Prefix commands for asking about upcoming timers and managing reminders.
"""

import logging
from typing import Optional

import discord
from discord.ext import commands

from reminders import AddOutcome, AliasResolver, Reminder, ReminderStore, split_tokens
from timers import TimerCatalog, time_left, utcnow

from commands.formatting import send_chunked

logger = logging.getLogger("mhtimer.commands.timers")

RONZA_REPLY = "Don't let aardwolf see you ask or you'll get muted"

AREA_INFO = (
    "Areas are Seasonal Garden (**sg**), Forbidden Grove (**fg**), Toxic Spill (**ts**), "
    "Balack's Cove (**cove**), and the daily **reset**."
)
SUB_AREA_INFO = "Sub areas are the seasons, open/close, spill ranks, and tide levels"
PRIVACY_WARNING = (
    "Setting your location and rank means that when people search for those things, "
    "you can be randomly added to the results."
)


def describe_count(count: int) -> str:
    if count == 1:
        return "once"
    if count < 0:
        return "until you stop it"
    return f"{count} times"


def format_reminder_list(reminders: list[Reminder], prefix: str) -> str:
    """Render a user's reminders with the command to turn each off."""
    if not reminders:
        return "I found no reminders for you, sorry."

    text = "Your reminders:"
    for reminder in reminders:
        usage = f"`{prefix}remind {reminder.area}"
        text += f"\nTimer:\t`{reminder.area}`"
        if reminder.sub_area:
            text += f" ({reminder.sub_area})"
            usage += f" {reminder.sub_area}"

        if reminder.remaining_count == 1:
            text += " one more time"
        elif reminder.remaining_count < 0:
            text += " until you stop it"
        else:
            text += f" {reminder.remaining_count} times"
        text += f".\n\t{usage} stop` to turn off\n"

        if reminder.failure_count:
            text += (
                f"There have been {reminder.failure_count} failed attempts "
                "to activate this reminder.\n"
            )
    return text


def build_help_message(tokens: list[str], prefix: str = "-mh ") -> str:
    """Get the general help text, or the help for one keyword."""
    keywords = "`iam`, `whois`, `remind`, `next`, `find`, `ifind`, and `schedule`"
    if not tokens:
        return "\n".join([
            f"I know the keywords {keywords}.",
            f"You can use `{prefix}help <keyword>` to get specific information about how to use it.",
            f"Example: `{prefix}help next` provides help about the 'next' keyword, "
            f"`{prefix}help remind` provides help about the 'remind' keyword.",
            "Pro Tip: **All commands work in PM!**",
        ])

    keyword = tokens[0].lower()
    if keyword == "next":
        return "\n".join([
            f"Usage: `{prefix}next [<area> | <sub-area>]` will provide a message about the next related occurrence.",
            AREA_INFO,
            SUB_AREA_INFO,
            f"Example: `{prefix}next fall` will tell when it is Autumn in the Seasonal Garden.",
        ])
    if keyword == "remind":
        return "\n".join([
            f"Usage: `{prefix}remind [<area> | <sub-area>] [<number> | always | stop]` will control "
            "my reminder function relating to you specifically.",
            "Using the word `stop` will turn off a reminder if it exists.",
            "Using a number means I will remind you that many times for that timer.",
            "Use the word `always` to have me remind you for every occurrence.",
            f"Just using `{prefix}remind` will list all your existing reminders and how to turn off each",
            AREA_INFO,
            SUB_AREA_INFO,
            f"Example: `{prefix}remind close always` will always PM you 15 minutes before the Forbidden Grove closes.",
        ])
    if keyword.startswith("sched"):
        return "\n".join([
            f"Usage: `{prefix}schedule [<area>] [<number>]` will tell you the timers scheduled for the "
            "next `<number>` of hours. Default is 24, max is 240.",
            "If you provide an area, I will only report on that area.",
            AREA_INFO,
        ])
    if keyword in ("find", "mfind"):
        return "\n".join([
            f"Usage `{prefix}find <mouse>` will print the top attractions for the mouse, capped at 10.",
            "Use `-e <filter>` to look at a time period other than all time, e.g. `-e current`.",
            "All attraction data is from <https://www.agiletravels.com/>.",
            "Help populate the database for better information!",
        ])
    if keyword == "ifind":
        return "\n".join([
            f"Usage `{prefix}ifind <item>` will print the top drop rates for the item, capped at 10.",
            "Use `-e <filter>` to look at a time period other than all time, e.g. `-e current`.",
            "All drop rate data is from <https://www.agiletravels.com/>.",
            "Help populate the database for better information!",
        ])
    if keyword == "iam":
        return "\n".join([
            f"Usage `{prefix}iam <####>` will set your hunter ID. "
            "**This must be done before the other options will work.**",
            f"  `{prefix}iam in <location>` will set your hunting location. Nicknames are allowed.",
            f"  `{prefix}iam rank <rank>` will set your rank. Nicknames are allowed.",
            f"  `{prefix}iam not` will remove you from results.",
            PRIVACY_WARNING,
        ])
    if keyword == "whois":
        return "\n".join([
            f"Usage `{prefix}whois <####>` will try to look up a Discord user by MH ID. "
            "Only works if they set their ID.",
            f"  `{prefix}whois <user>` will try to look up a hunter ID based on a user in the server.",
            f"  `{prefix}whois in <location>` will find up to 5 random hunters in that location.",
            f"  `{prefix}whois rank <rank>` will find up to 5 random hunters with that rank.",
            PRIVACY_WARNING,
        ])
    return f"I don't know that one, but I do know {keywords}."


class TimerCommands(commands.Cog):
    """
    Prefix commands for timers and reminders.

    Commands:
    - next - When a timer next activates
    - remind - Add, update, remove, or list your reminders
    - schedule - Upcoming timer activations
    - help - Usage information
    """

    def __init__(
        self,
        bot: commands.Bot,
        catalog: TimerCatalog,
        store: ReminderStore,
        resolver: Optional[AliasResolver] = None,
        command_prefix: str = "-mh ",
    ):
        self.bot = bot
        self.catalog = catalog
        self.store = store
        self.resolver = resolver or AliasResolver.from_catalog(catalog)
        self.prefix = command_prefix

    async def _send_private(self, ctx: commands.Context, content: str) -> None:
        """Reply by DM, telling the channel if DMs are blocked."""
        try:
            await send_chunked(ctx.author, content)
        except discord.HTTPException as e:
            logger.warning(f"Could not DM user {ctx.author.id}: {e}")
            if ctx.guild is not None:
                await ctx.send(f"{ctx.author.mention}, I couldn't send you a private message.")

    # =========================================================================
    # next
    # =========================================================================

    def build_next_reply(self, tokens: list[str]):
        """
        Answer a "next" request.

        Returns:
            A discord.Embed for a known timer, otherwise a string
        """
        if not tokens:
            areas = ", ".join(f"`{area}`" for area in self.catalog.areas)
            return f"Did you want to know about {areas}?"

        query = self.resolver.resolve(tokens)
        if query.is_ambiguous:
            if tokens[0].lower() == "ronza":
                return RONZA_REPLY
            return self.catalog.describe()

        now = utcnow()
        found = self.catalog.soonest(query.area, query.sub_area, now)
        if found is None:
            return self.catalog.describe()

        timer, when = found
        syntax = f"{self.prefix}remind {query.area}"
        if query.sub_area:
            syntax += f" {query.sub_area}"

        embed = discord.Embed(
            description=(
                f"{timer.demand_text}\n{time_left(when, now)}\n"
                f"To schedule this reminder: `{syntax}`"
            ),
            timestamp=when,
        )
        embed.set_footer(text="at")
        return embed

    @commands.command(name="next")
    async def next_timer(self, ctx: commands.Context, *, text: str = ""):
        """When does a timer next activate."""
        reply = self.build_next_reply(split_tokens(text))
        if isinstance(reply, discord.Embed):
            await ctx.send(embed=reply)
        else:
            await send_chunked(ctx.channel, reply)

    # =========================================================================
    # remind
    # =========================================================================

    async def update_reminder(self, owner_id: str, tokens: list[str], in_guild: bool) -> str:
        """
        Apply a reminder request and describe the result.

        Args:
            owner_id: Discord user ID of the requester
            tokens: Words following the command
            in_guild: Whether the request was made in a public channel

        Returns:
            The text to send the user privately
        """
        query = self.resolver.resolve(tokens)
        if not tokens or query.is_ambiguous:
            return format_reminder_list(self.store.for_owner(owner_id), self.prefix)

        count = 1 if query.count is None else query.count
        name = f"{query.area}: {query.sub_area}" if query.sub_area else query.area

        if count and not self.catalog.matching(query.area, query.sub_area):
            return "I'm sorry, there weren't any timers I know of that match your request."

        async with self.store.lock:
            result = self.store.add(owner_id, query.area, query.sub_area, count)

        if result.outcome is AddOutcome.REMOVED:
            return f"```Reminder for '{name}' turned off.```"
        if result.outcome is AddOutcome.NOT_FOUND:
            return f"I couldn't find a reminder for you in '{name}'."
        if result.outcome is AddOutcome.UPDATED:
            return f"```Updated reminder count for '{name}' from {result.previous_count} to {count}.```"

        responses = [f"Reminder for {name} set to PM you {describe_count(count)}."]
        if in_guild:
            responses.insert(
                0,
                "Hi there! Reminders are only sent via PM, and I'm just making sure I can PM you.",
            )
        return " ".join(responses)

    @commands.command(name="remind")
    async def remind(self, ctx: commands.Context, *, text: str = ""):
        """Add, update, remove, or list your reminders."""
        reply = await self.update_reminder(
            str(ctx.author.id), split_tokens(text), ctx.guild is not None
        )
        await self._send_private(ctx, reply)

    # =========================================================================
    # schedule
    # =========================================================================

    @commands.command(name="schedule", aliases=["sched", "agenda", "itin", "itinerary"])
    async def schedule(self, ctx: commands.Context, *, text: str = ""):
        """List upcoming timer activations."""
        query = self.resolver.resolve(split_tokens(text))
        await send_chunked(ctx.channel, self.catalog.build_schedule(query.area, query.count))

    # =========================================================================
    # help
    # =========================================================================

    @commands.command(name="help")
    async def show_help(self, ctx: commands.Context, *, text: str = ""):
        """Usage information."""
        await send_chunked(ctx.channel, build_help_message(split_tokens(text), self.prefix))
