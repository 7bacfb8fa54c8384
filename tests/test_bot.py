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

"""Tests for the bot's Discord delivery sink and prefix handling."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
from discord.ext import commands

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from config import BotConfig
from commands.timer_commands import build_help_message
from discord_bot import DiscordNotificationSink, MHTimerBot, get_prefix
from errors import DeliveryFailure


def http_error(cls, status):
    response = MagicMock(status=status, reason="error")
    return cls(response, "request failed")


def make_user(is_bot: bool = False):
    user = MagicMock()
    user.bot = is_bot
    user.send = AsyncMock()
    return user


class TestPrefix:
    """Test command prefix selection."""

    def test_dm_prefix_optional(self):
        bot = MagicMock(config=BotConfig())
        message = MagicMock(guild=None)
        assert get_prefix(bot, message) == ["-mh ", "-mh", ""]

    def test_guild_requires_prefix(self):
        bot = MagicMock(config=BotConfig())
        message = MagicMock()
        assert get_prefix(bot, message) == ["-mh ", "-mh"]


class TestSendPrivate:
    """Test private reminder delivery."""

    @pytest.mark.asyncio
    async def test_sends_to_cached_user(self):
        user = make_user()
        bot = MagicMock()
        bot.get_user.return_value = user
        sink = DiscordNotificationSink(bot, "timers")

        assert await sink.send_private("123", "hello") is True
        bot.get_user.assert_called_once_with(123)
        user.send.assert_awaited_once_with("hello")

    @pytest.mark.asyncio
    async def test_fetches_uncached_user(self):
        user = make_user()
        bot = MagicMock()
        bot.get_user.return_value = None
        bot.fetch_user = AsyncMock(return_value=user)
        sink = DiscordNotificationSink(bot, "timers")

        assert await sink.send_private("123", "hello") is True
        bot.fetch_user.assert_awaited_once_with(123)

    @pytest.mark.asyncio
    async def test_invalid_id(self):
        sink = DiscordNotificationSink(MagicMock(), "timers")
        with pytest.raises(DeliveryFailure):
            await sink.send_private("not-a-user", "hello")

    @pytest.mark.asyncio
    async def test_unknown_user(self):
        bot = MagicMock()
        bot.get_user.return_value = None
        bot.fetch_user = AsyncMock(side_effect=http_error(discord.NotFound, 404))
        sink = DiscordNotificationSink(bot, "timers")

        with pytest.raises(DeliveryFailure, match="does not exist"):
            await sink.send_private("123", "hello")

    @pytest.mark.asyncio
    async def test_bot_accounts_are_skipped(self):
        bot = MagicMock()
        bot.get_user.return_value = make_user(is_bot=True)
        sink = DiscordNotificationSink(bot, "timers")

        with pytest.raises(DeliveryFailure, match="is a bot"):
            await sink.send_private("123", "hello")

    @pytest.mark.asyncio
    async def test_blocked_dms(self):
        user = make_user()
        user.send.side_effect = http_error(discord.Forbidden, 403)
        bot = MagicMock()
        bot.get_user.return_value = user
        sink = DiscordNotificationSink(bot, "timers")

        with pytest.raises(DeliveryFailure, match="does not accept DMs"):
            await sink.send_private("123", "hello")


class TestAnnounce:
    """Test channel announcements."""

    @pytest.mark.asyncio
    async def test_posts_to_named_channel_in_each_guild(self):
        timers_a = MagicMock()
        timers_a.name = "timers"
        timers_a.send = AsyncMock()
        general = MagicMock()
        general.name = "general"
        general.send = AsyncMock()
        timers_b = MagicMock()
        timers_b.name = "timers"
        timers_b.send = AsyncMock(side_effect=http_error(discord.Forbidden, 403))

        bot = MagicMock()
        bot.guilds = [
            MagicMock(text_channels=[general, timers_a]),
            MagicMock(text_channels=[timers_b]),
            MagicMock(text_channels=[general]),
        ]
        sink = DiscordNotificationSink(bot, "timers")

        assert await sink.announce("Grove closing") is True
        timers_a.send.assert_awaited_once_with("Grove closing")
        general.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_channel_reports_failure(self):
        bot = MagicMock()
        bot.guilds = []
        sink = DiscordNotificationSink(bot, "timers")
        assert await sink.announce("Grove closing") is False


class TestCommandErrors:
    """Test replies to failed commands."""

    @pytest.mark.asyncio
    async def test_unknown_command_gets_help(self):
        bot = MagicMock(config=BotConfig())
        ctx = MagicMock()
        ctx.channel.send = AsyncMock()

        await MHTimerBot.on_command_error(bot, ctx, commands.CommandNotFound('Command "whois" is not found'))

        ctx.channel.send.assert_awaited_once()
        text = ctx.channel.send.await_args.args[0]
        assert text == build_help_message([], "-mh ")
        assert text.startswith("I know the keywords")

    @pytest.mark.asyncio
    async def test_other_errors_are_logged_not_sent(self):
        bot = MagicMock(config=BotConfig())
        ctx = MagicMock()
        ctx.send = AsyncMock()
        ctx.channel.send = AsyncMock()

        await MHTimerBot.on_command_error(bot, ctx, commands.CommandError("boom"))

        ctx.send.assert_not_awaited()
        ctx.channel.send.assert_not_awaited()
