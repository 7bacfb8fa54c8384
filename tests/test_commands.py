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

"""Tests for the prefix command cogs and their UI components."""

import sys
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
import pytz

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from commands.find_commands import FindCommands
from commands.formatting import chunk_message
from commands.timer_commands import (
    RONZA_REPLY,
    TimerCommands,
    build_help_message,
    format_reminder_list,
)
from commands.views import CandidatePickerView
from reminders import Reminder, ReminderStore
from search import SELECTOR_SYMBOLS, CandidatePicker, SearchCandidate
from timers import TimerCatalog, TimerDefinition
from tools import LOOT, MOUSE

T0 = datetime(2017, 7, 24, 12, 0, tzinfo=pytz.UTC)


def make_timer(area, sub_area, demand) -> TimerDefinition:
    return TimerDefinition(
        area=area,
        sub_area=sub_area,
        demand_text=demand,
        announce_text=f"{demand} soon",
        recurrence_interval=timedelta(hours=20),
        advance_notice=timedelta(minutes=15),
        anchor_time=T0,
    )


@pytest.fixture
def catalog():
    return TimerCatalog([
        make_timer("fg", "close", "The Forbidden Grove closes"),
        make_timer("fg", "open", "The Forbidden Grove opens"),
        make_timer("sg", "autumn", "Autumn arrives in the Seasonal Garden"),
    ])


@pytest.fixture
def store(tmp_path):
    return ReminderStore(tmp_path / "reminders.json")


@pytest.fixture
def timer_cog(catalog, store):
    return TimerCommands(MagicMock(), catalog, store)


def make_ctx(user_id: int = 42, in_guild: bool = False):
    ctx = MagicMock()
    ctx.author.id = user_id
    ctx.author.send = AsyncMock()
    ctx.send = AsyncMock()
    ctx.channel.send = AsyncMock()
    ctx.guild = MagicMock() if in_guild else None
    return ctx


class TestNext:
    """Test the next command."""

    def test_known_timer_embed(self, timer_cog):
        reply = timer_cog.build_next_reply(["close"])
        assert isinstance(reply, discord.Embed)
        assert reply.description.startswith("The Forbidden Grove closes\nin ")
        assert "To schedule this reminder: `-mh remind fg close`" in reply.description
        assert reply.timestamp is not None
        assert reply.footer.text == "at"

    def test_area_picks_soonest(self, timer_cog):
        reply = timer_cog.build_next_reply(["grove"])
        assert isinstance(reply, discord.Embed)
        assert "`-mh remind fg`" in reply.description

    def test_no_tokens_lists_areas(self, timer_cog):
        assert timer_cog.build_next_reply([]) == "Did you want to know about `fg`, `sg`?"

    def test_ronza(self, timer_cog):
        assert timer_cog.build_next_reply(["ronza"]) == RONZA_REPLY

    def test_unknown_lists_catalog(self, timer_cog):
        reply = timer_cog.build_next_reply(["banana"])
        assert reply.startswith("I do not know that timer, but I do know:")

    def test_known_alias_without_timers(self, timer_cog):
        reply = timer_cog.build_next_reply(["cove"])
        assert reply.startswith("I do not know that timer")

    @pytest.mark.asyncio
    async def test_command_sends_embed(self, timer_cog):
        ctx = make_ctx()
        await timer_cog.next_timer.callback(timer_cog, ctx, text="fall")
        assert isinstance(ctx.send.await_args.kwargs["embed"], discord.Embed)


class TestRemind:
    """Test the remind command."""

    @pytest.mark.asyncio
    async def test_create_update_remove(self, timer_cog, store):
        created = await timer_cog.update_reminder("42", ["close", "always"], in_guild=True)
        assert created == (
            "Hi there! Reminders are only sent via PM, and I'm just making sure I can PM you. "
            "Reminder for fg: close set to PM you until you stop it."
        )
        assert store.get("42", "fg", "close").remaining_count == -1

        updated = await timer_cog.update_reminder("42", ["close", "3"], in_guild=False)
        assert updated == "```Updated reminder count for 'fg: close' from -1 to 3.```"

        removed = await timer_cog.update_reminder("42", ["close", "stop"], in_guild=False)
        assert removed == "```Reminder for 'fg: close' turned off.```"

        missing = await timer_cog.update_reminder("42", ["close", "stop"], in_guild=False)
        assert missing == "I couldn't find a reminder for you in 'fg: close'."

    @pytest.mark.asyncio
    async def test_default_count_is_once(self, timer_cog, store):
        reply = await timer_cog.update_reminder("42", ["sg"], in_guild=False)
        assert reply == "Reminder for sg set to PM you once."
        assert store.get("42", "sg").remaining_count == 1

    @pytest.mark.asyncio
    async def test_no_matching_timer(self, timer_cog, store):
        reply = await timer_cog.update_reminder("42", ["spill", "always"], in_guild=False)
        assert reply.startswith("I'm sorry, there weren't any timers")
        assert store.reminders == []

    @pytest.mark.asyncio
    async def test_lists_without_area(self, timer_cog, store):
        assert await timer_cog.update_reminder("42", [], False) == "I found no reminders for you, sorry."

        store.add("42", "fg", "close", -1)
        listing = await timer_cog.update_reminder("42", ["please"], False)
        assert listing.startswith("Your reminders:\nTimer:\t`fg` (close) until you stop it.")

    @pytest.mark.asyncio
    async def test_command_replies_by_dm(self, timer_cog, store):
        ctx = make_ctx(in_guild=True)
        await timer_cog.remind.callback(timer_cog, ctx, text="close twice")

        ctx.author.send.assert_awaited_once()
        ctx.send.assert_not_awaited()
        assert store.get("42", "fg", "close").remaining_count == 2

    @pytest.mark.asyncio
    async def test_blocked_dm_is_reported_in_channel(self, timer_cog):
        ctx = make_ctx(in_guild=True)
        response = MagicMock(status=403, reason="Forbidden")
        ctx.author.send.side_effect = discord.Forbidden(response, "Cannot send messages to this user")

        await timer_cog.remind.callback(timer_cog, ctx, text="close")

        ctx.send.assert_awaited_once()
        assert "couldn't send you a private message" in ctx.send.await_args.args[0]


class TestReminderList:
    """Test reminder listing text."""

    def test_counts_and_failures(self):
        reminders = [
            Reminder("42", "fg", "close", remaining_count=1),
            Reminder("42", "sg", None, remaining_count=4, failure_count=2),
        ]
        text = format_reminder_list(reminders, "-mh ")
        assert "Timer:\t`fg` (close) one more time.\n\t`-mh remind fg close stop` to turn off" in text
        assert "Timer:\t`sg` 4 times.\n\t`-mh remind sg stop` to turn off" in text
        assert "There have been 2 failed attempts" in text


class TestSchedule:
    """Test the schedule command."""

    @pytest.mark.asyncio
    async def test_schedule_for_area(self, timer_cog):
        ctx = make_ctx()
        await timer_cog.schedule.callback(timer_cog, ctx, text="fg 48")
        text = ctx.channel.send.await_args.args[0]
        assert "in the next 48 hours" in text
        assert "Autumn" not in text


class TestHelp:
    """Test help text."""

    def test_general(self):
        text = build_help_message([])
        assert text.startswith("I know the keywords")
        assert "`-mh help <keyword>`" in text

    def test_keywords(self):
        assert build_help_message(["next"]).startswith("Usage: `-mh next")
        assert build_help_message(["remind"]).startswith("Usage: `-mh remind")
        assert build_help_message(["schedule"]).startswith("Usage: `-mh schedule")
        assert build_help_message(["sched"]).startswith("Usage: `-mh schedule")
        assert build_help_message(["find"]).startswith("Usage `-mh find")
        assert build_help_message(["ifind"]).startswith("Usage `-mh ifind")
        assert build_help_message(["iam"]).startswith("Usage `-mh iam")
        assert build_help_message(["whois"]).startswith("Usage `-mh whois")

    def test_unknown_keyword(self):
        assert build_help_message(["trade"]).startswith("I don't know that one")


@pytest.fixture
def mhct():
    client = MagicMock()
    client.get_filter = MagicMock(side_effect=lambda text: "3_days" if text == "3" else None)
    client.list_filters = MagicMock(return_value="`3_days`")
    client.search = MagicMock(return_value=[])
    client.entity_url = MagicMock(side_effect=lambda kind, id, tf=None: f"https://mhct.test/{kind}/{id}")
    return client


@pytest.fixture
def picker():
    mock_picker = MagicMock()
    mock_picker.present = AsyncMock()
    return mock_picker


class TestFind:
    """Test the find and ifind commands."""

    def test_parse_search(self, mhct, picker):
        cog = FindCommands(MagicMock(), mhct, picker)
        assert cog.parse_search("-e 3 Dread Pirate") == ("3_days", None, "dread pirate")
        assert cog.parse_search("-e bogus pirate") == (None, "bogus", "pirate")
        assert cog.parse_search("3 pirate") == (None, None, "3 pirate")

    @pytest.mark.asyncio
    async def test_requires_search_text(self, mhct, picker):
        cog = FindCommands(MagicMock(), mhct, picker)
        ctx = make_ctx()
        await cog.search(ctx, MOUSE, "  ")
        ctx.send.assert_awaited_once_with("You have to supply mice to find.")

    @pytest.mark.asyncio
    async def test_short_search(self, mhct, picker):
        cog = FindCommands(MagicMock(), mhct, picker)
        ctx = make_ctx()
        await cog.search(ctx, LOOT, "ab")
        ctx.send.assert_awaited_once_with("Your search string was too short, try again.")

    @pytest.mark.asyncio
    async def test_unknown_filter(self, mhct, picker):
        cog = FindCommands(MagicMock(), mhct, picker)
        ctx = make_ctx()
        await cog.search(ctx, MOUSE, "-e someday pirate")
        assert "I don't know the filter 'someday'" in ctx.send.await_args.args[0]
        picker.present.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_suggests_other_kind(self, mhct, picker):
        mhct.search.side_effect = lambda kind, text: (
            [SearchCandidate("11", "Pirate Pearl")] if kind == LOOT else []
        )
        cog = FindCommands(MagicMock(), mhct, picker)
        ctx = make_ctx()

        await cog.search(ctx, MOUSE, "pirate pearl")

        assert "Try `-mh ifind pirate pearl`" in ctx.send.await_args.args[0]
        picker.present.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_presents_candidates(self, mhct, picker):
        candidates = [SearchCandidate("1", "Pirate"), SearchCandidate("3", "Pirate Captain")]
        mhct.search.return_value = candidates
        cog = FindCommands(MagicMock(), mhct, picker)
        ctx = make_ctx()

        await cog.search(ctx, MOUSE, "-e 3 Pirate Mouse")

        mhct.search.assert_called_with(MOUSE, "pirate")
        picker.present.assert_awaited_once()
        args, kwargs = picker.present.await_args
        assert args[0] == candidates
        assert kwargs["requester_id"] == 42
        assert kwargs["is_private"] is True
        assert kwargs["search_text"] == "pirate"

    @pytest.mark.asyncio
    async def test_menu_embed(self, mhct):
        cog = FindCommands(MagicMock(), mhct, MagicMock())
        picker = CandidatePicker(timeout=5)
        session = await picker.present(
            [SearchCandidate("1", "Pirate"), SearchCandidate("3", "Pirate Captain")],
            requester_id=42,
            formatter=AsyncMock(return_value="table"),
            reply=AsyncMock(),
            reply_private=AsyncMock(),
            search_text="pirate",
        )

        embed = cog.build_menu_embed(session, MOUSE, None)

        assert embed.title == "Search Results for 'pirate'"
        assert f"{SELECTOR_SYMBOLS[1]}:\t[Pirate Captain](https://mhct.test/mouse/3)" in embed.description
        await picker.close_all()


class TestPickerView:
    """Test the numbered pick buttons."""

    @pytest.mark.asyncio
    async def test_buttons_and_selection(self):
        picker = CandidatePicker(timeout=5)
        session = await picker.present(
            [SearchCandidate("1", "Pirate"), SearchCandidate("3", "Pirate Captain")],
            requester_id=42,
            formatter=AsyncMock(return_value="table"),
            reply=AsyncMock(),
            reply_private=AsyncMock(),
        )
        view = CandidatePickerView(session)
        assert len(view.children) == 2

        stranger = MagicMock()
        stranger.user.id = 7
        stranger.response.send_message = AsyncMock()
        await view.choose(stranger, SELECTOR_SYMBOLS[0])
        assert stranger.response.send_message.await_args.kwargs["ephemeral"] is True
        assert session.is_open

        owner = MagicMock()
        owner.user.id = 42
        owner.response.send_message = AsyncMock()
        await view.choose(owner, SELECTOR_SYMBOLS[1])
        assert "Pirate Captain" in owner.response.send_message.await_args.args[0]
        assert not session.is_open
        assert view.is_finished()
        assert all(item.disabled for item in view.children)
        await picker.close_all()


class TestChunkMessage:
    """Test splitting long replies."""

    def test_short_message_unchanged(self):
        assert chunk_message("hello") == ["hello"]

    def test_splits_on_lines(self):
        lines = [f"line {i:04d} " + "x" * 40 for i in range(100)]
        chunks = chunk_message("\n".join(lines), limit=500)
        assert all(len(chunk) <= 500 for chunk in chunks)
        assert "\n".join(chunks).split("\n") == lines

    def test_hard_split_without_breaks(self):
        chunks = chunk_message("x" * 4500)
        assert [len(c) for c in chunks] == [2000, 2000, 500]
