"""
MHTimer Discord Bot

Announces recurring MouseHunt timers to each server's timer channel, sends
personal reminders by DM, answers timer and MHCT lookup commands, and keeps
a directory of self-registered hunters.
"""

import asyncio
from typing import Optional

import discord
from discord.ext import commands
from dotenv import load_dotenv

from config import BotConfig
from errors import DeliveryFailure
from hunters import HunterStore
from reminders import ReminderStore
from search import CandidatePicker
from storage import StoreSaver
from timers import (
    AnnouncementScheduler,
    NotificationDispatcher,
    TimerCatalog,
    load_timer_definitions,
)
from tools import MHCTClient, NicknameTable

from commands.find_commands import FindCommands
from commands.formatting import send_chunked
from commands.hunter_commands import HunterCommands
from commands.timer_commands import TimerCommands, build_help_message

load_dotenv()

import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("mhtimer")


def get_prefix(bot: "MHTimerBot", message: discord.Message):
    """Commands in servers need the prefix; in DMs it is optional."""
    prefix = bot.config.command_prefix
    if message.guild is None:
        return [prefix, prefix.strip(), ""]
    return [prefix, prefix.strip()]


class DiscordNotificationSink:
    """Delivers announcements and reminders over Discord."""

    def __init__(self, bot: commands.Bot, channel_name: str):
        self.bot = bot
        self.channel_name = channel_name

    async def announce(self, content: str) -> bool:
        """Post to the announcement channel of every server the bot is in."""
        sent = 0
        for guild in self.bot.guilds:
            channel = discord.utils.get(guild.text_channels, name=self.channel_name)
            if channel is None:
                continue
            try:
                await channel.send(content)
                sent += 1
            except discord.HTTPException as e:
                logger.warning(f"Could not announce in {guild.name}#{channel.name}: {e}")
        return sent > 0

    async def send_private(self, owner_id: str, content: str) -> bool:
        """Send a DM; raises DeliveryFailure when the user cannot be reached."""
        try:
            user_id = int(owner_id)
        except ValueError:
            raise DeliveryFailure(f"Invalid user ID '{owner_id}'")

        user = self.bot.get_user(user_id)
        if user is None:
            try:
                user = await self.bot.fetch_user(user_id)
            except discord.NotFound:
                raise DeliveryFailure(f"User {owner_id} does not exist")
            except discord.HTTPException as e:
                raise DeliveryFailure(f"Could not look up user {owner_id}: {e}")

        if user.bot:
            raise DeliveryFailure(f"User {owner_id} is a bot")

        try:
            await send_chunked(user, content)
        except discord.Forbidden:
            raise DeliveryFailure(f"User {owner_id} does not accept DMs")
        except discord.HTTPException as e:
            raise DeliveryFailure(f"Could not DM user {owner_id}: {e}")
        return True


class MHTimerBot(commands.Bot):
    """Discord bot for MouseHunt timers, reminders, and lookups."""

    def __init__(self, config: Optional[BotConfig] = None):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True
        intents.messages = True

        super().__init__(
            command_prefix=get_prefix,
            intents=intents,
            help_command=None,
            case_insensitive=True,
            strip_after_prefix=True,
        )

        self.config = config or BotConfig.from_env()
        self.catalog: Optional[TimerCatalog] = None
        self.store: Optional[ReminderStore] = None
        self.saver: Optional[StoreSaver] = None
        self.hunters: Optional[HunterStore] = None
        self.hunter_saver: Optional[StoreSaver] = None
        self.nicknames: Optional[NicknameTable] = None
        self.mhct: Optional[MHCTClient] = None
        self.picker: Optional[CandidatePicker] = None
        self.dispatcher: Optional[NotificationDispatcher] = None
        self.scheduler: Optional[AnnouncementScheduler] = None

    async def setup_hook(self):
        """Load data and register commands, in dependency order."""
        config = self.config
        logger.info(f"Setup: TIMER_SETTINGS_FILE={config.timer_settings_file}")
        logger.info(f"Setup: REMINDERS_FILE={config.reminders_file}")
        logger.info(f"Setup: HUNTERS_FILE={config.hunters_file}")
        logger.info(f"Setup: ANNOUNCE_CHANNEL={config.announce_channel}")

        # Timers
        self.catalog = TimerCatalog(load_timer_definitions(config.timer_settings_file))

        # Reminders
        self.store = ReminderStore(config.reminders_file)
        self.store.load()
        self.saver = StoreSaver(self.store, config.reminder_save_minutes, "reminders")

        # Hunters
        self.hunters = HunterStore(config.hunters_file)
        self.hunters.load()
        self.hunter_saver = StoreSaver(self.hunters, config.hunter_save_minutes, "hunters")

        # Nicknames and MHCT lists
        self.nicknames = NicknameTable(
            config.nickname_urls_file, refresh_minutes=config.nickname_refresh_minutes
        )
        self.nicknames.load_urls()
        await self.nicknames.refresh_all()

        self.mhct = MHCTClient(
            base_url=config.mhct_base_url,
            nicknames=self.nicknames,
            refresh_minutes=config.mhct_refresh_minutes,
        )
        await self.mhct.refresh_all()

        # Delivery
        self.picker = CandidatePicker()
        sink = DiscordNotificationSink(self, config.announce_channel)
        self.dispatcher = NotificationDispatcher(self.store, sink, config.command_prefix)
        self.scheduler = AnnouncementScheduler(self.catalog.timers, self.dispatcher.announce)

        # Commands
        await self.add_cog(
            TimerCommands(self, self.catalog, self.store, command_prefix=config.command_prefix)
        )
        await self.add_cog(
            FindCommands(self, self.mhct, self.picker, command_prefix=config.command_prefix)
        )
        await self.add_cog(
            HunterCommands(self, self.hunters, self.nicknames, command_prefix=config.command_prefix)
        )
        logger.info(
            f"Setup complete: {len(self.catalog)} timers, {len(self.store)} reminders, "
            f"{len(self.hunters)} hunters"
        )

    async def on_ready(self):
        """Called when the bot has connected to Discord."""
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guild(s)")

        # on_ready fires again after reconnects
        if not self.scheduler.running:
            self.scheduler.start()
        self.saver.start()
        self.hunter_saver.start()
        self.nicknames.start()
        self.mhct.start()

    async def on_message(self, message: discord.Message):
        if message.author.bot:
            return
        await self.process_commands(message)

    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, commands.CommandNotFound):
            await send_chunked(ctx.channel, build_help_message([], self.config.command_prefix))
            return
        logger.error(f"Command error in '{ctx.message.content}': {error}", exc_info=error)

    async def close(self):
        """Stop timers, save reminders and hunters, and clean up resources on shutdown."""
        if self.scheduler:
            await self.scheduler.stop()
        if self.picker:
            await self.picker.close_all()
        if self.saver:
            self.saver.stop()
        if self.hunter_saver:
            self.hunter_saver.stop()
        if self.store:
            await self.store.persist()
        if self.hunters:
            await self.hunters.persist()
        if self.dispatcher:
            logger.info(f"Delivery stats: {self.dispatcher.stats.as_dict()}")
        if self.mhct:
            await self.mhct.close()
        if self.nicknames:
            await self.nicknames.close()
        await super().close()


async def main():
    """Run the bot."""
    config = BotConfig.from_env()
    if not config.token:
        print("Error: DISCORD_BOT_TOKEN environment variable not set")
        print("Please set it in your .env file")
        return

    bot = MHTimerBot(config)
    async with bot:
        await bot.start(config.token)


def run():
    """Console entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
