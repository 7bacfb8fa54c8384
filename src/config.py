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
Bot Configuration

Runtime settings for MHTimer. Values can be overridden via environment
variables (or a .env file loaded by the entry point).
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class BotConfig:
    """Configuration for the timer bot."""

    # Discord settings
    token: Optional[str] = None
    command_prefix: str = "-mh "
    announce_channel: str = "timers"

    # Data files
    timer_settings_file: str = "timer_settings.json"
    reminders_file: str = "reminders.json"
    nickname_urls_file: str = "nicknames.json"
    hunters_file: str = "hunters.json"

    # Background intervals (minutes)
    reminder_save_minutes: float = 5.0
    hunter_save_minutes: float = 5.0
    mhct_refresh_minutes: float = 5.0
    nickname_refresh_minutes: float = 60.0

    # MHCT data provider
    mhct_base_url: str = "https://www.agiletravels.com"

    @classmethod
    def from_env(cls) -> "BotConfig":
        """Create config from environment variables with defaults."""
        return cls(
            token=os.getenv("DISCORD_BOT_TOKEN") or None,
            command_prefix=os.getenv("COMMAND_PREFIX", "-mh "),
            announce_channel=os.getenv("ANNOUNCE_CHANNEL", "timers"),
            timer_settings_file=os.getenv("TIMER_SETTINGS_FILE", "timer_settings.json"),
            reminders_file=os.getenv("REMINDERS_FILE", "reminders.json"),
            nickname_urls_file=os.getenv("NICKNAME_URLS_FILE", "nicknames.json"),
            hunters_file=os.getenv("HUNTERS_FILE", "hunters.json"),
            reminder_save_minutes=float(os.getenv("REMINDER_SAVE_MINUTES", "5")),
            hunter_save_minutes=float(os.getenv("HUNTER_SAVE_MINUTES", "5")),
            mhct_refresh_minutes=float(os.getenv("MHCT_REFRESH_MINUTES", "5")),
            nickname_refresh_minutes=float(
                os.getenv("NICKNAME_REFRESH_MINUTES", "60")
            ),
            mhct_base_url=os.getenv("MHCT_BASE_URL", "https://www.agiletravels.com"),
        )
