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
Message Formatting Helpers

Discord rejects messages over 2000 characters, so long replies are split.
"""

from typing import Optional

import discord

# Discord message length limit
DISCORD_MAX_LENGTH = 2000


def chunk_message(content: str, limit: int = DISCORD_MAX_LENGTH) -> list[str]:
    """Split a message into chunks that fit Discord's limit.

    Prefers splitting at the last line break before the limit, then at a
    space, and only cuts mid-word as a last resort.
    """
    if len(content) <= limit:
        return [content]

    chunks = []
    remaining = content
    while len(remaining) > limit:
        break_at = remaining.rfind("\n", 0, limit)
        if break_at <= 0:
            break_at = remaining.rfind(" ", 0, limit)
        if break_at <= 0:
            break_at = limit

        chunks.append(remaining[:break_at].rstrip())
        remaining = remaining[break_at:].lstrip("\n")
    if remaining.strip():
        chunks.append(remaining)
    return chunks


async def send_chunked(
    destination: discord.abc.Messageable, content: str
) -> Optional[discord.Message]:
    """Send a message, splitting into chunks if needed. Returns the last message sent."""
    last_msg = None
    for chunk in chunk_message(content):
        last_msg = await destination.send(chunk)
    return last_msg
