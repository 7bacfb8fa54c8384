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
Discord UI Components for Search Commands

Provides the numbered result menu for searches with several matches.
"""

import logging

import discord

from search import PickSession

logger = logging.getLogger("mhtimer.commands.views")


class PickButton(discord.ui.Button):
    """One numbered choice in a pick menu."""

    def __init__(self, symbol: str):
        super().__init__(style=discord.ButtonStyle.secondary, emoji=symbol)
        self.symbol = symbol

    async def callback(self, interaction: discord.Interaction):
        view: CandidatePickerView = self.view
        await view.choose(interaction, self.symbol)


class CandidatePickerView(discord.ui.View):
    """
    Numbered buttons for picking one of several search results.

    Features:
    - One button per candidate, labelled with its keycap symbol
    - User verification (only the searching user can pick)
    - 5-minute timeout, matching the session's selection window
    """

    def __init__(self, session: PickSession):
        """
        Initialize picker view.

        Args:
            session: The pick session the buttons feed
        """
        super().__init__(timeout=session.timeout)
        self.session = session
        for symbol in session.symbols:
            self.add_item(PickButton(symbol))

    async def _verify_user(self, interaction: discord.Interaction) -> bool:
        """Verify the interaction is from the original user."""
        if str(interaction.user.id) != self.session.requester_id:
            await interaction.response.send_message(
                "These results belong to someone else. Run your own search to pick.",
                ephemeral=True,
            )
            return False
        return True

    async def choose(self, interaction: discord.Interaction, symbol: str):
        """Forward a button press to the session."""
        if not await self._verify_user(interaction):
            return

        candidate = self.session.select(interaction.user.id, symbol)
        if candidate is None:
            await interaction.response.send_message(
                "This menu is no longer accepting choices.",
                ephemeral=True,
            )
            return

        await interaction.response.send_message(
            f"Sending the results for **{candidate.label}** by DM.",
            ephemeral=True,
        )
        self._disable()
        self.stop()

    def _disable(self):
        for item in self.children:
            item.disabled = True

    async def on_timeout(self):
        """Disable buttons when view times out."""
        self._disable()
