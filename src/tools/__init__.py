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
MHTimer Tools Package

Clients for the external data the bot looks up:
- MHCT statistics (mouse attraction and loot drop rates)
- Community nickname sheets
- Fixed-width table rendering for code-block replies
"""

from tools.mhct import LOOT, MOUSE, MHCTClient
from tools.nicknames import NicknameTable, parse_nickname_csv
from tools.tables import Column, calculate_rate, int_to_human, pretty_print_table

__all__ = [
    "MHCTClient",
    "MOUSE",
    "LOOT",
    "NicknameTable",
    "parse_nickname_csv",
    "Column",
    "calculate_rate",
    "int_to_human",
    "pretty_print_table",
]
