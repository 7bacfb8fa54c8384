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
Error Types

Exceptions shared by the timer, reminder, hunter, and search packages.
"""


class MHTimerError(Exception):
    """Base class for bot errors."""

    pass


class InvalidTimerDefinition(MHTimerError):
    """Raised when a timer record cannot produce a periodic schedule."""

    pass


class DeliveryFailure(MHTimerError):
    """Raised by a notification sink when a message could not be delivered."""

    pass


class PersistenceFailure(MHTimerError):
    """Raised when the reminder file cannot be written."""

    pass


class SelectionTimeout(MHTimerError):
    """Raised when a candidate selection window lapses without a choice."""

    pass


class LookupFailure(MHTimerError):
    """Raised when an external data lookup fails."""

    pass


class NotRegistered(MHTimerError):
    """Raised when a user without a hunter ID sets other hunter details."""

    pass
