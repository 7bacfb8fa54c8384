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
Notification Dispatcher Module

Handles a timer firing: posts the announcement to the shared channel, then
delivers a private reminder to every subscribed user.

Deliveries run concurrently and each has its own outcome, so one
unreachable user never delays or blocks another.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from errors import DeliveryFailure
from reminders.store import Reminder, ReminderStore

from .definitions import TimerDefinition

logger = logging.getLogger("mhtimer.timers.dispatcher")


class NotificationSink(Protocol):
    """Transport used to deliver announcements and reminders."""

    async def announce(self, content: str) -> bool:
        """Post to the shared announcement channel."""
        ...

    async def send_private(self, owner_id: str, content: str) -> bool:
        """Send a private message; may raise DeliveryFailure."""
        ...


@dataclass
class DispatchStats:
    """Live delivery counters since startup."""

    announcements_sent: int = 0
    announcements_failed: int = 0
    reminders_delivered: int = 0
    reminders_failed: int = 0
    reminders_disabled: int = 0

    def as_dict(self) -> dict[str, int]:
        return dict(self.__dict__)


@dataclass
class DeliveryResult:
    reminder: Reminder
    delivered: bool
    error: Optional[str] = None


def describe_remaining(count: int) -> str:
    if count < 0:
        return "unlimited"
    if count == 0:
        return "no more"
    return str(count)


def build_reminder_message(reminder: Reminder, timer: TimerDefinition, command_prefix: str = "-mh ") -> str:
    """
    Build the private reminder text.

    The remaining count shown is the value after this delivery succeeds.
    """
    remaining = reminder.remaining_count - 1 if reminder.remaining_count > 0 else reminder.remaining_count

    lines = [timer.announce_text]
    usage = f"You have {describe_remaining(remaining)} reminders left for this timer."

    syntax = f"{command_prefix}remind {reminder.area}"
    if reminder.sub_area:
        syntax += f" {reminder.sub_area}"
    if remaining == 0:
        usage += f" Use `{syntax}` to turn this reminder back on."
    else:
        usage += f" Use `{syntax} stop` to end them sooner."
    usage += f" See also `{command_prefix}help remind` for other options."

    if reminder.failure_count:
        usage += f" There were {reminder.failure_count} failures before this got through."

    lines.append(usage)
    return "\n".join(lines)


class NotificationDispatcher:
    """
    Announces timer activations and notifies subscribers.

    Each firing follows the same sequence: announce, find matching reminders,
    deliver to each, record outcomes, persist.
    """

    def __init__(
        self,
        store: ReminderStore,
        sink: NotificationSink,
        command_prefix: str = "-mh ",
    ):
        """
        Initialize the dispatcher.

        Args:
            store: Reminder store shared with the commands
            sink: Transport for announcements and private messages
            command_prefix: Prefix shown in reminder usage hints
        """
        self.store = store
        self.sink = sink
        self.command_prefix = command_prefix
        self.stats = DispatchStats()

    async def announce(self, timer: TimerDefinition) -> list[DeliveryResult]:
        """
        Handle one activation of a timer.

        Args:
            timer: The timer that fired

        Returns:
            Per-reminder delivery results
        """
        logger.info(f"Announcing {timer.name}")
        try:
            if await self.sink.announce(timer.announce_text):
                self.stats.announcements_sent += 1
            else:
                self.stats.announcements_failed += 1
                logger.warning(f"Announcement for {timer.name} was not delivered")
        except Exception as e:
            self.stats.announcements_failed += 1
            logger.error(f"Failed to announce {timer.name}: {e}", exc_info=True)

        results = await self.remind(timer)
        await self.store.persist()
        return results

    async def remind(self, timer: TimerDefinition) -> list[DeliveryResult]:
        """Deliver private reminders for a timer activation."""
        matches = self.store.find_matches(timer.area, timer.sub_area)
        if not matches:
            return []

        logger.info(f"Sending {len(matches)} reminder(s) for {timer.name}")
        outcomes = await asyncio.gather(
            *(self.notify(reminder, timer) for reminder in matches),
            return_exceptions=True,
        )
        results = [
            outcome if isinstance(outcome, DeliveryResult)
            else DeliveryResult(reminder, False, str(outcome)[:200])
            for reminder, outcome in zip(matches, outcomes)
        ]

        async with self.store.lock:
            for result in results:
                self._record(result)
        return list(results)

    async def notify(self, reminder: Reminder, timer: TimerDefinition) -> DeliveryResult:
        """
        Send one reminder to its owner.

        Never raises; failures are captured in the result.
        """
        content = build_reminder_message(reminder, timer, self.command_prefix)
        try:
            delivered = await self.sink.send_private(reminder.owner_id, content)
        except DeliveryFailure as e:
            return DeliveryResult(reminder, False, str(e))
        except Exception as e:
            logger.error(
                f"Unexpected error reminding user {reminder.owner_id}: {e}", exc_info=True
            )
            return DeliveryResult(reminder, False, str(e)[:200])

        if not delivered:
            return DeliveryResult(reminder, False, "send reported failure")
        return DeliveryResult(reminder, True)

    def _record(self, result: DeliveryResult) -> None:
        reminder = result.reminder
        if result.delivered:
            self.store.record_success(reminder)
            self.store.decrement(reminder)
            self.stats.reminders_delivered += 1
            return

        self.stats.reminders_failed += 1
        logger.warning(
            f"Reminder {reminder.name} for user {reminder.owner_id} failed "
            f"({reminder.failure_count + 1} in a row): {result.error}"
        )
        if self.store.record_failure(reminder):
            self.stats.reminders_disabled += 1
