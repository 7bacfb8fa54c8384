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

"""Tests for the timer catalog."""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest
import pytz

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from timers import TimerCatalog, TimerDefinition
from timers.catalog import MAX_SCHEDULE_ENTRIES, MAX_SCHEDULE_HOURS

T0 = datetime(2017, 7, 24, 12, 0, tzinfo=pytz.UTC)


def make_timer(area, sub_area, hours, offset_hours=0, demand=None) -> TimerDefinition:
    return TimerDefinition(
        area=area,
        sub_area=sub_area,
        demand_text=demand or f"{area} {sub_area or ''}".strip(),
        announce_text=f"{area} soon",
        recurrence_interval=timedelta(hours=hours),
        advance_notice=timedelta(minutes=15),
        anchor_time=T0 + timedelta(hours=offset_hours),
    )


@pytest.fixture
def catalog():
    return TimerCatalog([
        make_timer("fg", "close", 20, 0, "The Forbidden Grove closes"),
        make_timer("fg", "open", 20, 4, "The Forbidden Grove opens"),
        make_timer("sg", "autumn", 80, 0),
        make_timer("reset", None, 24, 0),
    ])


class TestLookups:
    """Test area lookups."""

    def test_areas_and_sub_areas(self, catalog):
        assert catalog.areas == ["fg", "sg", "reset"]
        assert catalog.sub_areas == {"close": "fg", "open": "fg", "autumn": "sg"}

    def test_matching(self, catalog):
        assert len(catalog.matching("fg")) == 2
        assert [t.sub_area for t in catalog.matching("fg", "open")] == ["open"]
        assert catalog.matching("cove") == []

    def test_soonest_picks_earliest(self, catalog):
        timer, when = catalog.soonest("fg", now=T0 + timedelta(hours=1))
        assert timer.sub_area == "open"
        assert when == T0 + timedelta(hours=4)

    def test_soonest_with_sub_area(self, catalog):
        timer, when = catalog.soonest("fg", "close", now=T0 + timedelta(hours=1))
        assert when == T0 + timedelta(hours=20)

    def test_soonest_unknown(self, catalog):
        assert catalog.soonest("cove") is None

    def test_describe(self, catalog):
        assert catalog.describe() == (
            "I do not know that timer, but I do know:\n"
            "`fg` (close, open)\n"
            "`sg` (autumn)\n"
            "`reset`"
        )


class TestSchedule:
    """Test upcoming schedules."""

    def test_default_window(self, catalog):
        entries, hours = catalog.schedule(now=T0)
        assert hours == 24
        assert [e.time for e in entries] == sorted(e.time for e in entries)
        assert {e.timer.area for e in entries} == {"fg", "reset"}

    def test_area_filter(self, catalog):
        entries, _ = catalog.schedule("fg", 48, now=T0)
        assert {e.timer.area for e in entries} == {"fg"}
        assert len(entries) == 5

    def test_hours_clamped(self, catalog):
        assert catalog.schedule(hours=10_000, now=T0)[1] == MAX_SCHEDULE_HOURS
        assert catalog.schedule(hours=-1, now=T0)[1] == 24
        assert catalog.schedule(hours=0, now=T0)[1] == 24

    def test_build_schedule_text(self, catalog):
        text = catalog.build_schedule("fg", 24, now=T0)
        assert text == (
            "I have 3 timers coming up in the next 24 hours:\n"
            "The Forbidden Grove opens in 4 hours\n"
            "The Forbidden Grove closes in 20 hours\n"
            "The Forbidden Grove opens in 1 day\n"
        )

    def test_build_schedule_empty(self, catalog):
        text = catalog.build_schedule("sg", 1, now=T0)
        assert text == "I have 0 timers coming up in the next 1 hours."

    def test_build_schedule_caps_entries(self):
        catalog = TimerCatalog([make_timer("cove", "low", 1)])
        text = catalog.build_schedule(hours=MAX_SCHEDULE_HOURS, now=T0)
        assert text.startswith(f"I have 240 timers coming up in the next 240 hours. Here are the next {MAX_SCHEDULE_ENTRIES} of them:\n")
        assert len(text.strip().split("\n")) == MAX_SCHEDULE_ENTRIES + 1
