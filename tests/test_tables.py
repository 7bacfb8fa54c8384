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

"""Tests for text table formatting."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tools.tables import Column, calculate_rate, int_to_human, pretty_print_table


class TestHelpers:
    """Test number formatting helpers."""

    def test_int_to_human(self):
        assert int_to_human(1234567) == "1,234,567"
        assert int_to_human("999") == "999"
        assert int_to_human("many") == "many"

    def test_calculate_rate(self):
        assert calculate_rate(200, 50) == "0.250"
        assert calculate_rate(3, 1, decimals=1) == "0.3"

    def test_calculate_rate_invalid(self):
        assert calculate_rate(0, 5) == "N/A"
        assert calculate_rate(None, 5) == "N/A"
        assert calculate_rate(10, "x") == "N/A"


class TestPrettyPrintTable:
    """Test table layout."""

    def test_layout(self):
        rows = [{"name": "Bob", "n": "5"}, {"name": "Alexandra", "n": "12"}]
        columns = [Column("name", "Name"), Column("n", "Count", align_right=True)]

        lines = pretty_print_table(rows, columns).split("\n")

        assert lines == [
            "  Name    | Count",
            "=================",
            "Bob       |     5",
            "Alexandra |    12",
        ]

    def test_fixed_width_with_suffix(self):
        rows = [{"pct": "1.5"}]
        columns = [Column("pct", "Chance", align_right=True, width=7, fixed_width=True, suffix="%")]

        lines = pretty_print_table(rows, columns, underline=None).split("\n")

        assert lines == ["Chance ", "   1.5%"]

    def test_empty_rows_rejected(self):
        with pytest.raises(ValueError):
            pretty_print_table([], [Column("a", "A")])

    def test_unknown_column_rejected(self):
        with pytest.raises(ValueError):
            pretty_print_table([{"a": 1}], [Column("b", "B")])
