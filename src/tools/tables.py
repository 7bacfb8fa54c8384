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
Text Table Formatting

Fixed-width tables for code-block replies, e.g. mouse attraction rates.
"""

from dataclasses import dataclass
from typing import Any, Optional, Sequence


@dataclass
class Column:
    """How one table column is labelled and padded."""

    key: str
    label: str
    align_right: bool = False
    width: int = 0  # Minimum width; exact width when fixed_width is set
    fixed_width: bool = False
    prefix: str = ""
    suffix: str = ""


def int_to_human(value: Any) -> str:
    """Format an integer with thousands separators, e.g. 1234 -> '1,234'."""
    try:
        return f"{int(value):,}"
    except (TypeError, ValueError):
        return str(value)


def calculate_rate(denominator: Any, numerator: Any, decimals: int = 3) -> str:
    """Format numerator / denominator, or 'N/A' when it cannot be computed."""
    try:
        denominator = float(denominator)
        numerator = float(numerator)
    except (TypeError, ValueError):
        return "N/A"
    if denominator <= 0:
        return "N/A"
    return f"{numerator / denominator:.{decimals}f}"


def _cell(row: dict, column: Column) -> str:
    value = row.get(column.key)
    return f"{column.prefix}{'' if value is None else value}{column.suffix}"


def pretty_print_table(
    rows: Sequence[dict],
    columns: Sequence[Column],
    underline: Optional[str] = "=",
) -> str:
    """
    Render rows as aligned columns.

    Headers are centered; values are padded left or right per column.
    Fixed-width columns grow only if their header would not fit.

    Args:
        rows: Row dicts keyed by column key
        columns: Column specs, in display order
        underline: Character repeated under the header row (None for none)

    Returns:
        The table as a multi-line string

    Raises:
        ValueError: If there are no rows or columns, or a column key is
            missing from every row
    """
    if not rows:
        raise ValueError("Cannot print an empty table")
    if not columns:
        raise ValueError("No columns given")

    known_keys = set()
    for row in rows:
        known_keys.update(row)
    missing = [c.key for c in columns if c.key not in known_keys]
    if missing:
        raise ValueError(f"Columns not found in rows: {', '.join(missing)}")

    widths = []
    for column in columns:
        width = max(column.width, len(column.label))
        if not column.fixed_width:
            width = max([width] + [len(_cell(row, column)) for row in rows])
        widths.append(width)

    header_cells = []
    for column, width in zip(columns, widths):
        padding = width - len(column.label)
        left = padding // 2
        header_cells.append(" " * left + column.label + " " * (padding - left))
    lines = [" | ".join(header_cells)]

    if underline:
        lines.append((underline * len(lines[0]))[: len(lines[0])])

    for row in rows:
        cells = []
        for column, width in zip(columns, widths):
            text = _cell(row, column)
            cells.append(text.rjust(width) if column.align_right else text.ljust(width))
        lines.append(" | ".join(cells))

    return "\n".join(lines)
