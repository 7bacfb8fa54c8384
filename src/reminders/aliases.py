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
Alias Resolver Module

Maps free-text tokens such as "remind close always" onto a timer query
(area, sub-area, count).

Each token is classified independently, in a fixed priority order, and the
classifications are then merged into a single Query.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

logger = logging.getLogger("mhtimer.reminders.aliases")

# Counts above this are treated as "unlimited"
MAX_REMINDER_COUNT = 10_000
INFINITE_COUNT = -1

AREA_ALIASES = {
    # Seasonal Garden
    "sg": "sg",
    "seasonal": "sg",
    "season": "sg",
    "garden": "sg",
    # Forbidden Grove
    "fg": "fg",
    "grove": "fg",
    "gate": "fg",
    "ar": "fg",
    "acolyte": "fg",
    "ripper": "fg",
    "realm": "fg",
    # Game reset / Relic Hunter movement
    "reset": "reset",
    "game": "reset",
    "rh": "reset",
    "midnight": "reset",
    # Balack's Cove
    "cove": "cove",
    "balack": "cove",
    "tide": "cove",
    # Toxic Spill
    "spill": "spill",
    "toxic": "spill",
    "ts": "spill",
}

# alias -> (area, sub-area)
SUB_AREA_ALIASES = {
    # Seasonal Garden seasons
    "fall": ("sg", "autumn"),
    "autumn": ("sg", "autumn"),
    "spring": ("sg", "spring"),
    "summer": ("sg", "summer"),
    "winter": ("sg", "winter"),
    # Forbidden Grove gate
    "open": ("fg", "open"),
    "opens": ("fg", "open"),
    "opened": ("fg", "open"),
    "opening": ("fg", "open"),
    "close": ("fg", "close"),
    "closed": ("fg", "close"),
    "closing": ("fg", "close"),
    "shut": ("fg", "close"),
    # Balack's Cove tides
    "low-tide": ("cove", "low"),
    "lowtide": ("cove", "low"),
    "low": ("cove", "low"),
    "mid-tide": ("cove", "mid"),
    "midtide": ("cove", "mid"),
    "mid": ("cove", "mid"),
    "high-tide": ("cove", "high"),
    "hightide": ("cove", "high"),
    "high": ("cove", "high"),
    # Toxic Spill levels
    "archduke": ("spill", "arch"),
    "ad": ("spill", "arch"),
    "archduchess": ("spill", "arch"),
    "aardwolf": ("spill", "arch"),
    "arch": ("spill", "arch"),
    "grandduke": ("spill", "grand"),
    "gd": ("spill", "grand"),
    "grandduchess": ("spill", "grand"),
    "grand": ("spill", "grand"),
    "duchess": ("spill", "duke"),
    "duke": ("spill", "duke"),
    "countess": ("spill", "count"),
    "count": ("spill", "count"),
    "baronness": ("spill", "baron"),
    "baron": ("spill", "baron"),
    "lady": ("spill", "lord"),
    "lord": ("spill", "lord"),
    "heroine": ("spill", "hero"),
    "hero": ("spill", "hero"),
}

COUNT_KEYWORDS = {
    "once": 1,
    "one": 1,
    "twice": 2,
    "two": 2,
    "thrice": 3,
    "three": 3,
    "always": -1,
    "forever": -1,
    "unlimited": -1,
    "inf": -1,
    "infinity": -1,
    "never": 0,
    "end": 0,
    "forget": 0,
    "quit": 0,
    "stop": 0,
}

_INTEGER = re.compile(r"^[+-]?\d+")
# A bare word, or a double-quoted phrase
_TOKEN = re.compile(r'[^\s"]+|"([^"]*)"')


class TokenKind(Enum):
    AREA = "area"
    SUB_AREA = "sub_area"
    COUNT = "count"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TokenMatch:
    """Classification of a single token."""

    kind: TokenKind
    area: Optional[str] = None
    sub_area: Optional[str] = None
    count: Optional[int] = None


UNKNOWN = TokenMatch(TokenKind.UNKNOWN)


@dataclass
class Query:
    """A partially specified timer request."""

    area: Optional[str] = None
    sub_area: Optional[str] = None
    count: Optional[int] = None

    @property
    def is_ambiguous(self) -> bool:
        """True when no area could be determined."""
        return self.area is None


def split_tokens(text: str) -> list[str]:
    """Split on whitespace, keeping double-quoted phrases together."""
    tokens = []
    for match in _TOKEN.finditer(text or ""):
        token = match.group(1) if match.group(1) is not None else match.group(0)
        if token:
            tokens.append(token)
    return tokens


def parse_count(token: str) -> Optional[int]:
    """
    Parse a count keyword or integer.

    Negative and oversized numbers mean "unlimited" (-1).

    Returns:
        The count, or None if the token is not a count
    """
    token = token.lower()
    if token in COUNT_KEYWORDS:
        return COUNT_KEYWORDS[token]

    match = _INTEGER.match(token)
    if not match:
        return None
    value = int(match.group(0))
    if value < 0 or value > MAX_REMINDER_COUNT:
        return -1
    return value


def merge_counts(counts: list[int]) -> Optional[int]:
    """Combine several count tokens into one; None when there are none."""
    if not counts:
        return None
    if 0 in counts:
        return 0
    if INFINITE_COUNT in counts:
        return INFINITE_COUNT
    return max(counts)


class AliasResolver:
    """
    Resolves tokens against the known timers and the static alias tables.

    Classification priority per token:
        1. exact area name of a loaded timer
        2. exact sub-area name of a loaded timer
        3. area alias
        4. sub-area alias
        5. count keyword
        6. integer
    """

    def __init__(self, areas: Iterable[str] = (), sub_areas: Optional[dict[str, str]] = None):
        """
        Initialize the resolver.

        Args:
            areas: Canonical area names of the loaded timers
            sub_areas: Canonical sub-area name -> parent area
        """
        self.areas = {a.lower() for a in areas}
        self.sub_areas = {s.lower(): a.lower() for s, a in (sub_areas or {}).items()}

    @classmethod
    def from_catalog(cls, catalog) -> "AliasResolver":
        return cls(catalog.areas, catalog.sub_areas)

    def classify(self, token: str) -> TokenMatch:
        """Classify one token; unknown tokens get TokenKind.UNKNOWN."""
        token = token.strip().lower()
        if not token:
            return UNKNOWN

        if token in self.areas:
            return TokenMatch(TokenKind.AREA, area=token)
        if token in self.sub_areas:
            return TokenMatch(TokenKind.SUB_AREA, area=self.sub_areas[token], sub_area=token)
        if token in AREA_ALIASES:
            return TokenMatch(TokenKind.AREA, area=AREA_ALIASES[token])
        if token in SUB_AREA_ALIASES:
            area, sub_area = SUB_AREA_ALIASES[token]
            return TokenMatch(TokenKind.SUB_AREA, area=area, sub_area=sub_area)

        count = parse_count(token)
        if count is not None:
            return TokenMatch(TokenKind.COUNT, count=count)
        return UNKNOWN

    def resolve(self, tokens: Iterable[str]) -> Query:
        """
        Build a query from the tokens, left to right.

        Merge rules:
            - an area-only token sets the area only if none is set yet
            - a sub-area token sets both sub-area and area (the last one wins)
            - counts combine regardless of order: stop (0) beats unlimited
              (-1), which beats the largest finite count

        Args:
            tokens: User-supplied words

        Returns:
            Query with whatever fields could be determined
        """
        query = Query()
        counts = []
        for token in tokens:
            match = self.classify(token)

            if match.kind is TokenKind.SUB_AREA:
                query.area = match.area
                query.sub_area = match.sub_area
            elif match.kind is TokenKind.AREA:
                if query.area is None:
                    query.area = match.area
            elif match.kind is TokenKind.COUNT:
                counts.append(match.count)
            else:
                logger.debug(f"Ignoring token '{token}'")

        query.count = merge_counts(counts)
        return query
