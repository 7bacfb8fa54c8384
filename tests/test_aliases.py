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

"""Tests for the alias resolver."""

import itertools
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminders import AliasResolver, Query, TokenKind, parse_count, split_tokens
from reminders.aliases import MAX_REMINDER_COUNT, merge_counts


@pytest.fixture
def resolver():
    return AliasResolver(
        areas=["sg", "fg", "reset", "cove", "spill"],
        sub_areas={
            "autumn": "sg",
            "winter": "sg",
            "open": "fg",
            "close": "fg",
            "low": "cove",
            "high": "cove",
        },
    )


class TestResolve:
    """Test building queries from tokens."""

    def test_remind_close_always(self, resolver):
        query = resolver.resolve(["remind", "close", "always"])
        assert query == Query(area="fg", sub_area="close", count=-1)

    def test_area_only(self, resolver):
        assert resolver.resolve(["fg"]) == Query(area="fg")

    def test_area_alias(self, resolver):
        assert resolver.resolve(["grove", "2"]) == Query(area="fg", count=2)

    def test_sub_area_alias_implies_area(self, resolver):
        assert resolver.resolve(["fall"]) == Query(area="sg", sub_area="autumn")

    def test_sub_area_overrides_earlier_area(self, resolver):
        assert resolver.resolve(["sg", "close"]) == Query(area="fg", sub_area="close")

    def test_later_area_does_not_replace_sub_area(self, resolver):
        assert resolver.resolve(["close", "sg"]) == Query(area="fg", sub_area="close")

    def test_order_independent_without_conflicts(self, resolver):
        tokens = ["fg", "close", "twice"]
        expected = Query(area="fg", sub_area="close", count=2)
        assert resolver.resolve(tokens) == expected
        assert resolver.resolve(list(reversed(tokens))) == expected
        assert resolver.resolve(["twice", "fg", "close"]) == expected

    def test_last_sub_area_wins(self, resolver):
        assert resolver.resolve(["open", "close"]).sub_area == "close"
        assert resolver.resolve(["close", "open"]).sub_area == "open"

    def test_stop_beats_other_counts(self, resolver):
        assert resolver.resolve(["fg", "close", "2", "stop"]).count == 0
        assert resolver.resolve(["fg", "close", "stop", "2"]).count == 0
        assert resolver.resolve(["always", "stop"]).count == 0

    def test_unlimited_beats_finite_counts(self, resolver):
        assert resolver.resolve(["fg", "3", "always"]).count == -1
        assert resolver.resolve(["fg", "always", "3"]).count == -1

    def test_largest_finite_count_wins(self, resolver):
        assert resolver.resolve(["fg", "3", "twice"]).count == 3
        assert resolver.resolve(["fg", "twice", "3"]).count == 3

    def test_counts_are_order_independent(self, resolver):
        tokens = ["fg", "close", "2", "stop", "always", "5"]
        expected = resolver.resolve(tokens)
        for permutation in itertools.permutations(tokens):
            assert resolver.resolve(list(permutation)) == expected

    @pytest.mark.parametrize("counts,expected", [
        ([], None),
        ([4], 4),
        ([1, 7, 2], 7),
        ([7, -1], -1),
        ([-1, 0, 9], 0),
    ])
    def test_merge_counts(self, counts, expected):
        assert merge_counts(counts) == expected

    def test_unknown_tokens_ignored(self, resolver):
        query = resolver.resolve(["please", "remind", "me", "about", "cove"])
        assert query == Query(area="cove")

    def test_no_area_is_ambiguous(self, resolver):
        query = resolver.resolve(["ronza"])
        assert query.is_ambiguous
        assert query == Query()

    def test_case_insensitive(self, resolver):
        assert resolver.resolve(["CLOSE", "Always"]) == Query(area="fg", sub_area="close", count=-1)


class TestClassify:
    """Test token classification priority."""

    def test_exact_area_beats_alias(self):
        # "count" is both a spill sub-area alias and a loaded area here
        resolver = AliasResolver(areas=["count"])
        assert resolver.classify("count").kind is TokenKind.AREA

    def test_exact_sub_area_beats_area_alias(self):
        resolver = AliasResolver(areas=["fg"], sub_areas={"grove": "fg"})
        match = resolver.classify("grove")
        assert match.kind is TokenKind.SUB_AREA
        assert match.sub_area == "grove"

    def test_count_keyword(self, resolver):
        match = resolver.classify("thrice")
        assert match.kind is TokenKind.COUNT
        assert match.count == 3

    def test_unknown(self, resolver):
        assert resolver.classify("banana").kind is TokenKind.UNKNOWN
        assert resolver.classify("").kind is TokenKind.UNKNOWN

    def test_from_catalog(self):
        catalog = type("Catalog", (), {"areas": ["fg"], "sub_areas": {"close": "fg"}})()
        resolver = AliasResolver.from_catalog(catalog)
        assert resolver.resolve(["close"]) == Query(area="fg", sub_area="close")


class TestParseCount:
    """Test count parsing."""

    def test_keywords(self):
        assert parse_count("once") == 1
        assert parse_count("twice") == 2
        assert parse_count("forever") == -1
        assert parse_count("stop") == 0
        assert parse_count("never") == 0

    def test_integers(self):
        assert parse_count("5") == 5
        assert parse_count("12times") == 12
        assert parse_count("0") == 0

    def test_out_of_range_means_unlimited(self):
        assert parse_count("-3") == -1
        assert parse_count(str(MAX_REMINDER_COUNT + 1)) == -1
        assert parse_count("99999999999999999999") == -1

    def test_not_a_count(self):
        assert parse_count("abc") is None


class TestSplitTokens:
    """Test splitting user text."""

    def test_whitespace(self):
        assert split_tokens("  remind  close\talways ") == ["remind", "close", "always"]

    def test_quoted_phrase(self):
        assert split_tokens('find "dread pirate" mousert') == ["find", "dread pirate", "mousert"]

    def test_empty(self):
        assert split_tokens("") == []
        assert split_tokens(None) == []
