"""Tests for the smart list registry and its predicates."""

from datetime import datetime, timedelta, timezone

import pytest

from schemas import StoreItem
from smart_lists import SMART_LISTS, get_smart_list_by_name, smart_list_display_name

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def smart(name):
    return get_smart_list_by_name(name)


@pytest.mark.parametrize("name", ["Smart: Today", "today", "SMART:TODAY", "  smart:   today "])
def test_name_variants_match_today(name):
    assert smart(name) is smart("Today")
    assert smart(name).name == "Today"


def test_aliases():
    assert smart("planned").name == "Scheduled"
    assert smart("Smart: All Reminders").name == "All"


def test_unknown_name():
    assert smart("Nonexistent List") is None
    assert smart("smart:") is None


def test_registry_order_and_display_names():
    assert [s.name for s in SMART_LISTS] == [
        "All", "Today", "Scheduled", "Flagged", "Completed", "Overdue"
    ]
    assert smart_list_display_name("Today") == "Smart: Today"
    assert SMART_LISTS[1].display_name == "Smart: Today"


def test_predicates():
    yesterday = StoreItem(name="y", completed=False, due_date=NOW - timedelta(days=1))
    today = StoreItem(name="t", completed=False, due_date=NOW + timedelta(hours=2))
    done = StoreItem(name="d", completed=True, due_date=NOW - timedelta(days=1))
    flagged = StoreItem(name="f", completed=False, flagged=True)
    undated = StoreItem(name="u", completed=False, due_date="1970-01-01T00:00:00Z")

    def members(name):
        return [i.name for i in (yesterday, today, done, flagged, undated)
                if smart(name).predicate(i, NOW)]

    assert members("All") == ["y", "t", "d", "f", "u"]
    assert members("Today") == ["t"]
    assert members("Scheduled") == ["y", "t"]
    assert members("Flagged") == ["f"]
    assert members("Completed") == ["d"]
    assert members("Overdue") == ["y"]
