"""Smart (virtual) lists computed over every real list.

The registry is a module-level constant: six read-only views, each a name,
optional aliases and a predicate over a raw StoreItem. Predicates receive
"now" from the caller so one query evaluates every item against the same
instant.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Tuple

from normalizers import normalize_due_date
from schemas import StoreItem

SMART_LIST_PREFIX = "Smart: "

# Fields every predicate below may read
SMART_FILTER_FIELDS = ("id", "name", "completed", "due_date", "flagged")


@dataclass(frozen=True)
class SmartListDefinition:
    """A virtual list: canonical name, extra names and a membership test."""
    name: str
    predicate: Callable[[StoreItem, datetime], bool]
    aliases: Tuple[str, ...] = ()

    @property
    def display_name(self) -> str:
        """Name as listed to callers, e.g. "Smart: Today"."""
        return smart_list_display_name(self.name)


def _is_completed(item: StoreItem) -> bool:
    return bool(item.completed)


def _is_due_today(item: StoreItem, now: datetime) -> bool:
    """Due on the same calendar day as now, earlier or later in the day."""
    due = normalize_due_date(item.due_date)
    if due is None:
        return False
    # Compare calendar days in the local zone of "now"
    return due.astimezone(now.tzinfo).date() == now.date()


def _is_overdue(item: StoreItem, now: datetime) -> bool:
    """Open and due strictly before now."""
    due = normalize_due_date(item.due_date)
    if due is None or _is_completed(item):
        return False
    return due < now


SMART_LISTS: Tuple[SmartListDefinition, ...] = (
    SmartListDefinition(
        name="All",
        aliases=("all reminders",),
        predicate=lambda item, now: True
    ),
    SmartListDefinition(
        name="Today",
        predicate=lambda item, now: not _is_completed(item) and _is_due_today(item, now)
    ),
    SmartListDefinition(
        name="Scheduled",
        aliases=("planned",),
        predicate=lambda item, now: (
            not _is_completed(item) and normalize_due_date(item.due_date) is not None
        )
    ),
    SmartListDefinition(
        name="Flagged",
        predicate=lambda item, now: not _is_completed(item) and bool(item.flagged)
    ),
    SmartListDefinition(
        name="Completed",
        predicate=lambda item, now: _is_completed(item)
    ),
    SmartListDefinition(
        name="Overdue",
        predicate=_is_overdue
    ),
)


def normalize_list_name(value: str) -> str:
    """Comparison key for list names: trimmed, lower-cased."""
    return value.strip().lower()


def smart_list_display_name(name: str) -> str:
    """Prefixed form of a smart list name, e.g. Today -> "Smart: Today"."""
    return f"{SMART_LIST_PREFIX}{name}"


def get_smart_list_by_name(list_name: str) -> Optional[SmartListDefinition]:
    """Find a smart list by name or alias.

    Matching is case-insensitive and tolerates a "smart:" prefix, so
    "Smart: Today", "today" and "SMART:TODAY" all match Today.
    """
    normalized = normalize_list_name(list_name)
    stripped = normalized
    if normalized.startswith("smart:"):
        stripped = normalized[len("smart:"):].strip()

    for smart_list in SMART_LISTS:
        canonical = normalize_list_name(smart_list.name)
        if stripped == canonical or normalized == canonical:
            return smart_list
        if any(normalize_list_name(alias) == stripped for alias in smart_list.aliases):
            return smart_list

    return None
