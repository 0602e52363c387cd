"""List resolution and cross-list aggregation.

A list name from a caller is resolved fresh on every call, real lists first,
then smart lists. Reading a smart list means reading every real list and
filtering the merged items through the smart list's predicate.

Nothing here is cached: lists can be created or renamed in the Reminders
app between two calls.
"""

import asyncio
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from exceptions import ListNotFoundError
from logger_config import setup_logger
from normalizers import local_now
from schemas import StoreItem, StoreList
from smart_lists import (
    SMART_FILTER_FIELDS,
    SmartListDefinition,
    get_smart_list_by_name,
    normalize_list_name,
)
from store import ReminderStore

logger = setup_logger(__name__, 'service.log')


@dataclass(frozen=True)
class ResolvedList:
    """Either a real list or a smart list, never both."""
    regular: Optional[StoreList] = None
    smart: Optional[SmartListDefinition] = None

    @property
    def is_smart(self) -> bool:
        return self.smart is not None


def merge_fields(*field_sets: Iterable[str]) -> List[str]:
    """Ordered union of field names."""
    merged = {}
    for fields in field_sets:
        for field in fields:
            merged[field] = None
    return list(merged)


async def get_regular_list_by_name(store: ReminderStore, list_name: str) -> Optional[StoreList]:
    normalized = normalize_list_name(list_name)
    for store_list in await store.list_lists():
        if normalize_list_name(store_list.name) == normalized:
            return store_list
    return None


async def resolve_list(store: ReminderStore, list_name: str) -> ResolvedList:
    """Classify a list name as a real or a smart list.

    A real list whose name collides with a smart list wins.

    Raises:
        ListNotFoundError: If the name matches neither
    """
    regular = await get_regular_list_by_name(store, list_name)
    if regular:
        return ResolvedList(regular=regular)

    smart = get_smart_list_by_name(list_name)
    if smart:
        return ResolvedList(smart=smart)

    raise ListNotFoundError(f'List "{list_name}" not found', list_name=list_name)


async def fetch_all_items(store: ReminderStore, fields: Sequence[str]) -> List[StoreItem]:
    """Items of every real list, de-duplicated by id.

    Lists are read concurrently; the merge follows list enumeration order,
    so the first list holding an id wins. Items without an id are kept.
    """
    lists = await store.list_lists()
    merged_fields = merge_fields(fields, SMART_FILTER_FIELDS)

    items_by_list = await asyncio.gather(
        *(store.list_items(store_list.id, merged_fields) for store_list in lists)
    )

    all_items = []
    seen_ids = set()
    for list_items in items_by_list:
        for item in list_items:
            if item.id is not None:
                if item.id in seen_ids:
                    continue
                seen_ids.add(item.id)
            all_items.append(item)

    logger.debug(f"Aggregated {len(all_items)} reminder(s) from {len(lists)} list(s)")
    return all_items


async def fetch_items_for_list(
    store: ReminderStore,
    list_name: str,
    fields: Sequence[str]
) -> List[StoreItem]:
    """Items of a real list, or the filtered union for a smart list."""
    resolved = await resolve_list(store, list_name)

    if not resolved.is_smart:
        return await store.list_items(resolved.regular.id, list(fields))

    now = local_now()
    all_items = await fetch_all_items(store, fields)
    return [item for item in all_items if resolved.smart.predicate(item, now)]


async def find_reminder_by_name(
    store: ReminderStore,
    list_name: str,
    reminder_name: str,
    fields: Sequence[str] = ()
) -> Optional[StoreItem]:
    """First item in fetch order whose name equals reminder_name exactly.

    Shared by every operation that addresses a reminder by name, so smart
    lists are matched against the same live-filtered items a read returns.
    Items without an id cannot be addressed and are skipped.
    """
    items = await fetch_items_for_list(
        store,
        list_name,
        merge_fields(fields, ("id", "name"))
    )
    for item in items:
        if item.name == reminder_name and item.id is not None:
            return item
    return None
