"""Reminder operations for Reminders MCP Service.

This module provides the read/write operations exposed by the MCP and REST
servers. Each takes the native store as its first argument.

IMPORTANT: Tags and location are not native reminder fields. They are
decoded from / encoded into the notes body through metadata_codec, so every
read goes through parse_body and every write through compose_body.
"""

from contextlib import contextmanager
from typing import List, Optional

from exceptions import RemindersError, ReminderValidationError, UpstreamError
from lists import fetch_all_items, fetch_items_for_list, find_reminder_by_name, resolve_list
from logger_config import setup_logger
from metadata_codec import compose_body, parse_body
from normalizers import format_due_date, normalize_location, normalize_tags, parse_due_date
from schemas import (
    ReminderAttributesUpdate,
    ReminderCreatePayload,
    ReminderLocation,
    ReminderMetadata,
    ReminderRecord,
    StoreItem,
)
from smart_lists import SMART_LISTS
from store import ReminderStore

logger = setup_logger(__name__, 'crud.log')

RECORD_FIELDS = ("name", "completed", "due_date", "priority", "body", "flagged")


@contextmanager
def operation_context(operation: str, list_name: Optional[str] = None,
                      reminder_name: Optional[str] = None):
    """Attach operation context to errors raised inside the block.

    RemindersError subclasses keep their kind; anything else (a store
    failure) becomes UpstreamError chained to the original.
    """
    try:
        yield
    except RemindersError as e:
        e.add_context(operation, list_name=list_name, reminder_name=reminder_name)
        logger.error(f"✗ {e}")
        raise
    except Exception as e:
        error = UpstreamError(
            str(e) or type(e).__name__,
            operation=operation,
            list_name=list_name,
            reminder_name=reminder_name
        )
        logger.error(f"✗ {error}")
        raise error from e


def to_record(item: StoreItem) -> ReminderRecord:
    """Map a raw store row to the public record, decoding the body."""
    body_parts = parse_body(item.body)
    return ReminderRecord(
        name=item.name or "",
        completed=item.completed or False,
        due_date=format_due_date(item.due_date),
        flagged=item.flagged or False,
        priority=item.priority or 0,
        notes=body_parts.notes,
        tags=body_parts.metadata.tags,
        location=body_parts.metadata.location
    )


def sort_tags(tags: List[str]) -> List[str]:
    """Alphabetical, ignoring case; code point order breaks ties."""
    return sorted(tags, key=lambda tag: (tag.casefold(), tag))


async def get_list_names(store: ReminderStore) -> List[str]:
    """Names of all real lists followed by the smart lists ("Smart: Today")."""
    with operation_context("get reminder lists"):
        lists = await store.list_lists()
        return [store_list.name for store_list in lists] + [s.display_name for s in SMART_LISTS]


async def list_reminders(store: ReminderStore, list_name: str) -> List[ReminderRecord]:
    """Decoded reminders of a real or smart list.

    Raises:
        ListNotFoundError: If the list does not exist
        UpstreamError: On store failure
    """
    with operation_context("get reminders", list_name=list_name):
        items = await fetch_items_for_list(store, list_name, RECORD_FIELDS)
        return [to_record(item) for item in items]


async def get_tags(store: ReminderStore, list_name: Optional[str] = None) -> List[str]:
    """Every tag used in one list, or across all lists when list_name is None.

    Tags differing only in case are reported once, with the casing seen first.
    """
    with operation_context("get tags", list_name=list_name):
        if list_name:
            items = await fetch_items_for_list(store, list_name, ("name", "body"))
        else:
            items = await fetch_all_items(store, ("name", "body"))

        tags = {}
        for item in items:
            for tag in parse_body(item.body).metadata.tags:
                tags.setdefault(tag.lower(), tag)

        return sort_tags(list(tags.values()))


async def create_reminder(
    store: ReminderStore,
    list_name: str,
    title: str,
    due_date: Optional[str] = None,
    notes: Optional[str] = None,
    flagged: Optional[bool] = None,
    priority: Optional[int] = None,
    tags: Optional[List[str]] = None,
    location: Optional[ReminderLocation] = None
) -> bool:
    """Create a reminder in a real list.

    Args:
        store: Native store
        list_name: Real list name (smart lists are rejected)
        title: Reminder title
        due_date: Optional ISO 8601 date/datetime string
        notes: Optional notes text
        flagged: Optional flag
        priority: Optional priority 0-9
        tags: Optional tags, stored in the notes metadata
        location: Optional location, validated strictly

    Returns:
        bool: True if the store reported a new reminder id

    Raises:
        ListNotFoundError: If the list does not exist
        ReminderValidationError: Smart list target, bad due date, bad
            priority or bad location
        UpstreamError: On store failure
    """
    with operation_context("create reminder", list_name=list_name, reminder_name=title):
        resolved = await resolve_list(store, list_name)
        if resolved.is_smart:
            raise ReminderValidationError(
                f'Cannot create reminders in smart list "{list_name}". '
                f'Select a regular reminder list.'
            )

        payload = ReminderCreatePayload(name=title)

        if due_date:
            payload.due_date = parse_due_date(due_date)

        if priority is not None:
            if not 0 <= priority <= 9:
                raise ReminderValidationError("priority must be between 0 and 9")
            payload.priority = priority

        if flagged is not None:
            payload.flagged = flagged

        metadata = ReminderMetadata(
            tags=normalize_tags(tags),
            location=normalize_location(location, strict=True)
        )
        payload.body = compose_body(notes, metadata)

        logger.info(f"📝 Creating reminder: {title} | List: {resolved.regular.name}")
        new_id = await store.create_item(resolved.regular.id, payload)
        return bool(new_id)


async def set_reminder_attributes(
    store: ReminderStore,
    list_name: str,
    reminder_name: str,
    attributes: ReminderAttributesUpdate
) -> bool:
    """Update flag, priority, tags and/or location of a reminder.

    Only fields set on `attributes` are applied. The body is rewritten only
    when tags or location are touched; notes text is preserved.

    Returns:
        bool: False if no reminder with that name exists in the list
    """
    with operation_context("set reminder attributes", list_name=list_name,
                           reminder_name=reminder_name):
        target = await find_reminder_by_name(store, list_name, reminder_name, ("body",))
        if target is None:
            return False

        changes = {}

        if attributes.flagged is not None:
            changes["flagged"] = attributes.flagged

        if attributes.priority is not None:
            if not 0 <= attributes.priority <= 9:
                raise ReminderValidationError("priority must be between 0 and 9")
            changes["priority"] = attributes.priority

        touches_tags = attributes.touches("tags") and attributes.tags is not None
        touches_location = attributes.touches("location")

        if touches_tags or touches_location:
            body_parts = parse_body(target.body)
            metadata = body_parts.metadata.model_copy()

            if touches_tags:
                metadata.tags = normalize_tags(attributes.tags)

            if touches_location:
                metadata.location = normalize_location(attributes.location, strict=True)

            changes["body"] = compose_body(body_parts.notes, metadata) or ""

        if not changes:
            return True

        logger.info(f"📝 Updating reminder {reminder_name}: {', '.join(changes)}")
        await store.update_item(target.id, changes)
        return True


async def complete_reminder(store: ReminderStore, list_name: str, reminder_name: str) -> bool:
    """Mark the first reminder named reminder_name as completed.

    Returns:
        bool: False if not found
    """
    with operation_context("complete reminder", list_name=list_name,
                           reminder_name=reminder_name):
        target = await find_reminder_by_name(store, list_name, reminder_name)
        if target is None:
            return False

        await store.update_item(target.id, {"completed": True})
        return True


async def delete_reminder(store: ReminderStore, list_name: str, reminder_name: str) -> bool:
    """Delete the first reminder named reminder_name.

    Returns:
        bool: False if not found
    """
    with operation_context("delete reminder", list_name=list_name,
                           reminder_name=reminder_name):
        target = await find_reminder_by_name(store, list_name, reminder_name)
        if target is None:
            return False

        logger.info(f"🗑️ Deleting reminder {reminder_name} from {list_name}")
        await store.delete_item(target.id)
        return True
