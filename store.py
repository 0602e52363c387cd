"""Native reminders store access.

ReminderStore is the contract the rest of the service relies on: enumerate
real lists, read list items with a chosen set of fields, create, update and
delete items. Two backends implement it:
- AppleScriptReminderStore: macOS Reminders.app through `osascript`
  (JavaScript for Automation)
- InMemoryReminderStore: process-local store for development and tests

Backends raise StoreError on failure. They know nothing about smart lists
or the metadata marker; bodies are opaque strings here.
"""

import asyncio
import json
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Dict, Iterable, List, Optional, Sequence

from config import settings
from exceptions import StoreError
from logger_config import setup_logger
from schemas import ReminderCreatePayload, StoreItem, StoreList

logger = setup_logger(__name__, 'store.log')

ITEM_FIELDS = ("id", "name", "completed", "due_date", "priority", "flagged", "body")


class ReminderStore(ABC):
    """Abstract contract for the native reminders store."""

    @abstractmethod
    async def list_lists(self) -> List[StoreList]:
        """Return every real list in store order."""

    @abstractmethod
    async def list_items(self, list_id: str, fields: Sequence[str]) -> List[StoreItem]:
        """Return the items of one list with only `fields` populated."""

    @abstractmethod
    async def create_item(self, list_id: str, payload: ReminderCreatePayload) -> Optional[str]:
        """Create an item and return its new id (None if the store gave none)."""

    @abstractmethod
    async def update_item(self, item_id: str, changes: Dict[str, Any]) -> None:
        """Apply a partial update (keys from ITEM_FIELDS) to an item."""

    @abstractmethod
    async def delete_item(self, item_id: str) -> None:
        """Delete an item."""


def _check_fields(fields: Iterable[str]) -> List[str]:
    fields = list(fields)
    unknown = [f for f in fields if f not in ITEM_FIELDS]
    if unknown:
        raise StoreError(f"Unknown reminder fields: {', '.join(unknown)}")
    return fields


class InMemoryReminderStore(ReminderStore):
    """Thread-safe in-memory store.

    Items keep insertion order within a list. Reads return copies that only
    contain the requested fields, like the native store does.
    """

    def __init__(self, list_names: Iterable[str] = ()) -> None:
        self._lock = RLock()
        self._lists: Dict[str, StoreList] = {}
        self._items: Dict[str, Dict[str, Any]] = {}
        self._membership: Dict[str, List[str]] = {}
        for name in list_names:
            self.add_list(name)

    def add_list(self, name: str, list_id: Optional[str] = None) -> StoreList:
        """Create a real list (the native app does this outside the service)."""
        with self._lock:
            store_list = StoreList(id=list_id or str(uuid.uuid4()), name=name)
            self._lists[store_list.id] = store_list
            self._membership[store_list.id] = []
            return store_list

    def add_item(self, list_id: str, item_id: Optional[str] = None, **fields: Any) -> str:
        """Insert a raw item, bypassing the service (e.g. an edit made in the app).

        The same item id may be added to several lists.
        """
        with self._lock:
            if list_id not in self._lists:
                raise StoreError(f"List {list_id} does not exist")
            item_id = item_id or str(uuid.uuid4())
            if item_id not in self._items:
                item = {"id": item_id, "name": "", "completed": False, "due_date": None,
                        "priority": 0, "flagged": False, "body": None}
                item.update(fields)
                self._items[item_id] = item
            self._membership[list_id].append(item_id)
            return item_id

    def get_item(self, item_id: str) -> Dict[str, Any]:
        with self._lock:
            if item_id not in self._items:
                raise StoreError(f"Reminder {item_id} does not exist")
            return dict(self._items[item_id])

    async def list_lists(self) -> List[StoreList]:
        with self._lock:
            return [store_list.model_copy() for store_list in self._lists.values()]

    async def list_items(self, list_id: str, fields: Sequence[str]) -> List[StoreItem]:
        fields = _check_fields(fields)
        with self._lock:
            if list_id not in self._lists:
                raise StoreError(f"List {list_id} does not exist")
            return [
                StoreItem(**{f: self._items[item_id][f] for f in fields})
                for item_id in self._membership[list_id]
            ]

    async def create_item(self, list_id: str, payload: ReminderCreatePayload) -> Optional[str]:
        fields = payload.model_dump(exclude_none=True)
        return self.add_item(list_id, **fields)

    async def update_item(self, item_id: str, changes: Dict[str, Any]) -> None:
        _check_fields(changes)
        with self._lock:
            if item_id not in self._items:
                raise StoreError(f"Reminder {item_id} does not exist")
            self._items[item_id].update(changes)

    async def delete_item(self, item_id: str) -> None:
        with self._lock:
            if self._items.pop(item_id, None) is None:
                raise StoreError(f"Reminder {item_id} does not exist")
            for members in self._membership.values():
                while item_id in members:
                    members.remove(item_id)


# JXA program run once per call. The request arrives as JSON in argv[0]
# and the result is printed as JSON.
JXA_PROGRAM = r"""
function run(argv) {
  var request = JSON.parse(argv[0]);
  var app = Application("Reminders");

  function toDate(value) {
    return value === null ? null : new Date(value);
  }

  switch (request.op) {
    case "lists": {
      var ids = app.lists.id();
      var names = app.lists.name();
      return JSON.stringify(ids.map(function (id, i) {
        return { id: id, name: names[i] };
      }));
    }
    case "items": {
      var reminders = app.lists.byId(request.listId).reminders;
      var columns = {};
      var count = 0;
      request.fields.forEach(function (field) {
        columns[field] = reminders[field]();
        count = columns[field].length;
      });
      var rows = [];
      for (var i = 0; i < count; i++) {
        var row = {};
        request.fields.forEach(function (field) {
          row[field] = columns[field][i];
        });
        rows.push(row);
      }
      return JSON.stringify(rows);
    }
    case "create": {
      var props = {};
      Object.keys(request.item).forEach(function (key) {
        props[key] = key === "dueDate" ? toDate(request.item[key]) : request.item[key];
      });
      var reminder = app.Reminder(props);
      app.lists.byId(request.listId).reminders.push(reminder);
      return JSON.stringify(reminder.id());
    }
    case "update": {
      var target = app.reminders.byId(request.itemId);
      Object.keys(request.changes).forEach(function (key) {
        target[key] = key === "dueDate" ? toDate(request.changes[key]) : request.changes[key];
      });
      return "null";
    }
    case "delete": {
      app.delete(app.reminders.byId(request.itemId));
      return "null";
    }
  }
  throw new Error("Unknown operation " + request.op);
}
"""

# Python field name -> Reminders.app property name
JXA_PROPERTIES = {
    "id": "id",
    "name": "name",
    "completed": "completed",
    "due_date": "dueDate",
    "priority": "priority",
    "flagged": "flagged",
    "body": "body",
}


def _to_jxa(values: Dict[str, Any]) -> Dict[str, Any]:
    converted = {}
    for key, value in values.items():
        if isinstance(value, datetime):
            value = value.astimezone(timezone.utc).isoformat()
        converted[JXA_PROPERTIES[key]] = value
    return converted


class AppleScriptReminderStore(ReminderStore):
    """Reminders.app via `osascript -l JavaScript`.

    Each call spawns one osascript process. Reads fetch whole columns
    (e.g. every name, every due date) in a single Apple event per field.
    """

    def __init__(self, osascript: str = "osascript", timeout: float = 30.0) -> None:
        self.osascript = osascript
        self.timeout = timeout

    async def _run(self, request: Dict[str, Any]) -> Any:
        logger.debug(f"osascript request: {request['op']}")
        try:
            process = await asyncio.create_subprocess_exec(
                self.osascript, "-l", "JavaScript", "-e", JXA_PROGRAM, json.dumps(request),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except FileNotFoundError as e:
            raise StoreError(f"{self.osascript} not found - Reminders access requires macOS") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise StoreError(f"osascript timed out after {self.timeout:.1f}s") from e
        except BaseException:
            # Cancelled mid-call: do not leave osascript running
            if process.returncode is None:
                process.kill()
            raise

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise StoreError(f"osascript failed (rc={process.returncode}): {message}")

        output = stdout.decode("utf-8").strip()
        try:
            return json.loads(output) if output else None
        except json.JSONDecodeError as e:
            raise StoreError(f"Unreadable osascript output: {output[:200]}") from e

    async def list_lists(self) -> List[StoreList]:
        rows = await self._run({"op": "lists"})
        return [StoreList(**row) for row in rows or []]

    async def list_items(self, list_id: str, fields: Sequence[str]) -> List[StoreItem]:
        fields = _check_fields(fields)
        rows = await self._run({
            "op": "items",
            "listId": list_id,
            "fields": [JXA_PROPERTIES[f] for f in fields],
        })
        items = []
        for row in rows or []:
            items.append(StoreItem(**{f: row.get(JXA_PROPERTIES[f]) for f in fields}))
        return items

    async def create_item(self, list_id: str, payload: ReminderCreatePayload) -> Optional[str]:
        new_id = await self._run({
            "op": "create",
            "listId": list_id,
            "item": _to_jxa(payload.model_dump(exclude_none=True)),
        })
        return new_id or None

    async def update_item(self, item_id: str, changes: Dict[str, Any]) -> None:
        _check_fields(changes)
        await self._run({"op": "update", "itemId": item_id, "changes": _to_jxa(changes)})

    async def delete_item(self, item_id: str) -> None:
        await self._run({"op": "delete", "itemId": item_id})


_store: Optional[ReminderStore] = None


def get_store() -> ReminderStore:
    """Return the process-wide store for settings.REMINDERS_BACKEND.

    - applescript: AppleScriptReminderStore (default)
    - memory: InMemoryReminderStore seeded with settings.MEMORY_LISTS
    """
    global _store
    if _store is None:
        backend = settings.REMINDERS_BACKEND.lower()
        if backend == "memory":
            _store = InMemoryReminderStore(settings.MEMORY_LISTS)
        elif backend == "applescript":
            _store = AppleScriptReminderStore(settings.OSASCRIPT_PATH, settings.OSASCRIPT_TIMEOUT)
        else:
            raise ValueError(f"Unknown REMINDERS_BACKEND '{settings.REMINDERS_BACKEND}'")
        logger.info(f"Using {type(_store).__name__}")
    return _store
