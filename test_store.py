"""Tests for the store backends.

The AppleScript backend is exercised with a fake osascript process; no test
talks to Reminders.app.
"""

import asyncio
import json
from datetime import datetime, timezone

import pytest

import store as store_module
from exceptions import StoreError
from schemas import ReminderCreatePayload
from store import AppleScriptReminderStore, InMemoryReminderStore, get_store


class FakeProcess:
    def __init__(self, stdout=b"", stderr=b"", returncode=0, hang=False):
        self._stdout = stdout
        self._stderr = stderr
        self.returncode = returncode
        self.hang = hang
        self.killed = False

    async def communicate(self):
        if self.hang:
            await asyncio.sleep(10)
        return self._stdout, self._stderr

    def kill(self):
        self.killed = True

    async def wait(self):
        return self.returncode


@pytest.fixture
def fake_osascript(monkeypatch):
    """Patch process creation; returns the list of recorded requests."""
    calls = []
    responses = []

    async def fake_exec(*args, **kwargs):
        calls.append({"args": args, "request": json.loads(args[-1])})
        return responses.pop(0)

    monkeypatch.setattr(store_module.asyncio, "create_subprocess_exec", fake_exec)
    return calls, responses


class TestInMemoryStore:
    @pytest.mark.asyncio
    async def test_only_requested_fields(self, store):
        store.add_item("list-work", "r1", name="A", body="notes", flagged=True)
        items = await store.list_items("list-work", ["id", "body"])
        assert items[0].id == "r1"
        assert items[0].body == "notes"
        assert items[0].name is None

    @pytest.mark.asyncio
    async def test_create_update_delete(self, store):
        new_id = await store.create_item(
            "list-home", ReminderCreatePayload(name="Milk", priority=1)
        )
        await store.update_item(new_id, {"completed": True})
        assert store.get_item(new_id)["completed"] is True
        assert store.get_item(new_id)["priority"] == 1

        await store.delete_item(new_id)
        assert await store.list_items("list-home", ["id"]) == []

    @pytest.mark.asyncio
    async def test_unknown_list_and_fields(self, store):
        with pytest.raises(StoreError):
            await store.list_items("missing", ["id"])
        with pytest.raises(StoreError):
            await store.list_items("list-work", ["colour"])
        with pytest.raises(StoreError):
            await store.delete_item("missing")


class TestAppleScriptStore:
    @pytest.mark.asyncio
    async def test_list_lists(self, fake_osascript):
        calls, responses = fake_osascript
        responses.append(FakeProcess(stdout=b'[{"id": "L1", "name": "Work"}]'))

        lists = await AppleScriptReminderStore().list_lists()

        assert [(store_list.id, store_list.name) for store_list in lists] == [("L1", "Work")]
        assert calls[0]["args"][:4] == ("osascript", "-l", "JavaScript", "-e")
        assert calls[0]["request"] == {"op": "lists"}

    @pytest.mark.asyncio
    async def test_list_items_maps_field_names(self, fake_osascript):
        calls, responses = fake_osascript
        responses.append(FakeProcess(
            stdout=b'[{"id": "R1", "dueDate": "2025-06-15T09:00:00.000Z", "body": null}]'
        ))

        items = await AppleScriptReminderStore().list_items("L1", ["id", "due_date", "body"])

        assert calls[0]["request"] == {
            "op": "items", "listId": "L1", "fields": ["id", "dueDate", "body"]
        }
        assert items[0].id == "R1"
        assert items[0].due_date == "2025-06-15T09:00:00.000Z"
        assert items[0].body is None

    @pytest.mark.asyncio
    async def test_create_sends_iso_due_date(self, fake_osascript):
        calls, responses = fake_osascript
        responses.append(FakeProcess(stdout=b'"x-apple-reminder://R9"'))

        new_id = await AppleScriptReminderStore().create_item("L1", ReminderCreatePayload(
            name="Call", due_date=datetime(2025, 6, 15, 9, 0, tzinfo=timezone.utc), flagged=True
        ))

        assert new_id == "x-apple-reminder://R9"
        assert calls[0]["request"]["item"] == {
            "name": "Call", "dueDate": "2025-06-15T09:00:00+00:00", "flagged": True
        }

    @pytest.mark.asyncio
    async def test_update_and_delete(self, fake_osascript):
        calls, responses = fake_osascript
        responses.extend([FakeProcess(stdout=b"null"), FakeProcess(stdout=b"null")])

        backend = AppleScriptReminderStore()
        await backend.update_item("R1", {"completed": True, "body": ""})
        await backend.delete_item("R1")

        assert calls[0]["request"] == {
            "op": "update", "itemId": "R1", "changes": {"completed": True, "body": ""}
        }
        assert calls[1]["request"] == {"op": "delete", "itemId": "R1"}

    @pytest.mark.asyncio
    async def test_failure_raises_store_error(self, fake_osascript):
        _, responses = fake_osascript
        responses.append(FakeProcess(stderr=b"execution error: -1743", returncode=1))

        with pytest.raises(StoreError, match="-1743"):
            await AppleScriptReminderStore().list_lists()

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, fake_osascript):
        _, responses = fake_osascript
        process = FakeProcess(hang=True)
        responses.append(process)

        with pytest.raises(StoreError, match="timed out"):
            await AppleScriptReminderStore(timeout=0.01).list_lists()
        assert process.killed

    @pytest.mark.asyncio
    async def test_cancelled_call_kills_process(self, fake_osascript):
        _, responses = fake_osascript
        process = FakeProcess(hang=True, returncode=None)
        responses.append(process)

        task = asyncio.create_task(AppleScriptReminderStore().list_lists())
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert process.killed

    @pytest.mark.asyncio
    async def test_missing_binary(self):
        backend = AppleScriptReminderStore(osascript="/nonexistent/osascript")
        with pytest.raises(StoreError, match="requires macOS"):
            await backend.list_lists()


def test_get_store_memory_backend(monkeypatch):
    monkeypatch.setattr(store_module, "_store", None)
    monkeypatch.setattr(store_module.settings, "REMINDERS_BACKEND", "memory")
    monkeypatch.setattr(store_module.settings, "MEMORY_LISTS", ["Inbox"])

    created = get_store()
    assert isinstance(created, InMemoryReminderStore)
    assert get_store() is created


def test_get_store_unknown_backend(monkeypatch):
    monkeypatch.setattr(store_module, "_store", None)
    monkeypatch.setattr(store_module.settings, "REMINDERS_BACKEND", "sqlite")
    with pytest.raises(ValueError):
        get_store()
