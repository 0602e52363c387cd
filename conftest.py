"""Shared fixtures: an in-memory store with two real lists."""

from datetime import datetime, timedelta

import pytest

from store import InMemoryReminderStore


@pytest.fixture
def store():
    """Store with lists "Work" and "Home" and no reminders."""
    memory_store = InMemoryReminderStore()
    memory_store.add_list("Work", list_id="list-work")
    memory_store.add_list("Home", list_id="list-home")
    return memory_store


@pytest.fixture
def dated_store(store):
    """Work list with an overdue, a due-today and a completed reminder."""
    now = datetime.now().astimezone()
    yesterday = now - timedelta(days=1)
    later_today = now.replace(hour=23, minute=59, second=59, microsecond=0)

    store.add_item("list-work", "r-yesterday", name="Yesterday task", due_date=yesterday)
    store.add_item("list-work", "r-today", name="Today task", due_date=later_today)
    store.add_item("list-work", "r-done", name="Done task", due_date=yesterday, completed=True)
    return store
