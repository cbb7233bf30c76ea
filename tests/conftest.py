# tests/conftest.py
# PURPOSE: per-test stores on temp files; the task store fixture runs every
# test against both backends.

# Ensure project root is on sys.path so `import foxlist` works when running pytest.
import sys, os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from datetime import UTC, datetime, timedelta

import pytest

from foxlist.auth import AuthCoordinator
from foxlist.credentials import CredentialStore
from foxlist.kv import JsonFileKeyValueStore
from foxlist.store_db import DatabaseTaskStore
from foxlist.store_file import FileTaskStore


class StepClock:
    """Deterministic clock: each call is one minute after the previous one."""

    def __init__(self, start: datetime = datetime(2024, 6, 1, 9, 0, tzinfo=UTC)):
        self.current = start

    def __call__(self) -> datetime:
        self.current += timedelta(minutes=1)
        return self.current


@pytest.fixture()
def clock():
    return StepClock()


@pytest.fixture(params=["database", "file"])
def make_task_store(request, tmp_path, clock):
    """Factory for an initialized store of the parametrized backend."""
    created = []

    def _make(**kwargs):
        kwargs.setdefault("clock", clock)
        if request.param == "database":
            store = DatabaseTaskStore(f"sqlite:///{tmp_path / 'tasks.db'}", **kwargs)
        else:
            store = FileTaskStore(tmp_path / "tasks.json", **kwargs)
        store.initialize()
        created.append(store)
        return store

    yield _make

    for store in created:
        store.close()


@pytest.fixture()
def task_store(make_task_store):
    return make_task_store()


@pytest.fixture()
def credentials(tmp_path):
    return CredentialStore(JsonFileKeyValueStore(tmp_path / "credentials.json"))


@pytest.fixture()
def auth(credentials, task_store):
    coordinator = AuthCoordinator(credentials, task_store)
    coordinator.load()
    return coordinator
