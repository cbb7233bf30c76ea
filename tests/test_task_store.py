# tests/test_task_store.py
# PURPOSE: one contract, two backends - every test runs on database and file.

import pytest

from foxlist.errors import InvalidInputError
from foxlist.models import NO_DEADLINE, TaskCreate


def _create(store, title, priority="media", **extra):
    """Helper: create a task from a plain dict and return it."""
    return store.create_task({"title": title, "priority": priority, **extra})


def test_create_and_get_by_id_defaults(task_store):
    created = _create(task_store, "A", priority="baixa")

    got = task_store.get_task_by_id(created.id)
    assert got is not None
    assert got.title == "A"
    assert got.priority == "baixa"
    assert got.completed is False
    assert got.description == ""
    assert got.deadline == NO_DEADLINE
    assert got.owner_email is None
    assert got.created_at == got.updated_at


def test_record_uses_wire_names(task_store):
    created = task_store.create_task(
        TaskCreate(title="Wire", priority="alta", deadline="2024-06-12T10:00:00", owner_email="a@x.io")
    )
    record = task_store.get_task_by_id(created.id).to_record()
    assert record["status"] == "alta"
    assert record["time"] == "2024-06-12T10:00:00"
    assert record["user_email"] == "a@x.io"
    assert record["completed"] is False
    assert set(record) == {
        "id", "title", "description", "status", "time",
        "completed", "user_email", "created_at", "updated_at",
    }


def test_wire_names_accepted_as_input(task_store):
    created = task_store.create_task({"title": "Legacy", "status": "media", "time": "", "user_email": ""})
    assert created.priority == "media"
    assert created.deadline == NO_DEADLINE
    assert created.owner_email is None


def test_ids_are_assigned_in_order(task_store):
    first = _create(task_store, "one")
    second = _create(task_store, "two")
    assert first.id == 1
    assert second.id == 2


def test_get_missing_returns_none(task_store):
    assert task_store.get_task_by_id(999) is None


def test_get_all_newest_first(task_store):
    _create(task_store, "old")
    _create(task_store, "mid")
    _create(task_store, "new")
    titles = [t.title for t in task_store.get_all_tasks()]
    assert titles == ["new", "mid", "old"]


def test_owner_scoping_includes_orphans(task_store):
    mine = _create(task_store, "mine", owner_email="e@x.io")
    other = _create(task_store, "other", owner_email="e2@x.io")
    orphan = _create(task_store, "orphan")

    ids_e = {t.id for t in task_store.get_all_tasks("e@x.io")}
    assert ids_e == {mine.id, orphan.id}

    ids_e2 = {t.id for t in task_store.get_all_tasks("e2@x.io")}
    assert mine.id not in ids_e2
    assert ids_e2 == {other.id, orphan.id}

    assert len(task_store.get_all_tasks()) == 3


def test_empty_owner_is_still_scoped(task_store):
    _create(task_store, "mine", owner_email="e@x.io")
    orphan = _create(task_store, "orphan")

    assert [t.id for t in task_store.get_all_tasks("")] == [orphan.id]
    assert task_store.count_tasks("") == 1


def test_update_replaces_and_clears_omitted_description(task_store):
    created = _create(task_store, "A", description="keep me?", deadline="2024-06-20T08:00:00")

    updated = task_store.update_task(created.id, {"title": "B", "priority": "alta", "completed": True})

    assert updated.title == "B"
    assert updated.priority == "alta"
    assert updated.completed is True
    # replace-not-merge: omitted fields fall back to create defaults
    assert updated.description == ""
    assert updated.deadline == NO_DEADLINE
    assert task_store.get_task_by_id(created.id).description == ""


def test_update_refreshes_updated_at(task_store):
    created = _create(task_store, "A")
    updated = task_store.update_task(created.id, {"title": "A2", "priority": "media"})
    assert updated.id == created.id
    assert updated.created_at == created.created_at
    assert updated.updated_at > created.updated_at


def test_update_missing_id_is_silent(task_store):
    assert task_store.update_task(42, {"title": "X", "priority": "baixa"}) is None
    assert task_store.count_tasks() == 0


def test_replace_requires_title_and_priority(task_store):
    created = _create(task_store, "A")
    with pytest.raises(InvalidInputError):
        task_store.update_task(created.id, {"description": "only this"})


def test_merge_policy_keeps_omitted_fields(make_task_store):
    store = make_task_store(update_policy="merge")
    created = _create(store, "A", description="details", deadline="2024-06-20T08:00:00")

    updated = store.update_task(created.id, {"completed": True})

    assert updated.title == "A"
    assert updated.description == "details"
    assert updated.deadline == "2024-06-20T08:00:00"
    assert updated.completed is True


def test_toggle_completion_touches_only_completed(task_store):
    created = _create(task_store, "A", description="d", owner_email="e@x.io")

    toggled = task_store.toggle_completion(created.id, True)

    assert toggled.completed is True
    assert toggled.description == "d"
    assert toggled.owner_email == "e@x.io"
    assert toggled.updated_at > created.updated_at
    assert task_store.toggle_completion(created.id, False).completed is False
    assert task_store.toggle_completion(999, True) is None


def test_delete_is_idempotent(task_store):
    created = _create(task_store, "A")
    assert task_store.delete_task(created.id) is True
    assert task_store.delete_task(created.id) is False
    assert task_store.get_task_by_id(created.id) is None


def test_delete_by_owner_removes_owned_and_orphans(task_store):
    _create(task_store, "e1", owner_email="e@x.io")
    _create(task_store, "e2", owner_email="e@x.io")
    _create(task_store, "orphan")
    survivor = _create(task_store, "other", owner_email="e2@x.io")

    assert task_store.delete_tasks_by_owner("e@x.io") == 3

    remaining = task_store.get_all_tasks()
    assert [t.id for t in remaining] == [survivor.id]


def test_reconcile_orphans_is_idempotent(task_store):
    orphan = _create(task_store, "orphan")
    owned = _create(task_store, "owned", owner_email="b@x.io")

    assert task_store.reconcile_orphans("a@x.io") == 1
    after_first = {t.id: t.owner_email for t in task_store.get_all_tasks()}
    assert after_first == {orphan.id: "a@x.io", owned.id: "b@x.io"}

    assert task_store.reconcile_orphans("c@x.io") == 0
    after_second = {t.id: t.owner_email for t in task_store.get_all_tasks()}
    assert after_second == after_first


def test_reassign_owner_moves_only_owned_tasks(task_store):
    mine = _create(task_store, "mine", owner_email="old@x.io")
    orphan = _create(task_store, "orphan")
    other = _create(task_store, "other", owner_email="b@x.io")

    assert task_store.reassign_owner("old@x.io", "new@x.io") == 1

    owners = {t.id: t.owner_email for t in task_store.get_all_tasks()}
    assert owners == {mine.id: "new@x.io", orphan.id: None, other.id: "b@x.io"}
    assert task_store.reassign_owner("old@x.io", "new@x.io") == 0


def test_search_is_case_insensitive_over_title_and_description(task_store):
    t1 = _create(task_store, "Hello world", description="greeting")
    t2 = _create(task_store, "Buy milk", description="shopping")
    t3 = _create(task_store, "Plan", description="say HELLO again")

    ids = {t.id for t in task_store.search_tasks("hello")}
    assert ids == {t1.id, t3.id}
    assert t2.id not in ids


def test_search_folds_case_of_accented_letters(task_store):
    _create(task_store, "AÇÃO urgente")
    _create(task_store, "Revisar", description="relatório de ação")
    _create(task_store, "acao sem acento")

    assert sorted(t.title for t in task_store.search_tasks("ação")) == ["AÇÃO urgente", "Revisar"]
    assert [t.title for t in task_store.search_tasks("RELATÓRIO")] == ["Revisar"]


def test_search_treats_wildcards_literally(task_store):
    _create(task_store, "100% done")
    _create(task_store, "1000 done")
    assert [t.title for t in task_store.search_tasks("0%")] == ["100% done"]
    assert task_store.search_tasks("a_b") == []


def test_completion_filter_and_count(task_store):
    a = _create(task_store, "a", owner_email="e@x.io")
    _create(task_store, "b", owner_email="e@x.io")
    _create(task_store, "c", owner_email="z@x.io")
    task_store.toggle_completion(a.id, True)

    assert [t.id for t in task_store.get_tasks_by_completion(True)] == [a.id]
    assert len(task_store.get_tasks_by_completion(False)) == 2
    assert task_store.count_tasks() == 3
    assert task_store.count_tasks("e@x.io") == 2


def test_clear_all_tasks(task_store):
    _create(task_store, "a")
    _create(task_store, "b")
    assert task_store.clear_all_tasks() == 2
    assert task_store.count_tasks() == 0


def test_initialize_twice_keeps_data(task_store):
    _create(task_store, "a")
    task_store.initialize()
    task_store.initialize()
    assert task_store.count_tasks() == 1


def test_data_survives_reopen(make_task_store):
    first = make_task_store()
    created = _create(first, "persisted", owner_email="e@x.io")
    first.toggle_completion(created.id, True)

    second = make_task_store()
    got = second.get_task_by_id(created.id)
    assert got.title == "persisted"
    assert got.completed is True
    assert got.owner_email == "e@x.io"
