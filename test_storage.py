from datetime import datetime, timedelta

import pytest

from schemas import EmployeeNote, Role
from storage import IntegrityViolation, MemStorage, seed_storage, sort_employee_notes


def _users(storage, n):
    return [
        storage.create_user({"username": f"user{i}", "hashed_password": "x"})
        for i in range(1, n + 1)
    ]


# --- Vertrag, für beide Backends ---

def test_ids_are_unique_and_never_reused(empty_storage):
    first = empty_storage.create_task({"title": "A"})
    second = empty_storage.create_task({"title": "B"})
    assert second.id > first.id

    assert empty_storage.delete_task(second.id) is True
    third = empty_storage.create_task({"title": "C"})
    assert third.id not in (first.id, second.id)
    assert third.id > second.id


def test_missing_ids_are_not_errors(empty_storage):
    assert empty_storage.get_task(999) is None
    assert empty_storage.get_user(999) is None
    assert empty_storage.update_task(999, {"title": "x"}) is None
    assert empty_storage.delete_task(999) is False
    assert empty_storage.delete_important_message(999) is False
    assert empty_storage.complete_task(999, 1) is None
    assert empty_storage.resolve_employee_note(999) is None
    assert empty_storage.update_task_note(999, "x") is None


def test_create_fills_defaults(empty_storage):
    task = empty_storage.create_task({"title": "Stock coffee supplies"})
    assert task.completed is False
    assert task.completed_by is None
    assert task.completed_at is None
    assert task.description is None
    assert isinstance(task.created_at, datetime)

    message = empty_storage.create_important_message({"title": "X", "content": "Y"})
    assert message.active is True

    user = empty_storage.create_user({"username": "bob", "hashed_password": "h"})
    assert user.role == Role.EMPLOYEE
    note = empty_storage.create_employee_note({"user_id": user.id, "content": "Printer broken"})
    assert note.resolved is False
    assert note.resolved_at is None


def test_update_is_shallow_merge(empty_storage):
    task = empty_storage.create_task({"title": "Old", "description": "keep me"})
    updated = empty_storage.update_task(task.id, {"title": "New"})
    assert updated.title == "New"
    assert updated.description == "keep me"
    assert empty_storage.get_task(task.id).title == "New"


def test_update_cannot_null_required_fields(empty_storage):
    task = empty_storage.create_task({"title": "Keep"})
    message = empty_storage.create_important_message({"title": "X", "content": "Y"})
    user = empty_storage.create_user({"username": "bob", "hashed_password": "h"})

    with pytest.raises(IntegrityViolation):
        empty_storage.update_task(task.id, {"title": None})
    with pytest.raises(IntegrityViolation):
        empty_storage.update_important_message(message.id, {"active": None})
    with pytest.raises(IntegrityViolation):
        empty_storage.update_user(user.id, {"role": None})

    assert empty_storage.get_task(task.id).title == "Keep"
    assert empty_storage.get_important_message(message.id).active is True
    assert empty_storage.get_user(user.id).role == Role.EMPLOYEE


def test_update_user_keeps_password_hash(empty_storage):
    user = empty_storage.create_user({"username": "bob", "hashed_password": "h"})
    empty_storage.update_user(user.id, {"email": "bob@company.com"})
    assert empty_storage.get_user(user.id).hashed_password == "h"


def test_complete_task_overwrites_stamp(empty_storage):
    _users(empty_storage, 3)
    task = empty_storage.create_task({"title": "Stock coffee supplies"})
    assert task.completed is False

    done = empty_storage.complete_task(task.id, 2)
    assert done.completed is True
    assert done.completed_by == 2
    assert done.completed_at is not None

    again = empty_storage.complete_task(task.id, 3)
    assert again.completed is True
    assert again.completed_by == 3
    assert again.completed_at >= done.completed_at


def test_active_messages_subset(empty_storage):
    on = empty_storage.create_important_message({"title": "On", "content": "c", "active": True})
    off = empty_storage.create_important_message({"title": "Off", "content": "c", "active": False})

    assert {m.id for m in empty_storage.get_active_important_messages()} == {on.id}
    assert {m.id for m in empty_storage.get_all_important_messages()} == {on.id, off.id}

    empty_storage.update_important_message(on.id, {"active": False})
    assert empty_storage.get_active_important_messages() == []
    # inaktive Nachrichten bleiben erhalten
    assert len(empty_storage.get_all_important_messages()) == 2


def test_acknowledgements_are_not_deduplicated(empty_storage):
    users = _users(empty_storage, 5)
    assert users[-1].id == 5
    message = empty_storage.create_important_message({"title": "X", "content": "Y", "active": True})
    assert empty_storage.get_message_acknowledgements(message.id) == []

    empty_storage.acknowledge_message(message.id, 5)
    empty_storage.acknowledge_message(message.id, 5)

    acks = empty_storage.get_message_acknowledgements(message.id)
    assert len(acks) == 2
    assert all(a.user_id == 5 and a.message_id == message.id for a in acks)
    assert acks[0].id != acks[1].id
    assert len(empty_storage.get_user_acknowledgements(5)) == 2
    assert empty_storage.get_user_acknowledgements(1) == []


def test_task_notes_filtered_by_task(empty_storage):
    user = _users(empty_storage, 1)[0]
    a = empty_storage.create_task({"title": "A"})
    b = empty_storage.create_task({"title": "B"})
    note = empty_storage.create_task_note({"task_id": a.id, "user_id": user.id, "notes": "first"})
    empty_storage.create_task_note({"task_id": a.id, "user_id": user.id, "notes": "second"})
    empty_storage.create_task_note({"task_id": b.id, "user_id": user.id, "notes": "other"})

    assert [n.notes for n in empty_storage.get_task_notes(a.id)] == ["first", "second"]
    assert empty_storage.update_task_note(note.id, "edited").notes == "edited"
    assert empty_storage.get_task_notes(a.id)[0].notes == "edited"


def test_resolve_employee_note(empty_storage):
    user = _users(empty_storage, 1)[0]
    open_note = empty_storage.create_employee_note({"user_id": user.id, "content": "Need gloves"})
    other = empty_storage.create_employee_note({"user_id": user.id, "content": "Door squeaks"})

    resolved = empty_storage.resolve_employee_note(open_note.id)
    assert resolved.resolved is True
    assert resolved.resolved_at is not None
    assert [n.id for n in empty_storage.get_unresolved_employee_notes()] == [other.id]
    assert len(empty_storage.get_all_employee_notes()) == 2


def test_get_user_by_username_is_exact(empty_storage):
    empty_storage.create_user({"username": "Alice", "hashed_password": "h", "role": Role.ADMIN})
    assert empty_storage.get_user_by_username("alice") is None
    found = empty_storage.get_user_by_username("Alice")
    assert found.role == Role.ADMIN


def test_seed_only_fills_empty_storage(empty_storage):
    assert seed_storage(empty_storage) is True
    assert seed_storage(empty_storage) is False
    roles = sorted(u.role.value for u in empty_storage.get_all_users())
    assert roles == ["admin", "employee"]
    titles = [t.title for t in empty_storage.get_all_tasks()]
    assert "Stock coffee supplies" in titles
    assert len(empty_storage.get_active_important_messages()) == 1


# --- Backend-spezifisch ---

def test_memory_shares_one_id_sequence():
    storage = MemStorage()
    user = storage.create_user({"username": "u", "hashed_password": "h"})
    task = storage.create_task({"title": "t"})
    message = storage.create_important_message({"title": "m", "content": "c"})
    assert [user.id, task.id, message.id] == [1, 2, 3]


def test_memory_delete_user_keeps_orphans():
    storage = MemStorage()
    user = storage.create_user({"username": "temp", "hashed_password": "h"})
    task = storage.create_task({"title": "t"})
    message = storage.create_important_message({"title": "m", "content": "c"})
    storage.create_task_note({"task_id": task.id, "user_id": user.id, "notes": "n"})
    storage.acknowledge_message(message.id, user.id)

    assert storage.delete_user(user.id) is True
    assert storage.get_user(user.id) is None
    assert storage.get_task_notes(task.id)[0].user_id == user.id
    assert storage.get_message_acknowledgements(message.id)[0].user_id == user.id


def test_memory_delete_task_keeps_notes():
    storage = MemStorage()
    task = storage.create_task({"title": "t"})
    storage.create_task_note({"task_id": task.id, "user_id": 42, "notes": "n"})
    storage.delete_task(task.id)
    assert len(storage.get_task_notes(task.id)) == 1


def test_sql_enforces_foreign_keys(tmp_path):
    from storage import build_storage

    storage = build_storage("sql", f"sqlite:///{tmp_path / 'fk.db'}")
    user = storage.create_user({"username": "temp", "hashed_password": "h"})
    task = storage.create_task({"title": "t"})
    storage.create_task_note({"task_id": task.id, "user_id": user.id, "notes": "n"})

    with pytest.raises(IntegrityViolation):
        storage.delete_user(user.id)
    with pytest.raises(IntegrityViolation):
        storage.create_task_note({"task_id": 999, "user_id": user.id, "notes": "n"})
    # nichts wurde gelöscht
    assert storage.get_user(user.id) is not None


def test_sql_unique_username(tmp_path):
    from storage import build_storage

    storage = build_storage("sql", f"sqlite:///{tmp_path / 'uniq.db'}")
    storage.create_user({"username": "dup", "hashed_password": "h"})
    with pytest.raises(IntegrityViolation):
        storage.create_user({"username": "dup", "hashed_password": "h"})


def test_sort_employee_notes_unresolved_first_then_newest():
    now = datetime(2024, 5, 1, 12, 0)

    def note(id_, resolved, minutes_ago):
        return EmployeeNote(id=id_, user_id=2, content="c", resolved=resolved,
                            created_at=now - timedelta(minutes=minutes_ago))

    notes = [
        note(1, True, 1),    # neueste, aber erledigt
        note(2, False, 30),
        note(3, False, 5),
        note(4, True, 60),
    ]
    assert [n.id for n in sort_employee_notes(notes)] == [3, 2, 1, 4]


def test_sort_employee_notes_same_timestamp_uses_id():
    ts = datetime(2024, 5, 1, 12, 0)
    notes = [EmployeeNote(id=i, user_id=2, content="c", created_at=ts) for i in (1, 2, 3)]
    assert [n.id for n in sort_employee_notes(notes)] == [3, 2, 1]
