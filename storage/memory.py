import threading
from datetime import datetime
from itertools import count
from typing import Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from schemas import (
    User, Task, TaskNote, ImportantMessage, MessageAcknowledgement, EmployeeNote,
)
from storage.base import Fields, IntegrityViolation, Storage

M = TypeVar("M", bound=BaseModel)


class IdAllocator:
    """Fortlaufende IDs, gemeinsam für alle Entitätstypen, threadsicher."""

    def __init__(self, start: int = 1):
        self._counter = count(start)
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            return next(self._counter)


class MemStorage(Storage):
    """In-Memory-Backend: je Entitätstyp ein dict id -> Modell."""

    def __init__(self, allocator: Optional[IdAllocator] = None):
        self._ids = allocator or IdAllocator()
        self._lock = threading.RLock()
        self.users: Dict[int, User] = {}
        self.tasks: Dict[int, Task] = {}
        self.task_notes: Dict[int, TaskNote] = {}
        self.important_messages: Dict[int, ImportantMessage] = {}
        self.message_acknowledgements: Dict[int, MessageAcknowledgement] = {}
        self.employee_notes: Dict[int, EmployeeNote] = {}

    # --- generische Helfer ---
    @staticmethod
    def _build(model: Type[M], data: Fields) -> M:
        # Entspricht den NOT NULL/Typ-Constraints des SQL-Backends
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise IntegrityViolation(str(e)) from e

    def _insert(self, table: Dict[int, M], model: Type[M], fields: Fields, stamp: str = "created_at") -> M:
        with self._lock:
            entity = self._build(model, {**fields, stamp: datetime.now(), "id": self._ids.next_id()})
            table[entity.id] = entity
            return entity

    def _update(self, table: Dict[int, M], entity_id: int, fields: Fields) -> Optional[M]:
        with self._lock:
            entity = table.get(entity_id)
            if entity is None:
                return None
            # dict(entity) statt model_dump(): behält auch exclude-Felder (hashed_password)
            updated = self._build(type(entity), {**dict(entity), **fields})
            table[entity_id] = updated
            return updated

    def _delete(self, table: Dict[int, M], entity_id: int) -> bool:
        with self._lock:
            return table.pop(entity_id, None) is not None

    def _values(self, table: Dict[int, M]) -> List[M]:
        with self._lock:
            return list(table.values())

    # --- Users ---
    def get_user(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._values(self.users) if u.username == username), None)

    def create_user(self, fields: Fields) -> User:
        return self._insert(self.users, User, fields)

    def update_user(self, user_id: int, fields: Fields) -> Optional[User]:
        return self._update(self.users, user_id, fields)

    def delete_user(self, user_id: int) -> bool:
        return self._delete(self.users, user_id)

    def get_all_users(self) -> List[User]:
        return self._values(self.users)

    # --- Tasks ---
    def get_all_tasks(self) -> List[Task]:
        return self._values(self.tasks)

    def get_task(self, task_id: int) -> Optional[Task]:
        return self.tasks.get(task_id)

    def create_task(self, fields: Fields) -> Task:
        return self._insert(self.tasks, Task, fields)

    def update_task(self, task_id: int, fields: Fields) -> Optional[Task]:
        return self._update(self.tasks, task_id, fields)

    def delete_task(self, task_id: int) -> bool:
        return self._delete(self.tasks, task_id)

    def complete_task(self, task_id: int, user_id: int) -> Optional[Task]:
        return self._update(self.tasks, task_id, {
            "completed": True,
            "completed_by": user_id,
            "completed_at": datetime.now(),
        })

    # --- Task notes ---
    def get_task_notes(self, task_id: int) -> List[TaskNote]:
        return [n for n in self._values(self.task_notes) if n.task_id == task_id]

    def create_task_note(self, fields: Fields) -> TaskNote:
        return self._insert(self.task_notes, TaskNote, fields)

    def update_task_note(self, note_id: int, notes: str) -> Optional[TaskNote]:
        return self._update(self.task_notes, note_id, {"notes": notes})

    # --- Important messages ---
    def get_all_important_messages(self) -> List[ImportantMessage]:
        return self._values(self.important_messages)

    def get_active_important_messages(self) -> List[ImportantMessage]:
        return [m for m in self._values(self.important_messages) if m.active]

    def get_important_message(self, message_id: int) -> Optional[ImportantMessage]:
        return self.important_messages.get(message_id)

    def create_important_message(self, fields: Fields) -> ImportantMessage:
        return self._insert(self.important_messages, ImportantMessage, fields)

    def update_important_message(self, message_id: int, fields: Fields) -> Optional[ImportantMessage]:
        return self._update(self.important_messages, message_id, fields)

    def delete_important_message(self, message_id: int) -> bool:
        return self._delete(self.important_messages, message_id)

    # --- Acknowledgements ---
    def acknowledge_message(self, message_id: int, user_id: int) -> MessageAcknowledgement:
        return self._insert(
            self.message_acknowledgements,
            MessageAcknowledgement,
            {"message_id": message_id, "user_id": user_id},
            stamp="acknowledged_at",
        )

    def get_message_acknowledgements(self, message_id: int) -> List[MessageAcknowledgement]:
        return [a for a in self._values(self.message_acknowledgements) if a.message_id == message_id]

    def get_user_acknowledgements(self, user_id: int) -> List[MessageAcknowledgement]:
        return [a for a in self._values(self.message_acknowledgements) if a.user_id == user_id]

    # --- Employee notes ---
    def get_all_employee_notes(self) -> List[EmployeeNote]:
        return self._values(self.employee_notes)

    def get_unresolved_employee_notes(self) -> List[EmployeeNote]:
        return [n for n in self._values(self.employee_notes) if not n.resolved]

    def create_employee_note(self, fields: Fields) -> EmployeeNote:
        return self._insert(self.employee_notes, EmployeeNote, fields)

    def resolve_employee_note(self, note_id: int) -> Optional[EmployeeNote]:
        return self._update(self.employee_notes, note_id, {
            "resolved": True,
            "resolved_at": datetime.now(),
        })
