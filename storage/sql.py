from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from models import (
    UserDB, TaskDB, TaskNoteDB, ImportantMessageDB, MessageAcknowledgementDB, EmployeeNoteDB,
)
from schemas import (
    User, Task, TaskNote, ImportantMessage, MessageAcknowledgement, EmployeeNote,
)
from storage.base import Fields, IntegrityViolation, Storage, StorageError

M = TypeVar("M", bound=BaseModel)


def _to_model(row, model: Type[M]) -> M:
    return model(**{c.name: getattr(row, c.name) for c in row.__table__.columns})


def _column_values(fields: Fields) -> Fields:
    # Enums (Role) als reine Strings in die DB schreiben
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in fields.items()}


class SqlStorage(Storage):
    """Relationales Backend über SQLAlchemy; eine Session pro Operation."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self):
        db: Session = self._session_factory()
        try:
            yield db
        except IntegrityError as e:
            db.rollback()
            raise IntegrityViolation(str(e.orig)) from e
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(str(e)) from e
        finally:
            db.close()

    # --- generische Helfer ---
    def _get(self, orm, model: Type[M], entity_id: int) -> Optional[M]:
        with self._session() as db:
            row = db.query(orm).filter(orm.id == entity_id).first()
            return _to_model(row, model) if row else None

    def _list(self, orm, model: Type[M], *criteria) -> List[M]:
        with self._session() as db:
            rows = db.query(orm).filter(*criteria).order_by(orm.id).all()
            return [_to_model(r, model) for r in rows]

    def _insert(self, orm, model: Type[M], fields: Fields, stamp: str = "created_at") -> M:
        with self._session() as db:
            row = orm(**_column_values(fields), **{stamp: datetime.now()})
            db.add(row)
            db.commit()
            db.refresh(row)
            return _to_model(row, model)

    def _update(self, orm, model: Type[M], entity_id: int, fields: Fields) -> Optional[M]:
        with self._session() as db:
            row = db.query(orm).filter(orm.id == entity_id).first()
            if not row:
                return None
            for key, value in _column_values(fields).items():
                setattr(row, key, value)
            db.commit()
            db.refresh(row)
            return _to_model(row, model)

    def _delete(self, orm, entity_id: int) -> bool:
        with self._session() as db:
            row = db.query(orm).filter(orm.id == entity_id).first()
            if not row:
                return False
            db.delete(row)
            db.commit()
            return True

    # --- Users ---
    def get_user(self, user_id: int) -> Optional[User]:
        return self._get(UserDB, User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._session() as db:
            row = db.query(UserDB).filter(UserDB.username == username).first()
            return _to_model(row, User) if row else None

    def create_user(self, fields: Fields) -> User:
        return self._insert(UserDB, User, fields)

    def update_user(self, user_id: int, fields: Fields) -> Optional[User]:
        return self._update(UserDB, User, user_id, fields)

    def delete_user(self, user_id: int) -> bool:
        return self._delete(UserDB, user_id)

    def get_all_users(self) -> List[User]:
        return self._list(UserDB, User)

    # --- Tasks ---
    def get_all_tasks(self) -> List[Task]:
        return self._list(TaskDB, Task)

    def get_task(self, task_id: int) -> Optional[Task]:
        return self._get(TaskDB, Task, task_id)

    def create_task(self, fields: Fields) -> Task:
        return self._insert(TaskDB, Task, fields)

    def update_task(self, task_id: int, fields: Fields) -> Optional[Task]:
        return self._update(TaskDB, Task, task_id, fields)

    def delete_task(self, task_id: int) -> bool:
        return self._delete(TaskDB, task_id)

    def complete_task(self, task_id: int, user_id: int) -> Optional[Task]:
        return self._update(TaskDB, Task, task_id, {
            "completed": True,
            "completed_by": user_id,
            "completed_at": datetime.now(),
        })

    # --- Task notes ---
    def get_task_notes(self, task_id: int) -> List[TaskNote]:
        return self._list(TaskNoteDB, TaskNote, TaskNoteDB.task_id == task_id)

    def create_task_note(self, fields: Fields) -> TaskNote:
        return self._insert(TaskNoteDB, TaskNote, fields)

    def update_task_note(self, note_id: int, notes: str) -> Optional[TaskNote]:
        return self._update(TaskNoteDB, TaskNote, note_id, {"notes": notes})

    # --- Important messages ---
    def get_all_important_messages(self) -> List[ImportantMessage]:
        return self._list(ImportantMessageDB, ImportantMessage)

    def get_active_important_messages(self) -> List[ImportantMessage]:
        return self._list(ImportantMessageDB, ImportantMessage, ImportantMessageDB.active.is_(True))

    def get_important_message(self, message_id: int) -> Optional[ImportantMessage]:
        return self._get(ImportantMessageDB, ImportantMessage, message_id)

    def create_important_message(self, fields: Fields) -> ImportantMessage:
        return self._insert(ImportantMessageDB, ImportantMessage, fields)

    def update_important_message(self, message_id: int, fields: Fields) -> Optional[ImportantMessage]:
        return self._update(ImportantMessageDB, ImportantMessage, message_id, fields)

    def delete_important_message(self, message_id: int) -> bool:
        return self._delete(ImportantMessageDB, message_id)

    # --- Acknowledgements ---
    def acknowledge_message(self, message_id: int, user_id: int) -> MessageAcknowledgement:
        return self._insert(
            MessageAcknowledgementDB,
            MessageAcknowledgement,
            {"message_id": message_id, "user_id": user_id},
            stamp="acknowledged_at",
        )

    def get_message_acknowledgements(self, message_id: int) -> List[MessageAcknowledgement]:
        return self._list(
            MessageAcknowledgementDB, MessageAcknowledgement,
            MessageAcknowledgementDB.message_id == message_id,
        )

    def get_user_acknowledgements(self, user_id: int) -> List[MessageAcknowledgement]:
        return self._list(
            MessageAcknowledgementDB, MessageAcknowledgement,
            MessageAcknowledgementDB.user_id == user_id,
        )

    # --- Employee notes ---
    def get_all_employee_notes(self) -> List[EmployeeNote]:
        return self._list(EmployeeNoteDB, EmployeeNote)

    def get_unresolved_employee_notes(self) -> List[EmployeeNote]:
        return self._list(EmployeeNoteDB, EmployeeNote, EmployeeNoteDB.resolved.is_(False))

    def create_employee_note(self, fields: Fields) -> EmployeeNote:
        return self._insert(EmployeeNoteDB, EmployeeNote, fields)

    def resolve_employee_note(self, note_id: int) -> Optional[EmployeeNote]:
        return self._update(EmployeeNoteDB, EmployeeNote, note_id, {
            "resolved": True,
            "resolved_at": datetime.now(),
        })
