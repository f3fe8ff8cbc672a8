from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from schemas import (
    User, Task, TaskNote, ImportantMessage, MessageAcknowledgement, EmployeeNote,
)

Fields = Dict[str, Any]


class StorageError(Exception):
    """Unerwarteter Fehler im Speicher-Backend (-> HTTP 500)."""


class IntegrityViolation(StorageError):
    """Fremdschlüssel-, Unique- oder Pflichtfeld-Constraint verletzt."""


class Storage(ABC):
    """
    Gemeinsame Schnittstelle für alle Speicher-Backends.

    Regeln für alle Implementierungen:
    - get_* liefert die Entität oder None, wirft nie für unbekannte IDs.
    - create_* vergibt eine neue ID, setzt Defaults und created_at.
    - update_* ist ein flacher Merge und liefert None für unbekannte IDs.
    - delete_* liefert True, wenn etwas gelöscht wurde.
    - Kein kaskadierendes Löschen.
    """

    # --- Users ---
    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    def create_user(self, fields: Fields) -> User: ...

    @abstractmethod
    def update_user(self, user_id: int, fields: Fields) -> Optional[User]: ...

    @abstractmethod
    def delete_user(self, user_id: int) -> bool: ...

    @abstractmethod
    def get_all_users(self) -> List[User]: ...

    # --- Tasks ---
    @abstractmethod
    def get_all_tasks(self) -> List[Task]: ...

    @abstractmethod
    def get_task(self, task_id: int) -> Optional[Task]: ...

    @abstractmethod
    def create_task(self, fields: Fields) -> Task: ...

    @abstractmethod
    def update_task(self, task_id: int, fields: Fields) -> Optional[Task]: ...

    @abstractmethod
    def delete_task(self, task_id: int) -> bool: ...

    @abstractmethod
    def complete_task(self, task_id: int, user_id: int) -> Optional[Task]:
        """Setzt completed, completed_by und completed_at in einem Schritt.

        Ein erneuter Aufruf überschreibt den Stempel mit dem neuen Benutzer.
        """

    # --- Task notes ---
    @abstractmethod
    def get_task_notes(self, task_id: int) -> List[TaskNote]: ...

    @abstractmethod
    def create_task_note(self, fields: Fields) -> TaskNote: ...

    @abstractmethod
    def update_task_note(self, note_id: int, notes: str) -> Optional[TaskNote]: ...

    # --- Important messages ---
    @abstractmethod
    def get_all_important_messages(self) -> List[ImportantMessage]: ...

    @abstractmethod
    def get_active_important_messages(self) -> List[ImportantMessage]: ...

    @abstractmethod
    def get_important_message(self, message_id: int) -> Optional[ImportantMessage]: ...

    @abstractmethod
    def create_important_message(self, fields: Fields) -> ImportantMessage: ...

    @abstractmethod
    def update_important_message(self, message_id: int, fields: Fields) -> Optional[ImportantMessage]: ...

    @abstractmethod
    def delete_important_message(self, message_id: int) -> bool: ...

    # --- Acknowledgements ---
    @abstractmethod
    def acknowledge_message(self, message_id: int, user_id: int) -> MessageAcknowledgement:
        """Legt bei jedem Aufruf einen neuen Eintrag an (keine Deduplizierung)."""

    @abstractmethod
    def get_message_acknowledgements(self, message_id: int) -> List[MessageAcknowledgement]: ...

    @abstractmethod
    def get_user_acknowledgements(self, user_id: int) -> List[MessageAcknowledgement]: ...

    # --- Employee notes ---
    @abstractmethod
    def get_all_employee_notes(self) -> List[EmployeeNote]: ...

    @abstractmethod
    def get_unresolved_employee_notes(self) -> List[EmployeeNote]: ...

    @abstractmethod
    def create_employee_note(self, fields: Fields) -> EmployeeNote: ...

    @abstractmethod
    def resolve_employee_note(self, note_id: int) -> Optional[EmployeeNote]: ...


def sort_employee_notes(notes: Iterable[EmployeeNote]) -> List[EmployeeNote]:
    """Offene Notizen zuerst, innerhalb davon die neuesten zuerst."""
    newest_first = sorted(notes, key=lambda n: (n.created_at, n.id), reverse=True)
    # sorted() ist stabil, die Reihenfolge nach Datum bleibt erhalten
    return sorted(newest_first, key=lambda n: n.resolved)
