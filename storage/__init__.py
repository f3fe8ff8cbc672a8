from storage.base import Storage, StorageError, IntegrityViolation, sort_employee_notes
from storage.memory import IdAllocator, MemStorage
from storage.seed import seed_storage

import config


def build_storage(backend: str = None, database_url: str = None) -> Storage:
    """Erzeugt das konfigurierte Backend ("memory" oder "sql")."""
    backend = backend or config.STORAGE_BACKEND
    if backend == "memory":
        return MemStorage()
    if backend == "sql":
        # Import erst hier, damit das Memory-Backend ohne DB-Setup auskommt
        from database import make_engine, make_session_factory, init_db
        from storage.sql import SqlStorage

        engine = make_engine(database_url)
        init_db(engine)
        return SqlStorage(make_session_factory(engine))
    raise ValueError(f"Unknown storage backend: {backend}")


__all__ = [
    "Storage", "StorageError", "IntegrityViolation", "sort_employee_notes",
    "IdAllocator", "MemStorage", "seed_storage", "build_storage",
]
