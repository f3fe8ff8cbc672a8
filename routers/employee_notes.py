import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from dependencies import get_storage, get_current_identity, require_admin
from schemas import SessionIdentity, EmployeeNote, EmployeeNoteCreate
from storage import Storage, StorageError, sort_employee_notes

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/employee-notes",
    tags=["employee-notes"]
)


@router.get("", response_model=List[EmployeeNote])
def read_employee_notes(storage: Storage = Depends(get_storage), admin: SessionIdentity = Depends(require_admin)):
    try:
        return sort_employee_notes(storage.get_all_employee_notes())
    except StorageError:
        logger.exception("Failed to fetch employee notes")
        raise HTTPException(status_code=500, detail="Failed to fetch employee notes")


@router.get("/unresolved", response_model=List[EmployeeNote])
def read_unresolved_notes(storage: Storage = Depends(get_storage), admin: SessionIdentity = Depends(require_admin)):
    try:
        return storage.get_unresolved_employee_notes()
    except StorageError:
        logger.exception("Failed to fetch unresolved notes")
        raise HTTPException(status_code=500, detail="Failed to fetch unresolved notes")


@router.post("", response_model=EmployeeNote)
def create_employee_note(note: EmployeeNoteCreate, storage: Storage = Depends(get_storage), identity: SessionIdentity = Depends(get_current_identity)):
    try:
        created = storage.create_employee_note({"user_id": identity.id, "content": note.content})
    except StorageError:
        logger.exception("Failed to create employee note")
        raise HTTPException(status_code=500, detail="Failed to create employee note")
    logger.info("Employee note %d submitted by %s", created.id, identity.username)
    return created


@router.post("/{note_id}/resolve", response_model=EmployeeNote)
def resolve_employee_note(note_id: int, storage: Storage = Depends(get_storage), admin: SessionIdentity = Depends(require_admin)):
    try:
        note = storage.resolve_employee_note(note_id)
    except StorageError:
        logger.exception("Failed to resolve note %d", note_id)
        raise HTTPException(status_code=500, detail="Failed to resolve note")
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return note
