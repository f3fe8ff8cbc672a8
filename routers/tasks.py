import logging
from typing import List, Optional, Tuple, Type

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from dependencies import get_storage, get_current_identity, require_admin, validation_detail
from schemas import SessionIdentity, Task, TaskCreate, TaskUpdate, TaskNote, TaskNoteCreate
from storage import Storage, StorageError, IntegrityViolation
from uploads import InvalidUpload, delete_task_image, save_task_image

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/tasks",
    tags=["tasks"]
)


async def _read_task_body(request: Request, model: Type[BaseModel]) -> Tuple[BaseModel, Optional[UploadFile]]:
    """Liest JSON oder multipart/form-data (mit optionalem Bild im Feld "image")."""
    image = None
    try:
        if request.headers.get("content-type", "").startswith("multipart/form-data"):
            form = await request.form()
            data = {k: v for k, v in form.items() if not isinstance(v, UploadFile)}
            upload = form.get("image")
            if isinstance(upload, UploadFile) and upload.filename:
                image = upload
        else:
            data = await request.json()
    except ValueError:
        # JSONDecodeError und UnicodeDecodeError (ungültiges UTF-8)
        raise HTTPException(status_code=400, detail="Malformed request body")

    try:
        return model.model_validate(data), image
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=validation_detail(e.errors()))


async def _store_image(request: Request, image: UploadFile) -> str:
    # Datei-I/O im Threadpool, nicht im Event-Loop
    try:
        return await run_in_threadpool(
            save_task_image, image, request.app.state.upload_dir, request.app.state.max_upload_bytes
        )
    except InvalidUpload as e:
        raise HTTPException(status_code=400, detail=str(e))


def _discard_image(request: Request, fields: dict) -> None:
    if "image_url" in fields:
        delete_task_image(fields["image_url"], request.app.state.upload_dir)


@router.get("", response_model=List[Task])
def read_tasks(storage: Storage = Depends(get_storage), identity: SessionIdentity = Depends(get_current_identity)):
    try:
        return storage.get_all_tasks()
    except StorageError:
        logger.exception("Failed to fetch tasks")
        raise HTTPException(status_code=500, detail="Failed to fetch tasks")


@router.post("", response_model=Task)
async def create_task(request: Request, storage: Storage = Depends(get_storage), admin: SessionIdentity = Depends(require_admin)):
    task, image = await _read_task_body(request, TaskCreate)
    fields = task.model_dump()
    if image is not None:
        fields["image_url"] = await _store_image(request, image)
    try:
        created = await run_in_threadpool(storage.create_task, fields)
    except StorageError:
        logger.exception("Failed to create task")
        _discard_image(request, fields)
        raise HTTPException(status_code=500, detail="Failed to create task")
    logger.info("Task %d created by %s", created.id, admin.username)
    return created


@router.put("/{task_id}", response_model=Task)
async def update_task(task_id: int, request: Request, storage: Storage = Depends(get_storage), admin: SessionIdentity = Depends(require_admin)):
    task, image = await _read_task_body(request, TaskUpdate)
    fields = task.model_dump(exclude_unset=True)
    try:
        existing = await run_in_threadpool(storage.get_task, task_id)
    except StorageError:
        logger.exception("Failed to load task %d", task_id)
        raise HTTPException(status_code=500, detail="Failed to update task")
    if not existing:
        raise HTTPException(status_code=404, detail="Task not found")

    # Bild erst speichern, wenn die Aufgabe existiert
    if image is not None:
        fields["image_url"] = await _store_image(request, image)
    try:
        updated = await run_in_threadpool(storage.update_task, task_id, fields)
    except StorageError:
        logger.exception("Failed to update task %d", task_id)
        _discard_image(request, fields)
        raise HTTPException(status_code=500, detail="Failed to update task")
    if not updated:
        # zwischen Prüfung und Update gelöscht
        _discard_image(request, fields)
        raise HTTPException(status_code=404, detail="Task not found")
    return updated


@router.delete("/{task_id}")
def delete_task(task_id: int, storage: Storage = Depends(get_storage), admin: SessionIdentity = Depends(require_admin)):
    try:
        deleted = storage.delete_task(task_id)
    except IntegrityViolation:
        raise HTTPException(status_code=400, detail="Task is still referenced by notes")
    except StorageError:
        logger.exception("Failed to delete task %d", task_id)
        raise HTTPException(status_code=500, detail="Failed to delete task")
    if not deleted:
        raise HTTPException(status_code=404, detail="Task not found")
    logger.info("Task %d deleted by %s", task_id, admin.username)
    return {"detail": "Task deleted successfully"}


@router.post("/{task_id}/complete", response_model=Task)
def complete_task(task_id: int, storage: Storage = Depends(get_storage), identity: SessionIdentity = Depends(get_current_identity)):
    # Kein Idempotenz-Schutz: erneutes Erledigen überschreibt completedBy/completedAt
    try:
        task = storage.complete_task(task_id, identity.id)
    except StorageError:
        logger.exception("Failed to complete task %d", task_id)
        raise HTTPException(status_code=500, detail="Failed to complete task")
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.get("/{task_id}/notes", response_model=List[TaskNote])
def read_task_notes(task_id: int, storage: Storage = Depends(get_storage), identity: SessionIdentity = Depends(get_current_identity)):
    try:
        return storage.get_task_notes(task_id)
    except StorageError:
        logger.exception("Failed to fetch notes of task %d", task_id)
        raise HTTPException(status_code=500, detail="Failed to fetch task notes")


@router.post("/{task_id}/notes", response_model=TaskNote)
def create_task_note(task_id: int, note: TaskNoteCreate, storage: Storage = Depends(get_storage), identity: SessionIdentity = Depends(get_current_identity)):
    try:
        if not storage.get_task(task_id):
            raise HTTPException(status_code=404, detail="Task not found")
        return storage.create_task_note({"task_id": task_id, "user_id": identity.id, "notes": note.notes})
    except StorageError:
        logger.exception("Failed to create note for task %d", task_id)
        raise HTTPException(status_code=500, detail="Failed to create task note")
