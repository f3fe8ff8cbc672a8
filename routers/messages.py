import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from dependencies import get_storage, get_current_identity, require_admin
from schemas import (
    SessionIdentity, ImportantMessage, MessageAcknowledgement, MessageCreate, MessageUpdate,
)
from storage import Storage, StorageError, IntegrityViolation

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/messages",
    tags=["messages"]
)


@router.get("", response_model=List[ImportantMessage])
def read_active_messages(pending: bool = False, storage: Storage = Depends(get_storage), identity: SessionIdentity = Depends(get_current_identity)):
    """Aktive Nachrichten; mit pending=true nur die, die der Aufrufer noch nicht bestätigt hat."""
    try:
        messages = storage.get_active_important_messages()
        if pending:
            seen = {ack.message_id for ack in storage.get_user_acknowledgements(identity.id)}
            messages = [m for m in messages if m.id not in seen]
        return messages
    except StorageError:
        logger.exception("Failed to fetch messages")
        raise HTTPException(status_code=500, detail="Failed to fetch messages")


@router.get("/all", response_model=List[ImportantMessage])
def read_all_messages(storage: Storage = Depends(get_storage), admin: SessionIdentity = Depends(require_admin)):
    try:
        return storage.get_all_important_messages()
    except StorageError:
        logger.exception("Failed to fetch all messages")
        raise HTTPException(status_code=500, detail="Failed to fetch all messages")


@router.post("", response_model=ImportantMessage)
def create_message(message: MessageCreate, storage: Storage = Depends(get_storage), admin: SessionIdentity = Depends(require_admin)):
    try:
        created = storage.create_important_message(message.model_dump())
    except StorageError:
        logger.exception("Failed to create message")
        raise HTTPException(status_code=500, detail="Failed to create message")
    logger.info("Message %d created by %s", created.id, admin.username)
    return created


@router.put("/{message_id}", response_model=ImportantMessage)
def update_message(message_id: int, message: MessageUpdate, storage: Storage = Depends(get_storage), admin: SessionIdentity = Depends(require_admin)):
    try:
        updated = storage.update_important_message(message_id, message.model_dump(exclude_unset=True))
    except StorageError:
        logger.exception("Failed to update message %d", message_id)
        raise HTTPException(status_code=500, detail="Failed to update message")
    if not updated:
        raise HTTPException(status_code=404, detail="Message not found")
    return updated


@router.delete("/{message_id}")
def delete_message(message_id: int, storage: Storage = Depends(get_storage), admin: SessionIdentity = Depends(require_admin)):
    try:
        deleted = storage.delete_important_message(message_id)
    except IntegrityViolation:
        raise HTTPException(status_code=400, detail="Message is still referenced by acknowledgements")
    except StorageError:
        logger.exception("Failed to delete message %d", message_id)
        raise HTTPException(status_code=500, detail="Failed to delete message")
    if not deleted:
        raise HTTPException(status_code=404, detail="Message not found")
    logger.info("Message %d deleted by %s", message_id, admin.username)
    return {"detail": "Message deleted successfully"}


@router.post("/{message_id}/acknowledge", response_model=MessageAcknowledgement)
def acknowledge_message(message_id: int, storage: Storage = Depends(get_storage), identity: SessionIdentity = Depends(get_current_identity)):
    # Jede Bestätigung erzeugt einen eigenen Eintrag, auch mehrfach vom selben Benutzer
    try:
        if not storage.get_important_message(message_id):
            raise HTTPException(status_code=404, detail="Message not found")
        return storage.acknowledge_message(message_id, identity.id)
    except StorageError:
        logger.exception("Failed to acknowledge message %d", message_id)
        raise HTTPException(status_code=500, detail="Failed to acknowledge message")


@router.get("/{message_id}/acknowledgements", response_model=List[MessageAcknowledgement])
def read_acknowledgements(message_id: int, storage: Storage = Depends(get_storage), admin: SessionIdentity = Depends(require_admin)):
    try:
        return storage.get_message_acknowledgements(message_id)
    except StorageError:
        logger.exception("Failed to fetch acknowledgements of message %d", message_id)
        raise HTTPException(status_code=500, detail="Failed to fetch acknowledgements")
