import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from auth_utils import hash_password
from dependencies import get_storage, require_admin
from schemas import SessionIdentity, UserCreate, UserUpdate, UserPublic
from storage import Storage, StorageError, IntegrityViolation

logger = logging.getLogger(__name__)

# Alle Routen nur für Admins; Antworten enthalten nie das Passwort
router = APIRouter(
    prefix="/api/users",
    tags=["users"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=List[UserPublic])
def read_users(storage: Storage = Depends(get_storage)):
    try:
        return storage.get_all_users()
    except StorageError:
        logger.exception("Failed to fetch users")
        raise HTTPException(status_code=500, detail="Failed to fetch users")


@router.post("", response_model=UserPublic)
def create_user(user: UserCreate, storage: Storage = Depends(get_storage), admin: SessionIdentity = Depends(require_admin)):
    try:
        if storage.get_user_by_username(user.username):
            raise HTTPException(status_code=400, detail="Username already exists")
        fields = user.model_dump(exclude={"password"})
        fields["hashed_password"] = hash_password(user.password)
        created = storage.create_user(fields)
    except IntegrityViolation:
        raise HTTPException(status_code=400, detail="Username already exists")
    except StorageError:
        logger.exception("Failed to create user")
        raise HTTPException(status_code=500, detail="Failed to create user")
    logger.info("User %s (%s) created by %s", created.username, created.role.value, admin.username)
    return created


@router.put("/{user_id}", response_model=UserPublic)
def update_user(user_id: int, user: UserUpdate, storage: Storage = Depends(get_storage)):
    fields = user.model_dump(exclude_unset=True, exclude={"password"})
    if user.password is not None:
        fields["hashed_password"] = hash_password(user.password)
    try:
        if user.username is not None:
            existing = storage.get_user_by_username(user.username)
            if existing and existing.id != user_id:
                raise HTTPException(status_code=400, detail="Username already exists")
        updated = storage.update_user(user_id, fields)
    except IntegrityViolation:
        raise HTTPException(status_code=400, detail="Username already exists")
    except StorageError:
        logger.exception("Failed to update user %d", user_id)
        raise HTTPException(status_code=500, detail="Failed to update user")
    if not updated:
        raise HTTPException(status_code=404, detail="User not found")
    return updated


@router.delete("/{user_id}")
def delete_user(user_id: int, storage: Storage = Depends(get_storage), admin: SessionIdentity = Depends(require_admin)):
    # Notizen und Bestätigungen des Benutzers bleiben bestehen (kein Cascade)
    try:
        deleted = storage.delete_user(user_id)
    except IntegrityViolation:
        raise HTTPException(status_code=400, detail="User is still referenced by other records")
    except StorageError:
        logger.exception("Failed to delete user %d", user_id)
        raise HTTPException(status_code=500, detail="Failed to delete user")
    if not deleted:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("User %d deleted by %s", user_id, admin.username)
    return {"detail": "User deleted successfully"}
