import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from starlette.requests import Request

import config
from auth_utils import verify_password, create_access_token
from dependencies import SESSION_KEY, get_storage, get_identity_optional, limiter
from schemas import LoginRequest, LoginResponse, MeResponse, SessionIdentity
from storage import Storage, StorageError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"]
)


@router.post("/login", response_model=LoginResponse)
@limiter.limit(config.LOGIN_RATE_LIMIT)  # Brute-Force-Schutz
def login(request: Request, credentials: LoginRequest, storage: Storage = Depends(get_storage)):
    """
    Authentifiziert einen Benutzer und legt die Session-Identität an.

    Der Benutzername wird exakt (case-sensitiv) gesucht, das Passwort gegen den
    gespeicherten Hash geprüft. Zusätzlich wird ein JWT für API-Clients ausgestellt.

    Raises:
        HTTPException(401): Bei unbekanntem Benutzer oder falschem Passwort,
            ohne zu verraten, welches von beiden.
    """
    try:
        user = storage.get_user_by_username(credentials.username)
    except StorageError:
        logger.exception("Login lookup failed")
        raise HTTPException(status_code=500, detail="Login failed")

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.info("Failed login for username %r", credentials.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    identity = SessionIdentity(id=user.id, username=user.username, role=user.role)
    request.session[SESSION_KEY] = identity.model_dump(mode="json")
    logger.info("User %s logged in (role=%s)", user.username, identity.role.value)
    return LoginResponse(user=identity, access_token=create_access_token(identity))


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return {"detail": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
def me(identity: Optional[SessionIdentity] = Depends(get_identity_optional)):
    if identity is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return MeResponse(user=identity)
