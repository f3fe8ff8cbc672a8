from fastapi import Depends, HTTPException, Header, Request
from typing import Optional
from slowapi import Limiter
from slowapi.util import get_remote_address

from auth_utils import decode_access_token
from schemas import Role, SessionIdentity
from storage import Storage

SESSION_KEY = "user"


# --- Storage Dependency ---
def get_storage(request: Request) -> Storage:
    return request.app.state.storage


# --- Auth Dependencies ---
def get_identity_optional(request: Request, authorization: Optional[str] = Header(None)) -> Optional[SessionIdentity]:
    """Identität aus der Session oder, für API-Clients, aus dem Bearer-Token. None wenn keine vorhanden."""
    data = request.session.get(SESSION_KEY)
    if data:
        return SessionIdentity(**data)
    if authorization:
        # header like: Bearer <token>
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return decode_access_token(parts[1])
    return None


def get_current_identity(identity: Optional[SessionIdentity] = Depends(get_identity_optional)) -> SessionIdentity:
    if identity is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return identity


def require_admin(identity: SessionIdentity = Depends(get_current_identity)) -> SessionIdentity:
    if identity.role != Role.ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return identity


# --- Rate Limiter ---
limiter = Limiter(key_func=get_remote_address)


def validation_detail(errors) -> str:
    """Erste Pydantic-Fehlermeldung als lesbarer Text, z.B. "title: Field required"."""
    if not errors:
        return "Invalid request"
    err = errors[0]
    loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))
