from datetime import datetime, timedelta, timezone
from typing import Optional
from passlib.context import CryptContext
from jose import jwt, JWTError

import config
from schemas import Role, SessionIdentity

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

SECRET_KEY = config.SECRET_KEY
ALGORITHM = config.ALGORITHM


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(identity: SessionIdentity, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "user_id": identity.id,
        "username": identity.username,
        "role": identity.role.value,
        "exp": expire,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[SessionIdentity]:
    """Dekodiert ein Bearer-Token; None bei ungültigem oder abgelaufenem Token."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return SessionIdentity(
            id=int(payload["user_id"]),
            username=payload["username"],
            role=Role(payload["role"]),
        )
    except (JWTError, KeyError, ValueError):
        return None
