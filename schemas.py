from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime
from enum import Enum
import bleach


class Role(str, Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class CamelModel(BaseModel):
    # JSON in camelCase (imageUrl, completedBy, ...), Python-Attribute in snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def sanitize_text(v: Optional[str]) -> Optional[str]:
    if v:
        # Bleach entfernt alle HTML-Tags (tags=[]) und Attribute
        return bleach.clean(v, tags=[], attributes={}, strip=True)
    return v


def reject_null(v):
    # Teil-Updates: Feld weglassen ist erlaubt, explizites null nicht
    if v is None:
        raise ValueError("must not be null")
    return v


# --- Entitäten (so wie sie der Storage zurückgibt) ---
class User(CamelModel):
    id: int
    username: str
    # Nur der Hash wird gespeichert, und er verlässt den Server nie
    hashed_password: str = Field(exclude=True, repr=False)
    email: Optional[str] = None
    role: Role = Role.EMPLOYEE
    created_at: datetime


class UserPublic(CamelModel):
    """Antwortmodell für Benutzer, ohne Passwort-Feld."""
    id: int
    username: str
    email: Optional[str] = None
    role: Role
    created_at: datetime


class Task(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    completed: bool = False
    completed_by: Optional[int] = None
    completed_at: Optional[datetime] = None
    created_at: datetime


class TaskNote(CamelModel):
    id: int
    task_id: int
    user_id: int
    notes: str
    created_at: datetime


class ImportantMessage(CamelModel):
    id: int
    title: str
    content: str
    active: bool = True
    created_at: datetime


class MessageAcknowledgement(CamelModel):
    id: int
    message_id: int
    user_id: int
    acknowledged_at: datetime


class EmployeeNote(CamelModel):
    id: int
    user_id: int
    content: str
    resolved: bool = False
    resolved_at: Optional[datetime] = None
    created_at: datetime


# --- Auth Models ---
class SessionIdentity(BaseModel):
    id: int
    username: str
    role: Role


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    user: SessionIdentity
    access_token: str
    token_type: str = "bearer"


class MeResponse(BaseModel):
    user: SessionIdentity


# --- Task Models ---
# imageUrl fehlt absichtlich: es wird nur über den Bild-Upload gesetzt
class TaskCreate(CamelModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None

    @field_validator('title', 'description')
    @classmethod
    def sanitize_input(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)


class TaskUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None

    @field_validator('title')
    @classmethod
    def required_fields_not_null(cls, v):
        return reject_null(v)

    @field_validator('title', 'description')
    @classmethod
    def sanitize_input(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)


class TaskNoteCreate(CamelModel):
    notes: str = Field(min_length=1)

    @field_validator('notes')
    @classmethod
    def sanitize_input(cls, v: str) -> str:
        return sanitize_text(v)


# --- Message Models ---
class MessageCreate(CamelModel):
    title: str = Field(min_length=1)
    content: str = Field(min_length=1)
    active: bool = True

    @field_validator('title', 'content')
    @classmethod
    def sanitize_input(cls, v: str) -> str:
        return sanitize_text(v)


class MessageUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1)
    content: Optional[str] = Field(default=None, min_length=1)
    active: Optional[bool] = None

    @field_validator('title', 'content', 'active')
    @classmethod
    def required_fields_not_null(cls, v):
        return reject_null(v)

    @field_validator('title', 'content')
    @classmethod
    def sanitize_input(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_text(v)


# --- Employee Note Models ---
class EmployeeNoteCreate(CamelModel):
    content: str = Field(min_length=1)

    @field_validator('content')
    @classmethod
    def sanitize_input(cls, v: str) -> str:
        return sanitize_text(v)


# --- User Models ---
class UserCreate(CamelModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    email: Optional[str] = None
    role: Role = Role.EMPLOYEE


class UserUpdate(CamelModel):
    username: Optional[str] = Field(default=None, min_length=1)
    password: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = None
    role: Optional[Role] = None

    @field_validator('username', 'password', 'role')
    @classmethod
    def required_fields_not_null(cls, v):
        return reject_null(v)
