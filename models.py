from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey

from database import Base
from encryption import EncryptedString

# sqlite_autoincrement: IDs werden nach dem Löschen nie wiederverwendet


class UserDB(Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    email = Column(String)
    role = Column(String, nullable=False, default="employee")
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class TaskDB(Base):
    __tablename__ = "tasks"
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text)
    image_url = Column(String)
    completed = Column(Boolean, nullable=False, default=False)
    completed_by = Column(Integer, ForeignKey("users.id"))
    completed_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class TaskNoteDB(Base):
    __tablename__ = "task_notes"
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    # Notizen werden verschlüsselt gespeichert
    notes = Column(EncryptedString, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class ImportantMessageDB(Base):
    __tablename__ = "important_messages"
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True, index=True)
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class MessageAcknowledgementDB(Base):
    __tablename__ = "message_acknowledgements"
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True, index=True)
    message_id = Column(Integer, ForeignKey("important_messages.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    acknowledged_at = Column(DateTime, nullable=False, default=datetime.now)


class EmployeeNoteDB(Base):
    __tablename__ = "employee_notes"
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    content = Column(EncryptedString, nullable=False)
    resolved = Column(Boolean, nullable=False, default=False)
    resolved_at = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
