"""
Database models for the sign translator backend.

Contains the stored tables used by the app and the admin dashboard:
- users(id, name, email, role, preferences, created_at, last_login)
- chats(chat_id, user_id, message, type, timestamp, metadata)
- datasets(dataset_id, type, status, uploaded_by, trained_model_link, created_at, metadata)
- logs(log_id, user_id, action, timestamp, metadata)
- analytics(metric_id, type, value, period, created_at, metadata)
"""
from sqlalchemy import Column, String, Text, DateTime, Float, JSON, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .config import Base

CHAT_TYPES = ("text", "sign", "speech")
DATASET_STATUSES = ("uploading", "processing", "training", "completed", "failed")
USER_ROLES = ("user", "admin")


class User(Base):
    """User table - accounts with roles and preferences."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)  # UUID from the auth provider
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(10), default="user", nullable=False)
    preferences = Column(JSON, default=dict)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    chats = relationship("Chat", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(f"role IN {USER_ROLES}", name="ck_users_role"),
    )

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}', role='{self.role}')>"


class Chat(Base):
    """Chats table - chat messages and translation history."""

    __tablename__ = "chats"

    chat_id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    message = Column(Text, nullable=False)
    type = Column(String(10), nullable=False)  # text, sign, speech
    timestamp = Column(DateTime, default=func.now(), nullable=False)
    metadata_json = Column("metadata", JSON, default=dict)

    # Relationships
    user = relationship("User", back_populates="chats")

    __table_args__ = (
        CheckConstraint(f"type IN {CHAT_TYPES}", name="ck_chats_type"),
    )

    def __repr__(self):
        return f"<Chat(chat_id='{self.chat_id}', type='{self.type}')>"


class Dataset(Base):
    """Datasets table - uploaded sign datasets and their entries."""

    __tablename__ = "datasets"

    dataset_id = Column(String, primary_key=True)
    type = Column(String(50), nullable=False)
    status = Column(String(20), default="uploading", nullable=False)
    uploaded_by = Column(String, nullable=False, index=True)
    trained_model_link = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    metadata_json = Column("metadata", JSON, default=dict)  # filename, upload_date, data[]

    __table_args__ = (
        CheckConstraint(f"status IN {DATASET_STATUSES}", name="ck_datasets_status"),
    )

    def __repr__(self):
        return f"<Dataset(dataset_id='{self.dataset_id}', status='{self.status}')>"


class Log(Base):
    """Logs table - system activity and audit trail."""

    __tablename__ = "logs"

    log_id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    action = Column(String(100), nullable=False)
    timestamp = Column(DateTime, default=func.now(), nullable=False)
    metadata_json = Column("metadata", JSON, default=dict)

    def __repr__(self):
        return f"<Log(log_id='{self.log_id}', action='{self.action}')>"


class Analytics(Base):
    """Analytics table - usage metrics and service settings."""

    __tablename__ = "analytics"

    metric_id = Column(String, primary_key=True)
    type = Column(String(50), nullable=False, index=True)
    value = Column(Float, nullable=False)
    period = Column(String(20), nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)
    metadata_json = Column("metadata", JSON, default=dict)

    def __repr__(self):
        return f"<Analytics(metric_id='{self.metric_id}', type='{self.type}', value={self.value})>"
