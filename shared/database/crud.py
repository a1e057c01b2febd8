"""
CRUD operations for the sign translator database models.

Provides basic Create, Read, Update, Delete operations for all tables.
"""
import uuid
from typing import List, Optional, Dict, Any
from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import desc

from .models import User, Chat, Dataset, Log, Analytics

API_KEY_METRIC = "gemini_api_key"


class BaseCRUD:
    """Base class for CRUD operations."""

    def __init__(self, model, pk: str = "id"):
        self.model = model
        self.pk = getattr(model, pk)

    def create(self, db: Session, **kwargs) -> Any:
        """Create a new record."""
        obj = self.model(**kwargs)
        db.add(obj)
        db.commit()
        db.refresh(obj)
        return obj

    def get(self, db: Session, id: Any) -> Optional[Any]:
        """Get record by primary key."""
        return db.query(self.model).filter(self.pk == id).first()

    def get_multi(self, db: Session, skip: int = 0, limit: int = 100) -> List[Any]:
        """Get multiple records with pagination."""
        return db.query(self.model).offset(skip).limit(limit).all()

    def update(self, db: Session, id: Any, **kwargs) -> Optional[Any]:
        """Update record by primary key."""
        obj = self.get(db, id)
        if obj:
            for key, value in kwargs.items():
                setattr(obj, key, value)
            db.commit()
            db.refresh(obj)
        return obj

    def delete(self, db: Session, id: Any) -> bool:
        """Delete record by primary key."""
        obj = self.get(db, id)
        if obj:
            db.delete(obj)
            db.commit()
            return True
        return False


# CRUD Classes for each model

class UserCRUD(BaseCRUD):
    """CRUD operations for User table."""

    def __init__(self):
        super().__init__(User)

    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        """Get user by email address."""
        return db.query(User).filter(User.email == email).first()

    def create_user(self, db: Session, id: str, name: str, email: str,
                    role: str = "user", preferences: Dict = None) -> User:
        """Create a new user."""
        return self.create(
            db,
            id=id,
            name=name,
            email=email,
            role=role,
            preferences=preferences or {}
        )

    def touch_login(self, db: Session, id: str) -> Optional[User]:
        """Record a login."""
        return self.update(db, id, last_login=datetime.utcnow())


class ChatCRUD(BaseCRUD):
    """CRUD operations for Chat table."""

    def __init__(self):
        super().__init__(Chat, pk="chat_id")

    def create_chat(self, db: Session, user_id: str, message: str, type: str,
                    metadata: Dict = None) -> Chat:
        """Create a chat message; ids are <user>_<epoch ms>_<suffix>."""
        chat_id = f"{user_id}_{int(datetime.utcnow().timestamp() * 1000)}_{uuid.uuid4().hex[:6]}"
        return self.create(
            db,
            chat_id=chat_id,
            user_id=user_id,
            message=message,
            type=type,
            metadata_json=metadata or {}
        )

    def get_user_chats(self, db: Session, user_id: str, limit: int = 50) -> List[Chat]:
        """Get recent chats for a user, newest first."""
        return (db.query(Chat)
                .filter(Chat.user_id == user_id)
                .order_by(desc(Chat.timestamp))
                .limit(limit)
                .all())


class DatasetCRUD(BaseCRUD):
    """CRUD operations for Dataset table."""

    def __init__(self):
        super().__init__(Dataset, pk="dataset_id")

    def get_completed(self, db: Session) -> List[Dataset]:
        """Get datasets ready for matching."""
        return (db.query(Dataset)
                .filter(Dataset.status == "completed")
                .order_by(Dataset.created_at)
                .all())

    def create_dataset(self, db: Session, dataset_id: str, type: str, uploaded_by: str,
                       metadata: Dict = None, status: str = "completed") -> Dataset:
        """Create a new dataset record."""
        return self.create(
            db,
            dataset_id=dataset_id,
            type=type,
            status=status,
            uploaded_by=uploaded_by,
            metadata_json=metadata or {}
        )


class LogCRUD(BaseCRUD):
    """CRUD operations for Log table."""

    def __init__(self):
        super().__init__(Log, pk="log_id")

    def log_action(self, db: Session, user_id: str, action: str, metadata: Dict = None) -> Log:
        """Append an audit log entry."""
        log_id = f"log_{int(datetime.utcnow().timestamp() * 1000)}_{uuid.uuid4().hex[:6]}"
        return self.create(
            db,
            log_id=log_id,
            user_id=user_id,
            action=action,
            metadata_json=metadata or {}
        )


class AnalyticsCRUD(BaseCRUD):
    """CRUD operations for Analytics table."""

    def __init__(self):
        super().__init__(Analytics, pk="metric_id")

    def get_api_key(self, db: Session) -> Optional[str]:
        """Stored provider API key override, if any."""
        row = self.get(db, API_KEY_METRIC)
        if row and row.metadata_json:
            return row.metadata_json.get("api_key")
        return None

    def set_api_key(self, db: Session, api_key: str) -> Analytics:
        """Upsert the provider API key override."""
        metadata = {"api_key": api_key, "updated_at": datetime.utcnow().isoformat() + "Z"}
        row = self.get(db, API_KEY_METRIC)
        if row:
            return self.update(db, API_KEY_METRIC, metadata_json=metadata)
        return self.create(
            db,
            metric_id=API_KEY_METRIC,
            type=API_KEY_METRIC,
            value=1,
            period="permanent",
            metadata_json=metadata
        )


# Global CRUD instances
user_crud = UserCRUD()
chat_crud = ChatCRUD()
dataset_crud = DatasetCRUD()
log_crud = LogCRUD()
analytics_crud = AnalyticsCRUD()
