"""User model."""
import uuid

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils import utcnow


class User(Base):
    """Owner of webhooks. Rows are provisioned by the external auth layer."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(320), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    webhooks = relationship("Webhook", back_populates="user", passive_deletes=True)

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}')>"
