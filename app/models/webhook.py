"""Webhook model for capture endpoints."""
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils import utcnow


class Webhook(Base):
    """A user-owned endpoint that records inbound requests.

    ``id`` is internal; ``uuid`` is the public identifier used in capture URLs
    and is never changed after creation.
    """

    __tablename__ = "webhooks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    uuid = Column(
        String(36), nullable=False, unique=True, index=True,
        default=lambda: str(uuid4()),
    )
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(100), nullable=False)
    tags = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="webhooks")
    data = relationship("WebhookData", back_populates="webhook", passive_deletes=True)

    def __repr__(self):
        return f"<Webhook(id='{self.id}', uuid='{self.uuid}', name='{self.name}')>"
