"""Captured request model."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils import utcnow


class WebhookData(Base):
    """A single recorded inbound request. Rows are never updated."""

    __tablename__ = "webhook_data"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    webhook_id = Column(
        String(36), ForeignKey("webhooks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    method = Column(String(10), nullable=False)  # GET or POST
    headers = Column(Text, nullable=False)  # JSON object
    data = Column(Text, nullable=False)  # raw body, or JSON of query params
    size_bytes = Column(Integer, nullable=False)
    received_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    webhook = relationship("Webhook", back_populates="data")
