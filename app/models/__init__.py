"""Database models."""
from app.models.user import User
from app.models.webhook import Webhook
from app.models.webhook_data import WebhookData

__all__ = ["User", "Webhook", "WebhookData"]
