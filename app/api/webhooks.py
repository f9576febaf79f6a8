"""Webhook CRUD API endpoints."""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user
from app.errors import WebhookNotFound
from app.models.user import User
from app.models.webhook import Webhook
from app.schemas.webhook import WebhookCreate, WebhookResponse, WebhookUpdate
from app.services import webhook_service
from app.services.webhook_cache import WebhookIdCache, get_webhook_cache

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

logger = logging.getLogger(__name__)


def get_owned_webhook(
    webhook_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Webhook:
    """Dependency resolving ``webhook_id`` to a webhook the caller owns."""
    try:
        return webhook_service.get_owned_webhook(db, webhook_id, user.id)
    except WebhookNotFound:
        raise HTTPException(status_code=404, detail="Webhook not found")


@router.get("", response_model=List[WebhookResponse])
def list_webhooks(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """
    List the caller's webhooks.

    Newest first.
    """
    return webhook_service.list_user_webhooks(db, user.id)


@router.post("", response_model=WebhookResponse, status_code=201)
def create_webhook(
    webhook: WebhookCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: WebhookIdCache = Depends(get_webhook_cache),
):
    """
    Create a new webhook.

    A fresh public uuid is generated; requests to ``/w/{uuid}`` are captured.
    """
    mutation = webhook_service.create_webhook(db, cache, user.id, webhook.name, webhook.tags)
    return mutation.webhook


@router.get("/{webhook_id}", response_model=WebhookResponse)
def get_webhook(webhook: Webhook = Depends(get_owned_webhook)):
    """
    Get a single webhook by ID.

    Args:
        webhook_id: ID of the webhook to retrieve
    """
    return webhook


@router.put("/{webhook_id}", response_model=WebhookResponse)
def update_webhook(
    webhook_update: WebhookUpdate,
    webhook: Webhook = Depends(get_owned_webhook),
    db: Session = Depends(get_db),
):
    """
    Update a webhook.

    Only provided fields will be updated.
    """
    return webhook_service.update_webhook(db, webhook, webhook_update.name, webhook_update.tags)


@router.delete("/{webhook_id}", status_code=204)
def delete_webhook(
    webhook: Webhook = Depends(get_owned_webhook),
    db: Session = Depends(get_db),
    cache: WebhookIdCache = Depends(get_webhook_cache),
):
    """
    Delete a webhook with all captured requests.

    Args:
        webhook_id: ID of the webhook to delete
    """
    webhook_service.delete_webhook(db, cache, webhook)
    return None
