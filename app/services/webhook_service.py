"""Webhook service: create, update, delete and resolve capture endpoints."""
import logging
from dataclasses import dataclass
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.errors import WebhookNotFound
from app.models.webhook import Webhook
from app.models.webhook_data import WebhookData
from app.services.webhook_cache import CacheOutcome, WebhookIdCache

logger = logging.getLogger(__name__)


@dataclass
class WebhookMutation:
    """Committed webhook change plus the outcome of the follow-up cache sync."""

    webhook: Webhook
    cache: CacheOutcome


def create_webhook(
    db: Session,
    cache: WebhookIdCache,
    user_id: str,
    name: str,
    tags: Optional[List[str]] = None,
) -> WebhookMutation:
    """
    Create a webhook, then prime the id cache.

    The row is committed before the cache is touched, so a cache failure can
    only cost a later fallback query.

    Args:
        db: Database session
        cache: Webhook id cache
        user_id: Owning user id
        name: Display name
        tags: Optional tag list

    Returns:
        WebhookMutation with the new webhook and the cache outcome
    """
    webhook = Webhook(id=str(uuid4()), uuid=str(uuid4()), user_id=user_id, name=name, tags=tags or None)
    db.add(webhook)
    db.commit()
    db.refresh(webhook)
    logger.info(f"🪝 Created webhook {webhook.id} ({webhook.uuid}) for user {user_id}")

    outcome = cache.put(webhook.uuid, webhook.id)
    if not outcome.ok:
        logger.warning(f"⚠️ Webhook {webhook.id} created without cache entry: {outcome.error}")

    return WebhookMutation(webhook=webhook, cache=outcome)


def update_webhook(
    db: Session,
    webhook: Webhook,
    name: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> Webhook:
    """Update name and tags. The public uuid never changes, so the cache is untouched."""
    if name is not None:
        webhook.name = name
    if tags is not None:
        webhook.tags = tags or None

    db.commit()
    db.refresh(webhook)
    return webhook


def delete_webhook(db: Session, cache: WebhookIdCache, webhook: Webhook) -> WebhookMutation:
    """
    Delete a webhook with its captured data, then evict its cache entry.

    Args:
        db: Database session
        cache: Webhook id cache
        webhook: Webhook to delete

    Returns:
        WebhookMutation with the deleted webhook and the eviction outcome
    """
    public_id = webhook.uuid
    result = db.execute(delete(WebhookData).where(WebhookData.webhook_id == webhook.id))
    db.delete(webhook)
    db.commit()
    logger.info(f"🗑️ Deleted webhook {webhook.id} and {result.rowcount} captured requests")

    outcome = cache.delete(public_id)
    if not outcome.ok:
        logger.warning(f"⚠️ Stale cache entry left for {public_id}: {outcome.error}")

    return WebhookMutation(webhook=webhook, cache=outcome)


def get_owned_webhook(db: Session, webhook_id: str, user_id: str) -> Webhook:
    """Fetch a webhook owned by ``user_id`` or raise WebhookNotFound."""
    webhook = (
        db.query(Webhook)
        .filter(Webhook.id == webhook_id, Webhook.user_id == user_id)
        .first()
    )
    if not webhook:
        raise WebhookNotFound(f"Webhook {webhook_id} not found")
    return webhook


def list_user_webhooks(db: Session, user_id: str) -> List[Webhook]:
    return (
        db.query(Webhook)
        .filter(Webhook.user_id == user_id)
        .order_by(Webhook.created_at.desc())
        .all()
    )


def find_webhook_id(db: Session, public_id: str) -> Optional[str]:
    """Look up the internal id for a public uuid directly in the database."""
    row = db.query(Webhook.id).filter(Webhook.uuid == public_id).first()
    return row[0] if row else None


def resolve_webhook_id(db: Session, cache: WebhookIdCache, public_id: str) -> Optional[str]:
    """
    Resolve a public uuid to an internal id: cache first, database on a miss.

    A database hit is written back to the cache.
    """
    webhook_id = cache.get(public_id)
    if webhook_id is not None:
        logger.debug(f"✅ Cache hit for {public_id}")
        return webhook_id

    logger.debug(f"❌ Cache miss for {public_id}, querying database")
    webhook_id = find_webhook_id(db, public_id)
    if webhook_id is not None:
        cache.put(public_id, webhook_id)
    return webhook_id
