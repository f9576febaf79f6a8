"""Capture service for recording inbound webhook requests."""
import json
import logging
from typing import Dict, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import WebhookNotFound
from app.models.webhook_data import WebhookData
from app.services.webhook_cache import WebhookIdCache
from app.services.webhook_service import find_webhook_id, resolve_webhook_id
from app.utils import utcnow

CAPTURE_METHODS = ("GET", "POST")

logger = logging.getLogger(__name__)


def serialize_payload(method: str, body: str, query_params: Mapping[str, str]) -> str:
    """POST bodies are stored verbatim; GET requests store their query parameters as JSON."""
    if method == "POST":
        return body
    return json.dumps(dict(query_params))


def capture_request(
    db: Session,
    cache: WebhookIdCache,
    public_id: str,
    method: str,
    headers: Mapping[str, str],
    body: str = "",
    query_params: Optional[Mapping[str, str]] = None,
) -> WebhookData:
    """
    Record one inbound request against the webhook with public id ``public_id``.

    Args:
        db: Database session
        cache: Webhook id cache
        public_id: Public webhook uuid from the capture URL
        method: HTTP method (GET or POST)
        headers: Request headers
        body: Raw request body
        query_params: Query string parameters

    Returns:
        The stored WebhookData row

    Raises:
        WebhookNotFound: No webhook has this public id
    """
    method = method.upper()
    if method not in CAPTURE_METHODS:
        raise ValueError(f"Unsupported capture method: {method}")

    webhook_id = resolve_webhook_id(db, cache, public_id)
    if webhook_id is None:
        raise WebhookNotFound(f"Webhook {public_id} not found")

    headers_json = json.dumps(dict(headers))
    payload = serialize_payload(method, body, query_params or {})
    fields: Dict[str, object] = {
        "method": method,
        "headers": headers_json,
        "data": payload,
        "size_bytes": len(payload.encode("utf-8")),
        "received_at": utcnow(),
    }

    try:
        return _insert(db, webhook_id, fields)
    except IntegrityError:
        # Cached id points at a deleted webhook.
        db.rollback()
        logger.warning(f"⚠️ Stale cache entry for {public_id}, falling back to database")
        cache.delete(public_id)

    webhook_id = find_webhook_id(db, public_id)
    if webhook_id is None:
        raise WebhookNotFound(f"Webhook {public_id} not found")
    cache.put(public_id, webhook_id)
    return _insert(db, webhook_id, fields)


def _insert(db: Session, webhook_id: str, fields: Dict[str, object]) -> WebhookData:
    row = WebhookData(webhook_id=webhook_id, **fields)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row
