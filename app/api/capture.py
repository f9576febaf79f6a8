"""Public capture endpoint for inbound webhook requests."""
import calendar
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import WebhookNotFound
from app.schemas.webhook_data import CaptureResponse
from app.services.capture_service import CAPTURE_METHODS, capture_request
from app.services.webhook_cache import WebhookIdCache, get_webhook_cache

router = APIRouter(tags=["capture"])

logger = logging.getLogger(__name__)


@router.api_route("/w/{public_id}", methods=list(CAPTURE_METHODS), response_model=CaptureResponse)
async def capture_webhook(
    public_id: str,
    request: Request,
    db: Session = Depends(get_db),
    cache: WebhookIdCache = Depends(get_webhook_cache),
):
    """
    Record an inbound request.

    POST bodies are stored as sent; a body that is not valid UTF-8 is stored
    as ``{}``. GET requests store their query parameters.
    """
    body = ""
    if request.method == "POST":
        raw = await request.body()
        try:
            body = raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning(f"⚠️ Non UTF-8 body for webhook {public_id}, storing empty payload")
            body = "{}"

    try:
        row = await run_in_threadpool(
            capture_request,
            db,
            cache,
            public_id,
            request.method,
            dict(request.headers),
            body,
            dict(request.query_params),
        )
    except WebhookNotFound:
        raise HTTPException(status_code=404, detail="Webhook not found")

    return CaptureResponse(
        webhook_id=public_id,
        data_id=row.id,
        method=row.method,
        received_at=calendar.timegm(row.received_at.utctimetuple()),
        size_bytes=row.size_bytes,
    )
