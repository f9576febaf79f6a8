"""Captured request API endpoints."""
import math
from datetime import date, datetime, time, timedelta
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.api.webhooks import get_owned_webhook
from app.database import get_db
from app.models.webhook import Webhook
from app.models.webhook_data import WebhookData
from app.schemas.webhook_data import (
    MethodCounts,
    WebhookDataListResponse,
    WebhookStatsResponse,
)

router = APIRouter(prefix="/api/webhooks/{webhook_id}", tags=["webhook-data"])

SORT_COLUMNS = {
    "received_at": WebhookData.received_at,
    "method": WebhookData.method,
    "size_bytes": WebhookData.size_bytes,
}


@router.get("/data", response_model=WebhookDataListResponse)
def list_webhook_data(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
    sort_column: Literal["received_at", "method", "size_bytes"] = Query("received_at"),
    sort_direction: Literal["asc", "desc"] = Query("desc"),
    search: Optional[str] = Query(None, description="Search in payload and headers"),
    method: Optional[Literal["GET", "POST"]] = Query(None, description="Filter by HTTP method"),
    date_start: Optional[date] = Query(None, description="First day to include"),
    date_end: Optional[date] = Query(None, description="Last day to include"),
    webhook: Webhook = Depends(get_owned_webhook),
    db: Session = Depends(get_db),
):
    """
    List captured requests with pagination and filtering.

    Query Parameters:
    - page: Page number (default: 1)
    - page_size: Items per page (default: 10, max: 100)
    - sort_column / sort_direction: Ordering (default: newest first)
    - search: Substring match in payload and headers
    - method: GET or POST
    - date_start / date_end: Inclusive day range (both required to apply)
    """
    query = db.query(WebhookData).filter(WebhookData.webhook_id == webhook.id)

    if method:
        query = query.filter(WebhookData.method == method)
    if date_start and date_end:
        start = datetime.combine(date_start, time.min)
        end = datetime.combine(date_end, time.min) + timedelta(days=1)
        query = query.filter(WebhookData.received_at >= start, WebhookData.received_at < end)
    if search:
        search_term = f"%{search}%"
        query = query.filter(
            or_(
                WebhookData.data.like(search_term),
                WebhookData.headers.like(search_term),
            )
        )

    total = query.count()

    column = SORT_COLUMNS[sort_column]
    order = column.asc() if sort_direction == "asc" else column.desc()
    offset = (page - 1) * page_size
    items = query.order_by(order).offset(offset).limit(page_size).all()

    pages = math.ceil(total / page_size) if total > 0 else 1

    return WebhookDataListResponse(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        pages=pages,
    )


@router.get("/stats", response_model=WebhookStatsResponse)
def get_webhook_stats(
    webhook: Webhook = Depends(get_owned_webhook),
    db: Session = Depends(get_db),
):
    """Request count, stored bytes and per-method counts for one webhook."""
    rows = (
        db.query(
            WebhookData.method,
            func.count(WebhookData.id),
            func.coalesce(func.sum(WebhookData.size_bytes), 0),
        )
        .filter(WebhookData.webhook_id == webhook.id)
        .group_by(WebhookData.method)
        .all()
    )

    counts = {method: count for method, count, _size in rows}
    return WebhookStatsResponse(
        total_requests=sum(counts.values()),
        total_size_bytes=sum(int(size) for _method, _count, size in rows),
        method_counts=MethodCounts(GET=counts.get("GET", 0), POST=counts.get("POST", 0)),
    )
