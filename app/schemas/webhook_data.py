"""Captured request schemas."""
from datetime import datetime

from pydantic import BaseModel


class WebhookDataResponse(BaseModel):
    """Schema for a captured request."""

    id: str
    webhook_id: str
    method: str
    headers: str
    data: str
    size_bytes: int
    received_at: datetime

    class Config:
        from_attributes = True


class WebhookDataListResponse(BaseModel):
    """Schema for paginated captured request lists."""

    items: list[WebhookDataResponse]
    total: int
    page: int
    page_size: int
    pages: int


class MethodCounts(BaseModel):
    GET: int = 0
    POST: int = 0


class WebhookStatsResponse(BaseModel):
    """Aggregate usage for one webhook."""

    total_requests: int
    total_size_bytes: int
    method_counts: MethodCounts


class CaptureResponse(BaseModel):
    """Response returned to the sender of a captured request."""

    success: bool = True
    message: str = "Webhook received"
    webhook_id: str
    data_id: str
    method: str
    received_at: int
    size_bytes: int
