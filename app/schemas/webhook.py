"""Webhook request and response schemas."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class WebhookBase(BaseModel):
    """Base webhook schema."""

    name: str = Field(..., min_length=3, max_length=100)
    tags: Optional[List[str]] = Field(None, max_length=10, description="At most 10 tags")


class WebhookCreate(WebhookBase):
    """Schema for creating a webhook."""

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class WebhookUpdate(BaseModel):
    """Schema for updating a webhook. The public uuid cannot be changed."""

    name: Optional[str] = Field(None, min_length=3, max_length=100)
    tags: Optional[List[str]] = Field(None, max_length=10)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class WebhookResponse(WebhookBase):
    """Schema for webhook responses."""

    id: str
    uuid: str
    user_id: str
    created_at: datetime

    class Config:
        from_attributes = True
