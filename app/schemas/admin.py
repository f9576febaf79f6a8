"""Administrative endpoint schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CleanupResponse(BaseModel):
    """Result of an on-demand retention sweep."""

    deleted_count: int = Field(..., alias="deletedCount")
    cutoff_date: datetime = Field(..., alias="cutoffDate")
    size_enforced_count: int = Field(0, alias="sizeEnforcedCount")
    size_enforcement_error: Optional[str] = Field(None, alias="sizeEnforcementError")

    class Config:
        populate_by_name = True
