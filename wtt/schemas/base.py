# wtt/schemas/base.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from wtt.utils.datetime_utils import to_naive_utc


class AuditedModel(BaseModel):
    """Server-assigned id plus created/modified audit fields."""
    id: str = ""
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    modified_at: Optional[datetime] = None
    modified_by: Optional[str] = None

    @field_validator("created_at", "modified_at")
    @classmethod
    def _normalize_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)
