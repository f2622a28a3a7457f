# wtt/schemas/company.py
from typing import Optional

from .base import AuditedModel


class CompanyModel(AuditedModel):
    """Company - top-level tenant owning a project hierarchy."""
    title: str = ""
    description: Optional[str] = None
    org_id: str = ""
