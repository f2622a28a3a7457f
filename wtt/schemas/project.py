# wtt/schemas/project.py
from typing import Optional

from .base import AuditedModel


class ProjectModel(AuditedModel):
    """Project or subproject, without its children."""
    title: str = ""
    description: Optional[str] = None
