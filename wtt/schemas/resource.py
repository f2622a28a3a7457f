# wtt/schemas/resource.py
from .base import AuditedModel


class ResourceRefModel(AuditedModel):
    """Reference to an externally owned resource, with its cached display name."""
    resource_id: str = ""
    resource_name: str = ""
