from .base import AuditedModel
from .company import CompanyModel
from .project import ProjectModel
from .resource import ResourceRefModel
from .tree import TreeNode
from .snapshot import (
    CompanySnapshot, ProjectRecord, ProjectSnapshot, ResourceRecord, SnapshotRecords
)

__all__ = [
    "AuditedModel",
    "CompanyModel",
    "ProjectModel",
    "ResourceRefModel",
    "TreeNode",
    "CompanySnapshot",
    "ProjectSnapshot",
    "ProjectRecord",
    "ResourceRecord",
    "SnapshotRecords",
]
