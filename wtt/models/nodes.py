# wtt/models/nodes.py
"""
In-memory tree nodes.

Nodes reference their children by id only. Upward navigation goes through
the store's parent map, never through a back-pointer.
"""
import enum
from dataclasses import dataclass, field
from typing import List

from wtt.schemas.company import CompanyModel
from wtt.schemas.project import ProjectModel


class ParentKind(enum.Enum):
    """Kind of entity a project hangs under."""
    COMPANY = "company"
    PROJECT = "project"


@dataclass(frozen=True)
class ParentRef:
    kind: ParentKind
    id: str


@dataclass
class CompanyNode:
    """Company entity - owns the ordered list of top-level project ids."""
    model: CompanyModel
    project_ids: List[str] = field(default_factory=list)

    def __repr__(self):
        return f"<CompanyNode {self.model.id} '{self.model.title}'>"


@dataclass
class ProjectNode:
    """Project entity - ordered subproject ids and attached resource-ref ids."""
    model: ProjectModel
    project_ids: List[str] = field(default_factory=list)
    resource_ids: List[str] = field(default_factory=list)

    def __repr__(self):
        return f"<ProjectNode {self.model.id} '{self.model.title}'>"
