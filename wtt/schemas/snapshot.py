# wtt/schemas/snapshot.py
"""
Snapshot shapes of the store.

CompanySnapshot / ProjectSnapshot are the nested in-memory view handed to
and from the persistence gateway.

SnapshotRecords is the flat shape of the JSON data file. Every project and
resource ref is one record pointing at its parent, so the document nests
the same few levels however deep the hierarchy is:

    {
      "companies": [{...}],
      "projects": [{"parent_kind": "company", "parent_id": "...", "project": {...}}],
      "resources": [{"project_id": "...", "resource": {...}}]
    }

Projects are listed in pre-order, so a parent always precedes its children
and sibling order is the list order.
"""
from typing import List, Literal

from pydantic import BaseModel, Field

from .company import CompanyModel
from .project import ProjectModel
from .resource import ResourceRefModel


class ProjectSnapshot(BaseModel):
    project: ProjectModel
    projects: List["ProjectSnapshot"] = Field(default_factory=list)
    resources: List[ResourceRefModel] = Field(default_factory=list)


class CompanySnapshot(BaseModel):
    company: CompanyModel
    projects: List[ProjectSnapshot] = Field(default_factory=list)


ProjectSnapshot.model_rebuild()


class ProjectRecord(BaseModel):
    """A project and the company or project it hangs under"""
    parent_kind: Literal["company", "project"]
    parent_id: str
    project: ProjectModel


class ResourceRecord(BaseModel):
    """A resource ref and the project it is attached to"""
    project_id: str
    resource: ResourceRefModel


class SnapshotRecords(BaseModel):
    companies: List[CompanyModel] = Field(default_factory=list)
    projects: List[ProjectRecord] = Field(default_factory=list)
    resources: List[ResourceRecord] = Field(default_factory=list)
