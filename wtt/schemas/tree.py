# wtt/schemas/tree.py
from typing import List

from pydantic import BaseModel, Field


class TreeNode(BaseModel):
    """Read-only nested view of a company or project."""
    id: str
    title: str
    children: List["TreeNode"] = Field(default_factory=list)
    resources: List[str] = Field(default_factory=list)


TreeNode.model_rebuild()
