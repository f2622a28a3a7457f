# wtt/models/__init__.py
from .nodes import CompanyNode, ProjectNode, ParentKind, ParentRef

__all__ = ["CompanyNode", "ProjectNode", "ParentKind", "ParentRef"]
