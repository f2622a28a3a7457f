from .hierarchy_store import HierarchyStore
from .factory import build_store
from .tree import flatten, walk_postorder, walk_preorder

__all__ = [
    "HierarchyStore",
    "build_store",
    "flatten",
    "walk_preorder",
    "walk_postorder",
]
