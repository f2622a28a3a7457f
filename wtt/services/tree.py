# wtt/services/tree.py
"""
Iterative traversals over the project hierarchy.

Hierarchy depth is caller-controlled, so nothing here recurses: every walk
uses an explicit stack and visits each node once.
"""
from typing import Callable, Iterable, Iterator, List, Sequence, TypeVar

from wtt.schemas.project import ProjectModel
from wtt.schemas.snapshot import ProjectSnapshot

N = TypeVar('N')


def walk_preorder(roots: Sequence[N], children: Callable[[N], Sequence[N]]) -> Iterator[N]:
    """
    Yield every node reachable from roots, parents before children.

    Siblings are yielded in their stored order.
    """
    stack = list(reversed(roots))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(children(node)))


def walk_postorder(roots: Sequence[N], children: Callable[[N], Sequence[N]]) -> Iterator[N]:
    """
    Yield every node reachable from roots, children before parents.

    Siblings are yielded in their stored order.
    """
    stack = [(node, False) for node in reversed(roots)]
    while stack:
        node, expanded = stack.pop()
        if expanded:
            yield node
            continue
        stack.append((node, True))
        stack.extend((child, False) for child in reversed(children(node)))


def flatten(tree: Iterable[ProjectSnapshot]) -> List[ProjectModel]:
    """
    Flatten a project tree into a list, one pruned entry per node.

    Args:
        tree: Top-level project snapshots (children nested under .projects)

    Returns:
        Copies of the project models in pre-order
    """
    return [
        node.project.model_copy(deep=True)
        for node in walk_preorder(list(tree), lambda node: node.projects)
    ]
