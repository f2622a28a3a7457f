"""
Shared pytest fixtures for the hierarchy store tests.

    def test_something(store, acme):
        project = store.create_project(acme.id, {"title": "Phase1"})
"""
from typing import List, Optional

import pytest

from wtt.core.persistence import PersistenceGateway
from wtt.core.resource_registry import InMemoryResourceRegistry
from wtt.schemas import CompanyModel, CompanySnapshot, ProjectModel, ProjectSnapshot, ResourceRefModel
from wtt.services import HierarchyStore


class RecordingPersistence(PersistenceGateway):
    """Keeps every saved snapshot in memory; optionally fails on save."""

    def __init__(self, companies: Optional[List[CompanySnapshot]] = None, fail: bool = False):
        self.companies = companies or []
        self.fail = fail
        self.saved: List[List[CompanySnapshot]] = []

    def load_snapshot(self) -> List[CompanySnapshot]:
        return self.companies

    def save_snapshot(self, companies: List[CompanySnapshot]) -> None:
        if self.fail:
            raise OSError("disk full")
        self.saved.append(companies)


def deep_chain(depth: int) -> List[CompanySnapshot]:
    """One company with a single chain of depth projects; the leaf carries one resource ref."""
    node = ProjectSnapshot(
        project=ProjectModel(id=f"p-{depth - 1}", title=f"level {depth - 1}"),
        resources=[ResourceRefModel(id="r-leaf", resource_id="res-42", resource_name="Printer")],
    )
    for level in range(depth - 2, -1, -1):
        node = ProjectSnapshot(project=ProjectModel(id=f"p-{level}", title=f"level {level}"), projects=[node])
    return [CompanySnapshot(company=CompanyModel(id="c-1", title="Deep", org_id="org"), projects=[node])]


@pytest.fixture
def registry():
    return InMemoryResourceRegistry({
        "res-42": "Printer",
        "res-7": "Beamer",
        "res-8": "Anna Muster",
    })


@pytest.fixture
def persistence():
    return RecordingPersistence()


@pytest.fixture
def store(persistence, registry):
    return HierarchyStore(persistence, registry, default_principal="tester")


@pytest.fixture
def acme(store) -> CompanyModel:
    return store.create_company({"title": "Acme", "org_id": "org-1"})
