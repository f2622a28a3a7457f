# wtt/core/persistence.py
"""
Snapshot persistence for the hierarchy store.

The whole company list is written as one JSON document after every
mutation. On startup the persisted data file is loaded; if it does not
exist yet, the seed file is loaded instead and immediately written out as
the new data file.

On disk the hierarchy is stored flat (see wtt.schemas.snapshot), so
neither writing nor parsing the file depends on how deep projects nest.
"""
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from wtt.core.logger import get_logger
from wtt.schemas.snapshot import (
    CompanySnapshot, ProjectRecord, ProjectSnapshot, ResourceRecord, SnapshotRecords
)
from wtt.utils.exceptions import DuplicateError, PersistenceError

logger = get_logger(__name__)


def to_records(companies: List[CompanySnapshot]) -> SnapshotRecords:
    """Flatten nested company snapshots into parent-linked records, projects in pre-order."""
    records = SnapshotRecords()
    for snap in companies:
        records.companies.append(snap.company)
        stack = [(child, "company", snap.company.id) for child in reversed(snap.projects)]
        while stack:
            node, parent_kind, parent_id = stack.pop()
            project_id = node.project.id
            records.projects.append(
                ProjectRecord(parent_kind=parent_kind, parent_id=parent_id, project=node.project)
            )
            records.resources.extend(
                ResourceRecord(project_id=project_id, resource=ref) for ref in node.resources
            )
            stack.extend((child, "project", project_id) for child in reversed(node.projects))
    return records


def from_records(records: SnapshotRecords) -> List[CompanySnapshot]:
    """
    Rebuild nested company snapshots from flat records.

    Raises:
        DuplicateError: If a company or project id occurs twice
        PersistenceError: If a record points at a parent that precedes no record
    """
    companies: List[CompanySnapshot] = []
    by_company: Dict[str, CompanySnapshot] = {}
    by_project: Dict[str, ProjectSnapshot] = {}

    for company in records.companies:
        snap = CompanySnapshot(company=company)
        companies.append(snap)
        if company.id:
            if company.id in by_company:
                raise DuplicateError(f"company with ID {company.id} exists already.")
            by_company[company.id] = snap

    for record in records.projects:
        owners = by_company if record.parent_kind == "company" else by_project
        parent = owners.get(record.parent_id)
        if parent is None:
            raise PersistenceError(
                f"project <{record.project.id}> references unknown {record.parent_kind} <{record.parent_id}>"
            )
        snap = ProjectSnapshot(project=record.project)
        parent.projects.append(snap)
        if record.project.id:
            if record.project.id in by_project:
                raise DuplicateError(f"project with ID {record.project.id} exists already.")
            by_project[record.project.id] = snap

    for record in records.resources:
        parent = by_project.get(record.project_id)
        if parent is None:
            raise PersistenceError(
                f"resource ref <{record.resource.id}> references unknown project <{record.project_id}>"
            )
        parent.resources.append(record.resource)

    return companies


def read_snapshot_file(path: Path) -> List[CompanySnapshot]:
    """
    Parse a snapshot file.

    Raises:
        PersistenceError: If the file cannot be read or is not a valid snapshot
        DuplicateError: If the file repeats a company or project id
    """
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise PersistenceError(f"Cannot read {path}: {e}")

    if not raw.strip():
        logger.warning(f"Snapshot file {path} is empty")
        return []

    try:
        records = SnapshotRecords.model_validate_json(raw)
    except PydanticValidationError as e:
        raise PersistenceError(f"Invalid snapshot in {path}: {e}")

    companies = from_records(records)
    logger.info(
        f"✓ Imported {len(records.companies)} companies, {len(records.projects)} projects "
        f"from {path.name}"
    )
    return companies


class PersistenceGateway:
    """Load/save contract the store depends on."""

    def load_snapshot(self) -> List[CompanySnapshot]:
        raise NotImplementedError

    def save_snapshot(self, companies: List[CompanySnapshot]) -> None:
        raise NotImplementedError


class JsonFilePersistence(PersistenceGateway):
    """Persist the store as a pretty-printed JSON file."""

    def __init__(self, data_path: Union[str, Path], seed_path: Optional[Union[str, Path]] = None):
        self.data_path = Path(data_path)
        self.seed_path = Path(seed_path) if seed_path else None

    def load_snapshot(self) -> List[CompanySnapshot]:
        if self.data_path.exists():
            logger.info(f"Persistent data in {self.data_path} exists")
            return read_snapshot_file(self.data_path)

        if self.seed_path is not None and self.seed_path.exists():
            logger.info(f"Persistent data in {self.data_path} is missing -> seeding from {self.seed_path}")
            companies = read_snapshot_file(self.seed_path)
        else:
            logger.warning(f"Neither {self.data_path} nor a seed file exists, starting empty")
            companies = []

        self.save_snapshot(companies)
        return companies

    def save_snapshot(self, companies: List[CompanySnapshot]) -> None:
        payload = to_records(companies).model_dump_json(indent=2).encode("utf-8")
        self.data_path.parent.mkdir(parents=True, exist_ok=True)

        # Write to a sibling temp file and swap it in
        fd, tmp_name = tempfile.mkstemp(
            dir=str(self.data_path.parent),
            prefix=f".{self.data_path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.data_path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.debug(f"Exported {len(companies)} companies to {self.data_path}")


class NullPersistence(PersistenceGateway):
    """Non-persistent store: optionally seeded, never written."""

    def __init__(self, seed_path: Optional[Union[str, Path]] = None):
        self.seed_path = Path(seed_path) if seed_path else None

    def load_snapshot(self) -> List[CompanySnapshot]:
        if self.seed_path is not None and self.seed_path.exists():
            return read_snapshot_file(self.seed_path)
        return []

    def save_snapshot(self, companies: List[CompanySnapshot]) -> None:
        return None
