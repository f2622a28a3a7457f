# wtt/services/hierarchy_store.py
"""
HierarchyStore - companies, nested projects and resource references.

The tree is stored arena-style: three id-keyed indexes (companies, projects,
resource refs) hold every node, parents list their children by id, and a
parent map answers child -> parent lookups. Every operation runs under one
re-entrant lock per store, so readers never see the tree and the indexes
out of step.

Each successful mutation ends with a best-effort save of the full snapshot;
a failed save is logged and the in-memory state stays authoritative.
"""
import threading
import uuid
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from wtt.config import settings
from wtt.core.logger import get_logger
from wtt.core.persistence import PersistenceGateway
from wtt.core.resource_registry import ResourceRegistry
from wtt.models.nodes import CompanyNode, ParentKind, ParentRef, ProjectNode
from wtt.schemas import (
    AuditedModel, CompanyModel, CompanySnapshot, ProjectModel,
    ProjectSnapshot, ResourceRefModel, TreeNode
)
from wtt.services.tree import flatten, walk_postorder, walk_preorder
from wtt.utils.datetime_utils import get_utc_now
from wtt.utils.exceptions import (
    DuplicateError, InternalConsistencyError, NotFoundError, ValidationError
)
from wtt.utils.validators import paginate, reject_client_id, require_non_empty

logger = get_logger(__name__)

M = TypeVar('M', bound=BaseModel)


def _coerce(model_cls: Type[M], data: Union[M, Dict[str, Any]]) -> M:
    """Accept a model instance or a plain dict; always return a private copy."""
    if isinstance(data, model_cls):
        return data.model_copy(deep=True)
    if isinstance(data, dict):
        try:
            return model_cls.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid {model_cls.__name__} payload: {e}")
    raise ValidationError(f"Expected {model_cls.__name__} or dict, got {type(data).__name__}")


def _title_key(model):
    return (model.title, model.id)


def _resource_key(model: ResourceRefModel):
    return (model.resource_name, model.id)


class HierarchyStore:
    """In-memory company -> project -> resource-ref hierarchy."""

    def __init__(
        self,
        persistence: PersistenceGateway,
        registry: ResourceRegistry,
        companies: Optional[List[CompanySnapshot]] = None,
        default_principal: Optional[str] = None,
    ):
        """
        Args:
            persistence: Snapshot gateway; loaded from when companies is None
            registry: Resolves external resource names for add_resource_ref
            companies: Initial snapshot (skips persistence.load_snapshot)
            default_principal: Audit principal when an operation gets none
        """
        self.persistence = persistence
        self.registry = registry
        self.default_principal = default_principal or settings.default_principal

        self._lock = threading.RLock()
        self._companies: Dict[str, CompanyNode] = {}
        self._projects: Dict[str, ProjectNode] = {}
        self._resources: Dict[str, ResourceRefModel] = {}
        self._parents: Dict[str, ParentRef] = {}

        if companies is None:
            companies = persistence.load_snapshot()
        self._load(companies)

    # ==================== COMPANIES ====================

    def list_companies(self, offset: int = 0, limit: Optional[int] = None) -> List[CompanyModel]:
        """Companies sorted by (title, id), sliced to [offset, offset + limit)."""
        with self._lock:
            models = sorted((node.model for node in self._companies.values()), key=_title_key)
            page = paginate(models, offset, limit)
            logger.debug(f"list_companies({offset}, {limit}) -> {len(page)} of {len(models)}")
            return [m.model_copy(deep=True) for m in page]

    def list_companies_as_tree(self) -> List[TreeNode]:
        """One tree view per company, in list_companies order."""
        with self._lock:
            nodes = sorted(self._companies.values(), key=lambda n: _title_key(n.model))
            return [self._company_tree(node) for node in nodes]

    def create_company(
        self,
        data: Union[CompanyModel, Dict[str, Any]],
        principal: Optional[str] = None
    ) -> CompanyModel:
        """
        Create a new company.

        Args:
            data: Company payload; id must be empty
            principal: Creator recorded in the audit fields

        Returns:
            The stored company with id and audit fields assigned

        Raises:
            ValidationError: If an id is supplied or title/org_id are missing
        """
        company = _coerce(CompanyModel, data)
        reject_client_id(company.id, "company")
        self._validate_company(company)

        with self._lock:
            self._stamp_created(company, principal)
            self._companies[company.id] = CompanyNode(model=company)
            logger.info(f"✓ Company created: {company.id} '{company.title}'")
            self._persist()
            return company.model_copy(deep=True)

    def read_company(self, company_id: str) -> CompanyModel:
        with self._lock:
            return self._get_company(company_id).model.model_copy(deep=True)

    def update_company(
        self,
        company_id: str,
        data: Union[CompanyModel, Dict[str, Any]],
        principal: Optional[str] = None
    ) -> CompanyModel:
        """
        Overwrite title, description and org_id of a company.

        created_at / created_by in the payload are ignored.

        Raises:
            NotFoundError: If the company does not exist
            ValidationError: If title/org_id are missing
        """
        with self._lock:
            node = self._get_company(company_id)
            incoming = _coerce(CompanyModel, data)
            self._validate_company(incoming)
            self._ignore_immutable(node.model, incoming, "company")
            node.model.title = incoming.title
            node.model.description = incoming.description
            node.model.org_id = incoming.org_id
            self._stamp_modified(node.model, principal)
            logger.info(f"✓ Company updated: {company_id}")
            self._persist()
            return node.model.model_copy(deep=True)

    def delete_company(self, company_id: str) -> None:
        """
        Delete a company together with all of its projects and resource refs.

        Raises:
            NotFoundError: If the company does not exist
            InternalConsistencyError: If an index entry of the subtree is missing
        """
        with self._lock:
            node = self._get_company(company_id)
            top_level = list(node.project_ids)
            self._check_indexed(list(walk_preorder(top_level, self._child_ids)))

            for project_id in top_level:
                self.remove_project_subtree(project_id)
                self._unindex_project(project_id)
            node.project_ids.clear()

            if self._companies.pop(company_id, None) is None:
                raise InternalConsistencyError(
                    f"company <{company_id}> can not be removed, because it does not exist in the index"
                )
            logger.info(f"✓ Company deleted: {company_id}")
            self._persist()

    def count_companies(self) -> int:
        with self._lock:
            return len(self._companies)

    def read_as_tree(self, company_id: str) -> TreeNode:
        """Nested view of a company: projects at any depth with their resource-ref ids."""
        with self._lock:
            return self._company_tree(self._get_company(company_id))

    # ==================== PROJECTS ====================

    def list_projects(self, company_id: str, offset: int = 0, limit: Optional[int] = None) -> List[ProjectModel]:
        """Top-level projects of a company (no subprojects), sorted and sliced."""
        with self._lock:
            company = self._get_company(company_id)
            return self._list_children(company.project_ids, offset, limit)

    def list_all_projects(self, company_id: str, offset: int = 0, limit: Optional[int] = None) -> List[ProjectModel]:
        """Every project of a company at any depth, flattened in tree order."""
        with self._lock:
            company = self._get_company(company_id)
            projects = flatten(self._project_snapshots(company.project_ids))
            return paginate(projects, offset, limit)

    def create_project(
        self,
        company_id: str,
        data: Union[ProjectModel, Dict[str, Any]],
        principal: Optional[str] = None
    ) -> ProjectModel:
        """
        Create a top-level project under a company.

        Raises:
            NotFoundError: If the company does not exist
            ValidationError: If an id is supplied or the title is missing
        """
        project = self._new_project(data)

        with self._lock:
            company = self._get_company(company_id)
            self._stamp_created(project, principal)
            self._link_project(project, ParentRef(ParentKind.COMPANY, company_id), company.project_ids)
            logger.info(f"✓ Project created: {project.id} '{project.title}' in company {company_id}")
            self._persist()
            return project.model_copy(deep=True)

    def read_project(self, company_id: str, project_id: str) -> ProjectModel:
        with self._lock:
            return self._get_project_in_company(company_id, project_id).model.model_copy(deep=True)

    def update_project(
        self,
        company_id: str,
        project_id: str,
        data: Union[ProjectModel, Dict[str, Any]],
        principal: Optional[str] = None
    ) -> ProjectModel:
        with self._lock:
            node = self._get_project_in_company(company_id, project_id)
            incoming = _coerce(ProjectModel, data)
            self._validate_project(incoming)
            self._apply_project_update(node, incoming, principal)
            return node.model.model_copy(deep=True)

    def delete_project(self, company_id: str, project_id: str) -> None:
        """
        Delete a project (top-level or nested) and everything below it.

        Raises:
            NotFoundError: If the company or project does not exist
            InternalConsistencyError: If the project is an orphan or an index entry is missing
        """
        with self._lock:
            company = self._get_company(company_id)
            self._get_project_in_company(company_id, project_id)
            self._delete_project_node(company, project_id)
            self._persist()

    def count_projects(self, company_id: str) -> int:
        with self._lock:
            return len(self._get_company(company_id).project_ids)

    # ==================== SUBPROJECTS ====================

    def list_subprojects(
        self,
        company_id: str,
        project_id: str,
        offset: int = 0,
        limit: Optional[int] = None
    ) -> List[ProjectModel]:
        """Direct subprojects of a project, sorted and sliced."""
        with self._lock:
            parent = self._get_project_in_company(company_id, project_id)
            return self._list_children(parent.project_ids, offset, limit)

    def create_subproject(
        self,
        company_id: str,
        project_id: str,
        data: Union[ProjectModel, Dict[str, Any]],
        principal: Optional[str] = None
    ) -> ProjectModel:
        project = self._new_project(data)

        with self._lock:
            parent = self._get_project_in_company(company_id, project_id)
            self._stamp_created(project, principal)
            self._link_project(project, ParentRef(ParentKind.PROJECT, project_id), parent.project_ids)
            logger.info(f"✓ Subproject created: {project.id} '{project.title}' under project {project_id}")
            self._persist()
            return project.model_copy(deep=True)

    def read_subproject(self, company_id: str, project_id: str, subproject_id: str) -> ProjectModel:
        with self._lock:
            return self._get_subproject(company_id, project_id, subproject_id).model.model_copy(deep=True)

    def update_subproject(
        self,
        company_id: str,
        project_id: str,
        subproject_id: str,
        data: Union[ProjectModel, Dict[str, Any]],
        principal: Optional[str] = None
    ) -> ProjectModel:
        with self._lock:
            node = self._get_subproject(company_id, project_id, subproject_id)
            incoming = _coerce(ProjectModel, data)
            self._validate_project(incoming)
            self._apply_project_update(node, incoming, principal)
            return node.model.model_copy(deep=True)

    def delete_subproject(self, company_id: str, project_id: str, subproject_id: str) -> None:
        with self._lock:
            company = self._get_company(company_id)
            self._get_subproject(company_id, project_id, subproject_id)
            self._delete_project_node(company, subproject_id)
            self._persist()

    def count_subprojects(self, company_id: str, project_id: str) -> int:
        with self._lock:
            return len(self._get_project_in_company(company_id, project_id).project_ids)

    # ==================== RESOURCE REFS ====================

    def list_resources(
        self,
        company_id: str,
        project_id: str,
        offset: int = 0,
        limit: Optional[int] = None
    ) -> List[ResourceRefModel]:
        """Resource refs of a project sorted by (resource_name, id), sliced."""
        with self._lock:
            node = self._get_project_in_company(company_id, project_id)
            models = sorted((self._resource(rid) for rid in node.resource_ids), key=_resource_key)
            return [m.model_copy(deep=True) for m in paginate(models, offset, limit)]

    def add_resource_ref(
        self,
        company_id: str,
        project_id: str,
        data: Union[ResourceRefModel, Dict[str, Any]],
        principal: Optional[str] = None
    ) -> ResourceRefModel:
        """
        Attach an external resource to a project.

        The display name is resolved through the resource registry outside
        the store lock; the parent path is re-validated before linking.

        Raises:
            NotFoundError: If a path id or the external resource does not exist
            ValidationError: If an id is supplied or resource_id is missing
            DuplicateError: If the resource is already attached to the project
        """
        ref = _coerce(ResourceRefModel, data)
        reject_client_id(ref.id, "resource ref")
        require_non_empty(ref.resource_id, "resource_id", "resource ref")

        with self._lock:
            self._check_not_attached(self._get_project_in_company(company_id, project_id), ref.resource_id)

        name = self.registry.resolve_resource_name(ref.resource_id)

        with self._lock:
            node = self._get_project_in_company(company_id, project_id)
            self._check_not_attached(node, ref.resource_id)
            ref.resource_name = name
            self._stamp_created(ref, principal)
            self._resources[ref.id] = ref
            node.resource_ids.append(ref.id)
            logger.info(f"✓ Resource {ref.resource_id} ('{name}') attached to project {project_id} as {ref.id}")
            self._persist()
            return ref.model_copy(deep=True)

    def remove_resource_ref(self, company_id: str, project_id: str, resource_ref_id: str) -> None:
        """
        Detach a resource ref from a project.

        Raises:
            NotFoundError: If the ref is not attached to this project
            InternalConsistencyError: If the ref is attached but missing from the index
        """
        with self._lock:
            node = self._get_project_in_company(company_id, project_id)
            if resource_ref_id not in node.resource_ids:
                raise NotFoundError(
                    f"resource ref <{resource_ref_id}> was not found in project <{project_id}>."
                )
            if resource_ref_id not in self._resources:
                raise InternalConsistencyError(
                    f"resource ref <{resource_ref_id}> can not be removed, because it does not exist in the index"
                )
            node.resource_ids.remove(resource_ref_id)
            del self._resources[resource_ref_id]
            logger.info(f"✓ Resource ref {resource_ref_id} removed from project {project_id}")
            self._persist()

    def count_resources(self, company_id: str, project_id: str) -> int:
        with self._lock:
            return len(self._get_project_in_company(company_id, project_id).resource_ids)

    # ==================== CASCADE ====================

    def remove_project_subtree(self, project_id: str) -> List[str]:
        """
        Unindex every descendant of a project, children before parents.

        Each descendant's resource refs and its own project-index entry are
        removed; the project itself stays, with an empty subproject list, for
        the caller to remove from its parent.

        Returns:
            Ids of the removed descendants in removal order

        Raises:
            NotFoundError: If the project does not exist
            InternalConsistencyError: If a descendant is missing from an index
        """
        with self._lock:
            node = self._get_project(project_id)
            descendants = list(walk_postorder(node.project_ids, self._child_ids))
            self._check_indexed(descendants)

            for descendant_id in descendants:
                self._unindex_project(descendant_id)
            node.project_ids.clear()

            if descendants:
                logger.debug(f"Removed {len(descendants)} descendants of project {project_id}")
            return descendants

    # ==================== SNAPSHOTS ====================

    def snapshot(self) -> List[CompanySnapshot]:
        """Nested copy of the whole store, in company creation order."""
        with self._lock:
            return [
                CompanySnapshot(
                    company=node.model.model_copy(deep=True),
                    projects=self._project_snapshots(node.project_ids),
                )
                for node in self._companies.values()
            ]

    def index_sizes(self) -> Dict[str, int]:
        with self._lock:
            return {
                "companies": len(self._companies),
                "projects": len(self._projects),
                "resources": len(self._resources),
            }

    def verify_integrity(self) -> None:
        """
        Check that the indexes and the tree describe the same hierarchy.

        Raises:
            InternalConsistencyError: On any unreachable, duplicated or dangling entry
        """
        with self._lock:
            seen_projects: Dict[str, ParentRef] = {}
            seen_resources = set()

            for company_id, company in self._companies.items():
                pending = [(pid, ParentRef(ParentKind.COMPANY, company_id)) for pid in company.project_ids]
                while pending:
                    project_id, parent = pending.pop()
                    if project_id in seen_projects:
                        raise InternalConsistencyError(f"project <{project_id}> is linked more than once")
                    if self._parents.get(project_id) != parent:
                        raise InternalConsistencyError(f"project <{project_id}> has a stale parent entry")
                    seen_projects[project_id] = parent
                    node = self._projects.get(project_id)
                    if node is None:
                        raise InternalConsistencyError(f"project <{project_id}> is linked but not indexed")
                    for rid in node.resource_ids:
                        if rid in seen_resources or rid not in self._resources:
                            raise InternalConsistencyError(f"resource ref <{rid}> is duplicated or not indexed")
                        seen_resources.add(rid)
                    pending.extend((child, ParentRef(ParentKind.PROJECT, project_id)) for child in node.project_ids)

            orphans = set(self._projects) - set(seen_projects)
            if orphans:
                raise InternalConsistencyError(f"orphan projects in index: {sorted(orphans)}")
            if set(self._parents) != set(seen_projects):
                raise InternalConsistencyError("parent map does not match the tree")
            if set(self._resources) != seen_resources:
                raise InternalConsistencyError("orphan resource refs in index")

    # ==================== INTERNALS ====================

    def _load(self, companies: Iterable[CompanySnapshot]) -> None:
        """Index a nested snapshot. Missing ids are assigned, repeated ids rejected."""
        for snap in companies:
            company = snap.company.model_copy(deep=True)
            self._ensure_id(company, "company")
            if company.id in self._companies:
                raise DuplicateError(f"company with ID {company.id} exists already.")
            self._companies[company.id] = CompanyNode(model=company)

            pending = [
                (child, ParentRef(ParentKind.COMPANY, company.id)) for child in reversed(snap.projects)
            ]
            while pending:
                project_snap, parent = pending.pop()
                project = project_snap.project.model_copy(deep=True)
                self._ensure_id(project, "project")
                if project.id in self._projects:
                    raise DuplicateError(f"project with ID {project.id} exists already.")
                node = ProjectNode(model=project)
                self._projects[project.id] = node
                self._parents[project.id] = parent
                self._sibling_ids(parent).append(project.id)

                for resource in project_snap.resources:
                    ref = resource.model_copy(deep=True)
                    self._ensure_id(ref, "resource ref")
                    if ref.id in self._resources:
                        raise DuplicateError(f"resource ref with ID {ref.id} exists already.")
                    self._resources[ref.id] = ref
                    node.resource_ids.append(ref.id)

                pending.extend(
                    (child, ParentRef(ParentKind.PROJECT, project.id)) for child in reversed(project_snap.projects)
                )

        logger.info(
            f"✓ Loaded {len(self._companies)} companies, {len(self._projects)} projects, "
            f"{len(self._resources)} resource refs"
        )

    def _ensure_id(self, model: AuditedModel, entity: str) -> None:
        if not model.id:
            model.id = self._new_id()
            logger.warning(f"Snapshot {entity} without id, assigned {model.id}")

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    def _stamp_created(self, model: AuditedModel, principal: Optional[str]) -> None:
        now = get_utc_now()
        who = principal or self.default_principal
        model.id = self._new_id()
        model.created_at = now
        model.created_by = who
        model.modified_at = now
        model.modified_by = who

    def _stamp_modified(self, model: AuditedModel, principal: Optional[str]) -> None:
        model.modified_at = get_utc_now()
        model.modified_by = principal or self.default_principal

    @staticmethod
    def _ignore_immutable(current: AuditedModel, incoming: AuditedModel, entity: str) -> None:
        if incoming.id and incoming.id != current.id:
            logger.warning(f"{entity} <{current.id}>: ignoring id <{incoming.id}> in update payload")
        for field in ("created_at", "created_by"):
            value = getattr(incoming, field)
            if value is not None and value != getattr(current, field):
                logger.warning(f"{entity} <{current.id}>: ignoring change of immutable field {field}")

    @staticmethod
    def _validate_company(company: CompanyModel) -> None:
        require_non_empty(company.title, "title", "company")
        require_non_empty(company.org_id, "org_id", "company")

    @staticmethod
    def _validate_project(project: ProjectModel) -> None:
        require_non_empty(project.title, "title", "project")

    def _new_project(self, data: Union[ProjectModel, Dict[str, Any]]) -> ProjectModel:
        project = _coerce(ProjectModel, data)
        reject_client_id(project.id, "project")
        self._validate_project(project)
        return project

    def _apply_project_update(self, node: ProjectNode, incoming: ProjectModel, principal: Optional[str]) -> None:
        self._ignore_immutable(node.model, incoming, "project")
        node.model.title = incoming.title
        node.model.description = incoming.description
        self._stamp_modified(node.model, principal)
        logger.info(f"✓ Project updated: {node.model.id}")
        self._persist()

    def _link_project(self, project: ProjectModel, parent: ParentRef, siblings: List[str]) -> None:
        # node is complete before it becomes reachable
        self._projects[project.id] = ProjectNode(model=project)
        self._parents[project.id] = parent
        siblings.append(project.id)

    def _delete_project_node(self, company: CompanyNode, project_id: str) -> None:
        siblings = self._detach_target(company, project_id)
        self._check_indexed([project_id])

        removed = self.remove_project_subtree(project_id)
        self._unindex_project(project_id)
        siblings.remove(project_id)
        logger.info(f"✓ Project deleted: {project_id} (+{len(removed)} subprojects)")

    def _detach_target(self, company: CompanyNode, project_id: str) -> List[str]:
        """Child list the project must be removed from: company first, then parent project."""
        if project_id in company.project_ids:
            return company.project_ids

        parent = self._parents.get(project_id)
        if parent is not None and parent.kind is ParentKind.PROJECT:
            parent_node = self._projects.get(parent.id)
            if parent_node is not None and project_id in parent_node.project_ids:
                return parent_node.project_ids

        raise InternalConsistencyError(
            f"project <{project_id}> can not be removed, because it is an orphan."
        )

    def _check_indexed(self, project_ids: Iterable[str]) -> None:
        for project_id in project_ids:
            node = self._projects.get(project_id)
            if node is None:
                raise InternalConsistencyError(
                    f"project <{project_id}> can not be removed, because it does not exist in the index"
                )
            for rid in node.resource_ids:
                if rid not in self._resources:
                    raise InternalConsistencyError(
                        f"resource ref <{rid}> of project <{project_id}> does not exist in the index"
                    )

    def _unindex_project(self, project_id: str) -> None:
        node = self._projects.pop(project_id)
        for rid in node.resource_ids:
            del self._resources[rid]
        self._parents.pop(project_id, None)

    def _get_company(self, company_id: str) -> CompanyNode:
        node = self._companies.get(company_id)
        if node is None:
            raise NotFoundError(f"company with ID <{company_id}> was not found.")
        return node

    def _get_project(self, project_id: str) -> ProjectNode:
        node = self._projects.get(project_id)
        if node is None:
            raise NotFoundError(f"project with ID <{project_id}> was not found.")
        return node

    def _get_project_in_company(self, company_id: str, project_id: str) -> ProjectNode:
        self._get_company(company_id)
        node = self._get_project(project_id)
        if self._owning_company(project_id) != company_id:
            raise NotFoundError(f"project <{project_id}> was not found in company <{company_id}>.")
        return node

    def _get_subproject(self, company_id: str, project_id: str, subproject_id: str) -> ProjectNode:
        self._get_project_in_company(company_id, project_id)
        node = self._get_project(subproject_id)
        if self._parents.get(subproject_id) != ParentRef(ParentKind.PROJECT, project_id):
            raise NotFoundError(f"project <{subproject_id}> is not a subproject of <{project_id}>.")
        return node

    def _owning_company(self, project_id: str) -> str:
        parent = self._parents.get(project_id)
        while parent is not None and parent.kind is ParentKind.PROJECT:
            parent = self._parents.get(parent.id)
        if parent is None:
            raise InternalConsistencyError(f"project <{project_id}> is an orphan.")
        return parent.id

    def _sibling_ids(self, parent: ParentRef) -> List[str]:
        if parent.kind is ParentKind.COMPANY:
            return self._get_company(parent.id).project_ids
        return self._get_project(parent.id).project_ids

    def _child_ids(self, project_id: str) -> List[str]:
        return self._child_node(project_id).project_ids

    def _resource(self, resource_ref_id: str) -> ResourceRefModel:
        ref = self._resources.get(resource_ref_id)
        if ref is None:
            raise InternalConsistencyError(
                f"resource ref <{resource_ref_id}> is attached but missing from the index"
            )
        return ref

    def _check_not_attached(self, node: ProjectNode, resource_id: str) -> None:
        for rid in node.resource_ids:
            if self._resource(rid).resource_id == resource_id:
                raise DuplicateError(
                    f"resource <{resource_id}> is already attached to project <{node.model.id}>."
                )

    def _list_children(self, project_ids: List[str], offset: int, limit: Optional[int]) -> List[ProjectModel]:
        models = sorted((self._child_node(pid).model for pid in project_ids), key=_title_key)
        return [m.model_copy(deep=True) for m in paginate(models, offset, limit)]

    def _child_node(self, project_id: str) -> ProjectNode:
        node = self._projects.get(project_id)
        if node is None:
            raise InternalConsistencyError(
                f"project <{project_id}> is linked in the tree but missing from the index"
            )
        return node

    def _company_tree(self, company: CompanyNode) -> TreeNode:
        nodes: Dict[str, TreeNode] = {}
        order = list(walk_preorder(company.project_ids, self._child_ids))
        for project_id in order:
            project = self._projects[project_id]
            nodes[project_id] = TreeNode(
                id=project_id,
                title=project.model.title,
                resources=list(project.resource_ids),
            )
        for project_id in order:
            nodes[project_id].children = [nodes[c] for c in self._projects[project_id].project_ids]

        return TreeNode(
            id=company.model.id,
            title=company.model.title,
            children=[nodes[p] for p in company.project_ids],
        )

    def _project_snapshots(self, root_ids: List[str]) -> List[ProjectSnapshot]:
        snaps: Dict[str, ProjectSnapshot] = {}
        order = list(walk_preorder(root_ids, self._child_ids))
        for project_id in order:
            project = self._projects[project_id]
            snaps[project_id] = ProjectSnapshot(
                project=project.model.model_copy(deep=True),
                resources=[self._resource(rid).model_copy(deep=True) for rid in project.resource_ids],
            )
        for project_id in order:
            snaps[project_id].projects = [snaps[c] for c in self._projects[project_id].project_ids]
        return [snaps[p] for p in root_ids]

    def _persist(self) -> None:
        """Best-effort save; failures are logged, never raised."""
        try:
            self.persistence.save_snapshot(self.snapshot())
        except Exception as e:
            logger.error(f"Failed to persist snapshot: {e}", exc_info=True)
