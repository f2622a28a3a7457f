# wtt/core/resource_registry.py
"""
Lookup of externally owned resources.

The hierarchy store only keeps references to resources; their display
name is resolved once, when a reference is attached to a project.
"""
from typing import Dict, Optional

import requests

from wtt.core.logger import get_logger
from wtt.utils.exceptions import ExternalServiceError, NotFoundError

logger = get_logger(__name__)


class ResourceRegistry:
    """Resolve an external resource id to its display name."""

    def resolve_resource_name(self, resource_id: str) -> str:
        raise NotImplementedError


class InMemoryResourceRegistry(ResourceRegistry):
    """Registry backed by a plain id -> name mapping."""

    def __init__(self, names: Optional[Dict[str, str]] = None):
        self.names: Dict[str, str] = dict(names or {})

    def register(self, resource_id: str, name: str) -> None:
        self.names[resource_id] = name

    def resolve_resource_name(self, resource_id: str) -> str:
        name = self.names.get(resource_id)
        if name is None:
            raise NotFoundError(f"resource with ID <{resource_id}> was not found.")
        return name


class HttpResourceRegistry(ResourceRegistry):
    """
    Registry backed by the resource service REST API.

    Expects GET {base_url}/{resource_id} to return a JSON object with either
    a "name" field or "first_name" / "last_name" fields.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def resolve_resource_name(self, resource_id: str) -> str:
        """
        Fetch a resource and derive its display name.

        Args:
            resource_id: Id of the resource in the resource service

        Returns:
            Display name of the resource

        Raises:
            NotFoundError: If the resource service does not know the id
            ExternalServiceError: If the service fails, times out or returns garbage
        """
        url = f"{self.base_url}/{resource_id}"
        headers = {"Accept": "application/json"}

        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout:
            logger.error(f"Resource service timed out for {resource_id}")
            raise ExternalServiceError(f"resource service timed out resolving <{resource_id}>")
        except requests.exceptions.RequestException as e:
            logger.error(f"Resource service request failed for {resource_id}: {e}")
            raise ExternalServiceError(f"resource service unreachable: {e}")

        if response.status_code == 404:
            raise NotFoundError(f"resource with ID <{resource_id}> was not found.")
        if response.status_code >= 400:
            logger.error(f"Resource service returned {response.status_code} for {resource_id}")
            raise ExternalServiceError(
                f"resource service returned HTTP {response.status_code} for <{resource_id}>"
            )

        try:
            body = response.json()
        except ValueError:
            raise ExternalServiceError(f"resource service returned invalid JSON for <{resource_id}>")

        name = self._display_name(body)
        if not name:
            raise ExternalServiceError(f"resource <{resource_id}> has no display name")

        logger.debug(f"Resolved resource {resource_id} -> {name}")
        return name

    @staticmethod
    def _display_name(body) -> str:
        if not isinstance(body, dict):
            return ""
        if body.get("name"):
            return str(body["name"]).strip()
        parts = [body.get("first_name"), body.get("last_name")]
        return " ".join(str(p).strip() for p in parts if p)
