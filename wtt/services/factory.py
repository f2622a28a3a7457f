# wtt/services/factory.py
"""Build a HierarchyStore from settings."""
from typing import Optional

from wtt.config import Settings, settings as default_settings
from wtt.core.persistence import JsonFilePersistence, NullPersistence, PersistenceGateway
from wtt.core.resource_registry import HttpResourceRegistry, InMemoryResourceRegistry, ResourceRegistry
from wtt.core.logger import get_logger
from wtt.services.hierarchy_store import HierarchyStore

logger = get_logger(__name__)


def build_store(
    config: Optional[Settings] = None,
    registry: Optional[ResourceRegistry] = None
) -> HierarchyStore:
    """
    Wire persistence and resource registry from settings into a store.

    Args:
        config: Settings to use (default: module-level settings)
        registry: Overrides the registry derived from resource_service_url

    Returns:
        A loaded HierarchyStore
    """
    config = config or default_settings

    persistence: PersistenceGateway
    if config.persistent:
        persistence = JsonFilePersistence(config.data_path, config.seed_path)
    else:
        persistence = NullPersistence(config.seed_path)

    if registry is None:
        if config.resource_service_url:
            registry = HttpResourceRegistry(config.resource_service_url, config.resource_service_timeout)
        else:
            logger.warning("WTT_RESOURCE_SERVICE_URL not configured - resource names resolve from memory only")
            registry = InMemoryResourceRegistry()

    return HierarchyStore(persistence, registry, default_principal=config.default_principal)
