"""Shared singletons handed to routers through FastAPI dependencies."""
from __future__ import annotations

import logging
from typing import Optional

from ..core.catalog import CatalogError, CatalogStore, StaticCatalogProvider
from ..core.coordinator import ExecutionCoordinator, Executor
from ..core.settings_store import SettingsStore, get_settings_store
from ..services.config_service import execution_timeout, load_test_config, load_uploaded_methods
from ..services.intent_service import IntentService
from ..services.maven_executor import MavenExecutor
from ..services.run_history import RunHistory, get_run_history

logger = logging.getLogger(__name__)

_catalog_store: Optional[CatalogStore] = None
_coordinator: Optional[ExecutionCoordinator] = None
_intent_service: Optional[IntentService] = None


def settings_store() -> SettingsStore:
    return get_settings_store()


def catalog_store() -> CatalogStore:
    """Catalog seeded from the methods persisted by the last upload or scan."""
    global _catalog_store
    if _catalog_store is None:
        store = CatalogStore()
        try:
            store.load(StaticCatalogProvider(load_uploaded_methods(get_settings_store())))
        except CatalogError as exc:
            logger.warning("[Catalog] Ignoring persisted methods: %s", exc)
        _catalog_store = store
    return _catalog_store


def maven_executor() -> Executor:
    """Executor built from the current test configuration, so edits apply to the next run."""
    config = load_test_config(get_settings_store())
    return MavenExecutor(config.maven_command, execution_timeout())


def coordinator() -> ExecutionCoordinator:
    """One coordinator per process so its lock covers every run."""
    global _coordinator
    if _coordinator is None:
        _coordinator = ExecutionCoordinator(maven_executor())
    return _coordinator


def intent_service() -> IntentService:
    global _intent_service
    if _intent_service is None:
        _intent_service = IntentService()
    return _intent_service


def run_history() -> RunHistory:
    return get_run_history()
