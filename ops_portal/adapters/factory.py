"""
Adapter selection, evaluated once when the application is built.

    store base id + token  ->  RemoteStoreAdapter
    database_url           ->  SqlAdapter
    demo_mode              ->  InMemoryAdapter
    otherwise              ->  NullAdapter

The returned instance is stored on app.state and injected everywhere; the
portal never switches stores at runtime.
"""

from ops_portal.adapters.base import DataAdapter
from ops_portal.adapters.memory import InMemoryAdapter
from ops_portal.adapters.null import NullAdapter
from ops_portal.adapters.remote import RemoteStoreAdapter
from ops_portal.adapters.sql import SqlAdapter
from ops_portal.config import Settings
from ops_portal.db.engine import build_engine
from ops_portal.observability.logging import get_logger

logger = get_logger(__name__)


def create_adapter(settings: Settings) -> DataAdapter:
    if settings.has_store_credentials:
        adapter: DataAdapter = RemoteStoreAdapter(
            api_url=settings.store_api_url,
            base_id=settings.store_base_id,
            token=settings.store_token,
            write_enabled=settings.store_write_enabled,
            timeout=settings.store_timeout_seconds,
        )
    elif settings.database_url:
        adapter = SqlAdapter(
            build_engine(settings.database_url, echo=settings.debug),
            demo_mode=settings.demo_mode,
        )
    elif settings.demo_mode:
        adapter = InMemoryAdapter()
    else:
        adapter = NullAdapter()
        logger.warning("no_record_store_configured")

    logger.info("data_adapter_selected", kind=adapter.kind, is_mock=adapter.is_mock)
    return adapter
