"""Best-effort audit trail writes."""

import json
from typing import Any

from ops_portal.adapters.base import DataAdapter
from ops_portal.errors import StoreError
from ops_portal.observability.logging import get_logger

logger = get_logger(__name__)


async def record_audit(
    adapter: DataAdapter,
    action: str,
    performed_by: str,
    entity_type: str,
    entity_id: str,
    details: dict[str, Any] | None = None,
) -> bool:
    """
    Append an audit entry. Returns False (and logs) when the store refuses.

    Audit entries follow a write that already succeeded, so a failing audit
    store must not turn that success into an error.
    """
    try:
        await adapter.write_audit_log(
            {
                "action": action,
                "performed_by": performed_by,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "details_json": json.dumps(details or {}, default=str),
            }
        )
    except StoreError as e:
        logger.warning(
            "audit_write_failed",
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            error=e.message,
        )
        return False
    return True
