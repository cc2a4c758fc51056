"""
Health Check Endpoints
=============================================================================
  /health   liveness: the process is up
  /ready    readiness: the configured record store answers a read
  /metrics  Prometheus exposition of ops_portal/observability/metrics.py

A store that is down makes /ready report "degraded" (still HTTP 200, with
the failure in `checks`) so the probe output says WHICH dependency failed.
=============================================================================
"""

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ops_portal.adapters.base import DataAdapter
from ops_portal.auth.dependencies import get_adapter, get_settings
from ops_portal.config import Settings
from ops_portal.errors import StoreError

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)):
    return {"status": "ok", "service": settings.app_name}


@router.get("/ready")
async def readiness_check(adapter: DataAdapter = Depends(get_adapter)):
    checks = {}

    try:
        await adapter.list_tools()
        checks["store"] = "ok"
    except StoreError as e:
        checks["store"] = f"error: {e.message}"

    all_ok = all(v == "ok" for v in checks.values())
    return {
        "status": "ok" if all_ok else "degraded",
        "adapter": adapter.kind,
        "mock": adapter.is_mock,
        "checks": checks,
    }


@router.get("/metrics", include_in_schema=False)
async def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
