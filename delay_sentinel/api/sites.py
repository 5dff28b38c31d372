"""REST endpoints for registering sites and reading their delay history.

Paths:
    PUT /api/sites/{site_id}          register or replace a monitored site
    GET /api/sites/{site_id}/delays   delay events recorded for a site
    GET /api/sites/{site_id}/alerts   alerts emitted for a site
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException

from delay_sentinel.domain.site import Site
from delay_sentinel.store.repository import InMemoryDelayRepository


def create_sites_router(repository: InMemoryDelayRepository) -> APIRouter:
    """Factory that wires the site endpoints to the in-process repository."""

    router = APIRouter(prefix="/api/sites", tags=["sites"])

    @router.put("/{site_id}")
    async def put_site(site_id: str, site: Site) -> dict[str, Any]:
        if site.site_id != site_id:
            raise HTTPException(status_code=400, detail="site_id in path and body differ")
        await repository.add_site(site)
        return {"status": "ok", "site_id": site.site_id, "monitorable": site.is_monitorable}

    @router.get("/{site_id}/delays")
    async def list_delays(site_id: str) -> dict[str, Any]:
        delays = await repository.delays_for(site_id)
        return {
            "site_id": site_id,
            "delays": [d.model_dump(mode="json") for d in delays],
            "count": len(delays),
        }

    @router.get("/{site_id}/alerts")
    async def list_alerts(site_id: str) -> dict[str, Any]:
        alerts = await repository.alerts_for(site_id)
        return {
            "site_id": site_id,
            "alerts": [a.model_dump(mode="json") for a in alerts],
            "count": len(alerts),
        }

    return router
