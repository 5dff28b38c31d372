"""REST endpoint that triggers one monitor run.

Path: POST /api/monitor/run

Called by an external scheduler (cron, workflow automation) every few
minutes.  Runs MonitorOrchestrator.run_once() and returns the report.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from delay_sentinel.core.monitor import MonitorOrchestrator
from delay_sentinel.store.errors import PersistenceError

logger = logging.getLogger(__name__)


def create_monitor_router(orchestrator: MonitorOrchestrator) -> APIRouter:
    """Factory that wires the run endpoint to a concrete orchestrator."""

    router = APIRouter(prefix="/api/monitor", tags=["monitor"])

    @router.post("/run")
    async def run_monitor() -> dict[str, Any]:
        try:
            report = await orchestrator.run_once()
        except PersistenceError as exc:
            logger.error("Monitor run aborted, active sites unavailable: %s", exc)
            raise HTTPException(status_code=503, detail="Site store unavailable")
        return report.to_dict()

    return router
