from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, FastAPI
from fastapi.responses import JSONResponse

from task_sync.core.exceptions import SyncError
from task_sync.core.models import PassState
from task_sync.sync.runner import SyncRunner

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_router(runner: SyncRunner) -> APIRouter:
    router = APIRouter()
    started_at = time.monotonic()

    @router.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": _now_iso(),
            "uptime": round(time.monotonic() - started_at, 3),
        }

    # Plain def: runs in the threadpool
    @router.post("/sync")
    def trigger_sync() -> JSONResponse:
        logger.info("Manual sync triggered via API")
        try:
            result = runner.run_once()
        except SyncError as exc:
            logger.error("Manual sync failed: %s", exc)
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "message": "Sync failed",
                    "error": str(exc),
                    "timestamp": _now_iso(),
                },
            )

        if result.state is PassState.SKIPPED:
            return JSONResponse(
                status_code=409,
                content={
                    "success": False,
                    "message": "Sync already in progress",
                    "timestamp": _now_iso(),
                },
            )
        return JSONResponse(
            status_code=200,
            content={
                "success": True,
                "message": "Sync completed successfully",
                "result": result.to_dict(),
                "timestamp": _now_iso(),
            },
        )

    @router.get("/sync/status")
    def sync_status() -> dict[str, Any]:
        return runner.get_status()

    @router.post("/sync/stats/reset")
    def reset_stats() -> dict[str, Any]:
        runner.reset_stats()
        return {"success": True, "stats": runner.stats.to_dict()}

    return router


def create_app(runner: SyncRunner) -> FastAPI:
    app = FastAPI(title="task-sync")
    app.include_router(build_router(runner))
    app.state.runner = runner
    return app
