# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Chore Rotation Service v1.0.0
=============================
Chat-driven household chore rotation: turn tracking, swaps, skips,
punishment requests with admin approval, and state snapshots.

Architecture:
  controllers/   → HTTP layer (chat events in, read-only views out)
  services/      → Command parsing, dispatch and rotation protocols
  repositories/  → In-memory state, audit events, snapshot file
  models/        → Domain aggregate (pydantic)
  schemas/       → Request / response contracts
  metrics/       → Prometheus counters and gauges
  core/          → Config, logging, errors, dependency wiring
  middleware.py  → Request ID + HTTP metrics
"""

import asyncio
import contextlib
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from chorebot.controllers import command_controller, rotation_controller, system_controller
from chorebot.core.config import settings
from chorebot.core.dependencies import get_engine
from chorebot.core.logging import get_logger
from chorebot.middleware import MetricsMiddleware, RequestIDMiddleware

logger = get_logger(__name__)


# ── Lifespan ──
@asynccontextmanager
async def lifespan(application: FastAPI):
    engine = get_engine()
    snapshot_task = None
    if engine.snapshot.enabled:
        if not engine.snapshot.load():
            logger.info("Serving seeded rotation")
        snapshot_task = asyncio.create_task(
            engine.snapshot.run_periodic(
                settings.SNAPSHOT_INTERVAL_SECONDS,
                before_save=engine.punishments.purge_old,
            )
        )
    logger.info(
        "%s v%s started: members=%d",
        settings.SERVICE_NAME,
        settings.SERVICE_VERSION,
        len(engine.rotation.members()),
    )
    yield
    if snapshot_task is not None:
        snapshot_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await snapshot_task
        engine.snapshot.save()
    logger.info("Shutting down")


# ── App ──
app = FastAPI(
    title="Chore Rotation Service",
    version=settings.SERVICE_VERSION,
    description="Chat-driven chore rotation with swaps, skips and punishment approvals",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)

app.include_router(system_controller.router)
app.include_router(command_controller.router)
app.include_router(rotation_controller.router)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled exception on %s",
        request.url.path,
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "detail": str(exc)},
    )


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=settings.SERVICE_PORT)
