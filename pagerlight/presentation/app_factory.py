from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import FastAPI

from pagerlight.application.orchestrator import NotificationOrchestrator
from pagerlight.infrastructure.metrics.metrics import setup_metrics
from pagerlight.presentation.api.routes import router as api_router

logger = logging.getLogger(__name__)


def create_app(orchestrator: NotificationOrchestrator, *, title: str = "pagerlight", run_loop: bool = True) -> FastAPI:
    """Status API hosting the polling loop as a background task."""
    app = FastAPI(title=title)
    app.state.orchestrator = orchestrator
    app.state.stop_event = None
    app.state.loop_task = None

    app.include_router(api_router)

    # Prometheus metrics (/metrics) + psutil process gauges
    setup_metrics(app)

    @app.on_event("startup")
    async def _startup() -> None:
        logger.info("application startup")
        if not run_loop:
            return
        app.state.stop_event = asyncio.Event()
        app.state.loop_task = asyncio.create_task(orchestrator.run(app.state.stop_event))

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        logger.info("application shutdown")
        stop_event: Optional[asyncio.Event] = app.state.stop_event
        task: Optional[asyncio.Task] = app.state.loop_task
        if stop_event is not None:
            stop_event.set()
        if task is not None:
            try:
                await asyncio.wait_for(task, timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning("polling loop did not stop in time; cancelled")
        orchestrator.shutdown(wait=False)

    return app
