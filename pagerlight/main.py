from __future__ import annotations

import asyncio
import logging
import signal
import sys

import uvicorn

from pagerlight import container
from pagerlight.application.orchestrator import NotificationOrchestrator
from pagerlight.domain.errors import ConfigError
from pagerlight.infrastructure.logging_setup import init_logging
from pagerlight.presentation.app_factory import create_app

logger = logging.getLogger(__name__)


async def run_headless(orchestrator: NotificationOrchestrator) -> None:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no signal handlers; Ctrl+C still interrupts asyncio.run
            pass
    try:
        await orchestrator.run(stop_event)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        orchestrator.shutdown(wait=False)


def main() -> int:
    try:
        settings = container.settings()
    except ConfigError as exc:
        print(f"pagerlight: {exc}", file=sys.stderr)
        return 2

    init_logging(settings)
    logger.info("Initializing... %s light(s) on bridge %s", len(settings.light_ids), settings.bridge_endpoint)
    orchestrator = container.orchestrator()

    if settings.api_enabled:
        app = create_app(orchestrator, title=settings.app_name)
        # log_config=None keeps the handlers installed by init_logging
        uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level, log_config=None)
    else:
        try:
            asyncio.run(run_headless(orchestrator))
        except KeyboardInterrupt:
            logger.info("interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
