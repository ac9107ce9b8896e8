from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Optional

from pagerlight.application.light_controller import LightController
from pagerlight.domain.errors import BridgeError, QueryError
from pagerlight.domain.models import ALERT_VISUAL, BLINK_VISUAL, AlertVisual, LightTarget
from pagerlight.domain.ports.incident_source import IIncidentSource
from pagerlight.infrastructure.metrics.metrics import (
    LIGHT_NOTIFICATIONS_TOTAL,
    LIGHT_TASKS_IN_FLIGHT,
    POLLS_TOTAL,
    TRIGGERED_INCIDENTS,
)

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 59.0


class OrchestratorState(str, Enum):
    STARTUP = "startup"
    POLLING = "polling"
    ALERTING = "alerting"
    STOPPED = "stopped"


class NotificationOrchestrator:
    """Startup blink, then poll the incident source forever and alert every light on hits.

    Light sequences are submitted to a thread pool and never awaited: a 15s
    alert must not delay the next poll. Overlapping sequences on the same
    light are possible when incidents stay triggered across polls.
    """

    def __init__(
        self,
        source: IIncidentSource,
        controller: LightController,
        targets: Iterable[LightTarget],
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_workers: int = 16,
        executor: Optional[Executor] = None,
        startup_visual: AlertVisual = BLINK_VISUAL,
        alert_visual: AlertVisual = ALERT_VISUAL,
    ) -> None:
        self._source = source
        self._controller = controller
        self._targets = list(targets)
        self._poll_interval = float(poll_interval)
        self._executor = executor or ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="light")
        self._startup_visual = startup_visual
        self._alert_visual = alert_visual

        self._pending: set[Future] = set()
        self._active = 0
        self._lock = threading.Lock()

        self.state = OrchestratorState.STARTUP
        self.last_poll_at: Optional[datetime] = None
        self.last_count: Optional[int] = None
        self.last_error: Optional[str] = None
        self.polls = 0
        self.failed_polls = 0
        self.alert_cycles = 0

    @property
    def targets(self) -> list[LightTarget]:
        return list(self._targets)

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    # Fan-out
    def notify_all(self, visual: AlertVisual) -> list[Future]:
        futures: list[Future] = []
        for target in self._targets:
            with self._lock:
                self._active += 1
            try:
                fut = self._executor.submit(self._run_light_task, target, visual)
            except RuntimeError as exc:
                # executor already shut down
                with self._lock:
                    self._active -= 1
                logger.warning("cannot notify light %s: %s", target.light_id, exc)
                continue
            with self._lock:
                self._pending.add(fut)
            fut.add_done_callback(self._forget)
            futures.append(fut)
        return futures

    def _forget(self, fut: Future) -> None:
        with self._lock:
            self._pending.discard(fut)

    def _run_light_task(self, target: LightTarget, visual: AlertVisual) -> None:
        LIGHT_TASKS_IN_FLIGHT.inc()
        result = "error"
        try:
            restored = self._controller.apply_alert(target, visual)
            result = "ok" if restored else "unrestored"
        except BridgeError as exc:
            logger.error("Notification error on light %s: %s", target.light_id, exc)
        except Exception:  # noqa: BLE001
            logger.exception("unexpected error while notifying light %s", target.light_id)
        finally:
            LIGHT_TASKS_IN_FLIGHT.dec()
            with self._lock:
                self._active -= 1
            LIGHT_NOTIFICATIONS_TOTAL.labels(visual=visual.name, result=result).inc()

    def in_flight(self) -> int:
        with self._lock:
            return self._active

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until every submitted light sequence finished. Returns False on timeout."""
        with self._lock:
            pending = set(self._pending)
        if not pending:
            return True
        _done, not_done = wait_futures(pending, timeout=timeout)
        return not not_done

    # Loop
    def startup(self) -> list[Future]:
        self.state = OrchestratorState.STARTUP
        logger.info("Starting up... blinking %s light(s)", len(self._targets))
        futures = self.notify_all(self._startup_visual)
        self.state = OrchestratorState.POLLING
        return futures

    async def poll_once(self) -> Optional[int]:
        """Run one poll cycle. Returns the incident count, or None when the poll failed."""
        self.state = OrchestratorState.POLLING
        self.polls += 1
        self.last_poll_at = datetime.now(timezone.utc)
        try:
            count = await asyncio.to_thread(self._source.count_triggered)
        except QueryError as exc:
            self._poll_failed(exc)
            return None
        except Exception as exc:  # noqa: BLE001
            logger.exception("unexpected poll failure")
            self._poll_failed(exc)
            return None

        POLLS_TOTAL.labels(result="ok").inc()
        TRIGGERED_INCIDENTS.set(count)
        self.last_count = count
        self.last_error = None
        if count > 0:
            logger.info("New PagerDuty incident triggered! (%s)", count)
            self.state = OrchestratorState.ALERTING
            self.alert_cycles += 1
            self.notify_all(self._alert_visual)
            self.state = OrchestratorState.POLLING
        else:
            logger.debug("No new triggered incident")
        return count

    def _poll_failed(self, exc: BaseException) -> None:
        POLLS_TOTAL.labels(result="error").inc()
        self.failed_polls += 1
        self.last_error = f"{type(exc).__name__}: {exc}"
        logger.warning("incident poll failed: %s", self.last_error)

    def remaining_interval(self, elapsed: float) -> float:
        # Interval runs alongside the poll: period is max(poll latency, interval)
        return max(0.0, self._poll_interval - elapsed)

    async def _wait_next_tick(self, stop_event: asyncio.Event, seconds: float) -> None:
        logger.debug("Wait for %.1fs...", seconds)
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        stop_event = stop_event or asyncio.Event()
        loop = asyncio.get_running_loop()
        self.startup()
        try:
            while not stop_event.is_set():
                started = loop.time()
                logger.info("Looking for new alerts...")
                await self.poll_once()
                await self._wait_next_tick(stop_event, self.remaining_interval(loop.time() - started))
        finally:
            self.state = OrchestratorState.STOPPED
            logger.info("orchestrator stopped")

    def shutdown(self, *, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)

    def status(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "lights": [t.light_id for t in self._targets],
            "poll_interval": self._poll_interval,
            "last_poll_at": self.last_poll_at.isoformat() if self.last_poll_at else None,
            "last_count": self.last_count,
            "last_error": self.last_error,
            "polls": self.polls,
            "failed_polls": self.failed_polls,
            "alert_cycles": self.alert_cycles,
            "light_tasks_in_flight": self.in_flight(),
        }
