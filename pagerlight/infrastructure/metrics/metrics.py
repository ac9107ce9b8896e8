from __future__ import annotations

import logging
import os
import threading
from typing import Optional

import psutil
from fastapi import FastAPI
from prometheus_client import Counter, Gauge
from prometheus_fastapi_instrumentator import Instrumentator


_log = logging.getLogger(__name__)

_PROCESS: Optional[psutil.Process] = None
_SAMPLER_THREAD: Optional[threading.Thread] = None
_STOP_EVENT: Optional[threading.Event] = None


POLLS_TOTAL = Counter(
    "pagerlight_polls_total",
    "Incident API polls by outcome",
    ["result"],
)
TRIGGERED_INCIDENTS = Gauge(
    "pagerlight_triggered_incidents",
    "Triggered incidents seen by the last successful poll",
)
LIGHT_NOTIFICATIONS_TOTAL = Counter(
    "pagerlight_light_notifications_total",
    "Per-light alert sequences by visual and outcome",
    ["visual", "result"],
)
BRIDGE_ERRORS_TOTAL = Counter(
    "pagerlight_bridge_errors_total",
    "Failed bridge calls by sequence step",
    ["step"],
)
RESTORE_FAILURES_TOTAL = Counter(
    "pagerlight_restore_failures_total",
    "Lights left in the alert visual because the restore command failed",
)
LIGHT_TASKS_IN_FLIGHT = Gauge(
    "pagerlight_light_tasks_in_flight",
    "Per-light alert sequences currently running",
)

# Gauges for current process metrics
GAUGE_PROC_CPU_PERCENT = Gauge(
    "process_cpu_percent",
    "Current process CPU utilization percent",
)
GAUGE_PROC_RSS_BYTES = Gauge(
    "process_memory_rss_bytes",
    "Current process Resident Set Size in bytes",
)


def _sample_process_loop(poll_seconds: float = 5.0) -> None:
    assert _PROCESS is not None
    # Prime cpu_percent to avoid first-call 0.0
    _PROCESS.cpu_percent(interval=None)
    while _STOP_EVENT is not None and not _STOP_EVENT.is_set():
        try:
            GAUGE_PROC_CPU_PERCENT.set(_PROCESS.cpu_percent(interval=None))
            GAUGE_PROC_RSS_BYTES.set(_PROCESS.memory_info().rss)
        except psutil.Error as exc:
            _log.debug("process metrics sample failed: %s", exc)
        _STOP_EVENT.wait(poll_seconds)


def start_process_sampler(poll_seconds: float = 5.0) -> None:
    global _PROCESS, _STOP_EVENT, _SAMPLER_THREAD
    if _SAMPLER_THREAD is not None and _SAMPLER_THREAD.is_alive():
        return
    _PROCESS = psutil.Process(os.getpid())
    _STOP_EVENT = threading.Event()
    _SAMPLER_THREAD = threading.Thread(
        target=_sample_process_loop, name="metrics-sampler", args=(poll_seconds,), daemon=True
    )
    _SAMPLER_THREAD.start()


def stop_process_sampler() -> None:
    global _SAMPLER_THREAD, _STOP_EVENT
    if _STOP_EVENT is not None:
        _STOP_EVENT.set()
    if _SAMPLER_THREAD is not None and _SAMPLER_THREAD.is_alive():
        _SAMPLER_THREAD.join(timeout=2.0)
    _SAMPLER_THREAD = None
    _STOP_EVENT = None


def setup_metrics(app: FastAPI) -> None:
    """Attach Prometheus instrumentation and the process sampler.

    - Exposes /metrics with default FastAPI request metrics plus pagerlight counters
    - Samples process CPU and memory via psutil periodically
    """
    instrumentator = Instrumentator().instrument(app)
    instrumentator.expose(app, include_in_schema=False)

    @app.on_event("startup")
    async def _start_sampler() -> None:
        start_process_sampler()

    @app.on_event("shutdown")
    async def _stop_sampler() -> None:
        stop_process_sampler()
