from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from pagerlight.domain.errors import BridgeError, RestoreError
from pagerlight.domain.models import (
    DEFAULT_TRANSITION_TIME,
    AlertVisual,
    LightState,
    LightTarget,
    StateModifier,
)
from pagerlight.domain.ports.alert_service import IAlertService
from pagerlight.domain.ports.light_bridge import ILightBridge
from pagerlight.infrastructure.metrics.metrics import BRIDGE_ERRORS_TOTAL, RESTORE_FAILURES_TOTAL

logger = logging.getLogger(__name__)

RESTORE_ATTEMPTS = 2


class LightController:
    """Runs the alert sequence on a single light.

    read state -> override color -> settle -> blink -> hold -> restore.
    Only a failed state read aborts the sequence; every later bridge call is
    logged and skipped on failure, and the restore is always attempted.
    """

    def __init__(
        self,
        bridge_for: Callable[[LightTarget], ILightBridge],
        *,
        transition_time: int = DEFAULT_TRANSITION_TIME,
        sleep: Callable[[float], None] = time.sleep,
        alert_service: Optional[IAlertService] = None,
    ) -> None:
        self._bridge_for = bridge_for
        self._transition_time = transition_time
        self._sleep = sleep
        self._alert_service = alert_service

    @property
    def settle_seconds(self) -> int:
        return self._transition_time // 10

    def apply_alert(self, target: LightTarget, visual: AlertVisual) -> bool:
        """Show ``visual`` on the target light, then put the light back.

        Returns whether the light was restored. Raises ``BridgeError`` only
        when the initial state read fails, in which case nothing is sent.
        """
        bridge = self._bridge_for(target)
        light_id = target.light_id
        logger.info("%s on light %s (%ss)", visual.name, light_id, visual.duration_seconds)
        try:
            state = bridge.get_light_state(light_id)
        except BridgeError:
            BRIDGE_ERRORS_TOTAL.labels(step="read").inc()
            raise
        except (KeyError, TypeError, ValueError, IndexError) as exc:
            BRIDGE_ERRORS_TOTAL.labels(step="read").inc()
            raise BridgeError(f"unreadable state for light {light_id}: {exc}", light_id=light_id) from exc

        with self._restoring(bridge, target, state) as outcome:
            self._send(bridge, light_id, StateModifier.alert_color(visual, self._transition_time), step="override")
            self._wait(self.settle_seconds)
            self._send(bridge, light_id, StateModifier.blink(visual), step="blink")
            self._wait(visual.duration_seconds)
        logger.debug("%s on light %s done", visual.name, light_id)
        return outcome["restored"]

    def _wait(self, seconds: float) -> None:
        if seconds <= 0:
            return
        logger.debug("Wait for %ss...", seconds)
        self._sleep(seconds)

    def _send(self, bridge: ILightBridge, light_id: str, modifier: StateModifier, *, step: str) -> bool:
        try:
            bridge.set_light_state(light_id, modifier)
            return True
        except BridgeError as exc:
            BRIDGE_ERRORS_TOTAL.labels(step=step).inc()
            logger.error("Failed to modify the light state (%s, light %s): %s", step, light_id, exc)
            return False

    @contextmanager
    def _restoring(self, bridge: ILightBridge, target: LightTarget, state: LightState) -> Iterator[dict]:
        outcome = {"restored": False}
        try:
            yield outcome
        finally:
            outcome["restored"] = self._restore(bridge, target, state)

    def _restore(self, bridge: ILightBridge, target: LightTarget, state: LightState) -> bool:
        modifier = StateModifier.restoring(state, self._transition_time)
        for attempt in range(1, RESTORE_ATTEMPTS + 1):
            if self._send(bridge, target.light_id, modifier, step="restore"):
                return True
            logger.warning("restore attempt %s/%s failed for light %s", attempt, RESTORE_ATTEMPTS, target.light_id)

        err = RestoreError(
            f"light {target.light_id} left in alert state after {RESTORE_ATTEMPTS} restore attempts",
            light_id=target.light_id,
        )
        RESTORE_FAILURES_TOTAL.inc()
        logger.error("%s", err)
        if self._alert_service is not None:
            self._alert_service.notify_stuck_light(
                str(err),
                level="ERROR",
                context={"light_id": target.light_id, "bridge": target.bridge_endpoint, "payload": modifier.to_payload()},
            )
        return False
