from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol


class IAlertService(Protocol):
    """Operator channel for lights the controller could not put back."""

    def notify_stuck_light(self, message: str, *, level: str = "ERROR", context: Optional[Mapping[str, Any]] = None) -> None:
        """Report a light left showing the alert visual after its restore retries ran out.

        ``context`` carries the light id, the bridge endpoint and the restore
        payload that was rejected. Called from light worker threads, so it
        must return without waiting on the network.
        """
        ...
