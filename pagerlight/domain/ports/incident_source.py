from __future__ import annotations

from typing import Protocol


class IIncidentSource(Protocol):
    def count_triggered(self) -> int:
        """Return the number of currently triggered incidents.

        Raises a ``QueryError`` subclass when the poll fails; never returns 0 for a failure.
        """
        ...
