from __future__ import annotations


class PagerLightError(Exception):
    """Base class for every error raised by pagerlight."""


class ConfigError(PagerLightError):
    """Required configuration is missing or cannot be parsed. Fatal."""


class QueryError(PagerLightError):
    """The incident API could not answer a poll.

    Callers treat this as a failed poll, never as "no incidents".
    """


class IncidentRequestError(QueryError):
    pass


class IncidentStatusError(QueryError):
    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"incident API answered HTTP {status_code}: {body[:200]}")
        self.status_code = status_code
        self.body = body


class IncidentDecodeError(QueryError):
    pass


class IncidentShapeError(QueryError):
    pass


class BridgeError(PagerLightError):
    """The light bridge is unreachable or rejected a command."""

    def __init__(self, message: str, *, light_id: str | None = None, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.light_id = light_id
        self.errors = errors or []


class RestoreError(BridgeError):
    """A light could not be put back to its captured state and stays in the alert visual."""
