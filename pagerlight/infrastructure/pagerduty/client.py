from __future__ import annotations

import logging
from typing import Optional

import requests

from pagerlight.domain.errors import (
    IncidentDecodeError,
    IncidentRequestError,
    IncidentShapeError,
    IncidentStatusError,
)
from pagerlight.domain.models import IncidentQuery
from pagerlight.domain.ports.incident_source import IIncidentSource

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.pagerduty.com"


class PagerDutyIncidentSource(IIncidentSource):
    """Counts triggered PagerDuty incidents for one team and user.

    Every call is a fresh request: no caching and no retry.
    """

    def __init__(
        self,
        query: IncidentQuery,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._query = query
        self._url = api_url.rstrip("/") + "/incidents"
        self._timeout = timeout
        self._session = session or requests.Session()
        logger.info(
            "PagerDuty source configured for team ID %s and user ID %s",
            query.team_id,
            query.user_id,
        )

    def _params(self) -> list[tuple[str, str]]:
        return [
            ("statuses[]", "triggered"),
            ("team_ids[]", self._query.team_id),
            ("user_ids[]", self._query.user_id),
        ]

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Token token={self._query.api_token}",
            "Accept": "application/vnd.pagerduty+json;version=2",
        }

    def count_triggered(self) -> int:
        logger.debug("Looking for triggered incidents on PagerDuty...")
        try:
            resp = self._session.get(
                self._url,
                params=self._params(),
                headers=self._headers(),
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise IncidentRequestError(f"incident API unreachable: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            raise IncidentStatusError(resp.status_code, resp.text or "")

        try:
            body = resp.json()
        except ValueError as exc:
            raise IncidentDecodeError(f"incident API returned malformed JSON: {exc}") from exc

        if not isinstance(body, dict) or "incidents" not in body:
            raise IncidentShapeError("incident API response has no 'incidents' key")
        incidents = body["incidents"]
        if not isinstance(incidents, list):
            raise IncidentShapeError(f"'incidents' is {type(incidents).__name__}, expected a list")

        logger.debug("Found %s triggered incidents on PagerDuty.", len(incidents))
        return len(incidents)

    def close(self) -> None:
        self._session.close()
