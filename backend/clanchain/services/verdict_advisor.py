"""
External dispute advisor interface

ClanChain does not compute verdicts. An advisor receives a dispute summary and
returns an opaque recommendation which is stored verbatim on the dispute.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from clanchain.core.config import get_settings
from clanchain.core.exceptions import ServiceUnavailableError
from clanchain.core.logging_config import LoggingConfig
from clanchain.utils.datetime_utils import utc_now_iso

logger = LoggingConfig.get_logger(__name__)


class VerdictAdvisor(ABC):
    """Source of suggested decisions for a dispute"""

    @abstractmethod
    async def recommend(self, case: Dict[str, Any]) -> Dict[str, Any]:
        """Return a recommendation for the serialized dispute"""


class UnconfiguredVerdictAdvisor(VerdictAdvisor):
    """Used when no advisor endpoint is configured"""

    async def recommend(self, case: Dict[str, Any]) -> Dict[str, Any]:
        raise ServiceUnavailableError("Verdict advisor is not configured")


class HttpVerdictAdvisor(VerdictAdvisor):
    """POSTs the case to a remote advisor and returns its JSON body"""

    def __init__(self, url: str, timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def recommend(self, case: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, json={"case": case})
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Verdict advisor call failed: {e}", extra={"case_id": case.get("id")})
            raise ServiceUnavailableError(f"Verdict advisor unavailable: {e}") from e

        if not isinstance(body, dict):
            raise ServiceUnavailableError("Verdict advisor returned a non-object body")

        body.setdefault("case_id", case.get("id"))
        body.setdefault("timestamp", utc_now_iso())
        return body


def get_verdict_advisor() -> VerdictAdvisor:
    """FastAPI dependency; tests override it with a fake advisor"""
    settings = get_settings()
    if not settings.verdict_advisor_url:
        return UnconfiguredVerdictAdvisor()
    return HttpVerdictAdvisor(
        url=settings.verdict_advisor_url,
        timeout=settings.verdict_advisor_timeout_seconds,
    )
