"""
Reports served by /functions/v1/clan-analytics

`?type=` picks the report; a missing or unknown type answers with the
overview. Every report accepts `clan_id`; the dated ones also take
`start_date` and `end_date`.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from clanchain.core.exceptions import ClanChainError, MethodNotAllowedError, ValidationError
from clanchain.core.logging_config import LoggingConfig
from clanchain.core.metrics import function_operations_total
from clanchain.services.platform_analytics import PlatformAnalyticsService
from clanchain.utils.datetime_utils import parse_datetime

logger = LoggingConfig.get_logger(__name__)

GATEWAY_NAME = "clan-analytics"
DEFAULT_REPORT = "overview"


@dataclass
class AnalyticsRequest:
    method: str
    params: Mapping[str, str] = field(default_factory=dict)

    @property
    def clan_id(self) -> Optional[str]:
        return self.params.get("clan_id") or None

    def date_range(self) -> tuple:
        try:
            start: Optional[datetime] = parse_datetime(self.params.get("start_date"))
            end: Optional[datetime] = parse_datetime(self.params.get("end_date"))
        except ValueError as e:
            raise ValidationError(f"Invalid date filter: {e}")
        return start, end


class AnalyticsReport:
    """Base report; reports are read-only"""
    name: str = ""

    def get(self, service: PlatformAnalyticsService, request: AnalyticsRequest) -> Any:
        raise NotImplementedError

    def handle(self, db: Session, request: AnalyticsRequest) -> Any:
        if request.method.upper() != "GET":
            raise MethodNotAllowedError()
        return self.get(PlatformAnalyticsService(db), request)


class CommunityPulseReport(AnalyticsReport):
    name = "community-pulse"

    def get(self, service, request):
        start, end = request.date_range()
        return service.community_pulse(start, end, clan_id=request.clan_id)


class VaultSummaryReport(AnalyticsReport):
    name = "clan-vault-summary"

    def get(self, service, request):
        return service.vault_summary(clan_id=request.clan_id)


class YouthProgressReport(AnalyticsReport):
    name = "youth-progress"

    def get(self, service, request):
        start, end = request.date_range()
        return service.youth_progress(start, end, clan_id=request.clan_id)


class EthicsComplianceReport(AnalyticsReport):
    name = "ethics-compliance"

    def get(self, service, request):
        return service.ethics_compliance(clan_id=request.clan_id)


class DiasporaEngagementReport(AnalyticsReport):
    """Platform-wide; `clan_id` is ignored"""
    name = "diaspora-engagement"

    def get(self, service, request):
        start, end = request.date_range()
        return service.diaspora_engagement(start, end)


class OverviewReport(AnalyticsReport):
    name = DEFAULT_REPORT

    def get(self, service, request):
        return service.overview(clan_id=request.clan_id)


class AnalyticsRegistry:
    """Report name -> report"""

    def __init__(self):
        self._reports: Dict[str, AnalyticsReport] = {}

    def register(self, report: AnalyticsReport) -> AnalyticsReport:
        if report.name in self._reports:
            raise ValueError(f"Analytics report '{report.name}' already registered")
        self._reports[report.name] = report
        return report

    def names(self) -> List[str]:
        return sorted(self._reports)

    def dispatch(self, db: Session, request: AnalyticsRequest) -> Any:
        name = request.params.get("type") or DEFAULT_REPORT
        report = self._reports.get(name)
        if report is None:
            logger.debug(f"Unknown analytics report '{name}', answering with the overview")
            report = self._reports[DEFAULT_REPORT]

        try:
            result = report.handle(db, request)
        except ClanChainError:
            function_operations_total.labels(resource=GATEWAY_NAME, operation=report.name, status="error").inc()
            raise
        function_operations_total.labels(resource=GATEWAY_NAME, operation=report.name, status="success").inc()
        return result


def build_analytics_registry() -> AnalyticsRegistry:
    registry = AnalyticsRegistry()
    for report in (
        CommunityPulseReport(),
        VaultSummaryReport(),
        YouthProgressReport(),
        EthicsComplianceReport(),
        DiasporaEngagementReport(),
        OverviewReport(),
    ):
        registry.register(report)
    return registry


analytics_registry = build_analytics_registry()
