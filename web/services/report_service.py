"""
리포트 서비스

대시보드 통계, 기간별 일별 집계, 기간 리포트
"""

from datetime import date, timedelta

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.ledger import Ledger
from core.types import SummaryStream
from web.models.responses import (
    DailySummaryResponse,
    DashboardResponse,
    RangeReportResponse,
)

# 기간 미지정 시 조회 일수 (오늘 포함)
DEFAULT_RANGE_DAYS = 30


class ReportService:
    """리포트 서비스"""

    def __init__(self, db: SQLiteAdapter, config: LedgerConfig):
        self.db = db
        self.ledger = Ledger(db, config)

    def _resolve_range(self, start: date | None, end: date | None) -> tuple[date, date]:
        end = end or self.ledger.reports.today()
        start = start or end - timedelta(days=DEFAULT_RANGE_DAYS - 1)
        return start, end

    async def get_dashboard(self, day: date | None = None) -> DashboardResponse:
        stats = await self.ledger.reports.get_dashboard_stats(day)
        return DashboardResponse.from_domain(stats)

    async def get_daily(
        self,
        stream: SummaryStream,
        start: date | None,
        end: date | None,
    ) -> list[DailySummaryResponse]:
        """기간 일별 집계 (최신순, 기본 최근 30일)"""
        start, end = self._resolve_range(start, end)
        days = await self.ledger.reports.get_daily_summary_range(stream, start, end)
        return [DailySummaryResponse.from_domain(d) for d in days]

    async def get_range_report(
        self,
        stream: SummaryStream,
        start: date | None,
        end: date | None,
    ) -> RangeReportResponse:
        start, end = self._resolve_range(start, end)
        report = await self.ledger.reports.get_range_report(stream, start, end)
        return RangeReportResponse.from_domain(report)
