"""
리포트 라우트

GET /api/dashboard - 대시보드 통계
GET /api/reports/daily - 기간 일별 집계
GET /api/reports/summary - 기간 리포트
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.types import SummaryStream
from web.dependencies import get_db, get_ledger_config
from web.models.responses import (
    DailySummaryResponse,
    DashboardResponse,
    RangeReportResponse,
)
from web.services.report_service import ReportService

router = APIRouter(prefix="/api", tags=["Reports"])


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    day: date | None = Query(default=None, description="기준 날짜 (기본: 오늘)"),
    db: SQLiteAdapter = Depends(get_db),
    config: LedgerConfig = Depends(get_ledger_config),
) -> DashboardResponse:
    """오늘 판매/매입, 외상/미지급 합계, 엔티티 수"""
    return await ReportService(db, config).get_dashboard(day)


@router.get("/reports/daily", response_model=list[DailySummaryResponse])
async def get_daily_summaries(
    stream: SummaryStream = Query(default=SummaryStream.SALES),
    start: date | None = Query(default=None, description="시작일 (기본: 30일 전)"),
    end: date | None = Query(default=None, description="종료일 (기본: 오늘)"),
    db: SQLiteAdapter = Depends(get_db),
    config: LedgerConfig = Depends(get_ledger_config),
) -> list[DailySummaryResponse]:
    """기간 일별 집계 (최신순)"""
    return await ReportService(db, config).get_daily(stream, start, end)


@router.get("/reports/summary", response_model=RangeReportResponse)
async def get_range_report(
    stream: SummaryStream = Query(default=SummaryStream.SALES),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    db: SQLiteAdapter = Depends(get_db),
    config: LedgerConfig = Depends(get_ledger_config),
) -> RangeReportResponse:
    """기간 합계 + 현재 미결 잔고"""
    return await ReportService(db, config).get_range_report(stream, start, end)
