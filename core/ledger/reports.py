"""
리포트 조회

일별 집계 기간 조회, 기간 리포트, 대시보드 통계.
쓰기 없음. 잔고 관련 수치는 캐시가 아닌 파생 잔고로 계산한다.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from core.ledger.aggregator import DailyAggregator
from core.ledger.balance import BalanceDeriver
from core.ledger.entities import EntityStore
from core.ledger.money import ZERO, Money, add, round2
from core.ledger.types import DailySummary, DashboardStats, RangeReport
from core.ledger.validation import validate_date_range
from core.types import PartyKind, SummaryStream
from core.utils.timezone import format_date, today_local

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

# 스트림별 미결 잔고 대상 (고객 외상 / 어민에게 줄 돈)
STREAM_PARTIES: dict[SummaryStream, PartyKind] = {
    SummaryStream.SALES: PartyKind.CUSTOMER,
    SummaryStream.PURCHASES: PartyKind.FARMER,
}


class ReportQueries:
    """리포트 조회

    Args:
        db: SQLite 어댑터
        entities: 엔티티 저장소
        deriver: 잔고 파생기
        aggregator: 일별 집계
        timezone_offset_hours: 오늘 날짜 판정용 UTC 오프셋
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        entities: EntityStore,
        deriver: BalanceDeriver,
        aggregator: DailyAggregator,
        timezone_offset_hours: int,
    ):
        self.db = db
        self.entities = entities
        self.deriver = deriver
        self.aggregator = aggregator
        self.timezone_offset_hours = timezone_offset_hours

    def today(self) -> date:
        return today_local(self.timezone_offset_hours)

    async def get_daily_summary_range(
        self,
        stream: SummaryStream,
        start: date,
        end: date,
    ) -> list[DailySummary]:
        """기간 일별 집계 (날짜 내림차순)

        Raises:
            ValidationError: start > end
        """
        validate_date_range(start, end)
        return await self.aggregator.get_range(stream, start, end)

    async def pending(self, kind: PartyKind) -> tuple[int, Money]:
        """음수 잔고 엔티티 수와 합계 (양수 금액으로 반환)

        CUSTOMER: 고객 외상 합계
        FARMER: 가게가 어민에게 줄 돈 합계
        """
        balances = await self.deriver.derive_balances(kind)
        count = 0
        total = ZERO
        for balance in balances.values():
            if balance < ZERO:
                count += 1
                total = add(total, round2(-balance))
        return count, total

    async def get_range_report(
        self,
        stream: SummaryStream,
        start: date,
        end: date,
    ) -> RangeReport:
        """기간 리포트 (일별 집계 + 기간 합계 + 현재 미결 잔고)"""
        days = await self.get_daily_summary_range(stream, start, end)

        total_amount = ZERO
        total_cash = ZERO
        total_outstanding = ZERO
        count = 0
        for day in days:
            total_amount = add(total_amount, day.total_amount)
            total_cash = add(total_cash, day.total_cash)
            total_outstanding = add(total_outstanding, day.total_outstanding_change)
            count += day.transactions_count

        _, current_outstanding = await self.pending(STREAM_PARTIES[stream])

        return RangeReport(
            stream=stream,
            start=start,
            end=end,
            days=days,
            total_amount=total_amount,
            total_cash=total_cash,
            total_outstanding_change=total_outstanding,
            transactions_count=count,
            current_outstanding=current_outstanding,
        )

    async def get_dashboard_stats(self, day: date | None = None) -> DashboardStats:
        """대시보드 통계

        Args:
            day: 기준 날짜 (None이면 현지 기준 오늘)
        """
        day_str = format_date(day or self.today())

        pending_count, pending_total = await self.pending(PartyKind.CUSTOMER)
        owed_count, owed_total = await self.pending(PartyKind.FARMER)

        return DashboardStats(
            date=day_str,
            today_sales=await self.aggregator.get_day(SummaryStream.SALES, day_str),
            today_purchases=await self.aggregator.get_day(SummaryStream.PURCHASES, day_str),
            pending_customers_count=pending_count,
            pending_customers_total=pending_total,
            farmers_owed_count=owed_count,
            farmers_owed_total=owed_total,
            customers_count=await self.entities.count_parties(PartyKind.CUSTOMER),
            farmers_count=await self.entities.count_parties(PartyKind.FARMER),
            active_fish_categories=await self.entities.count_active_fish(),
        )
