"""
일별 집계

거래 기록/수정/취소 시 날짜별 집계 행을 증분 갱신한다.
집계는 캐시일 뿐이며 rebuild_date/rebuild_all로 거래 재생을 통해 재구성할 수 있다.

스트림:
    sales      → daily_summary (판매액, 수금액, 미수 변동)
    purchases  → farmer_daily_summary (매입 순액, 지급액, 미지급 변동)

미수 변동 clamp (clamp_daily_outstanding):
    켜져 있으면 날짜별 누적 미수 변동을 0 아래로 내려가지 않게 보여준다.
    저장 행에는 부호 있는 원래 합계를 두고 조회할 때만 하한을 적용하므로
    수정/취소 후에도 증분 갱신 결과와 재생 결과가 같다.
    변동분(delta)을 자르는 근사치이므로 어떤 날의 순변동이 실제로 음수인 경우
    (예: 이전 외상을 초과 지불로 상환) 일별 수치를 실제보다 크게 표시한다.
    기본값은 꺼짐.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import TYPE_CHECKING, Any

from core.ledger.calculator import outstanding_contribution
from core.ledger.money import ZERO, Money, add, format_money, parse_money
from core.ledger.types import DailySummary
from core.types import SummaryStream, TransactionStatus

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamTables:
    """스트림별 테이블/컬럼 이름"""

    summary_table: str
    amount_column: str
    cash_column: str
    source_table: str


STREAM_TABLES: dict[SummaryStream, StreamTables] = {
    SummaryStream.SALES: StreamTables(
        summary_table="daily_summary",
        amount_column="total_sales",
        cash_column="total_cash_received",
        source_table="transactions",
    ),
    SummaryStream.PURCHASES: StreamTables(
        summary_table="farmer_daily_summary",
        amount_column="total_purchases",
        cash_column="total_cash_paid",
        source_table="farmer_transactions",
    ),
}


def _summary(stream: SummaryStream, row: tuple[Any, ...]) -> DailySummary:
    return DailySummary(
        stream=stream,
        date=row[0],
        total_amount=parse_money(row[1]),
        total_cash=parse_money(row[2]),
        total_outstanding_change=parse_money(row[3]),
        transactions_count=row[4],
    )


def empty_summary(stream: SummaryStream, day: str) -> DailySummary:
    return DailySummary(
        stream=stream,
        date=day,
        total_amount=ZERO,
        total_cash=ZERO,
        total_outstanding_change=ZERO,
        transactions_count=0,
    )


class DailyAggregator:
    """일별 집계 관리

    Args:
        db: SQLite 어댑터
        clamp_outstanding: 누적 미수 변동 0 하한 적용 여부
    """

    def __init__(self, db: SQLiteAdapter, clamp_outstanding: bool = False):
        self.db = db
        self.clamp_outstanding = clamp_outstanding

    def _present(self, summary: DailySummary) -> DailySummary:
        """조회용 집계 (clamp 켜짐이면 미수 변동 0 하한)"""
        if self.clamp_outstanding and summary.total_outstanding_change < ZERO:
            return replace(summary, total_outstanding_change=ZERO)
        return summary

    async def apply_delta(
        self,
        stream: SummaryStream,
        day: str,
        amount_delta: Money,
        cash_delta: Money,
        outstanding_delta: Money,
        count_delta: int,
    ) -> DailySummary:
        """집계 행 증분 갱신 (작업 단위 내부용)

        행이 없으면 delta를 초기값으로 생성한다.
        count_delta는 기록 +1, 수정 0, 취소 -1.

        Returns:
            갱신된 DailySummary
        """
        current = await self._fetch_day(stream, day)

        updated = DailySummary(
            stream=stream,
            date=day,
            total_amount=add(current.total_amount, amount_delta),
            total_cash=add(current.total_cash, cash_delta),
            total_outstanding_change=add(current.total_outstanding_change, outstanding_delta),
            transactions_count=max(0, current.transactions_count + count_delta),
        )

        await self._write(updated)
        return self._present(updated)

    async def _fetch_day(self, stream: SummaryStream, day: str) -> DailySummary:
        """저장된 원래 값 (하한 미적용)"""
        tables = STREAM_TABLES[stream]
        row = await self.db.fetchone(
            f"""
            SELECT date, {tables.amount_column}, {tables.cash_column},
                   total_outstanding_change, transactions_count
            FROM {tables.summary_table}
            WHERE date = ?
            """,
            (day,),
        )
        return _summary(stream, row) if row else empty_summary(stream, day)

    async def get_day(self, stream: SummaryStream, day: str) -> DailySummary:
        """하루 집계 조회 (행이 없으면 0으로 채운 값)"""
        return self._present(await self._fetch_day(stream, day))

    async def get_range(
        self,
        stream: SummaryStream,
        start: date,
        end: date,
    ) -> list[DailySummary]:
        """기간 집계 조회 (날짜 내림차순, 행이 있는 날만)"""
        tables = STREAM_TABLES[stream]
        rows = await self.db.fetchall(
            f"""
            SELECT date, {tables.amount_column}, {tables.cash_column},
                   total_outstanding_change, transactions_count
            FROM {tables.summary_table}
            WHERE date >= ? AND date <= ?
            ORDER BY date DESC
            """,
            (start.isoformat(), end.isoformat()),
        )
        return [self._present(_summary(stream, row)) for row in rows]

    async def _replay(self, stream: SummaryStream, day: str) -> DailySummary:
        """취소되지 않은 거래를 ID 순으로 재생해 하루 집계 계산"""
        tables = STREAM_TABLES[stream]
        rows = await self.db.fetchall(
            f"""
            SELECT total_amount, paid_amount, balance_change
            FROM {tables.source_table}
            WHERE date = ? AND status = ?
            ORDER BY id
            """,
            (day, TransactionStatus.COMPLETED.value),
        )

        summary = empty_summary(stream, day)
        for total_amount, paid_amount, balance_change in rows:
            summary.total_amount = add(summary.total_amount, parse_money(total_amount))
            summary.total_cash = add(summary.total_cash, parse_money(paid_amount))
            summary.total_outstanding_change = add(
                summary.total_outstanding_change,
                outstanding_contribution(parse_money(balance_change)),
            )
            summary.transactions_count += 1
        return summary

    async def _write(self, summary: DailySummary) -> None:
        tables = STREAM_TABLES[summary.stream]
        await self.db.execute(
            f"""
            INSERT INTO {tables.summary_table} (
                date, {tables.amount_column}, {tables.cash_column},
                total_outstanding_change, transactions_count
            ) VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(date) DO UPDATE SET
                {tables.amount_column} = excluded.{tables.amount_column},
                {tables.cash_column} = excluded.{tables.cash_column},
                total_outstanding_change = excluded.total_outstanding_change,
                transactions_count = excluded.transactions_count,
                updated_at = datetime('now')
            """,
            (
                summary.date,
                format_money(summary.total_amount),
                format_money(summary.total_cash),
                format_money(summary.total_outstanding_change),
                summary.transactions_count,
            ),
        )

    async def rebuild_date(self, stream: SummaryStream, day: str) -> DailySummary:
        """하루 집계를 거래 재생으로 재구성

        남은 거래가 없으면 기존 행은 0으로 덮어쓴다.
        """
        async with self.db.transaction():
            summary = await self._replay(stream, day)
            existing = await self._fetch_day(stream, day)
            if summary.transactions_count > 0 or existing != empty_summary(stream, day):
                await self._write(summary)
        summary = self._present(summary)

        logger.info(
            f"일별 집계 재구성: {stream.value} {day}",
            extra={"stream": stream.value, "date": day, "count": summary.transactions_count},
        )
        return summary

    async def rebuild_all(self, stream: SummaryStream) -> int:
        """전체 날짜 집계 재구성

        Returns:
            재구성한 날짜 수
        """
        tables = STREAM_TABLES[stream]
        async with self.db.transaction():
            rows = await self.db.fetchall(
                f"""
                SELECT date FROM {tables.source_table}
                UNION
                SELECT date FROM {tables.summary_table}
                ORDER BY date
                """
            )
            days = [row[0] for row in rows]
            for day in days:
                await self._write(await self._replay(stream, day))

        logger.info(
            f"일별 집계 전체 재구성: {stream.value} {len(days)}일",
            extra={"stream": stream.value, "days": len(days)},
        )
        return len(days)
