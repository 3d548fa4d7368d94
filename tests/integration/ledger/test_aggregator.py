"""
일별 집계 통합 테스트

증분 갱신 결과 == 재생 결과, 전체 재구성, 0 하한 옵션
"""

from datetime import date
from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.ledger import Ledger, LineItemInput
from core.ledger.types import FishCategory, Party
from core.types import SummaryStream

pytestmark = pytest.mark.integration


async def _sell(ledger: Ledger, customer: Party, fish: FishCategory, weight: str, paid: str, day: date):
    return await ledger.engine.record_sale(
        customer.id,
        [LineItemInput(fish_category_id=fish.id, weight=weight)],
        paid,
        transaction_date=day,
    )


class TestRebuild:
    """집계 재구성"""

    @pytest.mark.asyncio
    async def test_rebuild_all_repairs_tampered_rows(
        self,
        ledger: Ledger,
        db: SQLiteAdapter,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        await _sell(ledger, customer, rohu, "80", "1500", date(2026, 1, 14))
        await _sell(ledger, customer, rohu, "40", "1000", date(2026, 1, 15))
        expected = await ledger.aggregator.get_day(SummaryStream.SALES, "2026-01-14")

        await db.execute(
            "UPDATE daily_summary SET total_sales = '99.00', transactions_count = 7"
        )

        days = await ledger.aggregator.rebuild_all(SummaryStream.SALES)

        assert days == 2
        assert await ledger.aggregator.get_day(SummaryStream.SALES, "2026-01-14") == expected

    @pytest.mark.asyncio
    async def test_rebuild_date_zeroes_orphan_row(
        self,
        ledger: Ledger,
        db: SQLiteAdapter,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        """거래 없는 날의 잔여 행은 0으로 덮어씀"""
        tx = await _sell(ledger, customer, rohu, "40", "0", date(2026, 1, 15))
        await db.execute("UPDATE transactions SET status = 'voided' WHERE id = ?", (tx.id,))

        summary = await ledger.aggregator.rebuild_date(SummaryStream.SALES, "2026-01-15")

        assert summary.transactions_count == 0
        stored = await ledger.aggregator.get_day(SummaryStream.SALES, "2026-01-15")
        assert stored.total_amount == Decimal("0.00")
        assert stored.total_outstanding_change == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_rebuild_empty_day_writes_nothing(self, ledger: Ledger, db: SQLiteAdapter) -> None:
        await ledger.aggregator.rebuild_date(SummaryStream.PURCHASES, "2026-01-15")

        row = await db.fetchone("SELECT COUNT(*) FROM farmer_daily_summary")
        assert row[0] == 0

    @pytest.mark.asyncio
    async def test_get_range_descending(
        self,
        ledger: Ledger,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        for day in (date(2026, 1, 10), date(2026, 1, 12), date(2026, 1, 20)):
            await _sell(ledger, customer, rohu, "40", "1000", day)

        days = await ledger.aggregator.get_range(
            SummaryStream.SALES, date(2026, 1, 10), date(2026, 1, 15)
        )

        assert [d.date for d in days] == ["2026-01-12", "2026-01-10"]


class TestClamp:
    """누적 미수 변동 0 하한"""

    @pytest.mark.asyncio
    async def test_overpayment_without_clamp(
        self,
        ledger: Ledger,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        await _sell(ledger, customer, rohu, "40", "1500", date(2026, 1, 15))

        summary = await ledger.aggregator.get_day(SummaryStream.SALES, "2026-01-15")

        assert summary.total_outstanding_change == Decimal("-500.00")

    @pytest.mark.asyncio
    async def test_overpayment_with_clamp(
        self,
        db: SQLiteAdapter,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        clamped = Ledger(db, LedgerConfig(clamp_daily_outstanding=True))

        await _sell(clamped, customer, rohu, "40", "1500", date(2026, 1, 15))
        summary = await clamped.aggregator.get_day(SummaryStream.SALES, "2026-01-15")

        assert summary.total_outstanding_change == Decimal("0.00")
        assert summary.total_cash == Decimal("1500.00")

        replayed = await clamped.aggregator.rebuild_date(SummaryStream.SALES, "2026-01-15")
        assert replayed == summary

    @pytest.mark.asyncio
    async def test_void_under_clamp_matches_replay(
        self,
        db: SQLiteAdapter,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        """하한에 걸린 거래를 취소해도 잔여 미수 변동이 남지 않음"""
        clamped = Ledger(db, LedgerConfig(clamp_daily_outstanding=True))
        tx = await _sell(clamped, customer, rohu, "40", "1500", date(2026, 1, 15))

        await clamped.engine.void_transaction(tx.id)
        live = await clamped.aggregator.get_day(SummaryStream.SALES, "2026-01-15")

        assert live.total_outstanding_change == Decimal("0.00")
        assert live.transactions_count == 0
        assert await clamped.aggregator.rebuild_date(SummaryStream.SALES, "2026-01-15") == live

    @pytest.mark.asyncio
    async def test_floor_applies_to_day_total(
        self,
        db: SQLiteAdapter,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        """하한은 하루 합계에만 적용 (-500 + 1000 = 500)"""
        clamped = Ledger(db, LedgerConfig(clamp_daily_outstanding=True))
        overpaid = await _sell(clamped, customer, rohu, "40", "1500", date(2026, 1, 15))
        await _sell(clamped, customer, rohu, "40", "0", date(2026, 1, 15))

        summary = await clamped.aggregator.get_day(SummaryStream.SALES, "2026-01-15")
        assert summary.total_outstanding_change == Decimal("500.00")

        await clamped.engine.update_transaction(overpaid.id, "1000")
        edited = await clamped.aggregator.get_day(SummaryStream.SALES, "2026-01-15")
        assert edited.total_outstanding_change == Decimal("1000.00")
        assert await clamped.aggregator.rebuild_date(SummaryStream.SALES, "2026-01-15") == edited

        days = await clamped.aggregator.get_range(
            SummaryStream.SALES, date(2026, 1, 1), date(2026, 1, 31)
        )
        assert days == [edited]
