"""
판매 거래 통합 테스트

기록/수정/취소 시 잔고, 일별 집계, balance_after가 함께 움직이는지 확인
"""

import sqlite3
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger import (
    EntityNotFound,
    InvalidAmount,
    Ledger,
    LineItemInput,
    PersistenceFailure,
    ValidationError,
)
from core.ledger.types import FishCategory, Party
from core.types import PartyKind, PaymentStatus, SummaryStream, TransactionStatus

DAY = date(2026, 1, 15)
DAY_STR = "2026-01-15"

pytestmark = pytest.mark.integration


async def _sell(
    ledger: Ledger,
    customer: Party,
    fish: FishCategory,
    weight: str,
    paid: str,
    price: str | None = None,
    day: date = DAY,
):
    return await ledger.engine.record_sale(
        customer.id,
        [LineItemInput(fish_category_id=fish.id, weight=weight, price_per_unit=price)],
        paid,
        transaction_date=day,
    )


async def _balance(ledger: Ledger, customer: Party) -> Decimal:
    return await ledger.entities.get_entity_balance(PartyKind.CUSTOMER, customer.id)


class TestRecordSale:
    """record_sale 테스트"""

    @pytest.mark.asyncio
    async def test_partial_payment(self, ledger: Ledger, customer: Party, rohu: FishCategory) -> None:
        """80kg @ 1000/40kg = 2000.00, 1500 지불 -> -500.00 partial"""
        tx = await _sell(ledger, customer, rohu, "80", "1500")

        assert tx.total_amount == Decimal("2000.00")
        assert tx.paid_amount == Decimal("1500.00")
        assert tx.balance_change == Decimal("-500.00")
        assert tx.balance_after == Decimal("-500.00")
        assert tx.payment_status == PaymentStatus.PARTIAL
        assert tx.status == TransactionStatus.COMPLETED
        assert tx.customer_name == "Ali Khan"
        assert tx.date == DAY_STR

        assert len(tx.line_items) == 1
        item = tx.line_items[0]
        assert item.fish_name == "Rohu"
        assert item.weight == Decimal("80.00")
        assert item.price_per_unit == Decimal("1000.00")
        assert item.subtotal == Decimal("2000.00")

        assert await _balance(ledger, customer) == Decimal("-500.00")

    @pytest.mark.asyncio
    async def test_exact_payment(self, ledger: Ledger, customer: Party, rohu: FishCategory) -> None:
        """지불액 == 총액이면 paid, 잔고 변동 정확히 0.00"""
        tx = await _sell(ledger, customer, rohu, "80", "2000.00")

        assert tx.payment_status == PaymentStatus.PAID
        assert tx.balance_change == Decimal("0.00")
        assert str(tx.balance_change) == "0.00"

    @pytest.mark.asyncio
    async def test_unpaid(self, ledger: Ledger, customer: Party, rohu: FishCategory) -> None:
        tx = await _sell(ledger, customer, rohu, "40", "0")

        assert tx.payment_status == PaymentStatus.UNPAID
        assert tx.balance_change == Decimal("-1000.00")

    @pytest.mark.asyncio
    async def test_overpayment_covers_prior_deficit(
        self,
        ledger: Ledger,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        """4000/3000 -> -1000 partial, 이후 1000/2000 -> 0.00 paid"""
        first = await _sell(ledger, customer, rohu, "160", "3000")
        assert first.total_amount == Decimal("4000.00")
        assert first.payment_status == PaymentStatus.PARTIAL
        assert await _balance(ledger, customer) == Decimal("-1000.00")

        second = await _sell(ledger, customer, rohu, "40", "2000")
        assert second.total_amount == Decimal("1000.00")
        assert second.payment_status == PaymentStatus.PAID
        assert second.balance_after == Decimal("0.00")
        assert await _balance(ledger, customer) == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_multiple_lines_and_default_price(
        self,
        ledger: Ledger,
        customer: Party,
        rohu: FishCategory,
        pomfret: FishCategory,
    ) -> None:
        """단가 생략 시 어종 참고 단가 사용, 라인 순서 유지"""
        tx = await ledger.engine.record_sale(
            customer.id,
            [
                LineItemInput(fish_category_id=pomfret.id, weight="20"),
                LineItemInput(fish_category_id=rohu.id, weight="40", price_per_unit="1200"),
            ],
            "2200",
            notes="  morning auction  ",
            transaction_date=DAY,
        )

        assert [i.fish_name for i in tx.line_items] == ["Pomfret", "Rohu"]
        assert [i.subtotal for i in tx.line_items] == [Decimal("1000.00"), Decimal("1200.00")]
        assert tx.total_amount == Decimal("2200.00")
        assert tx.notes == "morning auction"

    @pytest.mark.asyncio
    async def test_updates_daily_summary(
        self,
        ledger: Ledger,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        await _sell(ledger, customer, rohu, "80", "1500")
        await _sell(ledger, customer, rohu, "40", "1000")

        summary = await ledger.aggregator.get_day(SummaryStream.SALES, DAY_STR)

        assert summary.total_amount == Decimal("3000.00")
        assert summary.total_cash == Decimal("2500.00")
        assert summary.total_outstanding_change == Decimal("500.00")
        assert summary.transactions_count == 2

    @pytest.mark.asyncio
    async def test_cached_balance_follows(
        self,
        ledger: Ledger,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        await _sell(ledger, customer, rohu, "80", "1500")

        cached = await ledger.deriver.get_cached_balance(PartyKind.CUSTOMER, customer.id)

        assert cached == Decimal("-500.00")

    @pytest.mark.asyncio
    async def test_default_date_is_today(
        self,
        ledger: Ledger,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        tx = await ledger.engine.record_sale(
            customer.id, [LineItemInput(fish_category_id=rohu.id, weight="40")], "1000"
        )

        assert tx.date == ledger.reports.today().isoformat()


class TestRecordSaleRejects:
    """record_sale 거부 케이스 (DB 변경 없음)"""

    @pytest.mark.asyncio
    async def test_empty_lines(self, ledger: Ledger, customer: Party) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await ledger.engine.record_sale(customer.id, [], "0")

        assert exc_info.value.field == "line_items"

    @pytest.mark.asyncio
    async def test_negative_paid(self, ledger: Ledger, customer: Party, rohu: FishCategory) -> None:
        with pytest.raises(InvalidAmount):
            await _sell(ledger, customer, rohu, "80", "-1")

    @pytest.mark.asyncio
    async def test_nan_weight(self, ledger: Ledger, customer: Party, rohu: FishCategory) -> None:
        with pytest.raises(InvalidAmount):
            await _sell(ledger, customer, rohu, "NaN", "0")

    @pytest.mark.asyncio
    async def test_paid_over_ratio(self, ledger: Ledger, customer: Party, rohu: FishCategory) -> None:
        """총액 2000의 2배 초과 지불은 거부"""
        with pytest.raises(ValidationError):
            await _sell(ledger, customer, rohu, "80", "4000.01")

        assert await _balance(ledger, customer) == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_unknown_customer(self, ledger: Ledger, rohu: FishCategory) -> None:
        with pytest.raises(EntityNotFound) as exc_info:
            await ledger.engine.record_sale(
                999, [LineItemInput(fish_category_id=rohu.id, weight="40")], "0"
            )

        assert exc_info.value.kind == "customer"

    @pytest.mark.asyncio
    async def test_unknown_fish_rolls_back(self, ledger: Ledger, customer: Party) -> None:
        with pytest.raises(EntityNotFound):
            await ledger.engine.record_sale(
                customer.id, [LineItemInput(fish_category_id=999, weight="40")], "0"
            )

        page = await ledger.store.list_sales()
        assert page.total == 0

    @pytest.mark.asyncio
    async def test_summary_write_failure_rolls_back(
        self,
        ledger: Ledger,
        db: SQLiteAdapter,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        """헤더/라인/잔고 기록 후 집계 쓰기에서 실패하면 전부 롤백"""
        await _sell(ledger, customer, rohu, "40", "500")
        failing = AsyncMock(side_effect=sqlite3.OperationalError("disk I/O error"))

        with patch.object(ledger.aggregator, "apply_delta", failing):
            with pytest.raises(PersistenceFailure):
                await _sell(ledger, customer, rohu, "80", "0")

        failing.assert_awaited_once()
        assert (await ledger.store.list_sales()).total == 1
        row = await db.fetchone("SELECT COUNT(*) FROM transaction_items")
        assert row[0] == 1
        assert await ledger.deriver.get_cached_balance(PartyKind.CUSTOMER, customer.id) == Decimal(
            "-500.00"
        )
        summary = await ledger.aggregator.get_day(SummaryStream.SALES, DAY_STR)
        assert summary.total_amount == Decimal("1000.00")
        assert summary.transactions_count == 1

    @pytest.mark.asyncio
    async def test_inactive_fish(self, ledger: Ledger, customer: Party, rohu: FishCategory) -> None:
        await ledger.entities.set_fish_active(rohu.id, False)

        with pytest.raises(ValidationError):
            await _sell(ledger, customer, rohu, "40", "0")


class TestUpdateTransaction:
    """update_transaction 테스트"""

    @pytest.mark.asyncio
    async def test_paid_edit_shifts_balance_by_delta(
        self,
        ledger: Ledger,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        """지불액 1500 -> 2000 수정 시 고객 잔고 정확히 +500.00"""
        other = await _sell(ledger, customer, rohu, "40", "0")
        tx = await _sell(ledger, customer, rohu, "80", "1500")
        before = await _balance(ledger, customer)

        updated = await ledger.engine.update_transaction(tx.id, "2000", notes="settled")

        assert await _balance(ledger, customer) - before == Decimal("500.00")
        assert updated.balance_change == Decimal("0.00")
        assert updated.payment_status == PaymentStatus.PAID
        assert updated.balance_after == tx.balance_after + Decimal("500.00")
        assert updated.notes == "settled"

        unchanged = await ledger.store.get_sale(other.id)
        assert unchanged.balance_change == other.balance_change

    @pytest.mark.asyncio
    async def test_summary_adjusted_without_count_change(
        self,
        ledger: Ledger,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        tx = await _sell(ledger, customer, rohu, "80", "1500")

        await ledger.engine.update_transaction(tx.id, "2000")

        summary = await ledger.aggregator.get_day(SummaryStream.SALES, DAY_STR)
        assert summary.total_cash == Decimal("2000.00")
        assert summary.total_outstanding_change == Decimal("0.00")
        assert summary.transactions_count == 1

    @pytest.mark.asyncio
    async def test_replace_lines(
        self,
        ledger: Ledger,
        customer: Party,
        rohu: FishCategory,
        pomfret: FishCategory,
    ) -> None:
        tx = await _sell(ledger, customer, rohu, "80", "1500")

        updated = await ledger.engine.update_transaction(
            tx.id,
            "1500",
            line_items=[LineItemInput(fish_category_id=pomfret.id, weight="40")],
        )

        assert updated.total_amount == Decimal("2000.00")
        assert [i.fish_name for i in updated.line_items] == ["Pomfret"]
        assert await _balance(ledger, customer) == Decimal("-500.00")

        summary = await ledger.aggregator.get_day(SummaryStream.SALES, DAY_STR)
        assert summary.total_amount == Decimal("2000.00")

    @pytest.mark.asyncio
    async def test_keeps_inactive_fish_on_edit(
        self,
        ledger: Ledger,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        """기존 라인의 어종은 비활성이어도 수정 가능"""
        tx = await _sell(ledger, customer, rohu, "80", "0")
        await ledger.entities.set_fish_active(rohu.id, False)

        updated = await ledger.engine.update_transaction(
            tx.id,
            "0",
            line_items=[LineItemInput(fish_category_id=rohu.id, weight="40")],
        )

        assert updated.total_amount == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_edit_keeps_line_price_snapshot(
        self,
        ledger: Ledger,
        customer: Party,
        rohu: FishCategory,
        pomfret: FishCategory,
    ) -> None:
        """단가 생략 시 기존 어종은 기록 당시 단가, 새 어종은 현재 참고 단가"""
        tx = await _sell(ledger, customer, rohu, "40", "0", price="900")
        await ledger.entities.update_fish_category(rohu.id, price_per_unit="1200")

        updated = await ledger.engine.update_transaction(
            tx.id,
            "0",
            line_items=[
                LineItemInput(fish_category_id=rohu.id, weight="80"),
                LineItemInput(fish_category_id=pomfret.id, weight="40"),
            ],
        )

        assert [i.price_per_unit for i in updated.line_items] == [
            Decimal("900.00"),
            Decimal("2000.00"),
        ]
        assert updated.total_amount == Decimal("3800.00")

    @pytest.mark.asyncio
    async def test_unknown_transaction(self, ledger: Ledger) -> None:
        with pytest.raises(EntityNotFound) as exc_info:
            await ledger.engine.update_transaction(999, "0")

        assert exc_info.value.kind == "transaction"


class TestVoidTransaction:
    """void_transaction 테스트"""

    @pytest.mark.asyncio
    async def test_restores_balance_and_summary(
        self,
        ledger: Ledger,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        await _sell(ledger, customer, rohu, "40", "500")
        before_balance = await _balance(ledger, customer)
        before_summary = await ledger.aggregator.get_day(SummaryStream.SALES, DAY_STR)

        tx = await _sell(ledger, customer, rohu, "80", "1500")
        voided = await ledger.engine.void_transaction(tx.id)

        assert voided.status == TransactionStatus.VOIDED
        assert voided.voided_at is not None
        assert await _balance(ledger, customer) == before_balance
        assert (
            await ledger.deriver.get_cached_balance(PartyKind.CUSTOMER, customer.id)
            == before_balance
        )
        assert await ledger.aggregator.get_day(SummaryStream.SALES, DAY_STR) == before_summary

    @pytest.mark.asyncio
    async def test_row_preserved(self, ledger: Ledger, customer: Party, rohu: FishCategory) -> None:
        tx = await _sell(ledger, customer, rohu, "80", "1500")
        await ledger.engine.void_transaction(tx.id)

        stored = await ledger.store.get_sale(tx.id)

        assert stored is not None
        assert stored.status == TransactionStatus.VOIDED
        assert len(stored.line_items) == 1

    @pytest.mark.asyncio
    async def test_void_twice(self, ledger: Ledger, customer: Party, rohu: FishCategory) -> None:
        tx = await _sell(ledger, customer, rohu, "80", "1500")
        await ledger.engine.void_transaction(tx.id)

        with pytest.raises(EntityNotFound):
            await ledger.engine.void_transaction(tx.id)

    @pytest.mark.asyncio
    async def test_edit_voided(self, ledger: Ledger, customer: Party, rohu: FishCategory) -> None:
        tx = await _sell(ledger, customer, rohu, "80", "1500")
        await ledger.engine.void_transaction(tx.id)

        with pytest.raises(EntityNotFound):
            await ledger.engine.update_transaction(tx.id, "2000")


class TestDerivedBalanceProperty:
    """임의의 기록/수정/취소 순서 후 파생 잔고 == 취소되지 않은 거래 변동 합계"""

    @pytest.mark.asyncio
    async def test_mixed_sequence(
        self,
        ledger: Ledger,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        a = await _sell(ledger, customer, rohu, "80", "1500")
        b = await _sell(ledger, customer, rohu, "40", "0", day=date(2026, 1, 16))
        c = await _sell(ledger, customer, rohu, "120", "3000")
        await ledger.engine.update_transaction(a.id, "1800")
        await ledger.engine.void_transaction(b.id)
        await ledger.engine.update_transaction(c.id, "2500")

        expected = Decimal("0.00")
        for tx_id in (a.id, c.id):
            expected += (await ledger.store.get_sale(tx_id)).balance_change

        assert await _balance(ledger, customer) == expected == Decimal("-700.00")
        assert await ledger.deriver.check(PartyKind.CUSTOMER, customer.id) is None

    @pytest.mark.asyncio
    async def test_summary_equals_replay(
        self,
        ledger: Ledger,
        customer: Party,
        rohu: FishCategory,
    ) -> None:
        a = await _sell(ledger, customer, rohu, "80", "1500")
        b = await _sell(ledger, customer, rohu, "40", "200")
        await _sell(ledger, customer, rohu, "60", "2000")
        await ledger.engine.update_transaction(a.id, "100")
        await ledger.engine.void_transaction(b.id)

        incremental = await ledger.aggregator.get_day(SummaryStream.SALES, DAY_STR)
        replayed = await ledger.aggregator.rebuild_date(SummaryStream.SALES, DAY_STR)

        assert incremental == replayed
        assert replayed.total_amount == Decimal("3500.00")
        assert replayed.total_cash == Decimal("2100.00")
        assert replayed.transactions_count == 2
