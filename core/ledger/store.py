"""
Ledger 저장소

판매/매입 거래 행 저장 및 조회, 캐시 잔고 갱신.
쓰기 메서드는 커밋하지 않는다. 호출 측(TransactionEngine)이 연
작업 단위 안에서만 사용한다.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.constants import Defaults
from core.ledger.errors import EntityNotFound
from core.ledger.money import ZERO, Money, add, format_money, parse_money
from core.ledger.types import (
    DEDUCTION_COLUMNS,
    PARTY_TABLES,
    FarmerTransaction,
    LineItem,
    Page,
    SaleTransaction,
    clamp_page,
)
from core.types import DeductionKind, PartyKind, PaymentStatus, TransactionStatus

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


SALE_COLUMNS = """
    t.id, t.customer_id, t.date, t.time,
    t.total_amount, t.paid_amount, t.balance_change, t.balance_after, t.payment_status,
    t.notes, t.status, t.created_at, t.updated_at, t.voided_at,
    c.name
"""

PURCHASE_COLUMNS = """
    f.id, f.farmer_id, f.date, f.time,
    f.fish_category_id, f.fish_name, f.weight, f.price_per_unit,
    f.fish_value, f.commission_percent, f.commission_amount,
    f.clerk_fee, f.ice_charges, f.labour_charges, f.extra_charges,
    f.total_amount, f.paid_amount, f.balance_change, f.balance_after, f.payment_status,
    f.notes, f.status, f.created_at, f.updated_at, f.voided_at,
    p.name
"""


def _row_to_sale(row: tuple[Any, ...]) -> SaleTransaction:
    return SaleTransaction(
        id=row[0],
        customer_id=row[1],
        date=row[2],
        time=row[3],
        total_amount=parse_money(row[4]),
        paid_amount=parse_money(row[5]),
        balance_change=parse_money(row[6]),
        balance_after=parse_money(row[7]),
        payment_status=PaymentStatus(row[8]),
        notes=row[9],
        status=TransactionStatus(row[10]),
        created_at=row[11],
        updated_at=row[12],
        voided_at=row[13],
        customer_name=row[14],
    )


def _row_to_line_item(row: tuple[Any, ...]) -> LineItem:
    return LineItem(
        id=row[0],
        transaction_id=row[1],
        fish_category_id=row[2],
        fish_name=row[3],
        weight=Decimal(row[4]),
        price_per_unit=parse_money(row[5]),
        subtotal=parse_money(row[6]),
    )


def _row_to_purchase(row: tuple[Any, ...]) -> FarmerTransaction:
    return FarmerTransaction(
        id=row[0],
        farmer_id=row[1],
        date=row[2],
        time=row[3],
        fish_category_id=row[4],
        fish_name=row[5],
        weight=Decimal(row[6]),
        price_per_unit=parse_money(row[7]),
        fish_value=parse_money(row[8]),
        commission_percent=Decimal(row[9]),
        commission_amount=parse_money(row[10]),
        deductions={
            DeductionKind.CLERK_FEE: parse_money(row[11]),
            DeductionKind.ICE: parse_money(row[12]),
            DeductionKind.LABOUR: parse_money(row[13]),
            DeductionKind.EXTRA: parse_money(row[14]),
        },
        total_amount=parse_money(row[15]),
        paid_amount=parse_money(row[16]),
        balance_change=parse_money(row[17]),
        balance_after=parse_money(row[18]),
        payment_status=PaymentStatus(row[19]),
        notes=row[20],
        status=TransactionStatus(row[21]),
        created_at=row[22],
        updated_at=row[23],
        voided_at=row[24],
        farmer_name=row[25],
    )


class LedgerStore:
    """Ledger 저장소

    거래 헤더/라인/매입 행과 고객·어민 캐시 잔고를 다루는 클래스.

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # -------------------------------------------------------------------------
    # 캐시 잔고
    # -------------------------------------------------------------------------

    async def set_cached_balance(self, kind: PartyKind, entity_id: int, balance: Money) -> None:
        await self.db.execute(
            f"""
            UPDATE {PARTY_TABLES[kind]}
            SET balance = ?, updated_at = datetime('now')
            WHERE id = ?
            """,
            (format_money(balance), entity_id),
        )

    async def shift_cached_balance(self, kind: PartyKind, entity_id: int, delta: Money) -> Money:
        """캐시 잔고에 변동분 반영 (전체 재계산 없음)

        Returns:
            반영 후 캐시 잔고
        """
        row = await self.db.fetchone(
            f"SELECT balance FROM {PARTY_TABLES[kind]} WHERE id = ?",
            (entity_id,),
        )
        if row is None:
            raise EntityNotFound(kind.value, entity_id)

        new_balance = add(parse_money(row[0]), delta)
        await self.set_cached_balance(kind, entity_id, new_balance)
        return new_balance

    # -------------------------------------------------------------------------
    # 판매 거래
    # -------------------------------------------------------------------------

    async def insert_sale(
        self,
        customer_id: int,
        date: str,
        time: str,
        total_amount: Money,
        paid_amount: Money,
        balance_change: Money,
        balance_after: Money,
        payment_status: PaymentStatus,
        notes: str | None,
    ) -> int:
        """판매 헤더 INSERT

        Returns:
            생성된 거래 ID
        """
        cursor = await self.db.execute(
            """
            INSERT INTO transactions (
                customer_id, date, time,
                total_amount, paid_amount, balance_change, balance_after, payment_status,
                notes, status
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                customer_id,
                date,
                time,
                format_money(total_amount),
                format_money(paid_amount),
                format_money(balance_change),
                format_money(balance_after),
                payment_status.value,
                notes,
                TransactionStatus.COMPLETED.value,
            ),
        )
        return cursor.lastrowid

    async def insert_line_items(
        self,
        transaction_id: int,
        items: list[tuple[int | None, str, Decimal, Money, Money]],
    ) -> None:
        """판매 라인 INSERT

        Args:
            items: (fish_category_id, fish_name, weight, price_per_unit, subtotal) 목록
        """
        await self.db.executemany(
            """
            INSERT INTO transaction_items (
                transaction_id, fish_category_id, fish_name,
                weight, price_per_unit, subtotal, line_order
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    transaction_id,
                    fish_id,
                    fish_name,
                    str(weight),
                    format_money(price),
                    format_money(subtotal),
                    i,
                )
                for i, (fish_id, fish_name, weight, price, subtotal) in enumerate(items)
            ],
        )

    async def replace_line_items(
        self,
        transaction_id: int,
        items: list[tuple[int | None, str, Decimal, Money, Money]],
    ) -> None:
        await self.db.execute(
            "DELETE FROM transaction_items WHERE transaction_id = ?",
            (transaction_id,),
        )
        await self.insert_line_items(transaction_id, items)

    async def update_sale(
        self,
        transaction_id: int,
        total_amount: Money,
        paid_amount: Money,
        balance_change: Money,
        balance_after: Money,
        payment_status: PaymentStatus,
        notes: str | None,
    ) -> None:
        await self.db.execute(
            """
            UPDATE transactions
            SET total_amount = ?, paid_amount = ?, balance_change = ?, balance_after = ?,
                payment_status = ?, notes = ?, updated_at = datetime('now')
            WHERE id = ?
            """,
            (
                format_money(total_amount),
                format_money(paid_amount),
                format_money(balance_change),
                format_money(balance_after),
                payment_status.value,
                notes,
                transaction_id,
            ),
        )

    async def get_sale(self, transaction_id: int) -> SaleTransaction | None:
        """판매 거래 조회 (라인 포함)

        Returns:
            SaleTransaction (없으면 None)
        """
        row = await self.db.fetchone(
            f"""
            SELECT {SALE_COLUMNS}
            FROM transactions t
            JOIN customers c ON c.id = t.customer_id
            WHERE t.id = ?
            """,
            (transaction_id,),
        )
        if not row:
            return None

        transaction = _row_to_sale(row)
        item_rows = await self.db.fetchall(
            """
            SELECT id, transaction_id, fish_category_id, fish_name,
                   weight, price_per_unit, subtotal
            FROM transaction_items
            WHERE transaction_id = ?
            ORDER BY line_order, id
            """,
            (transaction_id,),
        )
        transaction.line_items = [_row_to_line_item(r) for r in item_rows]
        return transaction

    async def list_sales(
        self,
        limit: int = Defaults.PAGE_LIMIT,
        offset: int = 0,
        customer_id: int | None = None,
    ) -> Page[SaleTransaction]:
        """판매 거래 목록 (최신순, 라인 제외)"""
        limit, offset = clamp_page(limit, offset)
        where = ""
        params: tuple[Any, ...] = ()
        if customer_id is not None:
            where = "WHERE t.customer_id = ?"
            params = (customer_id,)

        total_row = await self.db.fetchone(
            f"SELECT COUNT(*) FROM transactions t {where}",
            params,
        )
        rows = await self.db.fetchall(
            f"""
            SELECT {SALE_COLUMNS}
            FROM transactions t
            JOIN customers c ON c.id = t.customer_id
            {where}
            ORDER BY t.date DESC, t.time DESC, t.id DESC
            LIMIT ? OFFSET ?
            """,
            (*params, limit, offset),
        )
        return Page(
            items=[_row_to_sale(r) for r in rows],
            total=total_row[0] if total_row else 0,
            offset=offset,
            limit=limit,
        )

    # -------------------------------------------------------------------------
    # 매입 거래
    # -------------------------------------------------------------------------

    async def insert_purchase(
        self,
        farmer_id: int,
        date: str,
        time: str,
        fish_category_id: int,
        fish_name: str,
        weight: Decimal,
        price_per_unit: Money,
        fish_value: Money,
        commission_percent: Decimal,
        commission_amount: Money,
        deductions: dict[DeductionKind, Money],
        total_amount: Money,
        paid_amount: Money,
        balance_change: Money,
        balance_after: Money,
        payment_status: PaymentStatus,
        notes: str | None,
    ) -> int:
        """매입 행 INSERT (공제 항목은 종류별 컬럼)"""
        cursor = await self.db.execute(
            f"""
            INSERT INTO farmer_transactions (
                farmer_id, date, time,
                fish_category_id, fish_name, weight, price_per_unit,
                fish_value, commission_percent, commission_amount,
                {", ".join(DEDUCTION_COLUMNS.values())},
                total_amount, paid_amount, balance_change, balance_after, payment_status,
                notes, status
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                farmer_id,
                date,
                time,
                fish_category_id,
                fish_name,
                str(weight),
                format_money(price_per_unit),
                format_money(fish_value),
                str(commission_percent),
                format_money(commission_amount),
                *(format_money(deductions.get(kind, ZERO)) for kind in DEDUCTION_COLUMNS),
                format_money(total_amount),
                format_money(paid_amount),
                format_money(balance_change),
                format_money(balance_after),
                payment_status.value,
                notes,
                TransactionStatus.COMPLETED.value,
            ),
        )
        return cursor.lastrowid

    async def update_purchase(
        self,
        transaction_id: int,
        paid_amount: Money,
        balance_change: Money,
        balance_after: Money,
        payment_status: PaymentStatus,
        notes: str | None,
    ) -> None:
        await self.db.execute(
            """
            UPDATE farmer_transactions
            SET paid_amount = ?, balance_change = ?, balance_after = ?,
                payment_status = ?, notes = ?, updated_at = datetime('now')
            WHERE id = ?
            """,
            (
                format_money(paid_amount),
                format_money(balance_change),
                format_money(balance_after),
                payment_status.value,
                notes,
                transaction_id,
            ),
        )

    async def get_purchase(self, transaction_id: int) -> FarmerTransaction | None:
        row = await self.db.fetchone(
            f"""
            SELECT {PURCHASE_COLUMNS}
            FROM farmer_transactions f
            JOIN farmers p ON p.id = f.farmer_id
            WHERE f.id = ?
            """,
            (transaction_id,),
        )
        return _row_to_purchase(row) if row else None

    async def list_purchases(
        self,
        limit: int = Defaults.PAGE_LIMIT,
        offset: int = 0,
        farmer_id: int | None = None,
    ) -> Page[FarmerTransaction]:
        """매입 거래 목록 (최신순)"""
        limit, offset = clamp_page(limit, offset)
        where = ""
        params: tuple[Any, ...] = ()
        if farmer_id is not None:
            where = "WHERE f.farmer_id = ?"
            params = (farmer_id,)

        total_row = await self.db.fetchone(
            f"SELECT COUNT(*) FROM farmer_transactions f {where}",
            params,
        )
        rows = await self.db.fetchall(
            f"""
            SELECT {PURCHASE_COLUMNS}
            FROM farmer_transactions f
            JOIN farmers p ON p.id = f.farmer_id
            {where}
            ORDER BY f.date DESC, f.time DESC, f.id DESC
            LIMIT ? OFFSET ?
            """,
            (*params, limit, offset),
        )
        return Page(
            items=[_row_to_purchase(r) for r in rows],
            total=total_row[0] if total_row else 0,
            offset=offset,
            limit=limit,
        )

    # -------------------------------------------------------------------------
    # 공통
    # -------------------------------------------------------------------------

    async def mark_voided(self, table: str, transaction_id: int) -> None:
        """거래 취소 표시 (행은 감사용으로 보존)"""
        await self.db.execute(
            f"""
            UPDATE {table}
            SET status = ?, voided_at = datetime('now'), updated_at = datetime('now')
            WHERE id = ?
            """,
            (TransactionStatus.VOIDED.value, transaction_id),
        )
