"""
Ledger 스키마 초기화

Web/스크립트 시작 시 자동으로 Ledger 테이블과 인덱스 생성.
CREATE IF NOT EXISTS 패턴으로 안전하게 동작.

금액 컬럼은 모두 TEXT (소수점 2자리 문자열). REAL 사용 금지.
주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


LEDGER_TABLES = (
    "customers",
    "farmers",
    "fish_categories",
    "transactions",
    "transaction_items",
    "farmer_transactions",
    "daily_summary",
    "farmer_daily_summary",
)


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """Ledger 스키마 초기화 (테이블 + 인덱스)

    Web/스크립트 시작 시 호출되어 필요한 모든 테이블을 생성.
    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).

    Args:
        db: SQLiteAdapter 인스턴스
    """
    async with db.transaction():
        await _create_party_tables(db)
        await _create_fish_table(db)
        await _create_transaction_tables(db)
        await _create_summary_tables(db)
        await _create_indexes(db)
    logger.info("Ledger 스키마 초기화 완료")


async def _create_party_tables(db: "SQLiteAdapter") -> None:
    """고객/어민 테이블 생성 (구조 동일, 잔고 부호 의미만 다름)"""
    for table in ("customers", "farmers"):
        await db.execute(f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id               INTEGER PRIMARY KEY AUTOINCREMENT,
                name             TEXT NOT NULL,
                phone            TEXT,
                address          TEXT,

                name_key         TEXT NOT NULL,
                phone_key        TEXT NOT NULL DEFAULT '',

                balance          TEXT NOT NULL DEFAULT '0.00',

                created_at       TEXT NOT NULL DEFAULT (datetime('now')),
                updated_at       TEXT NOT NULL DEFAULT (datetime('now')),

                UNIQUE(name_key, phone_key)
            )
        """)


async def _create_fish_table(db: "SQLiteAdapter") -> None:
    await db.execute("""
        CREATE TABLE IF NOT EXISTS fish_categories (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            name             TEXT NOT NULL UNIQUE COLLATE NOCASE,
            price_per_unit   TEXT NOT NULL,
            active           INTEGER NOT NULL DEFAULT 1,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)


async def _create_transaction_tables(db: "SQLiteAdapter") -> None:
    """판매/매입 거래 테이블 생성"""

    # transactions (고객 판매 헤더)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            customer_id      INTEGER NOT NULL REFERENCES customers(id),
            date             TEXT NOT NULL,
            time             TEXT NOT NULL,

            total_amount     TEXT NOT NULL,
            paid_amount      TEXT NOT NULL,
            balance_change   TEXT NOT NULL,
            balance_after    TEXT NOT NULL,
            payment_status   TEXT NOT NULL,

            notes            TEXT,
            status           TEXT NOT NULL DEFAULT 'completed',

            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at       TEXT NOT NULL DEFAULT (datetime('now')),
            voided_at        TEXT
        )
    """)

    # transaction_items (판매 라인, 어종 이름/단가 스냅샷)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS transaction_items (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            transaction_id   INTEGER NOT NULL REFERENCES transactions(id) ON DELETE CASCADE,
            fish_category_id INTEGER REFERENCES fish_categories(id) ON DELETE SET NULL,
            fish_name        TEXT NOT NULL,
            weight           TEXT NOT NULL,
            price_per_unit   TEXT NOT NULL,
            subtotal         TEXT NOT NULL,
            line_order       INTEGER NOT NULL DEFAULT 0
        )
    """)

    # farmer_transactions (어민 매입, 공제 항목별 컬럼)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS farmer_transactions (
            id                 INTEGER PRIMARY KEY AUTOINCREMENT,
            farmer_id          INTEGER NOT NULL REFERENCES farmers(id),
            date               TEXT NOT NULL,
            time               TEXT NOT NULL,

            fish_category_id   INTEGER REFERENCES fish_categories(id) ON DELETE SET NULL,
            fish_name          TEXT NOT NULL,
            weight             TEXT NOT NULL,
            price_per_unit     TEXT NOT NULL,
            fish_value         TEXT NOT NULL,
            commission_percent TEXT NOT NULL DEFAULT '0',
            commission_amount  TEXT NOT NULL DEFAULT '0.00',

            clerk_fee          TEXT NOT NULL DEFAULT '0.00',
            ice_charges        TEXT NOT NULL DEFAULT '0.00',
            labour_charges     TEXT NOT NULL DEFAULT '0.00',
            extra_charges      TEXT NOT NULL DEFAULT '0.00',

            total_amount       TEXT NOT NULL,
            paid_amount        TEXT NOT NULL,
            balance_change     TEXT NOT NULL,
            balance_after      TEXT NOT NULL,
            payment_status     TEXT NOT NULL,

            notes              TEXT,
            status             TEXT NOT NULL DEFAULT 'completed',

            created_at         TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at         TEXT NOT NULL DEFAULT (datetime('now')),
            voided_at          TEXT
        )
    """)


async def _create_summary_tables(db: "SQLiteAdapter") -> None:
    """일별 집계 테이블 생성 (거래 재생으로 재구성 가능한 캐시)"""

    await db.execute("""
        CREATE TABLE IF NOT EXISTS daily_summary (
            date                     TEXT PRIMARY KEY,
            total_sales              TEXT NOT NULL DEFAULT '0.00',
            total_cash_received      TEXT NOT NULL DEFAULT '0.00',
            total_outstanding_change TEXT NOT NULL DEFAULT '0.00',
            transactions_count       INTEGER NOT NULL DEFAULT 0,
            updated_at               TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS farmer_daily_summary (
            date                     TEXT PRIMARY KEY,
            total_purchases          TEXT NOT NULL DEFAULT '0.00',
            total_cash_paid          TEXT NOT NULL DEFAULT '0.00',
            total_outstanding_change TEXT NOT NULL DEFAULT '0.00',
            transactions_count       INTEGER NOT NULL DEFAULT 0,
            updated_at               TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)


async def _create_indexes(db: "SQLiteAdapter") -> None:
    """인덱스 생성 (엔티티 ID, 날짜 기준 조회)"""

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_customers_name
        ON customers(name_key)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_farmers_name
        ON farmers(name_key)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_transactions_customer
        ON transactions(customer_id, status)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_transactions_date
        ON transactions(date, status)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_transaction_items_tx
        ON transaction_items(transaction_id)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_farmer_transactions_farmer
        ON farmer_transactions(farmer_id, status)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_farmer_transactions_date
        ON farmer_transactions(date, status)
    """)
