"""
어시장 장부 (Ledger) 시스템

고객 판매/어민 매입 거래를 기록하고, 거래 내역에서 잔고를 파생하며,
일별 집계를 증분 유지한다.

사용 예시:
```python
from core.ledger import Ledger

ledger = Ledger(db, settings.ledger)

customer = await ledger.entities.create_party(PartyKind.CUSTOMER, "Ali Khan", "0300-1234567")
fish = await ledger.entities.create_fish_category("Rohu", "8000")

sale = await ledger.engine.record_sale(
    customer.id,
    [LineItemInput(fish_category_id=fish.id, weight="80")],
    paid_amount="12000",
)

balance = await ledger.entities.get_entity_balance(PartyKind.CUSTOMER, customer.id)
stats = await ledger.reports.get_dashboard_stats()
```
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.config.loader import LedgerConfig
from core.ledger.aggregator import DailyAggregator
from core.ledger.audit import BalanceAuditor
from core.ledger.balance import BalanceDeriver
from core.ledger.engine import TransactionEngine
from core.ledger.entities import EntityStore
from core.ledger.errors import (
    DuplicateEntity,
    EntityNotFound,
    InvalidAmount,
    LedgerError,
    PersistenceFailure,
    ValidationError,
)
from core.ledger.reports import ReportQueries
from core.ledger.schema import init_ledger_schema
from core.ledger.store import LedgerStore
from core.ledger.types import (
    Deduction,
    FishDetails,
    LineItemInput,
    Page,
)

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter


class Ledger:
    """Ledger 구성 요소 묶음

    같은 SQLiteAdapter를 공유하는 저장소/엔진/집계/리포트를 한 번에 생성.

    Args:
        db: SQLite 어댑터
        config: Ledger 설정
    """

    def __init__(self, db: SQLiteAdapter, config: LedgerConfig):
        self.db = db
        self.config = config
        self.deriver = BalanceDeriver(db, config.drift_tolerance)
        self.entities = EntityStore(db, self.deriver)
        self.store = LedgerStore(db)
        self.aggregator = DailyAggregator(db, config.clamp_daily_outstanding)
        self.engine = TransactionEngine(
            db, config, self.entities, self.store, self.aggregator, self.deriver
        )
        self.reports = ReportQueries(
            db, self.entities, self.deriver, self.aggregator, config.timezone_offset_hours
        )


__all__ = [
    # 핵심 클래스
    "Ledger",
    "LedgerStore",
    "EntityStore",
    "TransactionEngine",
    "DailyAggregator",
    "BalanceDeriver",
    "BalanceAuditor",
    "ReportQueries",
    "init_ledger_schema",
    # 입력 타입
    "LineItemInput",
    "FishDetails",
    "Deduction",
    "Page",
    # 예외
    "LedgerError",
    "ValidationError",
    "InvalidAmount",
    "DuplicateEntity",
    "EntityNotFound",
    "PersistenceFailure",
]
