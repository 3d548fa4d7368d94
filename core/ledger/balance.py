"""
잔고 파생

엔티티 잔고의 권위값 = 취소되지 않은 거래의 balance_change 합계.
고객/어민 테이블의 balance 컬럼은 조회 성능용 캐시이며,
조회 시에는 항상 거래 내역에서 다시 계산한다.

캐시와 파생값이 허용 오차 이상 다르면 경고 로그만 남기고
파생값을 사용한다 (조회 경로에서는 예외를 발생시키지 않음).
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable

from core.constants import Defaults
from core.ledger.errors import EntityNotFound
from core.ledger.money import ZERO, Money, add, format_money, parse_money
from core.ledger.types import PARTY_TABLES, PARTY_TRANSACTION_TABLES, BalanceDrift
from core.types import PartyKind, TransactionStatus

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class BalanceDeriver:
    """잔고 파생/점검/보정

    Args:
        db: SQLite 어댑터
        tolerance: 캐시/파생 잔고 허용 오차
    """

    def __init__(self, db: SQLiteAdapter, tolerance: Decimal = Defaults.DRIFT_TOLERANCE):
        self.db = db
        self.tolerance = tolerance

    async def derive_balance(self, kind: PartyKind, entity_id: int) -> Money:
        """거래 내역에서 잔고 계산 (누적 단계마다 반올림)

        존재 여부는 확인하지 않는다 (거래 없는 ID는 0.00).
        """
        table, fk = PARTY_TRANSACTION_TABLES[kind]
        rows = await self.db.fetchall(
            f"""
            SELECT balance_change FROM {table}
            WHERE {fk} = ? AND status = ?
            ORDER BY id
            """,
            (entity_id, TransactionStatus.COMPLETED.value),
        )
        balance = ZERO
        for row in rows:
            balance = add(balance, parse_money(row[0]))
        return balance

    async def derive_balances(
        self,
        kind: PartyKind,
        ids: Iterable[int] | None = None,
    ) -> dict[int, Money]:
        """여러 엔티티의 잔고 일괄 계산

        Args:
            kind: 고객/어민
            ids: 대상 ID 목록 (None이면 전체 엔티티)

        Returns:
            {entity_id: balance} (거래 없는 엔티티는 0.00)
        """
        table, fk = PARTY_TRANSACTION_TABLES[kind]

        if ids is None:
            id_rows = await self.db.fetchall(f"SELECT id FROM {PARTY_TABLES[kind]}")
            wanted = [row[0] for row in id_rows]
        else:
            wanted = list(ids)

        balances: dict[int, Money] = {entity_id: ZERO for entity_id in wanted}
        if not wanted:
            return balances

        if ids is None:
            rows = await self.db.fetchall(
                f"""
                SELECT {fk}, balance_change FROM {table}
                WHERE status = ?
                ORDER BY id
                """,
                (TransactionStatus.COMPLETED.value,),
            )
        else:
            placeholders = ",".join("?" for _ in wanted)
            rows = await self.db.fetchall(
                f"""
                SELECT {fk}, balance_change FROM {table}
                WHERE status = ? AND {fk} IN ({placeholders})
                ORDER BY id
                """,
                (TransactionStatus.COMPLETED.value, *wanted),
            )

        for entity_id, change in rows:
            if entity_id in balances:
                balances[entity_id] = add(balances[entity_id], parse_money(change))
        return balances

    def observe(
        self,
        kind: PartyKind,
        entity_id: int,
        cached: Money,
        derived: Money,
    ) -> Money:
        """캐시/파생 잔고 비교 후 파생값 반환 (불일치 시 경고만)"""
        if abs(derived - cached) > self.tolerance:
            logger.warning(
                f"잔고 불일치 감지: {kind.value} {entity_id} "
                f"캐시={cached} 파생={derived}",
                extra={
                    "kind": kind.value,
                    "entity_id": entity_id,
                    "cached": str(cached),
                    "derived": str(derived),
                },
            )
        return derived

    async def get_cached_balance(self, kind: PartyKind, entity_id: int) -> Money:
        """캐시 잔고 조회

        Raises:
            EntityNotFound: 엔티티가 없는 경우
        """
        row = await self.db.fetchone(
            f"SELECT balance FROM {PARTY_TABLES[kind]} WHERE id = ?",
            (entity_id,),
        )
        if row is None:
            raise EntityNotFound(kind.value, entity_id)
        return parse_money(row[0])

    async def check(self, kind: PartyKind, entity_id: int) -> BalanceDrift | None:
        """단일 엔티티 캐시 점검

        Returns:
            BalanceDrift 또는 None (허용 오차 이내)
        """
        cached = await self.get_cached_balance(kind, entity_id)
        derived = await self.derive_balance(kind, entity_id)
        if abs(derived - cached) > self.tolerance:
            return BalanceDrift(kind=kind, entity_id=entity_id, cached=cached, derived=derived)
        return None

    async def reconcile(self, kind: PartyKind, fix: bool = False) -> list[BalanceDrift]:
        """전체 엔티티 캐시 점검 (fix=True면 파생값으로 보정)

        보정은 하나의 작업 단위 안에서 읽기와 쓰기를 함께 수행한다.

        Returns:
            감지된 불일치 목록
        """
        if not fix:
            return await self._scan(kind)

        async with self.db.transaction():
            drifts = await self._scan(kind)
            for drift in drifts:
                await self.db.execute(
                    f"""
                    UPDATE {PARTY_TABLES[kind]}
                    SET balance = ?, updated_at = datetime('now')
                    WHERE id = ?
                    """,
                    (format_money(drift.derived), drift.entity_id),
                )
                logger.warning(
                    f"잔고 보정: {kind.value} {drift.entity_id} "
                    f"{drift.cached} -> {drift.derived}",
                    extra={
                        "kind": kind.value,
                        "entity_id": drift.entity_id,
                        "cached": str(drift.cached),
                        "derived": str(drift.derived),
                    },
                )
        return drifts

    async def _scan(self, kind: PartyKind) -> list[BalanceDrift]:
        rows = await self.db.fetchall(
            f"SELECT id, balance FROM {PARTY_TABLES[kind]} ORDER BY id"
        )
        derived = await self.derive_balances(kind)

        drifts: list[BalanceDrift] = []
        for entity_id, raw_balance in rows:
            cached = parse_money(raw_balance)
            value = derived.get(entity_id, ZERO)
            if abs(value - cached) > self.tolerance:
                logger.warning(
                    f"잔고 불일치 감지: {kind.value} {entity_id} 캐시={cached} 파생={value}",
                    extra={
                        "kind": kind.value,
                        "entity_id": entity_id,
                        "cached": str(cached),
                        "derived": str(value),
                    },
                )
                drifts.append(
                    BalanceDrift(kind=kind, entity_id=entity_id, cached=cached, derived=value)
                )
        return drifts
