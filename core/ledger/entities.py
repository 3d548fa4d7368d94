"""
엔티티 저장소

고객/어민/어종 레코드 생성, 조회, 수정.
고객/어민 조회 시 잔고는 항상 거래 내역에서 파생한 값으로 채운다.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from core.constants import Defaults
from core.ledger.balance import BalanceDeriver
from core.ledger.errors import DuplicateEntity, EntityNotFound, ValidationError
from core.ledger.money import AmountLike, Money, format_money, parse_money
from core.ledger.types import (
    PARTY_TABLES,
    PARTY_TRANSACTION_TABLES,
    FishCategory,
    Page,
    Party,
    clamp_page,
)
from core.ledger.validation import (
    name_key,
    normalize_phone,
    phone_key,
    validate_address,
    validate_fish_name,
    validate_name,
    validate_price,
)
from core.types import PartyKind

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

PARTY_COLUMNS = "id, name, phone, address, balance, created_at, updated_at"
FISH_COLUMNS = "id, name, price_per_unit, active, created_at, updated_at"


def _escape_like(text: str) -> str:
    """LIKE 패턴의 와일드카드 문자를 리터럴로 이스케이프"""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_fish(row: tuple[Any, ...]) -> FishCategory:
    return FishCategory(
        id=row[0],
        name=row[1],
        price_per_unit=parse_money(row[2]),
        active=bool(row[3]),
        created_at=row[4],
        updated_at=row[5],
    )


class EntityStore:
    """고객/어민/어종 저장소

    Args:
        db: SQLite 어댑터
        deriver: 잔고 파생기 (조회 시 잔고 계산)
    """

    def __init__(self, db: SQLiteAdapter, deriver: BalanceDeriver):
        self.db = db
        self.deriver = deriver

    # -------------------------------------------------------------------------
    # 고객 / 어민
    # -------------------------------------------------------------------------

    def _party(self, kind: PartyKind, row: tuple[Any, ...], balance: Money) -> Party:
        cached = parse_money(row[4])
        return Party(
            id=row[0],
            kind=kind,
            name=row[1],
            phone=row[2],
            address=row[3],
            balance=self.deriver.observe(kind, row[0], cached, balance),
            cached_balance=cached,
            created_at=row[5],
            updated_at=row[6],
        )

    async def _ensure_unique(
        self,
        kind: PartyKind,
        name: str,
        phone: str | None,
        exclude_id: int | None = None,
    ) -> None:
        """이름+전화번호 중복 검사 (대소문자 무시, 자기 자신 제외)"""
        row = await self.db.fetchone(
            f"""
            SELECT id FROM {PARTY_TABLES[kind]}
            WHERE name_key = ? AND phone_key = ? AND id != ?
            """,
            (name_key(name), phone_key(phone), exclude_id or 0),
        )
        if row is not None:
            raise DuplicateEntity(
                f"같은 이름과 전화번호의 {kind.value}가 이미 있습니다: {name}",
                {"kind": kind.value, "name": name, "phone": phone, "existing_id": row[0]},
            )

    async def create_party(
        self,
        kind: PartyKind,
        name: str,
        phone: str | None = None,
        address: str | None = None,
    ) -> Party:
        """고객/어민 생성 (잔고 0.00으로 시작)

        Raises:
            ValidationError: 이름/전화번호/주소 형식 오류
            DuplicateEntity: 이름+전화번호 중복
        """
        name = validate_name(name)
        phone = normalize_phone(phone)
        address = validate_address(address)

        async with self.db.transaction():
            await self._ensure_unique(kind, name, phone)
            cursor = await self.db.execute(
                f"""
                INSERT INTO {PARTY_TABLES[kind]} (name, phone, address, name_key, phone_key)
                VALUES (?, ?, ?, ?, ?)
                """,
                (name, phone, address, name_key(name), phone_key(phone)),
            )
            entity_id = cursor.lastrowid

        logger.info(
            f"{kind.value} 생성: {name}",
            extra={"kind": kind.value, "entity_id": entity_id},
        )
        return await self.get_party(kind, entity_id)

    async def fetch_party_row(self, kind: PartyKind, entity_id: int) -> tuple[Any, ...]:
        """원본 행 조회 (작업 단위 내부용)

        Raises:
            EntityNotFound: 엔티티가 없는 경우
        """
        row = await self.db.fetchone(
            f"SELECT {PARTY_COLUMNS} FROM {PARTY_TABLES[kind]} WHERE id = ?",
            (entity_id,),
        )
        if row is None:
            raise EntityNotFound(kind.value, entity_id)
        return row

    async def get_party(self, kind: PartyKind, entity_id: int) -> Party:
        """고객/어민 조회 (파생 잔고 포함)"""
        row = await self.fetch_party_row(kind, entity_id)
        balance = await self.deriver.derive_balance(kind, entity_id)
        return self._party(kind, row, balance)

    async def get_entity_balance(self, kind: PartyKind, entity_id: int) -> Money:
        """엔티티 현재 잔고 (파생값)"""
        return (await self.get_party(kind, entity_id)).balance

    async def _parties_from_rows(
        self,
        kind: PartyKind,
        rows: list[tuple[Any, ...]],
    ) -> list[Party]:
        balances = await self.deriver.derive_balances(kind, [row[0] for row in rows])
        return [self._party(kind, row, balances[row[0]]) for row in rows]

    async def list_parties(
        self,
        kind: PartyKind,
        limit: int = Defaults.PAGE_LIMIT,
        offset: int = 0,
    ) -> Page[Party]:
        """고객/어민 목록 (이름순)"""
        limit, offset = clamp_page(limit, offset)
        table = PARTY_TABLES[kind]

        total_row = await self.db.fetchone(f"SELECT COUNT(*) FROM {table}")
        rows = await self.db.fetchall(
            f"""
            SELECT {PARTY_COLUMNS} FROM {table}
            ORDER BY name COLLATE NOCASE, id
            LIMIT ? OFFSET ?
            """,
            (limit, offset),
        )
        items = await self._parties_from_rows(kind, rows)
        return Page(items=items, total=total_row[0] if total_row else 0, offset=offset, limit=limit)

    async def search_parties(
        self,
        kind: PartyKind,
        query: str,
        limit: int = Defaults.PAGE_LIMIT,
    ) -> list[Party]:
        """이름/전화번호 부분 일치 또는 ID 일치 검색"""
        query = (query or "").strip()
        if not query:
            return []
        limit, _ = clamp_page(limit, 0)

        pattern = f"%{_escape_like(query.casefold())}%"
        digits = phone_key(query)
        phone_pattern = f"%{digits}%" if digits.isdigit() else pattern
        entity_id = int(query) if query.isdigit() else -1

        rows = await self.db.fetchall(
            f"""
            SELECT {PARTY_COLUMNS} FROM {PARTY_TABLES[kind]}
            WHERE name_key LIKE ? ESCAPE '\\' OR phone_key LIKE ? ESCAPE '\\' OR id = ?
            ORDER BY name COLLATE NOCASE, id
            LIMIT ?
            """,
            (pattern, phone_pattern, entity_id, limit),
        )
        return await self._parties_from_rows(kind, rows)

    async def update_party(
        self,
        kind: PartyKind,
        entity_id: int,
        name: str,
        phone: str | None = None,
        address: str | None = None,
    ) -> Party:
        """고객/어민 정보 수정 (잔고는 변경하지 않음)"""
        name = validate_name(name)
        phone = normalize_phone(phone)
        address = validate_address(address)

        async with self.db.transaction():
            await self.fetch_party_row(kind, entity_id)
            await self._ensure_unique(kind, name, phone, exclude_id=entity_id)
            await self.db.execute(
                f"""
                UPDATE {PARTY_TABLES[kind]}
                SET name = ?, phone = ?, address = ?, name_key = ?, phone_key = ?,
                    updated_at = datetime('now')
                WHERE id = ?
                """,
                (name, phone, address, name_key(name), phone_key(phone), entity_id),
            )

        logger.info(
            f"{kind.value} 수정: {name}",
            extra={"kind": kind.value, "entity_id": entity_id},
        )
        return await self.get_party(kind, entity_id)

    async def delete_party(self, kind: PartyKind, entity_id: int) -> None:
        """고객/어민 삭제 (거래 이력이 없는 경우만)

        Raises:
            EntityNotFound: 엔티티가 없는 경우
            ValidationError: 거래 이력이 있는 경우 (취소된 거래 포함)
        """
        tx_table, fk = PARTY_TRANSACTION_TABLES[kind]

        async with self.db.transaction():
            await self.fetch_party_row(kind, entity_id)
            row = await self.db.fetchone(
                f"SELECT COUNT(*) FROM {tx_table} WHERE {fk} = ?",
                (entity_id,),
            )
            if row and row[0] > 0:
                raise ValidationError(
                    f"거래 이력이 있는 {kind.value}는 삭제할 수 없습니다",
                    field="id",
                    transactions=row[0],
                )
            await self.db.execute(
                f"DELETE FROM {PARTY_TABLES[kind]} WHERE id = ?",
                (entity_id,),
            )

        logger.info(
            f"{kind.value} 삭제: {entity_id}",
            extra={"kind": kind.value, "entity_id": entity_id},
        )

    async def count_parties(self, kind: PartyKind) -> int:
        row = await self.db.fetchone(f"SELECT COUNT(*) FROM {PARTY_TABLES[kind]}")
        return row[0] if row else 0

    # -------------------------------------------------------------------------
    # 어종
    # -------------------------------------------------------------------------

    async def _ensure_fish_name_free(self, name: str, exclude_id: int | None = None) -> None:
        row = await self.db.fetchone(
            "SELECT id FROM fish_categories WHERE name = ? COLLATE NOCASE AND id != ?",
            (name, exclude_id or 0),
        )
        if row is not None:
            raise DuplicateEntity(
                f"이미 등록된 어종입니다: {name}",
                {"kind": "fish_category", "name": name, "existing_id": row[0]},
            )

    async def insert_fish_category(self, name: str, price: Money) -> int:
        """어종 INSERT (작업 단위 내부용, 검증 완료된 값)"""
        await self._ensure_fish_name_free(name)
        cursor = await self.db.execute(
            "INSERT INTO fish_categories (name, price_per_unit) VALUES (?, ?)",
            (name, format_money(price)),
        )
        return cursor.lastrowid

    async def set_fish_price(self, fish_id: int, price: Money) -> None:
        """어종 참고 단가 갱신 (작업 단위 내부용)"""
        await self.db.execute(
            """
            UPDATE fish_categories
            SET price_per_unit = ?, updated_at = datetime('now')
            WHERE id = ?
            """,
            (format_money(price), fish_id),
        )

    async def create_fish_category(self, name: str, price_per_unit: AmountLike) -> FishCategory:
        """어종 생성

        Raises:
            ValidationError: 이름/단가 오류
            DuplicateEntity: 같은 이름(대소문자 무시)이 이미 있는 경우
        """
        name = validate_fish_name(name)
        price = validate_price(price_per_unit)

        async with self.db.transaction():
            fish_id = await self.insert_fish_category(name, price)

        logger.info(f"어종 생성: {name}", extra={"fish_category_id": fish_id, "price": str(price)})
        return await self.get_fish_category(fish_id)

    async def get_fish_category(self, fish_id: int) -> FishCategory:
        row = await self.db.fetchone(
            f"SELECT {FISH_COLUMNS} FROM fish_categories WHERE id = ?",
            (fish_id,),
        )
        if row is None:
            raise EntityNotFound("fish_category", fish_id)
        return _row_to_fish(row)

    async def find_fish_by_name(self, name: str) -> FishCategory | None:
        """이름으로 어종 조회 (대소문자 무시)"""
        row = await self.db.fetchone(
            f"SELECT {FISH_COLUMNS} FROM fish_categories WHERE name = ? COLLATE NOCASE",
            (name.strip(),),
        )
        return _row_to_fish(row) if row else None

    async def list_fish_categories(self, active_only: bool = False) -> list[FishCategory]:
        sql = f"SELECT {FISH_COLUMNS} FROM fish_categories"
        if active_only:
            sql += " WHERE active = 1"
        sql += " ORDER BY name COLLATE NOCASE"
        rows = await self.db.fetchall(sql)
        return [_row_to_fish(row) for row in rows]

    async def update_fish_category(
        self,
        fish_id: int,
        name: str | None = None,
        price_per_unit: AmountLike | None = None,
    ) -> FishCategory:
        """어종 이름/단가 수정

        과거 거래 라인의 이름/단가는 스냅샷이므로 영향 없음.
        """
        new_name = validate_fish_name(name) if name is not None else None
        new_price = validate_price(price_per_unit) if price_per_unit is not None else None

        async with self.db.transaction():
            await self.get_fish_category(fish_id)
            if new_name is not None:
                await self._ensure_fish_name_free(new_name, exclude_id=fish_id)
                await self.db.execute(
                    "UPDATE fish_categories SET name = ?, updated_at = datetime('now') WHERE id = ?",
                    (new_name, fish_id),
                )
            if new_price is not None:
                await self.set_fish_price(fish_id, new_price)

        logger.info("어종 수정", extra={"fish_category_id": fish_id})
        return await self.get_fish_category(fish_id)

    async def set_fish_active(self, fish_id: int, active: bool) -> FishCategory:
        """어종 활성/비활성 (비활성 어종은 신규 거래에서 제외)"""
        async with self.db.transaction():
            await self.get_fish_category(fish_id)
            await self.db.execute(
                "UPDATE fish_categories SET active = ?, updated_at = datetime('now') WHERE id = ?",
                (1 if active else 0, fish_id),
            )

        logger.info(
            f"어종 {'활성화' if active else '비활성화'}: {fish_id}",
            extra={"fish_category_id": fish_id},
        )
        return await self.get_fish_category(fish_id)

    async def count_active_fish(self) -> int:
        row = await self.db.fetchone("SELECT COUNT(*) FROM fish_categories WHERE active = 1")
        return row[0] if row else 0
