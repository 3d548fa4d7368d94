"""
거래 엔진

판매(고객)/매입(어민) 거래를 원자적으로 기록·수정·취소한다.

하나의 작업 단위 안에서:
    1. 거래 헤더 (+ 판매 라인) 저장
    2. 엔티티 캐시 잔고 갱신
    3. 일별 집계 증분 갱신
모두 커밋되거나 모두 롤백된다.

입력 형식 검증은 작업 단위 시작 전에 끝낸다.
DB 조회가 필요한 검증(어종 단가로 계산한 총액 대비 지불액 등)은
작업 단위 안에서 첫 쓰기 전에 수행한다.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, Sequence

from core.config.loader import LedgerConfig
from core.ledger.aggregator import DailyAggregator
from core.ledger.balance import BalanceDeriver
from core.ledger.calculator import (
    apply_change,
    compute_purchase,
    compute_sale,
    outstanding_contribution,
    payment_status,
    purchase_balance_change,
    sale_balance_change,
)
from core.ledger.entities import EntityStore
from core.ledger.errors import EntityNotFound, ValidationError
from core.ledger.money import (
    ZERO,
    AmountLike,
    Money,
    parse_money,
    require_non_negative,
    round2,
    subtract,
)
from core.ledger.store import LedgerStore
from core.ledger.types import (
    Deduction,
    FarmerTransaction,
    FishCategory,
    FishDetails,
    LineItemInput,
    SaleTransaction,
)
from core.ledger.validation import (
    validate_commission,
    validate_fish_name,
    validate_notes,
    validate_paid,
    validate_price,
    validate_weight,
)
from core.types import DeductionKind, PartyKind, SummaryStream, TransactionStatus
from core.utils.timezone import format_date, format_time, now_local

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class _LineDraft:
    """검증된 판매 라인 입력 (어종 조회 전)"""

    __slots__ = ("fish_category_id", "weight", "price")

    def __init__(self, fish_category_id: int, weight: Decimal, price: Money | None):
        self.fish_category_id = fish_category_id
        self.weight = weight
        self.price = price


def _validate_lines(line_items: Sequence[LineItemInput]) -> list[_LineDraft]:
    """판매 라인 형식 검증 (DB 조회 없음)"""
    if not line_items:
        raise ValidationError("판매 라인이 비어 있습니다", field="line_items")

    drafts = []
    for i, item in enumerate(line_items):
        field = f"line_items[{i}]"
        if not isinstance(item.fish_category_id, int) or isinstance(item.fish_category_id, bool):
            raise ValidationError("어종 ID가 올바르지 않습니다", field=f"{field}.fish_category_id")
        weight = validate_weight(item.weight, f"{field}.weight")
        price = (
            validate_price(item.price_per_unit, f"{field}.price_per_unit")
            if item.price_per_unit is not None
            else None
        )
        drafts.append(_LineDraft(item.fish_category_id, weight, price))
    return drafts


def _validate_deductions(deductions: Iterable[Deduction]) -> dict[DeductionKind, Money]:
    """공제 항목 검증 (같은 종류는 합산)"""
    result: dict[DeductionKind, Money] = {}
    for deduction in deductions:
        kind = DeductionKind(deduction.kind)
        amount = require_non_negative(deduction.amount, f"deductions.{kind.value}")
        result[kind] = round2(result.get(kind, ZERO) + amount)
    return result


class TransactionEngine:
    """거래 엔진

    Args:
        db: SQLite 어댑터
        config: Ledger 설정 (단위 무게, 지불 상한 비율, 타임존)
        entities: 엔티티 저장소
        store: 거래 저장소
        aggregator: 일별 집계
        deriver: 잔고 파생기
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        config: LedgerConfig,
        entities: EntityStore,
        store: LedgerStore,
        aggregator: DailyAggregator,
        deriver: BalanceDeriver,
    ):
        self.db = db
        self.config = config
        self.entities = entities
        self.store = store
        self.aggregator = aggregator
        self.deriver = deriver

    def _stamp(self, transaction_date: date | None) -> tuple[str, str]:
        """거래 날짜/시각 (현지 기준)"""
        now: datetime = now_local(self.config.timezone_offset_hours)
        day = transaction_date or now.date()
        return format_date(day), format_time(now)

    async def _current_balance(self, kind: PartyKind, entity_id: int, cached: Money) -> Money:
        """기록 시점 잔고 (파생값, 캐시 불일치는 경고)"""
        derived = await self.deriver.derive_balance(kind, entity_id)
        return self.deriver.observe(kind, entity_id, cached, derived)

    async def _resolve_lines(
        self,
        drafts: list[_LineDraft],
        snapshot_prices: dict[int, Money] | None = None,
    ) -> list[tuple[int, str, Decimal, Money]]:
        """라인의 어종 확인 후 (fish_id, fish_name, weight, price) 반환

        수정 시 기존 라인의 어종(snapshot_prices)은 비활성이어도 허용하고,
        단가를 생략하면 참고 단가 대신 기존 라인의 단가를 쓴다.
        """
        snapshot_prices = snapshot_prices or {}
        resolved = []
        for draft in drafts:
            fish = await self.entities.get_fish_category(draft.fish_category_id)
            if not fish.active and fish.id not in snapshot_prices:
                raise ValidationError(
                    f"비활성 어종은 신규 거래에 사용할 수 없습니다: {fish.name}",
                    field="fish_category_id",
                    fish_category_id=fish.id,
                )
            if draft.price is not None:
                price = draft.price
            else:
                price = snapshot_prices.get(fish.id, fish.price_per_unit)
            resolved.append((fish.id, fish.name, draft.weight, price))
        return resolved

    # -------------------------------------------------------------------------
    # 판매
    # -------------------------------------------------------------------------

    async def record_sale(
        self,
        customer_id: int,
        line_items: Sequence[LineItemInput],
        paid_amount: AmountLike,
        notes: str | None = None,
        transaction_date: date | None = None,
    ) -> SaleTransaction:
        """판매 거래 기록

        Args:
            customer_id: 고객 ID
            line_items: 판매 라인 (1개 이상)
            paid_amount: 지불액 (0 이상, 총액의 max_paid_ratio배 이하)
            notes: 메모
            transaction_date: 거래 날짜 (None이면 현지 기준 오늘)

        Returns:
            기록된 SaleTransaction (라인 포함)

        Raises:
            ValidationError: 라인/지불액/메모 형식 오류, 비활성 어종
            InvalidAmount: 음수/NaN 금액
            EntityNotFound: 고객 또는 어종 없음
            PersistenceFailure: 저장 실패 (전체 롤백)
        """
        drafts = _validate_lines(line_items)
        paid = require_non_negative(paid_amount, "paid_amount")
        notes = validate_notes(notes)
        day, time = self._stamp(transaction_date)

        async with self.db.transaction():
            row = await self.entities.fetch_party_row(PartyKind.CUSTOMER, customer_id)
            lines = await self._resolve_lines(drafts)

            amounts = compute_sale(
                [(weight, price) for _, _, weight, price in lines],
                paid,
                self.config.unit_size_kg,
            )
            validate_paid(paid, amounts.total_amount, self.config.max_paid_ratio)

            current = await self._current_balance(PartyKind.CUSTOMER, customer_id, parse_money(row[4]))
            balance_after = apply_change(current, amounts.balance_change)

            transaction_id = await self.store.insert_sale(
                customer_id=customer_id,
                date=day,
                time=time,
                total_amount=amounts.total_amount,
                paid_amount=amounts.paid_amount,
                balance_change=amounts.balance_change,
                balance_after=balance_after,
                payment_status=amounts.payment_status,
                notes=notes,
            )
            await self.store.insert_line_items(
                transaction_id,
                [
                    (fish_id, fish_name, weight, price, subtotal)
                    for (fish_id, fish_name, weight, price), subtotal in zip(lines, amounts.subtotals)
                ],
            )
            await self.store.set_cached_balance(PartyKind.CUSTOMER, customer_id, balance_after)
            await self.aggregator.apply_delta(
                SummaryStream.SALES,
                day,
                amounts.total_amount,
                amounts.paid_amount,
                outstanding_contribution(amounts.balance_change),
                1,
            )
            transaction = await self.store.get_sale(transaction_id)

        assert transaction is not None
        logger.info(
            f"판매 거래 기록: #{transaction_id} 고객 {customer_id} "
            f"총액={amounts.total_amount} 지불={amounts.paid_amount}",
            extra={
                "transaction_id": transaction_id,
                "customer_id": customer_id,
                "balance_change": str(amounts.balance_change),
                "balance_after": str(balance_after),
            },
        )
        return transaction

    async def _load_open_sale(self, transaction_id: int) -> SaleTransaction:
        transaction = await self.store.get_sale(transaction_id)
        if transaction is None or transaction.status == TransactionStatus.VOIDED:
            raise EntityNotFound("transaction", transaction_id)
        return transaction

    async def update_transaction(
        self,
        transaction_id: int,
        paid_amount: AmountLike,
        notes: str | None = None,
        line_items: Sequence[LineItemInput] | None = None,
    ) -> SaleTransaction:
        """판매 거래 수정 (지불액, 메모, 선택적으로 라인)

        잔고 변동 차이(delta)만 캐시 잔고에 반영하고,
        원래 거래 날짜의 일별 집계를 차이만큼 조정한다 (날짜 이동 없음).
        거래의 balance_after도 같은 delta만큼 이동한다.

        Raises:
            EntityNotFound: 거래가 없거나 취소된 경우
            ValidationError: 입력 오류
        """
        drafts = _validate_lines(line_items) if line_items is not None else None
        paid = require_non_negative(paid_amount, "paid_amount")
        notes = validate_notes(notes)

        async with self.db.transaction():
            old = await self._load_open_sale(transaction_id)

            if drafts is not None:
                snapshot_prices: dict[int, Money] = {}
                for item in old.line_items:
                    if item.fish_category_id is not None:
                        snapshot_prices.setdefault(item.fish_category_id, item.price_per_unit)
                lines = await self._resolve_lines(drafts, snapshot_prices=snapshot_prices)
                amounts = compute_sale(
                    [(weight, price) for _, _, weight, price in lines],
                    paid,
                    self.config.unit_size_kg,
                )
                total = amounts.total_amount
            else:
                lines = None
                total = old.total_amount

            validate_paid(paid, total, self.config.max_paid_ratio)

            new_change = sale_balance_change(paid, total)
            status = payment_status(paid, total)
            delta = subtract(new_change, old.balance_change)

            await self.store.update_sale(
                transaction_id,
                total_amount=total,
                paid_amount=paid,
                balance_change=new_change,
                balance_after=apply_change(old.balance_after, delta),
                payment_status=status,
                notes=notes,
            )
            if lines is not None:
                await self.store.replace_line_items(
                    transaction_id,
                    [
                        (fish_id, fish_name, weight, price, subtotal)
                        for (fish_id, fish_name, weight, price), subtotal in zip(
                            lines, amounts.subtotals
                        )
                    ],
                )
            await self.store.shift_cached_balance(PartyKind.CUSTOMER, old.customer_id, delta)
            await self.aggregator.apply_delta(
                SummaryStream.SALES,
                old.date,
                subtract(total, old.total_amount),
                subtract(paid, old.paid_amount),
                subtract(
                    outstanding_contribution(new_change),
                    outstanding_contribution(old.balance_change),
                ),
                0,
            )
            transaction = await self.store.get_sale(transaction_id)

        assert transaction is not None
        logger.info(
            f"판매 거래 수정: #{transaction_id} 잔고 변동 차이={delta}",
            extra={
                "transaction_id": transaction_id,
                "customer_id": old.customer_id,
                "delta": str(delta),
            },
        )
        return transaction

    async def void_transaction(self, transaction_id: int) -> SaleTransaction:
        """판매 거래 취소 (잔고/집계 원복, 행은 보존)

        Raises:
            EntityNotFound: 거래가 없거나 이미 취소된 경우
        """
        async with self.db.transaction():
            old = await self._load_open_sale(transaction_id)

            await self.store.shift_cached_balance(
                PartyKind.CUSTOMER, old.customer_id, round2(-old.balance_change)
            )
            await self.aggregator.apply_delta(
                SummaryStream.SALES,
                old.date,
                round2(-old.total_amount),
                round2(-old.paid_amount),
                round2(-outstanding_contribution(old.balance_change)),
                -1,
            )
            await self.store.mark_voided("transactions", transaction_id)
            transaction = await self.store.get_sale(transaction_id)

        assert transaction is not None
        logger.info(
            f"판매 거래 취소: #{transaction_id}",
            extra={
                "transaction_id": transaction_id,
                "customer_id": old.customer_id,
                "balance_change": str(old.balance_change),
            },
        )
        return transaction

    # -------------------------------------------------------------------------
    # 매입
    # -------------------------------------------------------------------------

    async def _resolve_fish(self, fish: FishDetails, price: Money) -> FishCategory:
        """매입 어종 확정 (작업 단위 내부)

        이름으로 지정한 어종이 없으면 생성, update_reference_price면 참고 단가 갱신.
        """
        if fish.category_id is not None:
            category = await self.entities.get_fish_category(fish.category_id)
        else:
            assert fish.name is not None
            found = await self.entities.find_fish_by_name(fish.name)
            if found is None:
                fish_id = await self.entities.insert_fish_category(fish.name, price)
                logger.info(
                    f"매입 중 어종 생성: {fish.name}",
                    extra={"fish_category_id": fish_id, "price": str(price)},
                )
                return await self.entities.get_fish_category(fish_id)
            category = found

        if not category.active:
            raise ValidationError(
                f"비활성 어종은 신규 거래에 사용할 수 없습니다: {category.name}",
                field="fish_category_id",
                fish_category_id=category.id,
            )

        if fish.update_reference_price and category.price_per_unit != price:
            await self.entities.set_fish_price(category.id, price)
            logger.info(
                f"어종 참고 단가 갱신: {category.name} {category.price_per_unit} -> {price}",
                extra={"fish_category_id": category.id},
            )
            category.price_per_unit = price
        return category

    async def record_purchase(
        self,
        farmer_id: int,
        fish: FishDetails,
        weight: AmountLike,
        price_per_unit: AmountLike,
        commission_percent: AmountLike = 0,
        deductions: Iterable[Deduction] = (),
        paid_amount: AmountLike = 0,
        notes: str | None = None,
        transaction_date: date | None = None,
    ) -> FarmerTransaction:
        """매입 거래 기록

        fish_value = round2(weight / unit_size × price)
        commission = round2(fish_value × commission_percent / 100)
        total_amount = round2(fish_value - commission - Σdeductions)
        balance_change = round2(-(total_amount - paid_amount))

        Raises:
            ValidationError: 입력 오류, 순액 음수, 비활성 어종
            InvalidAmount: 음수/NaN 금액
            EntityNotFound: 어민 또는 어종 없음
            DuplicateEntity: 신규 어종 이름 충돌
        """
        if (fish.category_id is None) == (fish.name is None):
            raise ValidationError(
                "어종은 ID 또는 이름 중 하나로 지정해야 합니다", field="fish"
            )
        if fish.name is not None:
            fish = FishDetails(
                name=validate_fish_name(fish.name),
                update_reference_price=fish.update_reference_price,
            )

        weight_value = validate_weight(weight)
        price = validate_price(price_per_unit)
        commission_pct = validate_commission(commission_percent)
        deduction_amounts = _validate_deductions(deductions)
        paid = require_non_negative(paid_amount, "paid_amount")
        notes = validate_notes(notes)

        amounts = compute_purchase(
            weight_value,
            price,
            commission_pct,
            deduction_amounts.values(),
            paid,
            self.config.unit_size_kg,
        )
        if amounts.total_amount < ZERO:
            raise ValidationError(
                "수수료와 공제 합계가 어획 금액을 초과합니다",
                field="deductions",
                fish_value=str(amounts.fish_value),
                total_amount=str(amounts.total_amount),
            )
        validate_paid(paid, amounts.total_amount, self.config.max_paid_ratio)
        day, time = self._stamp(transaction_date)

        async with self.db.transaction():
            row = await self.entities.fetch_party_row(PartyKind.FARMER, farmer_id)
            category = await self._resolve_fish(fish, price)

            current = await self._current_balance(PartyKind.FARMER, farmer_id, parse_money(row[4]))
            balance_after = apply_change(current, amounts.balance_change)

            transaction_id = await self.store.insert_purchase(
                farmer_id=farmer_id,
                date=day,
                time=time,
                fish_category_id=category.id,
                fish_name=category.name,
                weight=weight_value,
                price_per_unit=price,
                fish_value=amounts.fish_value,
                commission_percent=commission_pct,
                commission_amount=amounts.commission_amount,
                deductions=deduction_amounts,
                total_amount=amounts.total_amount,
                paid_amount=amounts.paid_amount,
                balance_change=amounts.balance_change,
                balance_after=balance_after,
                payment_status=amounts.payment_status,
                notes=notes,
            )
            await self.store.set_cached_balance(PartyKind.FARMER, farmer_id, balance_after)
            await self.aggregator.apply_delta(
                SummaryStream.PURCHASES,
                day,
                amounts.total_amount,
                amounts.paid_amount,
                outstanding_contribution(amounts.balance_change),
                1,
            )
            transaction = await self.store.get_purchase(transaction_id)

        assert transaction is not None
        logger.info(
            f"매입 거래 기록: #{transaction_id} 어민 {farmer_id} "
            f"순액={amounts.total_amount} 지급={amounts.paid_amount}",
            extra={
                "transaction_id": transaction_id,
                "farmer_id": farmer_id,
                "balance_change": str(amounts.balance_change),
                "balance_after": str(balance_after),
            },
        )
        return transaction

    async def _load_open_purchase(self, transaction_id: int) -> FarmerTransaction:
        transaction = await self.store.get_purchase(transaction_id)
        if transaction is None or transaction.status == TransactionStatus.VOIDED:
            raise EntityNotFound("purchase", transaction_id)
        return transaction

    async def update_purchase_transaction(
        self,
        transaction_id: int,
        paid_amount: AmountLike,
        notes: str | None = None,
    ) -> FarmerTransaction:
        """매입 거래 수정 (지급액, 메모)

        update_transaction과 같은 delta 규칙을 어민 잔고/매입 집계에 적용.
        """
        paid = require_non_negative(paid_amount, "paid_amount")
        notes = validate_notes(notes)

        async with self.db.transaction():
            old = await self._load_open_purchase(transaction_id)
            validate_paid(paid, old.total_amount, self.config.max_paid_ratio)

            new_change = purchase_balance_change(paid, old.total_amount)
            delta = subtract(new_change, old.balance_change)

            await self.store.update_purchase(
                transaction_id,
                paid_amount=paid,
                balance_change=new_change,
                balance_after=apply_change(old.balance_after, delta),
                payment_status=payment_status(paid, old.total_amount),
                notes=notes,
            )
            await self.store.shift_cached_balance(PartyKind.FARMER, old.farmer_id, delta)
            await self.aggregator.apply_delta(
                SummaryStream.PURCHASES,
                old.date,
                ZERO,
                subtract(paid, old.paid_amount),
                subtract(
                    outstanding_contribution(new_change),
                    outstanding_contribution(old.balance_change),
                ),
                0,
            )
            transaction = await self.store.get_purchase(transaction_id)

        assert transaction is not None
        logger.info(
            f"매입 거래 수정: #{transaction_id} 잔고 변동 차이={delta}",
            extra={
                "transaction_id": transaction_id,
                "farmer_id": old.farmer_id,
                "delta": str(delta),
            },
        )
        return transaction

    async def void_purchase_transaction(self, transaction_id: int) -> FarmerTransaction:
        """매입 거래 취소"""
        async with self.db.transaction():
            old = await self._load_open_purchase(transaction_id)

            await self.store.shift_cached_balance(
                PartyKind.FARMER, old.farmer_id, round2(-old.balance_change)
            )
            await self.aggregator.apply_delta(
                SummaryStream.PURCHASES,
                old.date,
                round2(-old.total_amount),
                round2(-old.paid_amount),
                round2(-outstanding_contribution(old.balance_change)),
                -1,
            )
            await self.store.mark_voided("farmer_transactions", transaction_id)
            transaction = await self.store.get_purchase(transaction_id)

        assert transaction is not None
        logger.info(
            f"매입 거래 취소: #{transaction_id}",
            extra={
                "transaction_id": transaction_id,
                "farmer_id": old.farmer_id,
                "balance_change": str(old.balance_change),
            },
        )
        return transaction
