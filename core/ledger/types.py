"""
Ledger 타입 정의

고객/어민/어종/거래/일별 집계 등 Ledger에서 주고받는 데이터 구조.
금액 필드는 모두 소수점 2자리 Decimal (core.ledger.money.Money).
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Generic, TypeVar

from core.constants import Defaults
from core.ledger.money import ZERO, AmountLike, Money
from core.types import DeductionKind, PartyKind, PaymentStatus, SummaryStream, TransactionStatus

T = TypeVar("T")


# 거래 상대방별 테이블 매핑
PARTY_TABLES: dict[PartyKind, str] = {
    PartyKind.CUSTOMER: "customers",
    PartyKind.FARMER: "farmers",
}

# (거래 테이블, FK 컬럼)
PARTY_TRANSACTION_TABLES: dict[PartyKind, tuple[str, str]] = {
    PartyKind.CUSTOMER: ("transactions", "customer_id"),
    PartyKind.FARMER: ("farmer_transactions", "farmer_id"),
}

# 매입 공제 항목별 컬럼
DEDUCTION_COLUMNS: dict[DeductionKind, str] = {
    DeductionKind.CLERK_FEE: "clerk_fee",
    DeductionKind.ICE: "ice_charges",
    DeductionKind.LABOUR: "labour_charges",
    DeductionKind.EXTRA: "extra_charges",
}


@dataclass
class Party:
    """고객 또는 어민

    balance는 조회 시점에 거래 내역에서 파생한 값.
    cached_balance는 DB에 저장된 비정규화 값 (참고용).

    잔고 부호:
        CUSTOMER: 음수 = 고객 외상, 양수 = 선불 크레딧
        FARMER: 음수 = 가게가 어민에게 줄 돈, 양수 = 어민 크레딧
    """

    id: int
    kind: PartyKind
    name: str
    phone: str | None
    address: str | None
    balance: Money
    cached_balance: Money
    created_at: str
    updated_at: str


@dataclass
class FishCategory:
    """어종 (단가는 unit_size_kg 단위 기준 참고 가격)"""

    id: int
    name: str
    price_per_unit: Money
    active: bool
    created_at: str
    updated_at: str


@dataclass
class LineItemInput:
    """판매 라인 입력

    price_per_unit이 None이면 어종의 현재 단가를 사용.
    """

    fish_category_id: int
    weight: AmountLike
    price_per_unit: AmountLike | None = None


@dataclass
class LineItem:
    """판매 라인 (어종 이름/단가는 판매 시점 스냅샷)"""

    id: int
    transaction_id: int
    fish_category_id: int | None
    fish_name: str
    weight: Decimal
    price_per_unit: Money
    subtotal: Money


@dataclass
class SaleTransaction:
    """고객 판매 거래

    balance_after는 영수증 표시용 시점 스냅샷이며
    이후 수정/취소로 인해 현재 잔고와 달라질 수 있다 (권위값 아님).
    """

    id: int
    customer_id: int
    date: str
    time: str
    total_amount: Money
    paid_amount: Money
    balance_change: Money
    balance_after: Money
    payment_status: PaymentStatus
    notes: str | None
    status: TransactionStatus
    created_at: str
    updated_at: str
    voided_at: str | None = None
    customer_name: str | None = None
    line_items: list[LineItem] = field(default_factory=list)


@dataclass(frozen=True)
class Deduction:
    """매입 공제 (munshi nama, 얼음, 인건비, 기타)"""

    kind: DeductionKind
    amount: AmountLike


@dataclass(frozen=True)
class FishDetails:
    """매입 어종 지정

    category_id 또는 name 중 하나. name으로 지정했는데 없는 어종이면
    같은 작업 단위 안에서 새로 생성한다.

    Args:
        category_id: 기존 어종 ID
        name: 어종 이름 (대소문자 무시)
        update_reference_price: True면 어종 참고 단가를 매입 단가로 갱신
    """

    category_id: int | None = None
    name: str | None = None
    update_reference_price: bool = False


@dataclass
class FarmerTransaction:
    """어민 매입 거래

    total_amount = fish_value - commission_amount - Σ(deductions) (어민에게 줄 순액)
    """

    id: int
    farmer_id: int
    date: str
    time: str
    fish_category_id: int | None
    fish_name: str
    weight: Decimal
    price_per_unit: Money
    fish_value: Money
    commission_percent: Decimal
    commission_amount: Money
    deductions: dict[DeductionKind, Money]
    total_amount: Money
    paid_amount: Money
    balance_change: Money
    balance_after: Money
    payment_status: PaymentStatus
    notes: str | None
    status: TransactionStatus
    created_at: str
    updated_at: str
    voided_at: str | None = None
    farmer_name: str | None = None

    @property
    def deductions_total(self) -> Money:
        total = ZERO
        for amount in self.deductions.values():
            total += amount
        return total


@dataclass
class DailySummary:
    """일별 집계 (거래 재생으로 재구성 가능한 캐시)

    sales 스트림: total_amount = 판매액, cash = 수금액
    purchases 스트림: total_amount = 매입 순액, cash = 지급액
    """

    stream: SummaryStream
    date: str
    total_amount: Money
    total_cash: Money
    total_outstanding_change: Money
    transactions_count: int


@dataclass
class Page(Generic[T]):
    """페이지네이션 결과 (항상 이 형태로 반환)"""

    items: list[T]
    total: int
    offset: int
    limit: int


def clamp_page(limit: int, offset: int) -> tuple[int, int]:
    """페이지 파라미터 보정 (1 ≤ limit ≤ PAGE_LIMIT_MAX, offset ≥ 0)"""
    limit = max(1, min(int(limit), Defaults.PAGE_LIMIT_MAX))
    offset = max(0, int(offset))
    return limit, offset


@dataclass
class BalanceDrift:
    """캐시 잔고와 파생 잔고의 불일치"""

    kind: PartyKind
    entity_id: int
    cached: Money
    derived: Money

    @property
    def difference(self) -> Money:
        return self.derived - self.cached


@dataclass
class DashboardStats:
    """대시보드 통계 (파생 잔고 기준)"""

    date: str
    today_sales: DailySummary
    today_purchases: DailySummary
    pending_customers_count: int
    pending_customers_total: Money
    farmers_owed_count: int
    farmers_owed_total: Money
    customers_count: int
    farmers_count: int
    active_fish_categories: int


@dataclass
class RangeReport:
    """기간 리포트"""

    stream: SummaryStream
    start: date
    end: date
    days: list[DailySummary]
    total_amount: Money
    total_cash: Money
    total_outstanding_change: Money
    transactions_count: int
    current_outstanding: Money
