"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화.
금액은 항상 소수점 2자리 문자열 ("1500.00").
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from core.ledger.types import (
    BalanceDrift,
    DailySummary,
    DashboardStats,
    FarmerTransaction,
    FishCategory,
    LineItem,
    Party,
    RangeReport,
    SaleTransaction,
)

T = TypeVar("T")


class ErrorResponse(BaseModel):
    """오류 응답"""

    error: str = Field(..., description="오류 코드 (validation_error, entity_not_found 등)")
    message: str = Field(..., description="사용자 표시용 메시지")
    details: dict = Field(default_factory=dict, description="실패한 규칙/필드/ID")


class PageResponse(BaseModel, Generic[T]):
    """페이지네이션 응답"""

    items: list[T] = Field(default_factory=list, description="항목")
    total: int = Field(..., description="전체 개수")
    offset: int = Field(..., description="시작 위치")
    limit: int = Field(..., description="조회 개수")


class PartyResponse(BaseModel):
    """고객/어민 응답 (잔고는 거래 내역에서 파생한 값)"""

    id: int = Field(..., description="ID")
    kind: str = Field(..., description="customer/farmer")
    name: str = Field(..., description="이름")
    phone: str | None = Field(default=None, description="전화번호")
    address: str | None = Field(default=None, description="주소")
    balance: str = Field(..., description="현재 잔고 (파생값)")
    created_at: str = Field(..., description="생성 시간")
    updated_at: str = Field(..., description="수정 시간")

    @classmethod
    def from_domain(cls, party: Party) -> "PartyResponse":
        return cls(
            id=party.id,
            kind=party.kind.value,
            name=party.name,
            phone=party.phone,
            address=party.address,
            balance=str(party.balance),
            created_at=party.created_at,
            updated_at=party.updated_at,
        )


class EntityBalanceResponse(BaseModel):
    """엔티티 잔고 응답"""

    kind: str = Field(..., description="customer/farmer")
    id: int = Field(..., description="ID")
    balance: str = Field(..., description="현재 잔고 (파생값)")


class FishCategoryResponse(BaseModel):
    """어종 응답"""

    id: int = Field(..., description="ID")
    name: str = Field(..., description="어종 이름")
    price_per_unit: str = Field(..., description="참고 단가")
    active: bool = Field(..., description="활성 여부")
    created_at: str = Field(..., description="생성 시간")
    updated_at: str = Field(..., description="수정 시간")

    @classmethod
    def from_domain(cls, fish: FishCategory) -> "FishCategoryResponse":
        return cls(
            id=fish.id,
            name=fish.name,
            price_per_unit=str(fish.price_per_unit),
            active=fish.active,
            created_at=fish.created_at,
            updated_at=fish.updated_at,
        )


class LineItemResponse(BaseModel):
    """판매 라인 응답"""

    id: int
    fish_category_id: int | None
    fish_name: str
    weight: str
    price_per_unit: str
    subtotal: str

    @classmethod
    def from_domain(cls, item: LineItem) -> "LineItemResponse":
        return cls(
            id=item.id,
            fish_category_id=item.fish_category_id,
            fish_name=item.fish_name,
            weight=str(item.weight),
            price_per_unit=str(item.price_per_unit),
            subtotal=str(item.subtotal),
        )


class SaleTransactionResponse(BaseModel):
    """판매 거래 응답

    balance_after는 기록 시점 스냅샷 (현재 잔고가 아님).
    """

    id: int = Field(..., description="거래 ID")
    customer_id: int = Field(..., description="고객 ID")
    customer_name: str | None = Field(default=None, description="고객 이름")
    date: str = Field(..., description="거래 날짜 (YYYY-MM-DD)")
    time: str = Field(..., description="거래 시각 (HH:MM:SS)")
    total_amount: str = Field(..., description="총액")
    paid_amount: str = Field(..., description="지불액")
    balance_change: str = Field(..., description="잔고 변동 (지불액 - 총액)")
    balance_after: str = Field(..., description="기록 시점 잔고")
    payment_status: str = Field(..., description="paid/partial/unpaid")
    notes: str | None = Field(default=None, description="메모")
    status: str = Field(..., description="completed/voided")
    created_at: str
    updated_at: str
    voided_at: str | None = None
    line_items: list[LineItemResponse] = Field(default_factory=list, description="판매 라인")

    @classmethod
    def from_domain(cls, tx: SaleTransaction) -> "SaleTransactionResponse":
        return cls(
            id=tx.id,
            customer_id=tx.customer_id,
            customer_name=tx.customer_name,
            date=tx.date,
            time=tx.time,
            total_amount=str(tx.total_amount),
            paid_amount=str(tx.paid_amount),
            balance_change=str(tx.balance_change),
            balance_after=str(tx.balance_after),
            payment_status=tx.payment_status.value,
            notes=tx.notes,
            status=tx.status.value,
            created_at=tx.created_at,
            updated_at=tx.updated_at,
            voided_at=tx.voided_at,
            line_items=[LineItemResponse.from_domain(i) for i in tx.line_items],
        )


class PurchaseTransactionResponse(BaseModel):
    """매입 거래 응답"""

    id: int = Field(..., description="거래 ID")
    farmer_id: int = Field(..., description="어민 ID")
    farmer_name: str | None = Field(default=None, description="어민 이름")
    date: str
    time: str
    fish_category_id: int | None
    fish_name: str
    weight: str
    price_per_unit: str
    fish_value: str = Field(..., description="어획 금액")
    commission_percent: str
    commission_amount: str
    deductions: dict[str, str] = Field(default_factory=dict, description="공제 항목별 금액")
    total_amount: str = Field(..., description="어민에게 줄 순액")
    paid_amount: str = Field(..., description="지급액")
    balance_change: str = Field(..., description="잔고 변동 (-(순액 - 지급액))")
    balance_after: str = Field(..., description="기록 시점 잔고")
    payment_status: str
    notes: str | None = None
    status: str
    created_at: str
    updated_at: str
    voided_at: str | None = None

    @classmethod
    def from_domain(cls, tx: FarmerTransaction) -> "PurchaseTransactionResponse":
        return cls(
            id=tx.id,
            farmer_id=tx.farmer_id,
            farmer_name=tx.farmer_name,
            date=tx.date,
            time=tx.time,
            fish_category_id=tx.fish_category_id,
            fish_name=tx.fish_name,
            weight=str(tx.weight),
            price_per_unit=str(tx.price_per_unit),
            fish_value=str(tx.fish_value),
            commission_percent=str(tx.commission_percent),
            commission_amount=str(tx.commission_amount),
            deductions={kind.value: str(amount) for kind, amount in tx.deductions.items()},
            total_amount=str(tx.total_amount),
            paid_amount=str(tx.paid_amount),
            balance_change=str(tx.balance_change),
            balance_after=str(tx.balance_after),
            payment_status=tx.payment_status.value,
            notes=tx.notes,
            status=tx.status.value,
            created_at=tx.created_at,
            updated_at=tx.updated_at,
            voided_at=tx.voided_at,
        )


class DailySummaryResponse(BaseModel):
    """일별 집계 응답"""

    stream: str = Field(..., description="sales/purchases")
    date: str = Field(..., description="날짜")
    total_amount: str = Field(..., description="판매액 또는 매입 순액")
    total_cash: str = Field(..., description="수금액 또는 지급액")
    total_outstanding_change: str = Field(..., description="미결 잔고 변동")
    transactions_count: int = Field(..., description="거래 수")

    @classmethod
    def from_domain(cls, summary: DailySummary) -> "DailySummaryResponse":
        return cls(
            stream=summary.stream.value,
            date=summary.date,
            total_amount=str(summary.total_amount),
            total_cash=str(summary.total_cash),
            total_outstanding_change=str(summary.total_outstanding_change),
            transactions_count=summary.transactions_count,
        )


class RangeReportResponse(BaseModel):
    """기간 리포트 응답"""

    stream: str
    start: str
    end: str
    days: list[DailySummaryResponse] = Field(default_factory=list, description="일별 집계 (최신순)")
    total_amount: str
    total_cash: str
    total_outstanding_change: str
    transactions_count: int
    current_outstanding: str = Field(..., description="현재 미결 잔고 합계 (파생값)")

    @classmethod
    def from_domain(cls, report: RangeReport) -> "RangeReportResponse":
        return cls(
            stream=report.stream.value,
            start=report.start.isoformat(),
            end=report.end.isoformat(),
            days=[DailySummaryResponse.from_domain(d) for d in report.days],
            total_amount=str(report.total_amount),
            total_cash=str(report.total_cash),
            total_outstanding_change=str(report.total_outstanding_change),
            transactions_count=report.transactions_count,
            current_outstanding=str(report.current_outstanding),
        )


class DashboardResponse(BaseModel):
    """대시보드 응답 (파생 잔고 기준)"""

    date: str = Field(..., description="기준 날짜")
    today_sales: DailySummaryResponse
    today_purchases: DailySummaryResponse
    pending_customers_count: int = Field(..., description="외상 고객 수")
    pending_customers_total: str = Field(..., description="외상 합계")
    farmers_owed_count: int = Field(..., description="지급할 돈이 있는 어민 수")
    farmers_owed_total: str = Field(..., description="어민 미지급 합계")
    customers_count: int
    farmers_count: int
    active_fish_categories: int

    @classmethod
    def from_domain(cls, stats: DashboardStats) -> "DashboardResponse":
        return cls(
            date=stats.date,
            today_sales=DailySummaryResponse.from_domain(stats.today_sales),
            today_purchases=DailySummaryResponse.from_domain(stats.today_purchases),
            pending_customers_count=stats.pending_customers_count,
            pending_customers_total=str(stats.pending_customers_total),
            farmers_owed_count=stats.farmers_owed_count,
            farmers_owed_total=str(stats.farmers_owed_total),
            customers_count=stats.customers_count,
            farmers_count=stats.farmers_count,
            active_fish_categories=stats.active_fish_categories,
        )


class BalanceDriftResponse(BaseModel):
    """잔고 불일치 항목"""

    kind: str
    entity_id: int
    cached: str
    derived: str
    difference: str

    @classmethod
    def from_domain(cls, drift: BalanceDrift) -> "BalanceDriftResponse":
        return cls(
            kind=drift.kind.value,
            entity_id=drift.entity_id,
            cached=str(drift.cached),
            derived=str(drift.derived),
            difference=str(drift.difference),
        )


class ReconcileResponse(BaseModel):
    """잔고 점검/보정 응답"""

    fixed: bool = Field(..., description="보정 수행 여부")
    drifts: list[BalanceDriftResponse] = Field(default_factory=list, description="감지된 불일치")


class RebuildResponse(BaseModel):
    """일별 집계 재구성 응답"""

    days: dict[str, int] = Field(default_factory=dict, description="스트림별 재구성 날짜 수")


class BackupResponse(BaseModel):
    """백업 응답"""

    path: str = Field(..., description="백업 파일 경로")
