"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증.
금액/무게는 JSON 숫자 또는 문자열 모두 허용 (Decimal로 변환).
세부 규칙(이름 길이, 전화번호 형식, 지불 상한 등)은 Ledger 검증에서 처리한다.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from core.types import DeductionKind, PartyKind, SummaryStream


class PartyRequest(BaseModel):
    """고객/어민 생성·수정 요청"""

    name: str = Field(..., description="이름 (2~100자)")
    phone: str | None = Field(default=None, description="전화번호 (03XX-XXXXXXX)")
    address: str | None = Field(default=None, description="주소 (최대 500자)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"name": "Ali Khan", "phone": "0300-1234567", "address": "Karachi Fish Harbour"},
            ]
        }
    }


class FishCategoryCreateRequest(BaseModel):
    """어종 생성 요청"""

    name: str = Field(..., description="어종 이름 (최대 50자)")
    price_per_unit: Decimal = Field(..., description="단위 무게(40kg)당 참고 단가")


class FishCategoryUpdateRequest(BaseModel):
    """어종 수정 요청 (지정한 필드만 변경)"""

    name: str | None = Field(default=None, description="새 이름")
    price_per_unit: Decimal | None = Field(default=None, description="새 참고 단가")


class FishActiveRequest(BaseModel):
    """어종 활성/비활성 요청"""

    active: bool = Field(..., description="활성 여부")


class LineItemRequest(BaseModel):
    """판매 라인"""

    fish_category_id: int = Field(..., description="어종 ID")
    weight: Decimal = Field(..., description="무게 (kg)")
    price_per_unit: Decimal | None = Field(
        default=None,
        description="단위 무게당 단가 (생략 시 어종 참고 단가)",
    )


class SaleCreateRequest(BaseModel):
    """판매 거래 기록 요청"""

    customer_id: int = Field(..., description="고객 ID")
    line_items: list[LineItemRequest] = Field(..., description="판매 라인 (1개 이상)")
    paid_amount: Decimal = Field(default=Decimal("0"), description="지불액")
    notes: str | None = Field(default=None, description="메모")
    transaction_date: date | None = Field(
        default=None,
        description="거래 날짜 (생략 시 현지 기준 오늘)",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_id": 1,
                    "line_items": [{"fish_category_id": 1, "weight": "80", "price_per_unit": "1000"}],
                    "paid_amount": "1500",
                },
            ]
        }
    }


class SaleUpdateRequest(BaseModel):
    """판매 거래 수정 요청

    line_items를 생략하면 기존 라인과 총액을 유지한다.
    """

    paid_amount: Decimal = Field(..., description="새 지불액")
    notes: str | None = Field(default=None, description="새 메모")
    line_items: list[LineItemRequest] | None = Field(default=None, description="새 판매 라인")


class DeductionRequest(BaseModel):
    """매입 공제 항목"""

    kind: DeductionKind = Field(..., description="공제 종류 (clerk_fee/ice/labour/extra)")
    amount: Decimal = Field(..., description="공제 금액")


class FishDetailsRequest(BaseModel):
    """매입 어종 지정 (category_id 또는 name)"""

    category_id: int | None = Field(default=None, description="기존 어종 ID")
    name: str | None = Field(default=None, description="어종 이름 (없으면 생성)")
    update_reference_price: bool = Field(
        default=False,
        description="어종 참고 단가를 이번 매입 단가로 갱신",
    )


class PurchaseCreateRequest(BaseModel):
    """매입 거래 기록 요청"""

    farmer_id: int = Field(..., description="어민 ID")
    fish: FishDetailsRequest = Field(..., description="어종")
    weight: Decimal = Field(..., description="총 무게 (kg)")
    price_per_unit: Decimal = Field(..., description="단위 무게당 매입 단가")
    commission_percent: Decimal = Field(default=Decimal("0"), description="수수료율 (%)")
    deductions: list[DeductionRequest] = Field(default_factory=list, description="공제 항목")
    paid_amount: Decimal = Field(default=Decimal("0"), description="지급액")
    notes: str | None = Field(default=None, description="메모")
    transaction_date: date | None = Field(default=None, description="거래 날짜")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "farmer_id": 1,
                    "fish": {"name": "Rohu", "update_reference_price": True},
                    "weight": "400",
                    "price_per_unit": "7000",
                    "commission_percent": "5",
                    "deductions": [{"kind": "ice", "amount": "500"}],
                    "paid_amount": "30000",
                },
            ]
        }
    }


class PurchaseUpdateRequest(BaseModel):
    """매입 거래 수정 요청"""

    paid_amount: Decimal = Field(..., description="새 지급액")
    notes: str | None = Field(default=None, description="새 메모")


class ReconcileRequest(BaseModel):
    """잔고 점검/보정 요청"""

    kind: PartyKind | None = Field(default=None, description="대상 (생략 시 고객+어민)")
    fix: bool = Field(default=False, description="True면 캐시 잔고를 파생값으로 보정")


class RebuildRequest(BaseModel):
    """일별 집계 재구성 요청"""

    stream: SummaryStream | None = Field(default=None, description="대상 스트림 (생략 시 전체)")
