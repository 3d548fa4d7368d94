"""
거래 금액 계산

판매/매입 거래의 소계, 총액, 잔고 변동, 결제 상태를 계산하는 순수 함수.
DB 접근 없음. 모든 중간값은 즉시 2자리로 반올림한다.

부호 규칙:
    판매: balance_change = paid - total (음수 = 고객 외상 증가)
    매입: balance_change = -(total - paid) (음수 = 어민에게 줄 돈 증가)
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from core.ledger.money import (
    ZERO,
    Money,
    add,
    money_sum,
    percentage,
    round2,
    subtract,
)
from core.types import PaymentStatus


@dataclass(frozen=True)
class SaleAmounts:
    """판매 거래 계산 결과"""

    subtotals: tuple[Money, ...]
    total_amount: Money
    paid_amount: Money
    balance_change: Money
    payment_status: PaymentStatus


@dataclass(frozen=True)
class PurchaseAmounts:
    """매입 거래 계산 결과"""

    fish_value: Money
    commission_amount: Money
    deductions_total: Money
    total_amount: Money
    paid_amount: Money
    balance_change: Money
    payment_status: PaymentStatus


def line_subtotal(weight: Decimal, price_per_unit: Money, unit_size_kg: Decimal) -> Money:
    """라인 소계 = round2(weight / unit_size × price)

    Example:
        >>> line_subtotal(Decimal("80"), Decimal("1000"), Decimal("40"))
        Decimal('2000.00')
    """
    return round2(weight * price_per_unit / unit_size_kg)


def payment_status(paid_amount: Money, total_amount: Money) -> PaymentStatus:
    """결제 상태 판정

    paid >= total이면 PAID (total이 0인 경우 포함), 0이면 UNPAID, 그 외 PARTIAL.
    """
    if paid_amount >= total_amount:
        return PaymentStatus.PAID
    if paid_amount == ZERO:
        return PaymentStatus.UNPAID
    return PaymentStatus.PARTIAL


def sale_balance_change(paid_amount: Money, total_amount: Money) -> Money:
    return subtract(paid_amount, total_amount)


def purchase_balance_change(paid_amount: Money, total_amount: Money) -> Money:
    return round2(-subtract(total_amount, paid_amount))


def outstanding_contribution(balance_change: Money) -> Money:
    """일별 집계의 미수/미지급 변동분 = -balance_change"""
    return round2(-balance_change)


def compute_sale(
    lines: Iterable[tuple[Decimal, Money]],
    paid_amount: Money,
    unit_size_kg: Decimal,
) -> SaleAmounts:
    """판매 거래 계산

    Args:
        lines: (weight, price_per_unit) 목록 (검증 완료된 값)
        paid_amount: 지불액
        unit_size_kg: 단가 기준 무게 (기본 40kg)
    """
    subtotals = tuple(line_subtotal(w, p, unit_size_kg) for w, p in lines)
    total = money_sum(subtotals)
    return SaleAmounts(
        subtotals=subtotals,
        total_amount=total,
        paid_amount=round2(paid_amount),
        balance_change=sale_balance_change(paid_amount, total),
        payment_status=payment_status(round2(paid_amount), total),
    )


def compute_purchase(
    weight: Decimal,
    price_per_unit: Money,
    commission_percent: Decimal,
    deductions: Iterable[Money],
    paid_amount: Money,
    unit_size_kg: Decimal,
) -> PurchaseAmounts:
    """매입 거래 계산

    total_amount는 음수가 될 수 있으며 호출 측에서 거부한다.
    """
    fish_value = line_subtotal(weight, price_per_unit, unit_size_kg)
    commission = percentage(fish_value, commission_percent)
    deductions_total = money_sum(deductions)
    total = subtract(subtract(fish_value, commission), deductions_total)
    return PurchaseAmounts(
        fish_value=fish_value,
        commission_amount=commission,
        deductions_total=deductions_total,
        total_amount=total,
        paid_amount=round2(paid_amount),
        balance_change=purchase_balance_change(paid_amount, total),
        payment_status=payment_status(round2(paid_amount), total),
    )


def apply_change(balance: Money, balance_change: Money) -> Money:
    """잔고 + 변동분"""
    return add(balance, balance_change)
