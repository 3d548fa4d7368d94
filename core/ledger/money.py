"""
금액 연산

모든 금액은 소수점 2자리 Decimal.
연산 결과는 매 단계마다 ROUND_HALF_UP으로 반올림한다 (누적 오차 방지).
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, Union

from core.constants import ValidationLimits
from core.ledger.errors import InvalidAmount

Money = Decimal
AmountLike = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value: AmountLike, field: str = "amount") -> Decimal:
    """입력값을 Decimal로 변환

    float은 str()을 거쳐 변환한다 (0.1 -> Decimal("0.1")).

    Raises:
        InvalidAmount: 숫자가 아니거나 NaN/Infinity인 경우
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"{field}: 숫자가 아닙니다", field=field, value=value)

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise InvalidAmount(
                f"{field}: 숫자가 아닙니다", field=field, value=str(value)
            ) from e
    else:
        raise InvalidAmount(f"{field}: 지원하지 않는 타입입니다", field=field, value=repr(value))

    if not result.is_finite():
        raise InvalidAmount(f"{field}: NaN/Infinity는 허용되지 않습니다", field=field, value=str(value))

    return result


def round2(value: AmountLike) -> Money:
    """소수점 2자리 반올림 (HALF_UP)

    round2(round2(x)) == round2(x). -0.00은 0.00으로 정규화한다.

    Raises:
        InvalidAmount: NaN/Infinity 또는 상한 초과
    """
    d = to_decimal(value)
    if abs(d) > ValidationLimits.AMOUNT_MAX:
        raise InvalidAmount("금액이 허용 범위를 초과했습니다", value=str(d))
    result = d.quantize(CENT, rounding=ROUND_HALF_UP)
    if result.is_zero():
        return ZERO
    return result


def add(a: AmountLike, b: AmountLike) -> Money:
    return round2(round2(a) + round2(b))


def subtract(a: AmountLike, b: AmountLike) -> Money:
    return round2(round2(a) - round2(b))


def multiply(a: AmountLike, rate: AmountLike) -> Money:
    """금액 × 비율 (비율은 반올림하지 않음)"""
    return round2(round2(a) * to_decimal(rate, "rate"))


def percentage(a: AmountLike, percent: AmountLike) -> Money:
    """금액의 percent% (수수료 계산용)"""
    return round2(round2(a) * to_decimal(percent, "percent") / HUNDRED)


def money_sum(values: Iterable[AmountLike]) -> Money:
    """합계 (매 누적 단계마다 반올림)"""
    total = ZERO
    for value in values:
        total = add(total, value)
    return total


def require_non_negative(value: AmountLike, field: str) -> Money:
    """0 이상의 금액 요구 (지불액, 공제액 등)

    Raises:
        InvalidAmount: 음수인 경우
    """
    amount = round2(to_decimal(value, field))
    if amount < 0:
        raise InvalidAmount(f"{field}: 음수일 수 없습니다", field=field, value=str(amount))
    return amount


def require_positive(value: AmountLike, field: str) -> Money:
    """0보다 큰 금액 요구 (단가 등)"""
    amount = round2(to_decimal(value, field))
    if amount <= 0:
        raise InvalidAmount(f"{field}: 0보다 커야 합니다", field=field, value=str(amount))
    return amount


def parse_money(raw: str | None) -> Money:
    """DB TEXT 컬럼 값을 Money로 변환 (NULL은 0.00)"""
    if raw is None:
        return ZERO
    return round2(Decimal(raw))


def format_money(value: Money) -> str:
    """DB 저장/응답용 문자열 (항상 2자리)"""
    return str(round2(value))
