"""
입력 검증

모든 쓰기 작업은 작업 단위(트랜잭션)를 시작하기 전에 여기서 검증한다.
검증 실패 시 ValidationError/InvalidAmount를 발생시키며 DB는 건드리지 않는다.
"""

import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from core.constants import ValidationLimits
from core.ledger.errors import InvalidAmount, ValidationError
from core.ledger.money import AmountLike, Money, require_non_negative, require_positive, to_decimal

# 파키스탄 휴대폰 번호: 03XXXXXXXXX (11자리)
PHONE_PATTERN = re.compile(r"^03\d{9}$")
PHONE_STRIP_PATTERN = re.compile(r"[\s\-]")

WEIGHT_QUANT = Decimal("0.01")


def validate_name(name: str | None, field: str = "name") -> str:
    """이름 검증 (앞뒤 공백 제거 후 2~100자)"""
    if name is None:
        raise ValidationError("이름은 필수입니다", field=field)
    value = name.strip()
    if len(value) < ValidationLimits.NAME_MIN_LEN:
        raise ValidationError(
            f"이름은 최소 {ValidationLimits.NAME_MIN_LEN}자 이상이어야 합니다",
            field=field,
            length=len(value),
        )
    if len(value) > ValidationLimits.NAME_MAX_LEN:
        raise ValidationError(
            f"이름은 최대 {ValidationLimits.NAME_MAX_LEN}자까지 가능합니다",
            field=field,
            length=len(value),
        )
    return value


def normalize_phone(phone: str | None) -> str | None:
    """전화번호 정규화

    공백/하이픈 제거 후 03 + 9자리 확인, 03XX-XXXXXXX 형식으로 반환.
    빈 값은 None.

    Example:
        >>> normalize_phone("0300 1234567")
        '0300-1234567'
    """
    if phone is None:
        return None
    digits = PHONE_STRIP_PATTERN.sub("", phone)
    if not digits:
        return None
    if not PHONE_PATTERN.match(digits):
        raise ValidationError(
            "전화번호 형식이 올바르지 않습니다 (예: 0300-1234567)",
            field="phone",
            value=phone,
        )
    return f"{digits[:4]}-{digits[4:]}"


def phone_key(phone: str | None) -> str:
    """중복 검사용 전화번호 키 (숫자만, 없으면 빈 문자열)"""
    if not phone:
        return ""
    return PHONE_STRIP_PATTERN.sub("", phone)


def name_key(name: str) -> str:
    """중복 검사용 이름 키 (대소문자 무시)"""
    return name.strip().casefold()


def validate_address(address: str | None) -> str | None:
    if address is None:
        return None
    value = address.strip()
    if not value:
        return None
    if len(value) > ValidationLimits.ADDRESS_MAX_LEN:
        raise ValidationError(
            f"주소는 최대 {ValidationLimits.ADDRESS_MAX_LEN}자까지 가능합니다",
            field="address",
        )
    return value


def validate_notes(notes: str | None) -> str | None:
    if notes is None:
        return None
    value = notes.strip()
    if not value:
        return None
    if len(value) > ValidationLimits.NOTES_MAX_LEN:
        raise ValidationError(
            f"메모는 최대 {ValidationLimits.NOTES_MAX_LEN}자까지 가능합니다",
            field="notes",
        )
    return value


def validate_fish_name(name: str | None) -> str:
    if name is None or not name.strip():
        raise ValidationError("어종 이름은 필수입니다", field="fish_name")
    value = name.strip()
    if len(value) > ValidationLimits.FISH_NAME_MAX_LEN:
        raise ValidationError(
            f"어종 이름은 최대 {ValidationLimits.FISH_NAME_MAX_LEN}자까지 가능합니다",
            field="fish_name",
        )
    return value


def validate_price(price: AmountLike, field: str = "price_per_unit") -> Money:
    """단가 검증 (0 < price ≤ 10,000,000)"""
    value = to_decimal(price, field)
    if value <= 0:
        raise InvalidAmount("단가는 0보다 커야 합니다", field=field, value=str(value))
    if value > ValidationLimits.PRICE_MAX:
        raise ValidationError(
            f"단가는 {ValidationLimits.PRICE_MAX}을(를) 초과할 수 없습니다",
            field=field,
            value=str(value),
        )
    return require_positive(value, field)


def validate_weight(weight: AmountLike, field: str = "weight") -> Decimal:
    """무게 검증 (0 < weight ≤ 50,000 kg, 소수점 2자리)"""
    value = to_decimal(weight, field)
    if value <= 0:
        raise InvalidAmount("무게는 0보다 커야 합니다", field=field, value=str(value))
    if value > ValidationLimits.WEIGHT_MAX_KG:
        raise ValidationError(
            f"무게는 {ValidationLimits.WEIGHT_MAX_KG}kg을 초과할 수 없습니다",
            field=field,
            value=str(value),
        )
    rounded = value.quantize(WEIGHT_QUANT, rounding=ROUND_HALF_UP)
    if rounded <= 0:
        raise InvalidAmount("무게는 0.01kg 이상이어야 합니다", field=field, value=str(value))
    return rounded


def validate_commission(percent: AmountLike) -> Decimal:
    """수수료율 검증 (0~100%)"""
    value = to_decimal(percent, "commission_percent")
    if value < 0 or value > ValidationLimits.COMMISSION_MAX_PERCENT:
        raise ValidationError(
            "수수료율은 0~100% 사이여야 합니다",
            field="commission_percent",
            value=str(value),
        )
    return value


def validate_paid(paid: AmountLike, total: Money, max_ratio: Decimal) -> Money:
    """지불액 검증 (0 ≤ paid ≤ max_ratio × total)

    Raises:
        InvalidAmount: 음수/NaN
        ValidationError: 총액 대비 과도한 지불액
    """
    value = require_non_negative(paid, "paid_amount")
    limit = total * max_ratio
    if value > limit:
        raise ValidationError(
            f"지불액이 총액의 {max_ratio}배를 초과합니다",
            field="paid_amount",
            paid_amount=str(value),
            total_amount=str(total),
        )
    return value


def validate_date_range(start: date, end: date) -> None:
    if start > end:
        raise ValidationError(
            "시작일이 종료일보다 늦을 수 없습니다",
            field="start",
            start=start.isoformat(),
            end=end.isoformat(),
        )
