"""
core/ledger/validation.py 테스트
"""

from datetime import date
from decimal import Decimal

import pytest

from core.ledger.errors import InvalidAmount, ValidationError
from core.ledger.validation import (
    name_key,
    normalize_phone,
    phone_key,
    validate_address,
    validate_commission,
    validate_date_range,
    validate_fish_name,
    validate_name,
    validate_notes,
    validate_paid,
    validate_price,
    validate_weight,
)


class TestName:
    """이름 검증"""

    def test_trimmed(self) -> None:
        assert validate_name("  Ali Khan  ") == "Ali Khan"

    def test_too_short(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_name(" A ")

        assert exc_info.value.field == "name"

    def test_too_long(self) -> None:
        with pytest.raises(ValidationError):
            validate_name("x" * 101)

    def test_missing(self) -> None:
        with pytest.raises(ValidationError):
            validate_name(None)

    def test_name_key_casefold(self) -> None:
        assert name_key(" Ali KHAN ") == name_key("ali khan")


class TestPhone:
    """전화번호 정규화"""

    @pytest.mark.parametrize(
        "raw",
        ["03001234567", "0300-1234567", "0300 123 4567", " 0300-123-4567 "],
    )
    def test_normalised(self, raw: str) -> None:
        assert normalize_phone(raw) == "0300-1234567"

    def test_empty_is_none(self) -> None:
        assert normalize_phone("") is None
        assert normalize_phone(None) is None

    @pytest.mark.parametrize("raw", ["0400-1234567", "0300-123456", "abc", "+923001234567"])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            normalize_phone(raw)

        assert exc_info.value.details["field"] == "phone"

    def test_phone_key(self) -> None:
        assert phone_key("0300-1234567") == "03001234567"
        assert phone_key(None) == ""


class TestTextFields:
    """주소/메모/어종 이름"""

    def test_blank_address_is_none(self) -> None:
        assert validate_address("   ") is None

    def test_address_too_long(self) -> None:
        with pytest.raises(ValidationError):
            validate_address("x" * 501)

    def test_notes_too_long(self) -> None:
        with pytest.raises(ValidationError):
            validate_notes("x" * 501)

    def test_fish_name_required(self) -> None:
        with pytest.raises(ValidationError):
            validate_fish_name("  ")

    def test_fish_name_too_long(self) -> None:
        with pytest.raises(ValidationError):
            validate_fish_name("x" * 51)


class TestNumbers:
    """가격/무게/수수료/지불액"""

    def test_price(self) -> None:
        assert validate_price("1000") == Decimal("1000.00")

    def test_price_zero(self) -> None:
        with pytest.raises(InvalidAmount):
            validate_price("0")

    def test_price_over_max(self) -> None:
        with pytest.raises(ValidationError):
            validate_price("10000001")

    def test_weight_rounded(self) -> None:
        assert validate_weight("80.456") == Decimal("80.46")

    def test_weight_negative(self) -> None:
        with pytest.raises(InvalidAmount):
            validate_weight("-1")

    def test_weight_over_max(self) -> None:
        with pytest.raises(ValidationError):
            validate_weight("50000.01")

    def test_weight_rounding_to_zero(self) -> None:
        with pytest.raises(InvalidAmount):
            validate_weight("0.001")

    @pytest.mark.parametrize("value", ["-1", "100.01"])
    def test_commission_out_of_range(self, value: str) -> None:
        with pytest.raises(ValidationError):
            validate_commission(value)

    def test_commission_bounds(self) -> None:
        assert validate_commission("0") == Decimal("0")
        assert validate_commission("100") == Decimal("100")

    def test_paid_within_ratio(self) -> None:
        assert validate_paid("4000", Decimal("2000"), Decimal("2")) == Decimal("4000.00")

    def test_paid_over_ratio(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_paid("4000.01", Decimal("2000"), Decimal("2"))

        assert not isinstance(exc_info.value, InvalidAmount)

    def test_paid_negative_is_invalid_amount(self) -> None:
        with pytest.raises(InvalidAmount):
            validate_paid("-1", Decimal("2000"), Decimal("2"))


class TestDateRange:
    """기간 검증"""

    def test_valid(self) -> None:
        validate_date_range(date(2026, 1, 1), date(2026, 1, 1))

    def test_start_after_end(self) -> None:
        with pytest.raises(ValidationError):
            validate_date_range(date(2026, 1, 2), date(2026, 1, 1))
