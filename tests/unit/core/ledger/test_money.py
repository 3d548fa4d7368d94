"""
core/ledger/money.py 테스트

소수점 2자리 반올림, 입력 변환, 음수/NaN 거부
"""

from decimal import Decimal

import pytest

from core.ledger.errors import InvalidAmount, ValidationError
from core.ledger.money import (
    ZERO,
    add,
    format_money,
    money_sum,
    multiply,
    parse_money,
    percentage,
    require_non_negative,
    require_positive,
    round2,
    subtract,
    to_decimal,
)


class TestToDecimal:
    """to_decimal 테스트"""

    def test_string(self) -> None:
        assert to_decimal("12.345") == Decimal("12.345")

    def test_float_uses_str(self) -> None:
        """float은 str()을 거쳐 이진 오차 없이 변환"""
        assert to_decimal(0.1) == Decimal("0.1")

    def test_int(self) -> None:
        assert to_decimal(5) == Decimal("5")

    def test_rejects_nan(self) -> None:
        with pytest.raises(InvalidAmount):
            to_decimal("NaN")

    def test_rejects_infinity(self) -> None:
        with pytest.raises(InvalidAmount):
            to_decimal(float("inf"))

    def test_rejects_garbage(self) -> None:
        with pytest.raises(InvalidAmount) as exc_info:
            to_decimal("abc", "paid_amount")

        assert exc_info.value.field == "paid_amount"

    def test_rejects_bool(self) -> None:
        with pytest.raises(InvalidAmount):
            to_decimal(True)  # type: ignore[arg-type]

    def test_invalid_amount_is_validation_error(self) -> None:
        """InvalidAmount는 ValidationError 하위 타입"""
        with pytest.raises(ValidationError):
            to_decimal("NaN")


class TestRound2:
    """round2 테스트"""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("1.005", "1.01"),
            ("1.004", "1.00"),
            ("2.5", "2.50"),
            ("-1.005", "-1.01"),
            ("0.125", "0.13"),
        ],
    )
    def test_half_up(self, value: str, expected: str) -> None:
        assert round2(value) == Decimal(expected)

    def test_idempotent(self) -> None:
        once = round2("123.456")
        assert round2(once) == once

    def test_negative_zero_normalised(self) -> None:
        result = round2("-0.001")

        assert result == ZERO
        assert str(result) == "0.00"

    def test_over_limit(self) -> None:
        with pytest.raises(InvalidAmount):
            round2("1000000000001")


class TestArithmetic:
    """add/subtract/multiply/percentage/money_sum 테스트"""

    def test_add(self) -> None:
        assert add("0.1", "0.2") == Decimal("0.30")

    def test_subtract(self) -> None:
        assert subtract("1500", "2000") == Decimal("-500.00")

    def test_multiply(self) -> None:
        assert multiply("100", "0.333") == Decimal("33.30")

    def test_percentage(self) -> None:
        assert percentage("2000", "5") == Decimal("100.00")

    def test_percentage_rounds(self) -> None:
        assert percentage("33.33", "2.5") == Decimal("0.83")

    def test_money_sum_rounds_each_step(self) -> None:
        assert money_sum(["0.005", "0.005"]) == Decimal("0.02")

    def test_money_sum_empty(self) -> None:
        assert money_sum([]) == ZERO


class TestRequire:
    """require_non_negative / require_positive 테스트"""

    def test_non_negative_accepts_zero(self) -> None:
        assert require_non_negative("0", "paid_amount") == ZERO

    def test_non_negative_rejects_negative(self) -> None:
        with pytest.raises(InvalidAmount) as exc_info:
            require_non_negative("-1", "paid_amount")

        assert exc_info.value.details["field"] == "paid_amount"

    def test_positive_rejects_zero(self) -> None:
        with pytest.raises(InvalidAmount):
            require_positive("0", "price_per_unit")

    def test_positive_rejects_value_rounding_to_zero(self) -> None:
        with pytest.raises(InvalidAmount):
            require_positive("0.001", "price_per_unit")


class TestStorageFormat:
    """parse_money / format_money 테스트"""

    def test_parse_none(self) -> None:
        assert parse_money(None) == ZERO

    def test_parse_text(self) -> None:
        assert parse_money("-500.00") == Decimal("-500.00")

    def test_format_always_two_places(self) -> None:
        assert format_money(Decimal("2000")) == "2000.00"
        assert format_money(Decimal("-0")) == "0.00"
