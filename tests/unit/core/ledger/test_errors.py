"""
core/ledger/errors.py 테스트
"""

from core.ledger.errors import (
    DuplicateEntity,
    EntityNotFound,
    InvalidAmount,
    LedgerError,
    PersistenceFailure,
    ValidationError,
)


class TestErrors:
    """예외 계층과 응답 본문"""

    def test_hierarchy(self) -> None:
        assert issubclass(InvalidAmount, ValidationError)
        for error_type in (ValidationError, DuplicateEntity, EntityNotFound, PersistenceFailure):
            assert issubclass(error_type, LedgerError)

    def test_validation_error_field(self) -> None:
        error = ValidationError("이름은 필수입니다", field="name", length=0)

        assert error.to_dict() == {
            "error": "validation_error",
            "message": "이름은 필수입니다",
            "details": {"length": 0, "field": "name"},
        }

    def test_invalid_amount_code(self) -> None:
        assert InvalidAmount("음수", field="paid_amount").code == "invalid_amount"

    def test_entity_not_found(self) -> None:
        error = EntityNotFound("customer", 42)

        assert error.kind == "customer"
        assert error.entity_id == 42
        assert error.to_dict()["details"] == {"kind": "customer", "id": 42}

    def test_default_details(self) -> None:
        assert PersistenceFailure("실패").details == {}
