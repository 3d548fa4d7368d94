"""
Ledger 예외 정의

모든 예외는 LedgerError를 상속하며 code/message/details를 가진다.
Web 계층은 code를 그대로 응답 본문의 error 필드로 사용한다.
"""

from typing import Any


class LedgerError(Exception):
    """Ledger 공통 예외

    Args:
        message: 사용자에게 표시할 구체적 메시지
        details: 실패한 규칙/필드/ID 등 부가 정보
    """

    code = "ledger_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """응답 본문용 dict"""
        return {"error": self.code, "message": self.message, "details": self.details}


class ValidationError(LedgerError):
    """입력값 검증 실패 (이름 길이, 전화번호 형식, 무게/가격 범위 등)"""

    code = "validation_error"

    def __init__(self, message: str, field: str | None = None, **details: Any):
        if field is not None:
            details["field"] = field
        super().__init__(message, details)
        self.field = field


class InvalidAmount(ValidationError):
    """금액 오류 (NaN, Infinity, 음수, 상한 초과)"""

    code = "invalid_amount"


class DuplicateEntity(LedgerError):
    """이름+전화번호 중복"""

    code = "duplicate_entity"


class EntityNotFound(LedgerError):
    """참조 대상 없음 (고객/어민/어종/거래)

    Args:
        kind: 대상 종류 (customer, farmer, fish_category, transaction, purchase)
        entity_id: 조회한 ID
    """

    code = "entity_not_found"

    def __init__(self, kind: str, entity_id: int | str):
        super().__init__(
            f"{kind} {entity_id}을(를) 찾을 수 없습니다",
            {"kind": kind, "id": entity_id},
        )
        self.kind = kind
        self.entity_id = entity_id


class PersistenceFailure(LedgerError):
    """저장소 쓰기 실패 (작업 단위 전체 롤백됨)"""

    code = "persistence_failure"
