"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class StoreMode(str, Enum):
    """저장소 모드 (실운영 / 데모)"""

    PRODUCTION = "production"
    DEMO = "demo"


class PartyKind(str, Enum):
    """거래 상대방 종류

    CUSTOMER: 잔고 음수 = 고객이 가게에 갚을 돈 (외상)
    FARMER: 잔고 음수 = 가게가 어민에게 줄 돈
    """

    CUSTOMER = "customer"
    FARMER = "farmer"


class PaymentStatus(str, Enum):
    """결제 상태 (paid_amount vs total_amount로 파생)"""

    PAID = "paid"
    PARTIAL = "partial"
    UNPAID = "unpaid"


class TransactionStatus(str, Enum):
    """거래 상태"""

    COMPLETED = "completed"
    VOIDED = "voided"


class SummaryStream(str, Enum):
    """일별 집계 스트림"""

    SALES = "sales"  # 고객 판매 (daily_summary)
    PURCHASES = "purchases"  # 어민 매입 (farmer_daily_summary)


class DeductionKind(str, Enum):
    """매입 공제 항목"""

    CLERK_FEE = "clerk_fee"  # munshi nama
    ICE = "ice"  # baraf
    LABOUR = "labour"
    EXTRA = "extra"
