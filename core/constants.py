"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → fishledger/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    # 1 maund = 40 KG (가격은 maund 단위로 책정)
    UNIT_SIZE_KG: Decimal = Decimal("40")

    BUSY_TIMEOUT_MS: int = 5000
    LOCK_TIMEOUT_SEC: float = 10.0
    BEGIN_RETRIES: int = 3

    MAX_PAID_RATIO: Decimal = Decimal("2")
    DRIFT_TOLERANCE: Decimal = Decimal("0.005")  # 1센트 차이부터 불일치
    AUDIT_INTERVAL_SEC: int = 0  # 0이면 백그라운드 감사 비활성화
    TIMEZONE_OFFSET_HOURS: int = 5  # PKT (UTC+5)

    PAGE_LIMIT: int = 50
    PAGE_LIMIT_MAX: int = 200


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    BACKUP_DIR: Path = DATA_DIR / "backups"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"
    AUDIT_LOGS_DIR: Path = LOGS_DIR / "audit"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    PROD_DB: Path = DATA_DIR / "fishledger_prod.db"
    DEMO_DB: Path = DATA_DIR / "fishledger_demo.db"


class ValidationLimits:
    """입력 검증 한도"""

    NAME_MIN_LEN: int = 2
    NAME_MAX_LEN: int = 100
    ADDRESS_MAX_LEN: int = 500
    NOTES_MAX_LEN: int = 500
    FISH_NAME_MAX_LEN: int = 50

    PRICE_MAX: Decimal = Decimal("10000000")
    WEIGHT_MAX_KG: Decimal = Decimal("50000")
    COMMISSION_MAX_PERCENT: Decimal = Decimal("100")

    # 금액 overflow 상한 (TEXT 저장이지만 비정상 입력 차단)
    AMOUNT_MAX: Decimal = Decimal("1000000000000")
