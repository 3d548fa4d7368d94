"""
설정 로더

settings.yaml 로드 및 DB/Ledger 설정 생성
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, Paths
from core.types import StoreMode


@dataclass(frozen=True)
class DatabaseConfig:
    """DB 연결 설정"""

    path: Path
    busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS
    lock_timeout_sec: float = Defaults.LOCK_TIMEOUT_SEC
    begin_retries: int = Defaults.BEGIN_RETRIES


@dataclass(frozen=True)
class LedgerConfig:
    """Ledger 계산 설정

    불변 데이터 구조로 설정 변경 방지
    """

    unit_size_kg: Decimal = Defaults.UNIT_SIZE_KG
    clamp_daily_outstanding: bool = False
    max_paid_ratio: Decimal = Defaults.MAX_PAID_RATIO
    drift_tolerance: Decimal = Defaults.DRIFT_TOLERANCE
    audit_interval_sec: int = Defaults.AUDIT_INTERVAL_SEC
    timezone_offset_hours: int = Defaults.TIMEZONE_OFFSET_HOURS


@dataclass(frozen=True)
class AppConfig:
    """settings.yaml 전체"""

    mode: StoreMode
    database: DatabaseConfig
    ledger: LedgerConfig


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def get_db_path(mode: StoreMode) -> Path:
    """모드에 따른 기본 DB 경로 반환

    Args:
        mode: StoreMode

    Returns:
        DB 파일 경로 (Path 타입)
    """
    if mode == StoreMode.PRODUCTION:
        return Paths.PROD_DB
    else:
        return Paths.DEMO_DB


def _to_decimal(section: str, key: str, value: Any) -> Decimal:
    try:
        result = Decimal(str(value))
    except InvalidOperation as e:
        raise SettingsLoadError(
            f"settings.yaml의 {section}.{key} 값이 숫자가 아닙니다: {value!r}"
        ) from e
    if not result.is_finite():
        raise SettingsLoadError(f"settings.yaml의 {section}.{key} 값이 유한하지 않습니다")
    return result


def _parse_database(mode: StoreMode, data: dict[str, Any]) -> DatabaseConfig:
    raw_path = data.get("path")
    if raw_path:
        path = Path(raw_path)
        if not path.is_absolute():
            path = Paths.DATA_DIR.parent / path
    else:
        path = get_db_path(mode)

    return DatabaseConfig(
        path=path,
        busy_timeout_ms=int(data.get("busy_timeout_ms", Defaults.BUSY_TIMEOUT_MS)),
        lock_timeout_sec=float(data.get("lock_timeout_sec", Defaults.LOCK_TIMEOUT_SEC)),
        begin_retries=int(data.get("begin_retries", Defaults.BEGIN_RETRIES)),
    )


def _parse_ledger(data: dict[str, Any]) -> LedgerConfig:
    unit_size = _to_decimal("ledger", "unit_size_kg", data.get("unit_size_kg", Defaults.UNIT_SIZE_KG))
    if unit_size <= 0:
        raise SettingsLoadError("settings.yaml의 ledger.unit_size_kg는 0보다 커야 합니다")

    return LedgerConfig(
        unit_size_kg=unit_size,
        clamp_daily_outstanding=bool(data.get("clamp_daily_outstanding", False)),
        max_paid_ratio=_to_decimal(
            "ledger", "max_paid_ratio", data.get("max_paid_ratio", Defaults.MAX_PAID_RATIO)
        ),
        drift_tolerance=_to_decimal(
            "ledger", "drift_tolerance", data.get("drift_tolerance", Defaults.DRIFT_TOLERANCE)
        ),
        audit_interval_sec=int(data.get("audit_interval_sec", Defaults.AUDIT_INTERVAL_SEC)),
        timezone_offset_hours=int(
            data.get("timezone_offset_hours", Defaults.TIMEZONE_OFFSET_HOURS)
        ),
    )


def load_config(path: Path | None = None) -> AppConfig:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppConfig 인스턴스

    Raises:
        SettingsLoadError: 파일이 없거나 형식이 잘못된 경우
        ValueError: 유효하지 않은 mode인 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        raise SettingsLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        raise SettingsLoadError("settings.yaml이 비어 있습니다")

    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    # mode 검증
    mode_str = data.get("mode")
    if mode_str is None:
        raise SettingsLoadError("settings.yaml에 'mode' 필드가 없습니다")

    try:
        mode = StoreMode(mode_str)
    except ValueError as e:
        valid_modes = [m.value for m in StoreMode]
        raise ValueError(
            f"유효하지 않은 mode입니다: '{mode_str}'. "
            f"유효한 값: {valid_modes}"
        ) from e

    database = _parse_database(mode, data.get("database") or {})
    ledger = _parse_ledger(data.get("ledger") or {})

    return AppConfig(mode=mode, database=database, ledger=ledger)


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: AppConfig | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._config is None:
            # 클래스 속성으로 저장해야 reset() 전까지 유지됨
            type(self)._config = load_config(settings_path)

    @property
    def mode(self) -> StoreMode:
        """현재 저장소 모드"""
        assert self._config is not None
        return self._config.mode

    @property
    def database(self) -> DatabaseConfig:
        """DB 설정"""
        assert self._config is not None
        return self._config.database

    @property
    def ledger(self) -> LedgerConfig:
        """Ledger 설정"""
        assert self._config is not None
        return self._config.ledger

    @property
    def db_path(self) -> Path:
        """현재 모드의 DB 경로"""
        assert self._config is not None
        return self._config.database.path

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
