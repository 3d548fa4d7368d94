"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
요청마다 DB 연결을 열고 닫는다. 연결 간 쓰기 직렬화는
BEGIN IMMEDIATE + busy_timeout이 담당한다.
"""

from typing import AsyncGenerator

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig, Settings, get_settings


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


def get_ledger_config() -> LedgerConfig:
    """Ledger 설정 반환"""
    return get_settings().ledger


def _adapter(settings: Settings, readonly: bool) -> SQLiteAdapter:
    database = settings.database
    return SQLiteAdapter(
        database.path,
        busy_timeout_ms=database.busy_timeout_ms,
        lock_timeout_sec=database.lock_timeout_sec,
        begin_retries=database.begin_retries,
        readonly=readonly,
    )


async def get_db() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (읽기 전용)

    조회 API용. 연결에서 쓰기를 시도하면 SQLite가 거부한다.
    """
    async with _adapter(get_settings(), readonly=True) as db:
        yield db


async def get_db_write() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (쓰기용)

    거래 기록/수정/취소, 엔티티 변경, 보정 작업에 사용.
    """
    async with _adapter(get_settings(), readonly=False) as db:
        yield db
