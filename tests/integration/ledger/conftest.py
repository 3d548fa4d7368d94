"""
Ledger 통합 테스트 fixture

임시 SQLite 파일 + 스키마 + Ledger 구성
"""

from pathlib import Path

import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.ledger import Ledger, init_ledger_schema
from core.ledger.types import FishCategory, Party
from core.types import PartyKind


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> SQLiteAdapter:
    """테스트용 임시 DB (스키마 포함)"""
    adapter = SQLiteAdapter(tmp_path / "test_ledger.db")
    await adapter.connect()
    await init_ledger_schema(adapter)
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture
async def ledger(db: SQLiteAdapter) -> Ledger:
    """기본 설정 Ledger (40kg 단위, clamp 꺼짐)"""
    return Ledger(db, LedgerConfig())


@pytest_asyncio.fixture
async def customer(ledger: Ledger) -> Party:
    return await ledger.entities.create_party(
        PartyKind.CUSTOMER, "Ali Khan", "0300-1234567", "Karachi Fish Harbour"
    )


@pytest_asyncio.fixture
async def farmer(ledger: Ledger) -> Party:
    return await ledger.entities.create_party(PartyKind.FARMER, "Bashir Ahmed", "03211234567")


@pytest_asyncio.fixture
async def rohu(ledger: Ledger) -> FishCategory:
    """Rohu (40kg당 1000)"""
    return await ledger.entities.create_fish_category("Rohu", "1000")


@pytest_asyncio.fixture
async def pomfret(ledger: Ledger) -> FishCategory:
    """Pomfret (40kg당 2000)"""
    return await ledger.entities.create_fish_category("Pomfret", "2000")
