"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
Web과 유지보수 스크립트가 동시에 접근 가능하도록 설정.

쓰기 작업은 transaction() 작업 단위 안에서만 수행한다.
- 같은 연결의 작업 단위는 asyncio.Lock으로 직렬화 (대기 시간 상한 있음)
- BEGIN IMMEDIATE로 쓰기 잠금을 먼저 확보 (다른 연결과의 lost update 방지)
- "database is locked" 시 제한된 횟수만큼 재시도

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.constants import Defaults
from core.ledger.errors import LedgerError, PersistenceFailure
from core.utils.timezone import now_utc

logger = logging.getLogger(__name__)

# BEGIN 재시도 간격 (초, 시도마다 2배)
BEGIN_BACKOFF_SEC = 0.05


async def create_connection(
    db_path: Path | str,
    busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    isolation_level=None으로 열어 BEGIN/COMMIT을 직접 제어한다.
    읽기 전용 연결은 PRAGMA query_only로 쓰기를 거부한다.

    Args:
        db_path: DB 파일 경로
        busy_timeout_ms: 잠금 대기 시간 (밀리초)
        readonly: 읽기 전용 여부

    Returns:
        aiosqlite 연결 객체
    """
    # pathlib.Path를 문자열로 변환
    db_path_str = str(db_path)

    # 디렉토리가 없으면 생성
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    # 연결 생성 (WAL 모드)
    conn = await aiosqlite.connect(db_path_str, isolation_level=None)
    await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")

    # 외래 키 제약 활성화
    await conn.execute("PRAGMA foreign_keys=ON")

    if readonly:
        await conn.execute("PRAGMA query_only=ON")

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


def _is_locked_error(exc: sqlite3.OperationalError) -> bool:
    message = str(exc).lower()
    return "locked" in message or "busy" in message


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    원자적 작업 단위(transaction) 컨텍스트 매니저 제공.

    Args:
        db_path: DB 파일 경로
        busy_timeout_ms: SQLite busy_timeout
        lock_timeout_sec: 작업 단위 잠금 대기 상한 (초)
        begin_retries: BEGIN IMMEDIATE 재시도 횟수
        readonly: 읽기 전용 여부 (Web 조회용)

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction():
        await adapter.execute("INSERT INTO ...")
        await adapter.execute("UPDATE ...")

    await adapter.close()
    ```
    """

    def __init__(
        self,
        db_path: Path | str,
        busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS,
        lock_timeout_sec: float = Defaults.LOCK_TIMEOUT_SEC,
        begin_retries: int = Defaults.BEGIN_RETRIES,
        readonly: bool = False,
    ):
        self.db_path = Path(db_path)
        self.busy_timeout_ms = busy_timeout_ms
        self.lock_timeout_sec = lock_timeout_sec
        self.begin_retries = begin_retries
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._in_unit = False
        self._owner: asyncio.Task[Any] | None = None

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """작업 단위 진행 중 여부"""
        return self._in_unit

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path, self.busy_timeout_ms, self.readonly)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if parameters:
            return await self._conn.execute(sql, parameters)
        return await self._conn.execute(sql)

    async def executemany(
        self,
        sql: str,
        parameters: list[tuple[Any, ...]],
    ) -> aiosqlite.Cursor:
        """SQL 다중 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        return await self._conn.executemany(sql, parameters)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchall()

    async def _begin(self) -> None:
        """BEGIN IMMEDIATE (잠금 경합 시 제한된 재시도)"""
        assert self._conn is not None
        attempt = 0
        while True:
            try:
                await self._conn.execute("BEGIN IMMEDIATE")
                return
            except sqlite3.OperationalError as e:
                if not _is_locked_error(e) or attempt >= self.begin_retries:
                    raise PersistenceFailure(
                        "쓰기 잠금을 확보하지 못했습니다",
                        {"reason": str(e), "attempts": attempt + 1},
                    ) from e
                attempt += 1
                delay = BEGIN_BACKOFF_SEC * (2 ** (attempt - 1))
                logger.warning(
                    f"BEGIN 재시도 {attempt}/{self.begin_retries}: {e}",
                    extra={"db_path": str(self.db_path), "delay": delay},
                )
                await asyncio.sleep(delay)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """원자적 작업 단위 컨텍스트 매니저

        성공 시 커밋, 예외 시 전체 롤백.
        LedgerError는 그대로, sqlite3.Error는 PersistenceFailure로 변환해 전파.

        사용 예시:
        ```python
        async with adapter.transaction() as conn:
            await conn.execute("INSERT INTO ...")
            # 성공 시 자동 커밋
        ```

        Raises:
            RuntimeError: 미연결 또는 중첩 작업 단위
            PersistenceFailure: 잠금 대기 초과 또는 저장소 오류
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        # 같은 태스크에서의 중첩은 교착 상태가 되므로 즉시 실패
        if self._owner is not None and self._owner is asyncio.current_task():
            raise RuntimeError("Nested transaction is not supported")

        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=self.lock_timeout_sec)
        except asyncio.TimeoutError as e:
            raise PersistenceFailure(
                "작업 단위 잠금 대기 시간을 초과했습니다",
                {"timeout_sec": self.lock_timeout_sec},
            ) from e

        self._owner = asyncio.current_task()
        self._in_unit = True
        try:
            try:
                await self._begin()
            except sqlite3.Error as e:
                raise PersistenceFailure("작업 단위를 시작하지 못했습니다", {"reason": str(e)}) from e

            try:
                yield self._conn
                await self._conn.execute("COMMIT")
            except BaseException as e:
                await self._rollback_quietly()
                if isinstance(e, LedgerError):
                    raise
                if isinstance(e, sqlite3.Error):
                    logger.error(
                        f"작업 단위 롤백: {e}",
                        extra={"db_path": str(self.db_path)},
                    )
                    raise PersistenceFailure(
                        "저장소 쓰기에 실패하여 롤백했습니다",
                        {"reason": str(e)},
                    ) from e
                raise
        finally:
            self._in_unit = False
            self._owner = None
            self._lock.release()

    async def _rollback_quietly(self) -> None:
        """롤백 (이미 종료된 트랜잭션이면 무시)"""
        assert self._conn is not None
        if not self._conn.in_transaction:
            return
        try:
            await self._conn.execute("ROLLBACK")
        except sqlite3.Error as e:
            logger.error(f"롤백 실패: {e}", extra={"db_path": str(self.db_path)})

    async def backup(self, dest: Path | str) -> Path:
        """DB 백업 (온라인 백업 API)

        Args:
            dest: 백업 파일 경로

        Returns:
            백업 파일 Path
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        dest_path = Path(dest)
        dest_path.parent.mkdir(parents=True, exist_ok=True)

        target = sqlite3.connect(str(dest_path), check_same_thread=False)
        try:
            await self._conn.backup(target)
        finally:
            target.close()

        logger.info("DB 백업 완료", extra={"dest": str(dest_path)})
        return dest_path

    async def backup_to_dir(self, backup_dir: Path | str) -> Path:
        """타임스탬프 파일명으로 백업 ({db 이름}_YYYYMMDD_HHMMSS.db, UTC)"""
        stamp = now_utc().strftime("%Y%m%d_%H%M%S")
        return await self.backup(Path(backup_dir) / f"{self.db_path.stem}_{stamp}.db")

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
