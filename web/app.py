"""
FastAPI 애플리케이션

라우터 등록, 예외 매핑, 앱 생명주기 관리.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config.loader import get_settings
from core.ledger.errors import (
    DuplicateEntity,
    EntityNotFound,
    LedgerError,
    PersistenceFailure,
    ValidationError,
)
from core.logging import setup_logging

# 로깅 설정 (콘솔 + 파일)
setup_logging("web")

from web import __version__
from web.routes import (
    fish,
    health,
    maintenance,
    parties,
    purchases,
    reports,
    transactions,
)

logger = logging.getLogger(__name__)

# 오류 종류 -> HTTP 상태 코드 (InvalidAmount는 ValidationError 하위)
ERROR_STATUS: dict[type[LedgerError], int] = {
    ValidationError: 422,
    DuplicateEntity: 409,
    EntityNotFound: 404,
    PersistenceFailure: 503,
}


def status_for(error: LedgerError) -> int:
    """LedgerError에 대응하는 HTTP 상태 코드"""
    for error_type in type(error).__mro__:
        if error_type in ERROR_STATUS:
            return ERROR_STATUS[error_type]
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리"""
    from adapters.db.sqlite_adapter import SQLiteAdapter
    from core.ledger import BalanceAuditor, BalanceDeriver, init_ledger_schema

    settings = get_settings()
    database = settings.database

    # 시작 시 - DB 스키마 자동 초기화
    async with SQLiteAdapter(
        database.path,
        busy_timeout_ms=database.busy_timeout_ms,
        lock_timeout_sec=database.lock_timeout_sec,
        begin_retries=database.begin_retries,
    ) as db:
        await init_ledger_schema(db)
    logger.info(
        f"Web 시작: mode={settings.mode.value}, db={database.path}",
        extra={"mode": settings.mode.value},
    )

    # 잔고 감사 (audit_interval_sec > 0인 경우만)
    auditor: BalanceAuditor | None = None
    audit_db: SQLiteAdapter | None = None
    if settings.ledger.audit_interval_sec > 0:
        audit_db = SQLiteAdapter(
            database.path,
            busy_timeout_ms=database.busy_timeout_ms,
            lock_timeout_sec=database.lock_timeout_sec,
            begin_retries=database.begin_retries,
        )
        await audit_db.connect()
        auditor = BalanceAuditor(
            BalanceDeriver(audit_db, settings.ledger.drift_tolerance),
            settings.ledger.audit_interval_sec,
        )
        auditor.start()

    yield

    # 종료 시 - 리소스 정리
    if auditor:
        await auditor.stop()
    if audit_db:
        await audit_db.close()
        logger.info("Web: 감사용 DB 연결 종료 완료")


app = FastAPI(
    title="FishLedger API",
    description="어시장 판매/매입 장부 API",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS 설정 (개발용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Ledger 오류를 {"error", "message", "details"} 응답으로 변환"""
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(
            f"요청 처리 실패: {request.method} {request.url.path}",
            extra={"error": exc.code, "details": exc.details},
        )
    else:
        logger.info(
            f"요청 거부: {request.method} {request.url.path} ({exc.code})",
            extra={"error": exc.code},
        )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """요청 스키마 오류도 같은 오류 본문 형식으로 반환"""
    errors = jsonable_encoder(exc.errors(), custom_encoder={Exception: str})
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or None
    return JSONResponse(
        status_code=422,
        content={
            "error": ValidationError.code,
            "message": first.get("msg", "요청 형식이 올바르지 않습니다"),
            "details": {"field": field, "errors": errors},
        },
    )


# =========================================================================
# API 라우터 등록
# =========================================================================

app.include_router(health.router)
app.include_router(parties.customers_router)
app.include_router(parties.farmers_router)
app.include_router(fish.router)
app.include_router(transactions.router)
app.include_router(purchases.router)
app.include_router(reports.router)
app.include_router(maintenance.router)
