"""
판매 거래 라우트

거래 기록/조회/수정/취소 API
"""

from fastapi import APIRouter, Depends, Query, status

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.constants import Defaults
from web.dependencies import get_db, get_db_write, get_ledger_config
from web.models.requests import SaleCreateRequest, SaleUpdateRequest
from web.models.responses import PageResponse, SaleTransactionResponse
from web.services.sale_service import SaleService

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])


@router.post("", response_model=SaleTransactionResponse, status_code=status.HTTP_201_CREATED)
async def record_sale(
    request: SaleCreateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> SaleTransactionResponse:
    """판매 거래 기록

    거래 저장, 고객 잔고 갱신, 일별 집계 갱신이 하나의 작업 단위로 처리된다.
    """
    return await SaleService(db, config).record(request)


@router.get("", response_model=PageResponse[SaleTransactionResponse])
async def list_transactions(
    customer_id: int | None = Query(default=None, description="고객 필터"),
    limit: int = Query(default=Defaults.PAGE_LIMIT, ge=1, le=Defaults.PAGE_LIMIT_MAX),
    offset: int = Query(default=0, ge=0),
    db: SQLiteAdapter = Depends(get_db),
    config: LedgerConfig = Depends(get_ledger_config),
) -> PageResponse[SaleTransactionResponse]:
    """판매 거래 목록 (최신순)"""
    return await SaleService(db, config).list_transactions(limit, offset, customer_id)


@router.get("/{transaction_id}", response_model=SaleTransactionResponse)
async def get_transaction(
    transaction_id: int,
    db: SQLiteAdapter = Depends(get_db),
    config: LedgerConfig = Depends(get_ledger_config),
) -> SaleTransactionResponse:
    """판매 거래 조회 (라인 포함)"""
    return await SaleService(db, config).get(transaction_id)


@router.put("/{transaction_id}", response_model=SaleTransactionResponse)
async def update_transaction(
    transaction_id: int,
    request: SaleUpdateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> SaleTransactionResponse:
    """판매 거래 수정 (지불액/메모/라인)"""
    return await SaleService(db, config).update(transaction_id, request)


@router.post("/{transaction_id}/void", response_model=SaleTransactionResponse)
async def void_transaction(
    transaction_id: int,
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> SaleTransactionResponse:
    """판매 거래 취소 (잔고/집계 원복)"""
    return await SaleService(db, config).void(transaction_id)
