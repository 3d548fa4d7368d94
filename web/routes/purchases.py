"""
매입 거래 라우트

어민 매입 기록/조회/수정/취소 API
"""

from fastapi import APIRouter, Depends, Query, status

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.constants import Defaults
from web.dependencies import get_db, get_db_write, get_ledger_config
from web.models.requests import PurchaseCreateRequest, PurchaseUpdateRequest
from web.models.responses import PageResponse, PurchaseTransactionResponse
from web.services.purchase_service import PurchaseService

router = APIRouter(prefix="/api/purchases", tags=["Purchases"])


@router.post("", response_model=PurchaseTransactionResponse, status_code=status.HTTP_201_CREATED)
async def record_purchase(
    request: PurchaseCreateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> PurchaseTransactionResponse:
    """매입 거래 기록 (새 어종 이름이면 함께 생성)"""
    return await PurchaseService(db, config).record(request)


@router.get("", response_model=PageResponse[PurchaseTransactionResponse])
async def list_purchases(
    farmer_id: int | None = Query(default=None, description="어민 필터"),
    limit: int = Query(default=Defaults.PAGE_LIMIT, ge=1, le=Defaults.PAGE_LIMIT_MAX),
    offset: int = Query(default=0, ge=0),
    db: SQLiteAdapter = Depends(get_db),
    config: LedgerConfig = Depends(get_ledger_config),
) -> PageResponse[PurchaseTransactionResponse]:
    """매입 목록 (최신순)"""
    return await PurchaseService(db, config).list_purchases(limit, offset, farmer_id)


@router.get("/{transaction_id}", response_model=PurchaseTransactionResponse)
async def get_purchase(
    transaction_id: int,
    db: SQLiteAdapter = Depends(get_db),
    config: LedgerConfig = Depends(get_ledger_config),
) -> PurchaseTransactionResponse:
    return await PurchaseService(db, config).get(transaction_id)


@router.put("/{transaction_id}", response_model=PurchaseTransactionResponse)
async def update_purchase(
    transaction_id: int,
    request: PurchaseUpdateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> PurchaseTransactionResponse:
    """매입 수정 (지급액/메모)"""
    return await PurchaseService(db, config).update(transaction_id, request)


@router.post("/{transaction_id}/void", response_model=PurchaseTransactionResponse)
async def void_purchase(
    transaction_id: int,
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> PurchaseTransactionResponse:
    """매입 취소"""
    return await PurchaseService(db, config).void(transaction_id)
