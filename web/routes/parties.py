"""
고객/어민 라우트

/api/customers, /api/farmers 두 라우터를 같은 코드로 생성
"""

from fastapi import APIRouter, Depends, Query, Response, status

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.constants import Defaults
from core.types import PartyKind
from web.dependencies import get_db, get_db_write, get_ledger_config
from web.models.requests import PartyRequest
from web.models.responses import (
    EntityBalanceResponse,
    PageResponse,
    PartyResponse,
    PurchaseTransactionResponse,
    SaleTransactionResponse,
)
from web.services.party_service import PartyService
from web.services.purchase_service import PurchaseService
from web.services.sale_service import SaleService


def _build_router(kind: PartyKind, prefix: str, tag: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[tag])

    @router.post("", response_model=PartyResponse, status_code=status.HTTP_201_CREATED)
    async def create_party(
        request: PartyRequest,
        db: SQLiteAdapter = Depends(get_db_write),
        config: LedgerConfig = Depends(get_ledger_config),
    ) -> PartyResponse:
        """생성 (잔고 0.00)"""
        return await PartyService(db, config, kind).create(request)

    @router.get("", response_model=PageResponse[PartyResponse])
    async def list_parties(
        limit: int = Query(default=Defaults.PAGE_LIMIT, ge=1, le=Defaults.PAGE_LIMIT_MAX),
        offset: int = Query(default=0, ge=0),
        db: SQLiteAdapter = Depends(get_db),
        config: LedgerConfig = Depends(get_ledger_config),
    ) -> PageResponse[PartyResponse]:
        """목록 조회 (이름순)"""
        return await PartyService(db, config, kind).list_parties(limit, offset)

    @router.get("/search", response_model=list[PartyResponse])
    async def search_parties(
        q: str = Query(..., min_length=1, description="이름/전화번호/ID"),
        limit: int = Query(default=Defaults.PAGE_LIMIT, ge=1, le=Defaults.PAGE_LIMIT_MAX),
        db: SQLiteAdapter = Depends(get_db),
        config: LedgerConfig = Depends(get_ledger_config),
    ) -> list[PartyResponse]:
        """검색"""
        return await PartyService(db, config, kind).search(q, limit)

    @router.get("/{entity_id}", response_model=PartyResponse)
    async def get_party(
        entity_id: int,
        db: SQLiteAdapter = Depends(get_db),
        config: LedgerConfig = Depends(get_ledger_config),
    ) -> PartyResponse:
        """단건 조회"""
        return await PartyService(db, config, kind).get(entity_id)

    @router.get("/{entity_id}/balance", response_model=EntityBalanceResponse)
    async def get_balance(
        entity_id: int,
        db: SQLiteAdapter = Depends(get_db),
        config: LedgerConfig = Depends(get_ledger_config),
    ) -> EntityBalanceResponse:
        """현재 잔고 (거래 내역에서 파생)"""
        return await PartyService(db, config, kind).get_balance(entity_id)

    history_model = (
        PageResponse[SaleTransactionResponse]
        if kind == PartyKind.CUSTOMER
        else PageResponse[PurchaseTransactionResponse]
    )

    @router.get("/{entity_id}/transactions", response_model=history_model)
    async def list_party_transactions(
        entity_id: int,
        limit: int = Query(default=Defaults.PAGE_LIMIT, ge=1, le=Defaults.PAGE_LIMIT_MAX),
        offset: int = Query(default=0, ge=0),
        db: SQLiteAdapter = Depends(get_db),
        config: LedgerConfig = Depends(get_ledger_config),
    ):
        """거래 이력 (고객은 판매, 어민은 매입, 최신순)"""
        if kind == PartyKind.CUSTOMER:
            return await SaleService(db, config).list_transactions(limit, offset, entity_id)
        return await PurchaseService(db, config).list_purchases(limit, offset, entity_id)

    @router.put("/{entity_id}", response_model=PartyResponse)
    async def update_party(
        entity_id: int,
        request: PartyRequest,
        db: SQLiteAdapter = Depends(get_db_write),
        config: LedgerConfig = Depends(get_ledger_config),
    ) -> PartyResponse:
        """이름/전화번호/주소 수정"""
        return await PartyService(db, config, kind).update(entity_id, request)

    @router.delete("/{entity_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_party(
        entity_id: int,
        db: SQLiteAdapter = Depends(get_db_write),
        config: LedgerConfig = Depends(get_ledger_config),
    ) -> Response:
        """삭제 (거래 이력이 없는 경우만)"""
        await PartyService(db, config, kind).delete(entity_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


customers_router = _build_router(PartyKind.CUSTOMER, "/api/customers", "Customers")
farmers_router = _build_router(PartyKind.FARMER, "/api/farmers", "Farmers")
