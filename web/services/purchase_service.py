"""
매입 거래 서비스

어민 매입 기록/수정/취소 및 조회
"""

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.ledger import Deduction, EntityNotFound, FishDetails, Ledger
from core.types import PartyKind
from web.models.requests import PurchaseCreateRequest, PurchaseUpdateRequest
from web.models.responses import PageResponse, PurchaseTransactionResponse


class PurchaseService:
    """매입 거래 서비스"""

    def __init__(self, db: SQLiteAdapter, config: LedgerConfig):
        self.db = db
        self.ledger = Ledger(db, config)

    async def record(self, request: PurchaseCreateRequest) -> PurchaseTransactionResponse:
        fish = FishDetails(
            category_id=request.fish.category_id,
            name=request.fish.name,
            update_reference_price=request.fish.update_reference_price,
        )
        deductions = [Deduction(kind=d.kind, amount=d.amount) for d in request.deductions]

        transaction = await self.ledger.engine.record_purchase(
            request.farmer_id,
            fish,
            request.weight,
            request.price_per_unit,
            commission_percent=request.commission_percent,
            deductions=deductions,
            paid_amount=request.paid_amount,
            notes=request.notes,
            transaction_date=request.transaction_date,
        )
        return PurchaseTransactionResponse.from_domain(transaction)

    async def get(self, transaction_id: int) -> PurchaseTransactionResponse:
        """매입 조회 (취소된 거래 포함)

        Raises:
            EntityNotFound: 거래가 없는 경우
        """
        transaction = await self.ledger.store.get_purchase(transaction_id)
        if transaction is None:
            raise EntityNotFound("purchase", transaction_id)
        return PurchaseTransactionResponse.from_domain(transaction)

    async def list_purchases(
        self,
        limit: int,
        offset: int,
        farmer_id: int | None = None,
    ) -> PageResponse[PurchaseTransactionResponse]:
        """매입 목록 (최신순)"""
        if farmer_id is not None:
            await self.ledger.entities.fetch_party_row(PartyKind.FARMER, farmer_id)
        page = await self.ledger.store.list_purchases(limit, offset, farmer_id)
        return PageResponse[PurchaseTransactionResponse](
            items=[PurchaseTransactionResponse.from_domain(t) for t in page.items],
            total=page.total,
            offset=page.offset,
            limit=page.limit,
        )

    async def update(
        self,
        transaction_id: int,
        request: PurchaseUpdateRequest,
    ) -> PurchaseTransactionResponse:
        transaction = await self.ledger.engine.update_purchase_transaction(
            transaction_id, request.paid_amount, notes=request.notes
        )
        return PurchaseTransactionResponse.from_domain(transaction)

    async def void(self, transaction_id: int) -> PurchaseTransactionResponse:
        transaction = await self.ledger.engine.void_purchase_transaction(transaction_id)
        return PurchaseTransactionResponse.from_domain(transaction)
