"""
판매 거래 서비스

TransactionEngine 기반 기록/수정/취소 및 LedgerStore 기반 조회
"""

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.ledger import EntityNotFound, Ledger, LineItemInput
from core.types import PartyKind
from web.models.requests import LineItemRequest, SaleCreateRequest, SaleUpdateRequest
from web.models.responses import PageResponse, SaleTransactionResponse


def _line_inputs(items: list[LineItemRequest]) -> list[LineItemInput]:
    return [
        LineItemInput(
            fish_category_id=item.fish_category_id,
            weight=item.weight,
            price_per_unit=item.price_per_unit,
        )
        for item in items
    ]


class SaleService:
    """판매 거래 서비스"""

    def __init__(self, db: SQLiteAdapter, config: LedgerConfig):
        self.db = db
        self.ledger = Ledger(db, config)

    async def record(self, request: SaleCreateRequest) -> SaleTransactionResponse:
        transaction = await self.ledger.engine.record_sale(
            request.customer_id,
            _line_inputs(request.line_items),
            request.paid_amount,
            notes=request.notes,
            transaction_date=request.transaction_date,
        )
        return SaleTransactionResponse.from_domain(transaction)

    async def get(self, transaction_id: int) -> SaleTransactionResponse:
        """거래 조회 (취소된 거래 포함)

        Raises:
            EntityNotFound: 거래가 없는 경우
        """
        transaction = await self.ledger.store.get_sale(transaction_id)
        if transaction is None:
            raise EntityNotFound("transaction", transaction_id)
        return SaleTransactionResponse.from_domain(transaction)

    async def list_transactions(
        self,
        limit: int,
        offset: int,
        customer_id: int | None = None,
    ) -> PageResponse[SaleTransactionResponse]:
        """거래 목록 (최신순)"""
        if customer_id is not None:
            await self.ledger.entities.fetch_party_row(PartyKind.CUSTOMER, customer_id)
        page = await self.ledger.store.list_sales(limit, offset, customer_id)
        return PageResponse[SaleTransactionResponse](
            items=[SaleTransactionResponse.from_domain(t) for t in page.items],
            total=page.total,
            offset=page.offset,
            limit=page.limit,
        )

    async def update(
        self,
        transaction_id: int,
        request: SaleUpdateRequest,
    ) -> SaleTransactionResponse:
        line_items = _line_inputs(request.line_items) if request.line_items is not None else None
        transaction = await self.ledger.engine.update_transaction(
            transaction_id,
            request.paid_amount,
            notes=request.notes,
            line_items=line_items,
        )
        return SaleTransactionResponse.from_domain(transaction)

    async def void(self, transaction_id: int) -> SaleTransactionResponse:
        transaction = await self.ledger.engine.void_transaction(transaction_id)
        return SaleTransactionResponse.from_domain(transaction)
