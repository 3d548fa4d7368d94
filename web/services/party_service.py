"""
고객/어민 서비스

EntityStore 기반 CRUD 및 잔고 조회
"""

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.ledger import Ledger
from core.types import PartyKind
from web.models.requests import PartyRequest
from web.models.responses import EntityBalanceResponse, PageResponse, PartyResponse


class PartyService:
    """고객/어민 서비스

    같은 코드로 두 종류를 처리한다 (kind로 구분).
    """

    def __init__(self, db: SQLiteAdapter, config: LedgerConfig, kind: PartyKind):
        self.db = db
        self.kind = kind
        self.ledger = Ledger(db, config)

    async def create(self, request: PartyRequest) -> PartyResponse:
        party = await self.ledger.entities.create_party(
            self.kind, request.name, request.phone, request.address
        )
        return PartyResponse.from_domain(party)

    async def get(self, entity_id: int) -> PartyResponse:
        party = await self.ledger.entities.get_party(self.kind, entity_id)
        return PartyResponse.from_domain(party)

    async def get_balance(self, entity_id: int) -> EntityBalanceResponse:
        balance = await self.ledger.entities.get_entity_balance(self.kind, entity_id)
        return EntityBalanceResponse(kind=self.kind.value, id=entity_id, balance=str(balance))

    async def list_parties(self, limit: int, offset: int) -> PageResponse[PartyResponse]:
        """목록 조회 (이름순)"""
        page = await self.ledger.entities.list_parties(self.kind, limit, offset)
        return PageResponse[PartyResponse](
            items=[PartyResponse.from_domain(p) for p in page.items],
            total=page.total,
            offset=page.offset,
            limit=page.limit,
        )

    async def search(self, query: str, limit: int) -> list[PartyResponse]:
        """이름/전화번호/ID 검색"""
        parties = await self.ledger.entities.search_parties(self.kind, query, limit)
        return [PartyResponse.from_domain(p) for p in parties]

    async def update(self, entity_id: int, request: PartyRequest) -> PartyResponse:
        party = await self.ledger.entities.update_party(
            self.kind, entity_id, request.name, request.phone, request.address
        )
        return PartyResponse.from_domain(party)

    async def delete(self, entity_id: int) -> None:
        await self.ledger.entities.delete_party(self.kind, entity_id)
