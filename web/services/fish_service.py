"""
어종 서비스
"""

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.ledger import Ledger
from web.models.requests import FishCategoryCreateRequest, FishCategoryUpdateRequest
from web.models.responses import FishCategoryResponse


class FishService:
    """어종 서비스"""

    def __init__(self, db: SQLiteAdapter, config: LedgerConfig):
        self.db = db
        self.ledger = Ledger(db, config)

    async def create(self, request: FishCategoryCreateRequest) -> FishCategoryResponse:
        fish = await self.ledger.entities.create_fish_category(
            request.name, request.price_per_unit
        )
        return FishCategoryResponse.from_domain(fish)

    async def get(self, fish_id: int) -> FishCategoryResponse:
        fish = await self.ledger.entities.get_fish_category(fish_id)
        return FishCategoryResponse.from_domain(fish)

    async def list_categories(self, active_only: bool) -> list[FishCategoryResponse]:
        fish_list = await self.ledger.entities.list_fish_categories(active_only)
        return [FishCategoryResponse.from_domain(f) for f in fish_list]

    async def update(
        self,
        fish_id: int,
        request: FishCategoryUpdateRequest,
    ) -> FishCategoryResponse:
        fish = await self.ledger.entities.update_fish_category(
            fish_id, request.name, request.price_per_unit
        )
        return FishCategoryResponse.from_domain(fish)

    async def set_active(self, fish_id: int, active: bool) -> FishCategoryResponse:
        fish = await self.ledger.entities.set_fish_active(fish_id, active)
        return FishCategoryResponse.from_domain(fish)
