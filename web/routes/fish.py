"""
어종 라우트

GET/POST /api/fish-categories, PUT /api/fish-categories/{id},
POST /api/fish-categories/{id}/active
"""

from fastapi import APIRouter, Depends, Query, status

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from web.dependencies import get_db, get_db_write, get_ledger_config
from web.models.requests import (
    FishActiveRequest,
    FishCategoryCreateRequest,
    FishCategoryUpdateRequest,
)
from web.models.responses import FishCategoryResponse
from web.services.fish_service import FishService

router = APIRouter(prefix="/api/fish-categories", tags=["Fish"])


@router.post("", response_model=FishCategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_fish_category(
    request: FishCategoryCreateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> FishCategoryResponse:
    """어종 생성 (이름은 대소문자 무시 유일)"""
    return await FishService(db, config).create(request)


@router.get("", response_model=list[FishCategoryResponse])
async def list_fish_categories(
    active_only: bool = Query(default=False, description="활성 어종만"),
    db: SQLiteAdapter = Depends(get_db),
    config: LedgerConfig = Depends(get_ledger_config),
) -> list[FishCategoryResponse]:
    """어종 목록 (이름순)"""
    return await FishService(db, config).list_categories(active_only)


@router.get("/{fish_id}", response_model=FishCategoryResponse)
async def get_fish_category(
    fish_id: int,
    db: SQLiteAdapter = Depends(get_db),
    config: LedgerConfig = Depends(get_ledger_config),
) -> FishCategoryResponse:
    return await FishService(db, config).get(fish_id)


@router.put("/{fish_id}", response_model=FishCategoryResponse)
async def update_fish_category(
    fish_id: int,
    request: FishCategoryUpdateRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> FishCategoryResponse:
    """이름/참고 단가 수정 (과거 거래에는 영향 없음)"""
    return await FishService(db, config).update(fish_id, request)


@router.post("/{fish_id}/active", response_model=FishCategoryResponse)
async def set_fish_active(
    fish_id: int,
    request: FishActiveRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> FishCategoryResponse:
    """활성/비활성 전환"""
    return await FishService(db, config).set_active(fish_id, request.active)
