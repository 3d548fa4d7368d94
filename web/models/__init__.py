"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    FishCategoryCreateRequest,
    FishCategoryUpdateRequest,
    PartyRequest,
    PurchaseCreateRequest,
    PurchaseUpdateRequest,
    SaleCreateRequest,
    SaleUpdateRequest,
)
from web.models.responses import (
    DashboardResponse,
    DailySummaryResponse,
    ErrorResponse,
    FishCategoryResponse,
    PageResponse,
    PartyResponse,
    PurchaseTransactionResponse,
    SaleTransactionResponse,
)

__all__ = [
    # Requests
    "PartyRequest",
    "FishCategoryCreateRequest",
    "FishCategoryUpdateRequest",
    "SaleCreateRequest",
    "SaleUpdateRequest",
    "PurchaseCreateRequest",
    "PurchaseUpdateRequest",
    # Responses
    "ErrorResponse",
    "PageResponse",
    "PartyResponse",
    "FishCategoryResponse",
    "SaleTransactionResponse",
    "PurchaseTransactionResponse",
    "DailySummaryResponse",
    "DashboardResponse",
]
