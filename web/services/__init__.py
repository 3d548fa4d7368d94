"""
Web 서비스 패키지

비즈니스 로직 처리 (Ledger 호출 + 응답 모델 변환)
"""

from web.services.fish_service import FishService
from web.services.maintenance_service import MaintenanceService
from web.services.party_service import PartyService
from web.services.purchase_service import PurchaseService
from web.services.report_service import ReportService
from web.services.sale_service import SaleService

__all__ = [
    "PartyService",
    "FishService",
    "SaleService",
    "PurchaseService",
    "ReportService",
    "MaintenanceService",
]
