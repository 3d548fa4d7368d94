"""
유지보수 라우트

POST /api/maintenance/reconcile - 잔고 점검/보정
POST /api/maintenance/rebuild-summaries - 일별 집계 재구성
POST /api/maintenance/backup - DB 백업
"""

from fastapi import APIRouter, Depends

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from web.dependencies import get_db_write, get_ledger_config
from web.models.requests import RebuildRequest, ReconcileRequest
from web.models.responses import BackupResponse, ReconcileResponse, RebuildResponse
from web.services.maintenance_service import MaintenanceService

router = APIRouter(prefix="/api/maintenance", tags=["Maintenance"])


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile_balances(
    request: ReconcileRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> ReconcileResponse:
    """캐시 잔고와 파생 잔고 대조"""
    return await MaintenanceService(db, config).reconcile(request.kind, request.fix)


@router.post("/rebuild-summaries", response_model=RebuildResponse)
async def rebuild_summaries(
    request: RebuildRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> RebuildResponse:
    """거래 재생으로 일별 집계 재구성"""
    return await MaintenanceService(db, config).rebuild(request.stream)


@router.post("/backup", response_model=BackupResponse)
async def backup_database(
    db: SQLiteAdapter = Depends(get_db_write),
    config: LedgerConfig = Depends(get_ledger_config),
) -> BackupResponse:
    """온라인 백업 (data/backups)"""
    return await MaintenanceService(db, config).backup()
