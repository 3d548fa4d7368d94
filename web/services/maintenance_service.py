"""
유지보수 서비스

잔고 점검/보정, 일별 집계 재구성, DB 백업
"""

from pathlib import Path

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.constants import Paths
from core.ledger import Ledger
from core.types import PartyKind, SummaryStream
from web.models.responses import (
    BackupResponse,
    BalanceDriftResponse,
    ReconcileResponse,
    RebuildResponse,
)


class MaintenanceService:
    """유지보수 서비스"""

    def __init__(self, db: SQLiteAdapter, config: LedgerConfig):
        self.db = db
        self.ledger = Ledger(db, config)

    async def reconcile(self, kind: PartyKind | None, fix: bool) -> ReconcileResponse:
        """캐시 잔고 점검 (fix=True면 파생값으로 보정)"""
        kinds = [kind] if kind is not None else list(PartyKind)
        drifts: list[BalanceDriftResponse] = []
        for k in kinds:
            found = await self.ledger.deriver.reconcile(k, fix=fix)
            drifts.extend(BalanceDriftResponse.from_domain(d) for d in found)
        return ReconcileResponse(fixed=fix, drifts=drifts)

    async def rebuild(self, stream: SummaryStream | None) -> RebuildResponse:
        """일별 집계 재구성 (거래 재생)"""
        streams = [stream] if stream is not None else list(SummaryStream)
        result: dict[str, int] = {}
        for s in streams:
            result[s.value] = await self.ledger.aggregator.rebuild_all(s)
        return RebuildResponse(days=result)

    async def backup(self, backup_dir: Path | None = None) -> BackupResponse:
        """DB 백업 (타임스탬프 파일명)"""
        path = await self.db.backup_to_dir(backup_dir or Paths.BACKUP_DIR)
        return BackupResponse(path=str(path))
