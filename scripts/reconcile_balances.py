"""
잔고 점검/보정

고객/어민 캐시 잔고를 거래 내역에서 파생한 값과 대조한다.

사용법:
    python -m scripts.reconcile_balances
    python -m scripts.reconcile_balances --kind customer --fix
"""

import argparse
import asyncio
import logging
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import get_settings
from core.ledger import BalanceDeriver, init_ledger_schema
from core.logging import setup_logging
from core.types import PartyKind

logger = logging.getLogger(__name__)


async def main(kind: str, fix: bool, settings_path: Path | None) -> int:
    settings = get_settings(settings_path)
    database = settings.database
    kinds = list(PartyKind) if kind == "all" else [PartyKind(kind)]

    total = 0
    async with SQLiteAdapter(
        database.path,
        busy_timeout_ms=database.busy_timeout_ms,
        lock_timeout_sec=database.lock_timeout_sec,
        begin_retries=database.begin_retries,
    ) as db:
        await init_ledger_schema(db)
        deriver = BalanceDeriver(db, settings.ledger.drift_tolerance)

        for k in kinds:
            drifts = await deriver.reconcile(k, fix=fix)
            total += len(drifts)
            for drift in drifts:
                print(
                    f"{k.value:<8} #{drift.entity_id:<6} "
                    f"cached={drift.cached:>14} derived={drift.derived:>14} "
                    f"diff={drift.difference:>12}"
                )

    action = "보정" if fix else "감지"
    logger.info(f"잔고 점검 완료: 불일치 {total}건 {action}", extra={"drifts": total, "fixed": fix})
    return 1 if total and not fix else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="고객/어민 잔고 점검")
    parser.add_argument(
        "--kind",
        choices=[k.value for k in PartyKind] + ["all"],
        default="all",
        help="대상 (기본: all)",
    )
    parser.add_argument("--fix", action="store_true", help="캐시 잔고를 파생값으로 보정")
    parser.add_argument("--settings", type=Path, default=None, help="settings.yaml 경로")
    args = parser.parse_args()

    setup_logging("audit")
    sys.exit(asyncio.run(main(args.kind, args.fix, args.settings)))
