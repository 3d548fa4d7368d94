"""
일별 집계 재구성

취소되지 않은 거래를 날짜별로 재생해 daily_summary / farmer_daily_summary를 다시 쓴다.

사용법:
    python -m scripts.rebuild_summaries
    python -m scripts.rebuild_summaries --stream sales
    python -m scripts.rebuild_summaries --stream purchases --date 2026-01-15
"""

import argparse
import asyncio
import logging
from datetime import date
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import get_settings
from core.ledger import DailyAggregator, init_ledger_schema
from core.logging import setup_logging
from core.types import SummaryStream
from core.utils.timezone import format_date, parse_date

logger = logging.getLogger(__name__)


async def main(stream: str, day: date | None, settings_path: Path | None) -> None:
    settings = get_settings(settings_path)
    database = settings.database
    streams = list(SummaryStream) if stream == "all" else [SummaryStream(stream)]

    async with SQLiteAdapter(
        database.path,
        busy_timeout_ms=database.busy_timeout_ms,
        lock_timeout_sec=database.lock_timeout_sec,
        begin_retries=database.begin_retries,
    ) as db:
        await init_ledger_schema(db)
        aggregator = DailyAggregator(db, settings.ledger.clamp_daily_outstanding)

        for s in streams:
            if day is not None:
                summary = await aggregator.rebuild_date(s, format_date(day))
                print(
                    f"{s.value:<10} {summary.date} "
                    f"amount={summary.total_amount} cash={summary.total_cash} "
                    f"count={summary.transactions_count}"
                )
            else:
                count = await aggregator.rebuild_all(s)
                print(f"{s.value:<10} {count}일 재구성")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="일별 집계 재구성")
    parser.add_argument(
        "--stream",
        choices=[s.value for s in SummaryStream] + ["all"],
        default="all",
        help="대상 스트림 (기본: all)",
    )
    parser.add_argument("--date", type=parse_date, default=None, help="특정 날짜만 (YYYY-MM-DD)")
    parser.add_argument("--settings", type=Path, default=None, help="settings.yaml 경로")
    args = parser.parse_args()

    setup_logging("maintenance")
    asyncio.run(main(args.stream, args.date, args.settings))
