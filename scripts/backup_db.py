"""
DB 백업

SQLite 온라인 백업 API로 실행 중에도 일관된 사본을 만든다.

사용법:
    python -m scripts.backup_db
    python -m scripts.backup_db --dest /mnt/usb/backups
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
from core.constants import Paths
from core.logging import setup_logging

logger = logging.getLogger(__name__)


async def main(dest_dir: Path, settings_path: Path | None) -> Path:
    settings = get_settings(settings_path)
    db_path = settings.db_path
    if not db_path.exists():
        raise FileNotFoundError(f"DB 파일이 없습니다: {db_path}")

    async with SQLiteAdapter(db_path, busy_timeout_ms=settings.database.busy_timeout_ms) as db:
        path = await db.backup_to_dir(dest_dir)

    logger.info(f"DB 백업 완료: {path}", extra={"path": str(path)})
    print(path)
    return path


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="DB 백업")
    parser.add_argument("--dest", type=Path, default=Paths.BACKUP_DIR, help="백업 디렉토리")
    parser.add_argument("--settings", type=Path, default=None, help="settings.yaml 경로")
    args = parser.parse_args()

    setup_logging("maintenance")
    asyncio.run(main(args.dest, args.settings))
