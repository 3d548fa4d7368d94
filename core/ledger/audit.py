"""
잔고 감사 (Balance Auditor)

주기적으로 고객/어민 캐시 잔고를 파생 잔고와 대조하고 보정한다.
종류별로 짧은 작업 단위를 따로 열어 대화형 쓰기를 오래 막지 않는다.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any

from core.ledger.balance import BalanceDeriver
from core.ledger.types import BalanceDrift
from core.types import PartyKind
from core.utils.timezone import now_utc

logger = logging.getLogger(__name__)


class BalanceAuditor:
    """주기적 잔고 감사 태스크

    Args:
        deriver: 잔고 파생기
        interval_sec: 감사 주기 (초)
        fix: True면 불일치를 파생값으로 보정
    """

    def __init__(self, deriver: BalanceDeriver, interval_sec: int, fix: bool = True):
        self.deriver = deriver
        self.interval_sec = interval_sec
        self.fix = fix

        self._task: asyncio.Task[None] | None = None
        self._last_run: datetime | None = None
        self._is_running = False

    @property
    def last_run(self) -> datetime | None:
        """마지막 감사 시각 (UTC)"""
        return self._last_run

    async def run_once(self) -> dict[str, Any]:
        """감사 1회 실행

        Returns:
            {"customer": [...], "farmer": [...]} 종류별 BalanceDrift 목록
            실패 시 {"error": str}
        """
        if self._is_running:
            logger.warning("잔고 감사가 이미 실행 중입니다")
            return {"skipped": True}

        self._is_running = True
        try:
            result: dict[str, list[BalanceDrift]] = {}
            for kind in PartyKind:
                result[kind.value] = await self.deriver.reconcile(kind, fix=self.fix)

            self._last_run = now_utc()
            total = sum(len(drifts) for drifts in result.values())
            if total > 0:
                logger.warning(
                    f"잔고 감사 완료: 불일치 {total}건",
                    extra={"drifts": total, "fixed": self.fix},
                )
            else:
                logger.debug("잔고 감사 완료: 불일치 없음")
            return dict(result)

        except Exception as e:
            logger.error(
                "잔고 감사 실패",
                extra={"error": str(e)},
                exc_info=True,
            )
            return {"error": str(e)}

        finally:
            self._is_running = False

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_sec)
            await self.run_once()

    def start(self) -> None:
        """백그라운드 감사 시작 (interval_sec <= 0이면 무시)"""
        if self.interval_sec <= 0 or self._task is not None:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info(f"잔고 감사 시작: {self.interval_sec}초 주기")

    async def stop(self) -> None:
        """백그라운드 감사 정지"""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("잔고 감사 정지")
