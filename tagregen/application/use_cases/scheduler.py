"""스케줄러 오케스트레이션.

APScheduler로 실패 항목 재시도를 주기적으로 실행한다.
"""

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from tagregen.application.use_cases.run_tracker import RunMode
from tagregen.domain.exceptions import RunInProgressError
from tagregen.infrastructure.config.container import Container

logger = logging.getLogger(__name__)


class Orchestrator:
    """스케줄 기반 작업 오케스트레이터."""

    def __init__(self, container: Container):
        self._c = container
        self._tz = ZoneInfo(container.config.timezone)
        self.scheduler = AsyncIOScheduler(timezone=self._tz)

    def setup_jobs(self) -> None:
        """정기 작업을 등록."""
        cfg = self._c.config.scheduler
        if not cfg.retry_failed_enabled:
            logger.info("실패 항목 자동 재시도 비활성화")
            return

        self.scheduler.add_job(
            self._run_retry_failed,
            trigger=IntervalTrigger(minutes=cfg.retry_interval_minutes),
            id="retry_failed",
            name="Retry Failed Tag Generation",
            max_instances=1,
            misfire_grace_time=300,
        )
        logger.info(f"실패 항목 재시도 작업 등록 (매 {cfg.retry_interval_minutes}분)")

    def start(self) -> None:
        self.scheduler.start()
        logger.info("스케줄러 시작됨")

    def stop(self) -> None:
        self.scheduler.shutdown(wait=False)
        logger.info("스케줄러 종료됨")

    # ─── 작업 실행 함수 ───

    async def _run_retry_failed(self) -> None:
        logger.info("[scheduler] 실패 항목 재시도 시작")
        try:
            result = await self._c.run_tracker.run(RunMode.RETRY)
            logger.info(
                f"[scheduler] 재시도 완료: 전체 {result.total}건, "
                f"성공 {result.successful}건, 실패 {result.failed}건"
            )
        except RunInProgressError:
            logger.info("[scheduler] 다른 실행이 진행 중이라 이번 재시도는 건너뜀")
        except Exception as e:
            logger.error(f"[scheduler] 재시도 오류: {e}")
