"""유즈케이스: 백그라운드 실행 관리.

웹 API와 스케줄러가 엔진 실행을 백그라운드 태스크로 띄우고,
최신 진행 스냅샷과 마지막 결과를 조회할 수 있게 한다.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum

from tagregen.application.use_cases.regenerate_tags import BulkRegenerationEngine
from tagregen.domain.entities import ProgressSnapshot, RunResult
from tagregen.domain.exceptions import RunInProgressError
from tagregen.domain.value_objects.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class RunMode(str, Enum):
    ALL = "all"
    RETRY = "retry"


class RunTracker:
    def __init__(self, engine: BulkRegenerationEngine):
        self._engine = engine
        self._task: asyncio.Task | None = None
        self.latest: ProgressSnapshot = ProgressSnapshot.idle()
        self.last_result: RunResult | None = None
        self.last_error: str | None = None

    @property
    def is_running(self) -> bool:
        return self._engine.is_running or (self._task is not None and not self._task.done())

    def record(self, snapshot: ProgressSnapshot) -> None:
        """엔진 진행 콜백."""
        self.latest = snapshot

    async def run(self, mode: RunMode, token: CancellationToken | None = None) -> RunResult:
        """실행을 끝까지 기다린다. 스케줄러와 CLI에서 사용."""
        self.last_error = None
        try:
            if mode == RunMode.RETRY:
                result = await self._engine.retry_failed(self.record, token)
            else:
                result = await self._engine.regenerate_all(self.record, token)
        except RunInProgressError:
            raise
        except Exception as e:
            self.last_error = str(e)
            raise
        self.last_result = result
        return result

    def start(self, mode: RunMode) -> asyncio.Task:
        """백그라운드 태스크로 실행. 이미 실행 중이면 RunInProgressError.

        엔진 점유는 태스크 생성 전에 끝나므로 직후의 cancel()도 이 실행에 걸린다.
        """
        if self._task is not None and not self._task.done():
            raise RunInProgressError()
        token = self._engine.begin()
        self._task = asyncio.create_task(
            self._run_logged(mode, token), name=f"tag-regeneration-{mode.value}"
        )
        # 첫 단계 전에 태스크가 취소되어도 점유를 풀어 준다
        self._task.add_done_callback(lambda _: self._engine.release(token))
        return self._task

    def cancel(self) -> bool:
        return self._engine.cancel()

    async def _run_logged(self, mode: RunMode, token: CancellationToken) -> RunResult | None:
        try:
            return await self.run(mode, token)
        except Exception as e:
            logger.error(f"백그라운드 태그 재생성 실패 ({mode.value}): {e}")
            return None
