"""유즈케이스: 북마크 태그 일괄 재생성.

전체 재생성(regenerate_all)과 실패 항목 재시도(retry_failed) 두 진입점을 제공한다.
작업 목록을 실행 시작 시 한 번 조회하고, 고정 크기 배치로 나눠 순차 처리한다.
배치 사이마다 진행 스냅샷을 보내고 취소 여부를 확인한 뒤 설정된 만큼 쉰다.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterator

from tagregen.application.use_cases.generate_tags import ItemGenerator
from tagregen.application.use_cases.process_batch import BatchProcessor
from tagregen.domain.entities import (
    FailureRecord,
    GenerationConfig,
    ProgressSnapshot,
    RunResult,
    RunStatus,
    WorkItem,
)
from tagregen.domain.exceptions import ResolutionError, RunInProgressError, StorageError
from tagregen.domain.repositories.failure_repository import FailureStore
from tagregen.domain.repositories.resource_repository import ResourceEnumerator
from tagregen.domain.repositories.tag_repository import TagStore
from tagregen.domain.services.progress_reporter import ProgressReporter
from tagregen.domain.value_objects.backoff import BackoffPolicy
from tagregen.domain.value_objects.cancellation import CancellationToken

logger = logging.getLogger(__name__)


def _chunked(items: list[WorkItem], size: int) -> Iterator[list[WorkItem]]:
    for i in range(0, len(items), size):
        yield items[i : i + size]


class BulkRegenerationEngine:
    """태그 일괄 재생성 엔진. 인스턴스당 동시에 하나의 실행만 허용한다."""

    def __init__(
        self,
        config: GenerationConfig,
        resources: ResourceEnumerator,
        tag_store: TagStore,
        failure_store: FailureStore,
        generator: ItemGenerator,
        backoff: BackoffPolicy | None = None,
    ):
        self._config = config
        self._resources = resources
        self._tag_store = tag_store
        self._failure_store = failure_store
        self._processor = BatchProcessor(
            generator=generator,
            tag_store=tag_store,
            failure_store=failure_store,
            backoff=backoff,
            preview_mode=config.preview_mode,
        )
        self._token: CancellationToken | None = None

    @property
    def config(self) -> GenerationConfig:
        return self._config

    @property
    def is_running(self) -> bool:
        return self._token is not None

    async def regenerate_all(
        self, on_progress: ProgressReporter, token: CancellationToken | None = None
    ) -> RunResult:
        """URL이 있는 모든 리소스의 태그를 다시 생성.

        token은 begin()으로 미리 점유한 실행 토큰. 없으면 여기서 점유한다.
        """
        token = self._claim(token)
        try:
            items = [item for item in await self._resources.list_taggable() if item.is_taggable]
            vocabulary = await self._tag_store.get_vocabulary()
            logger.info(f"태그 재생성 시작: {len(items)}건")
            return await self._run_batches(items, vocabulary, on_progress, token)
        except Exception as e:
            logger.error(f"태그 재생성 중 오류: {e}")
            raise
        finally:
            self.release(token)

    async def retry_failed(
        self, on_progress: ProgressReporter, token: CancellationToken | None = None
    ) -> RunResult:
        """retry_count < max_retries 인 실패 항목만 다시 생성."""
        token = self._claim(token)
        try:
            failures = await self._failure_store.get_all()
            retriable = [f for f in failures if f.is_retriable(self._config.max_retries)]

            if not retriable:
                logger.info(
                    f"재시도할 실패 항목 없음 (전체 실패 기록 {len(failures)}건, "
                    f"최대 재시도 {self._config.max_retries}회)"
                )
                self._emit(
                    on_progress,
                    ProgressSnapshot(
                        total=0, processed=0, successful=0, failed=0, status=RunStatus.COMPLETED
                    ),
                )
                return RunResult(total=0, successful=0, failed=0, cancelled=False)

            items = await self._resolve(retriable)
            vocabulary = await self._tag_store.get_vocabulary()
            logger.info(f"실패 항목 재시도 시작: {len(items)}건 (후보 {len(retriable)}건)")
            return await self._run_batches(items, vocabulary, on_progress, token)
        except Exception as e:
            logger.error(f"실패 항목 재시도 중 오류: {e}")
            raise
        finally:
            self.release(token)

    def cancel(self) -> bool:
        """현재 실행에만 취소를 건다. 실제로 취소 신호를 걸었을 때만 True."""
        if self._token is None or not self._token.cancel():
            return False
        logger.info("사용자 요청으로 태그 재생성 취소")
        return True

    def begin(self) -> CancellationToken:
        """실행을 점유하고 토큰을 발급. 이미 실행 중이면 RunInProgressError."""
        if self._token is not None:
            raise RunInProgressError()
        self._token = CancellationToken()
        return self._token

    def release(self, token: CancellationToken) -> None:
        """점유 해제. 다른 실행의 토큰이면 무시한다."""
        if self._token is token:
            self._token = None

    # ─── 내부 ───

    def _claim(self, token: CancellationToken | None) -> CancellationToken:
        if token is None:
            return self.begin()
        if token is not self._token:
            raise RunInProgressError()
        return token

    async def _resolve(self, failures: list[FailureRecord]) -> list[WorkItem]:
        """실패 기록을 원본 리소스로 되돌린다. 찾지 못한 항목은 이번 실행에서 제외."""
        items: list[WorkItem] = []
        for failure in failures:
            try:
                item = await self._resources.find_by_url(failure.url)
                if item is None or not item.is_taggable:
                    raise ResolutionError(failure.url)
            except (ResolutionError, StorageError) as e:
                logger.warning(f"실패 항목 건너뜀: {e}")
                continue
            items.append(item)
        return items

    async def _run_batches(
        self,
        items: list[WorkItem],
        vocabulary: list[str],
        on_progress: ProgressReporter,
        token: CancellationToken,
    ) -> RunResult:
        total = len(items)
        successful = 0
        failed = 0
        previews: dict[str, list[str]] = {}

        self._emit(
            on_progress,
            ProgressSnapshot(total=total, processed=0, successful=0, failed=0, status=RunStatus.RUNNING),
        )

        batches = list(_chunked(items, self._config.batch_size))
        for index, batch in enumerate(batches):
            if token.is_cancelled():
                return self._cancelled(on_progress, total, successful, failed, previews)

            result = await self._processor.process(batch, vocabulary, token)
            successful += result.successful
            failed += result.failed
            if self._config.preview_mode:
                previews.update(result.previews)

            self._emit(
                on_progress,
                ProgressSnapshot(
                    total=total,
                    processed=successful + failed,
                    successful=successful,
                    failed=failed,
                    current_label=batch[-1].title,
                    status=RunStatus.RUNNING,
                ),
            )

            if index < len(batches) - 1 and self._config.delay_between_batches > 0:
                # 배치 사이 대기는 취소로 끊지 않는다
                await asyncio.sleep(self._config.delay_between_batches)

        # 마지막 배치 도중 취소되어 시작하지 못한 항목이 남은 경우
        if token.is_cancelled() and successful + failed < total:
            return self._cancelled(on_progress, total, successful, failed, previews)

        logger.info(f"태그 재생성 완료: 성공 {successful}건, 실패 {failed}건 (전체 {total}건)")
        self._emit(
            on_progress,
            ProgressSnapshot(
                total=total,
                processed=successful + failed,
                successful=successful,
                failed=failed,
                status=RunStatus.COMPLETED,
            ),
        )
        return RunResult(
            total=total, successful=successful, failed=failed, cancelled=False, previews=previews
        )

    def _cancelled(
        self,
        on_progress: ProgressReporter,
        total: int,
        successful: int,
        failed: int,
        previews: dict[str, list[str]],
    ) -> RunResult:
        logger.info(f"태그 재생성 취소됨: {successful + failed}/{total}건 처리")
        self._emit(
            on_progress,
            ProgressSnapshot(
                total=total,
                processed=successful + failed,
                successful=successful,
                failed=failed,
                status=RunStatus.CANCELLED,
            ),
        )
        return RunResult(
            total=total, successful=successful, failed=failed, cancelled=True, previews=previews
        )

    @staticmethod
    def _emit(on_progress: ProgressReporter, snapshot: ProgressSnapshot) -> None:
        try:
            on_progress(snapshot)
        except Exception:
            logger.exception("진행 상황 콜백 오류 (무시하고 계속)")
