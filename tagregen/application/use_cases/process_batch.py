"""유즈케이스: 한 배치의 태그 생성.

배치 안의 항목을 동시에 실행하고 모든 결과가 정해질 때까지 기다린다 (settle-all).
한 항목의 실패가 다른 항목을 중단시키지 않으며, 결과는 항목마다 따로 저장한다.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from tagregen.application.use_cases.generate_tags import ItemGenerator
from tagregen.domain.entities import FailureRecord, WorkItem
from tagregen.domain.exceptions import GenerationError, RateLimitedError
from tagregen.domain.repositories.failure_repository import FailureStore
from tagregen.domain.repositories.tag_repository import TagStore
from tagregen.domain.value_objects.backoff import BackoffPolicy
from tagregen.domain.value_objects.cancellation import CancellationToken

logger = logging.getLogger(__name__)

# 요청 한도 초과 시 인라인 재시도 전 백오프 단계
RATE_LIMIT_BACKOFF_ATTEMPT = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ItemOutcome:
    item: WorkItem
    success: bool
    tags: list[str] = field(default_factory=list)
    error: str | None = None
    skipped: bool = False  # 시작 전에 취소됨


@dataclass(frozen=True)
class BatchResult:
    outcomes: list[ItemOutcome]

    @property
    def successful(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.success and not o.skipped)

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.skipped)

    @property
    def previews(self) -> dict[str, list[str]]:
        return {o.item.url: o.tags for o in self.outcomes if o.success}


class BatchProcessor:
    """배치 단위 fan-out / fan-in 처리기."""

    def __init__(
        self,
        generator: ItemGenerator,
        tag_store: TagStore,
        failure_store: FailureStore,
        backoff: BackoffPolicy | None = None,
        preview_mode: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._generator = generator
        self._tag_store = tag_store
        self._failure_store = failure_store
        self._backoff = backoff or BackoffPolicy()
        self._preview_mode = preview_mode
        self._clock = clock

    async def process(
        self,
        items: list[WorkItem],
        vocabulary: list[str],
        cancel: CancellationToken,
    ) -> BatchResult:
        """배치의 모든 항목을 동시에 처리. 항목 단위 오류로 예외를 던지지 않는다."""
        outcomes = await asyncio.gather(
            *(self._process_item(item, vocabulary, cancel) for item in items)
        )
        return BatchResult(outcomes=list(outcomes))

    async def _process_item(
        self,
        item: WorkItem,
        vocabulary: list[str],
        cancel: CancellationToken,
    ) -> ItemOutcome:
        # 시작 전에만 취소를 확인한다. 이미 시작한 호출은 끝까지 진행.
        if cancel.is_cancelled():
            return ItemOutcome(item=item, success=False, skipped=True)

        try:
            tags = await self._generate_with_backoff(item, vocabulary)
            await self._handle_success(item, tags)
            return ItemOutcome(item=item, success=True, tags=tags)
        except Exception as e:
            if not isinstance(e, GenerationError):
                logger.exception(f"태그 생성 중 예기치 않은 오류: {item.url}")
            reason = str(e) or type(e).__name__
            await self._handle_failure(item, reason)
            return ItemOutcome(item=item, success=False, error=reason)

    async def _generate_with_backoff(self, item: WorkItem, vocabulary: list[str]) -> list[str]:
        try:
            return await self._generator.generate(item, vocabulary)
        except RateLimitedError as e:
            logger.warning(f"요청 한도 초과, 백오프 후 1회 재시도: {item.title} ({e})")
            await self._backoff.wait(RATE_LIMIT_BACKOFF_ATTEMPT, minimum=e.retry_after)
            return await self._generator.generate(item, vocabulary)

    async def _handle_success(self, item: WorkItem, tags: list[str]) -> None:
        if self._preview_mode:
            logger.info(f"[미리보기] {item.title}: {', '.join(tags)}")
            return

        try:
            await self._tag_store.batch_put([(item.url, tags)])
            await self._failure_store.delete(item.url)
        except Exception as e:
            logger.error(f"생성된 태그 저장 실패 {item.url}: {e}")
            raise

        logger.info(f"태그 생성 완료 {item.title}: {', '.join(tags)}")

    async def _handle_failure(self, item: WorkItem, reason: str) -> None:
        logger.warning(f"태그 생성 실패 {item.title}: {reason}")
        if self._preview_mode:
            return

        try:
            existing = await self._failure_store.get(item.url)
            now = self._clock()
            await self._failure_store.put(
                FailureRecord(
                    url=item.url,
                    resource_id=item.id,
                    reason=reason,
                    first_failure_at=existing.first_failure_at if existing else now,
                    retry_count=(existing.retry_count if existing else 0) + 1,
                    last_retry_at=now,
                )
            )
        except Exception as e:
            # 기록 실패는 배치를 멈추지 않는다. 항목은 실패로 집계된다.
            logger.error(f"실패 기록 저장 실패 {item.url}: {e}")
