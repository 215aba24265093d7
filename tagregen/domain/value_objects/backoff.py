from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackoffPolicy:
    """지수 백오프: delay(attempt) = min(base_delay * 2^attempt, max_delay).

    요청 한도 초과 시 배치 안에서 한 번 더 시도하기 전에만 쓰인다.
    영속 retry_count와는 무관하다.
    """

    base_delay: float = 1.0  # 초
    max_delay: float = 60.0

    def delay(self, attempt: int) -> float:
        return min(self.base_delay * (2**attempt), self.max_delay)

    async def wait(self, attempt: int, minimum: float | None = None) -> float:
        """minimum(서버가 알려준 Retry-After)이 더 길면 그만큼 기다린다. max_delay 상한은 같다."""
        delay = self.delay(attempt)
        if minimum is not None and minimum > delay:
            delay = min(minimum, self.max_delay)
        logger.info(f"지수 백오프 적용: {delay:.1f}초 (시도 {attempt})")
        if delay > 0:
            await asyncio.sleep(delay)
        return delay
