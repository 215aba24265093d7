"""동기 Firestore SDK 호출을 이벤트 루프 밖에서 실행."""

from __future__ import annotations

import asyncio
from typing import Callable, TypeVar

from google.api_core.exceptions import GoogleAPICallError, RetryError

from tagregen.domain.exceptions import StorageError

T = TypeVar("T")

# Firestore 쓰기 배치는 최대 500건
BATCH_COMMIT_SIZE = 400


async def run_blocking(fn: Callable[[], T]) -> T:
    try:
        return await asyncio.to_thread(fn)
    except (GoogleAPICallError, RetryError) as e:
        raise StorageError(f"Firestore 오류: {e}") from e
