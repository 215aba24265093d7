from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class FailureRecord:
    """태그 생성 실패 기록. URL 단위로 저장되며 다음 성공 시 삭제된다."""

    url: str
    resource_id: str
    reason: str
    first_failure_at: datetime
    retry_count: int = 1
    last_retry_at: Optional[datetime] = None

    def is_retriable(self, max_retries: int) -> bool:
        return self.retry_count < max_retries
