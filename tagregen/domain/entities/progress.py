from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class RunStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ProgressSnapshot:
    """실행 진행 상황의 불변 스냅샷.

    processed == successful + failed, processed <= total 이 항상 성립한다.
    """

    total: int
    processed: int
    successful: int
    failed: int
    status: RunStatus
    current_label: Optional[str] = None

    @classmethod
    def idle(cls) -> ProgressSnapshot:
        return cls(total=0, processed=0, successful=0, failed=0, status=RunStatus.IDLE)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "processed": self.processed,
            "successful": self.successful,
            "failed": self.failed,
            "current_label": self.current_label,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class RunResult:
    """실행 종료 요약."""

    total: int
    successful: int
    failed: int
    cancelled: bool
    # 미리보기 모드에서 생성된 태그 (url → tags). 저장은 하지 않는다.
    previews: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "cancelled": self.cancelled,
            "previews": self.previews,
        }
