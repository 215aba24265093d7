from __future__ import annotations

from typing import Protocol

from tagregen.domain.entities import ProgressSnapshot


class ProgressReporter(Protocol):
    """진행 스냅샷을 받는 싱크. 예외를 던지면 안 된다."""

    def __call__(self, snapshot: ProgressSnapshot) -> None: ...
