from __future__ import annotations

from typing import Protocol

from tagregen.domain.entities import FailureRecord


class FailureStore(Protocol):
    """태그 생성 실패 기록 저장소 인터페이스. URL이 키."""

    async def get(self, url: str) -> FailureRecord | None: ...

    async def get_all(self) -> list[FailureRecord]: ...

    async def put(self, record: FailureRecord) -> None:
        """같은 URL 기록이 있으면 덮어쓴다."""
        ...

    async def delete(self, url: str) -> None:
        """없는 URL이어도 오류 없이 통과."""
        ...

    async def clear(self) -> int:
        """모든 기록 삭제. 삭제 건수 반환."""
        ...
