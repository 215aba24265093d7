from __future__ import annotations

from typing import Protocol


class TagStore(Protocol):
    """리소스별 태그 저장소 인터페이스."""

    async def batch_put(self, updates: list[tuple[str, list[str]]]) -> None:
        """(url, tags) 목록을 한 번에 저장. 같은 URL은 덮어쓴다."""
        ...

    async def get_vocabulary(self) -> list[str]:
        """저장된 모든 태그 이름 (중복 제거, 처음 등장 순서)."""
        ...
