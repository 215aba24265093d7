from __future__ import annotations

from typing import Protocol

from tagregen.domain.entities import WorkItem


class ResourceEnumerator(Protocol):
    """태그 대상 리소스 조회 인터페이스."""

    async def list_taggable(self) -> list[WorkItem]:
        """URL이 있는 모든 리소스."""
        ...

    async def find_by_url(self, url: str) -> WorkItem | None: ...
