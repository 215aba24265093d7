from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class WorkItem:
    """태그 생성 대상 리소스 (북마크)."""

    id: str
    title: str
    url: str

    @property
    def is_taggable(self) -> bool:
        """URL이 있어야 태그 생성 대상이 된다 (폴더는 제외)."""
        return bool(self.url)
