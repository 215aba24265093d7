"""유즈케이스: 단일 리소스 태그 생성.

프롬프트를 만들어 원격 생성기를 호출하고, 스트리밍 응답을 모아
쉼표 구분 태그 목록으로 파싱한다.
"""

from __future__ import annotations

import asyncio
import logging
import re

from tagregen.application.prompts import build_tag_messages
from tagregen.domain.entities import WorkItem
from tagregen.domain.exceptions import EmptyResultError, GenerationError, GenerationFailedError
from tagregen.domain.services.remote_generator import RemoteGenerator, StreamHandlers

logger = logging.getLogger(__name__)

_CODE_FENCE = re.compile(r"^```(?:[\w+-]*[ \t]*\n)?(.*?)\n?```$", re.DOTALL)
# 반각/전각 쉼표, 일본어·중국어 구두점
_TAG_SEPARATORS = re.compile(r"[,，、]")


def unwrap_code_fence(text: str) -> str:
    """응답 전체가 ``` 블록으로 감싸진 경우 안쪽 텍스트만 꺼낸다."""
    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def parse_tags(text: str) -> list[str]:
    """LLM 응답을 태그 목록으로 변환. 비어 있으면 EmptyResultError."""
    cleaned = unwrap_code_fence(text)
    tags = [tag.strip() for tag in _TAG_SEPARATORS.split(cleaned)]
    tags = [tag for tag in tags if tag]
    if not tags:
        raise EmptyResultError()
    return tags


class ItemGenerator:
    """한 리소스에 대해 원격 호출 한 번으로 태그를 생성한다."""

    def __init__(
        self,
        remote: RemoteGenerator,
        stream: bool = False,
        language: str = "English",
    ):
        self._remote = remote
        self._stream = stream
        self._language = language

    async def generate(self, item: WorkItem, vocabulary: list[str]) -> list[str]:
        if not item.is_taggable:
            raise GenerationFailedError("URL이 없는 리소스입니다")

        messages = build_tag_messages(item, vocabulary, self._language)
        done: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        chunks: list[str] = []

        def on_finish(full_text: str | None) -> None:
            if not done.done():
                done.set_result(full_text or "".join(chunks))

        def on_error(error: Exception) -> None:
            if not done.done():
                done.set_exception(error)

        try:
            await self._remote.generate(
                messages,
                StreamHandlers(on_chunk=chunks.append, on_finish=on_finish, on_error=on_error),
                stream=self._stream,
            )
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationFailedError(str(e)) from e

        if not done.done():
            raise GenerationFailedError("원격 생성기가 응답을 완료하지 않았습니다")

        try:
            text = await done
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationFailedError(str(e)) from e

        return parse_tags(text)
