from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol


@dataclass
class ChatMessage:
    role: str  # system, user, assistant
    content: str


@dataclass
class StreamHandlers:
    """원격 생성 호출의 스트리밍 콜백 묶음.

    on_chunk는 0회 이상, 그 뒤 on_finish 또는 on_error 중 하나가 정확히 한 번 호출된다.
    """

    on_chunk: Callable[[str], None]
    on_finish: Callable[[str | None], None]
    on_error: Callable[[Exception], None]


class RemoteGenerator(Protocol):
    """원격 텍스트 생성(LLM) 인터페이스.

    요청 한도 초과는 on_error에 RateLimitedError로, 그 밖의 오류는
    GenerationFailedError로 전달해야 한다. 타임아웃도 구현체가 책임진다.
    """

    async def generate(
        self,
        messages: list[ChatMessage],
        handlers: StreamHandlers,
        *,
        stream: bool = False,
    ) -> None: ...
