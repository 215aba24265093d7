"""OpenAI Chat Completions 기반 원격 생성기 구현.

도메인 RemoteGenerator 인터페이스를 구현한다.
SDK 예외를 도메인 예외로 바꿔 on_error로 전달한다: HTTP 429는 RateLimitedError,
그 밖의 모든 오류는 GenerationFailedError. 타임아웃은 클라이언트 설정으로 강제한다.
"""

from __future__ import annotations

import logging

import openai
from openai import AsyncOpenAI

from tagregen.domain.exceptions import GenerationError, GenerationFailedError, RateLimitedError
from tagregen.domain.services.remote_generator import ChatMessage, StreamHandlers
from tagregen.infrastructure.config.settings import TaggingConfig

logger = logging.getLogger(__name__)


def _retry_after(exc: openai.APIStatusError) -> float | None:
    value = exc.response.headers.get("retry-after") if exc.response is not None else None
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None


def to_domain_error(exc: Exception) -> GenerationError:
    """OpenAI SDK 예외 → 도메인 예외."""
    if isinstance(exc, GenerationError):
        return exc
    if isinstance(exc, openai.APIStatusError):
        if exc.status_code == 429:
            return RateLimitedError(f"요청 한도 초과 (429): {exc.message}", retry_after=_retry_after(exc))
        return GenerationFailedError(f"OpenAI API 오류 ({exc.status_code}): {exc.message}")
    if isinstance(exc, openai.APITimeoutError):
        return GenerationFailedError("OpenAI API 응답 시간 초과")
    if isinstance(exc, openai.APIError):
        return GenerationFailedError(f"OpenAI API 오류: {exc}")
    return GenerationFailedError(str(exc) or type(exc).__name__)


class OpenAIRemoteGenerator:
    """OpenAI GPT API 기반 태그 텍스트 생성기."""

    def __init__(
        self,
        api_key: str,
        config: TaggingConfig,
        base_url: str | None = None,
        client: AsyncOpenAI | None = None,
    ):
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url or None,
            timeout=config.request_timeout,
            max_retries=0,  # 재시도는 배치 처리기가 담당
        )
        self._config = config

    async def generate(
        self,
        messages: list[ChatMessage],
        handlers: StreamHandlers,
        *,
        stream: bool = False,
    ) -> None:
        payload = [{"role": m.role, "content": m.content} for m in messages]
        try:
            if stream:
                text = await self._stream(payload, handlers)
            else:
                response = await self._client.chat.completions.create(
                    model=self._config.model,
                    temperature=self._config.temperature,
                    max_tokens=self._config.max_tokens,
                    messages=payload,
                )
                text = response.choices[0].message.content or ""
        except Exception as e:
            error = to_domain_error(e)
            logger.debug(f"OpenAI 호출 실패: {error}")
            handlers.on_error(error)
            return

        handlers.on_finish(text)

    async def _stream(self, payload: list[dict], handlers: StreamHandlers) -> str:
        response = await self._client.chat.completions.create(
            model=self._config.model,
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
            messages=payload,
            stream=True,
        )
        parts: list[str] = []
        async for chunk in response:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                parts.append(delta)
                handlers.on_chunk(delta)
        return "".join(parts)
