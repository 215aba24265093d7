from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from tagregen.domain.exceptions import GenerationFailedError, RateLimitedError
from tagregen.domain.services.remote_generator import ChatMessage, StreamHandlers
from tagregen.infrastructure.ai.openai_generator import OpenAIRemoteGenerator, to_domain_error
from tagregen.infrastructure.config.settings import TaggingConfig

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
MESSAGES = [ChatMessage(role="system", content="sys"), ChatMessage(role="user", content="hi")]


class Collector:
    def __init__(self):
        self.chunks: list[str] = []
        self.finished: list[str | None] = []
        self.errors: list[Exception] = []

    @property
    def handlers(self) -> StreamHandlers:
        return StreamHandlers(
            on_chunk=self.chunks.append,
            on_finish=self.finished.append,
            on_error=self.errors.append,
        )


class FakeCompletions:
    def __init__(self, reply=None, chunks=None, error=None):
        self._reply = reply
        self._chunks = chunks or []
        self._error = error
        self.kwargs: dict = {}

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self._error:
            raise self._error
        if kwargs.get("stream"):
            return self._stream()
        message = SimpleNamespace(content=self._reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    async def _stream(self):
        for text in self._chunks:
            yield SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])
        yield SimpleNamespace(choices=[])


def _generator(completions: FakeCompletions) -> OpenAIRemoteGenerator:
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return OpenAIRemoteGenerator(api_key="test", config=TaggingConfig({}), client=client)


class TestErrorMapping:
    def test_rate_limit_error_maps_to_rate_limited(self):
        response = httpx.Response(429, request=REQUEST, headers={"retry-after": "7"})
        exc = openai.RateLimitError("Rate limit reached", response=response, body=None)

        error = to_domain_error(exc)

        assert isinstance(error, RateLimitedError)
        assert error.retry_after == 7.0

    def test_other_status_maps_to_generation_failed(self):
        response = httpx.Response(500, request=REQUEST)
        exc = openai.InternalServerError("upstream", response=response, body=None)

        error = to_domain_error(exc)

        assert isinstance(error, GenerationFailedError)
        assert "500" in str(error)

    def test_timeout_maps_to_generation_failed(self):
        assert isinstance(to_domain_error(openai.APITimeoutError(request=REQUEST)), GenerationFailedError)

    def test_message_containing_429_is_not_rate_limited(self):
        error = to_domain_error(ValueError("invoice #429 not found"))
        assert isinstance(error, GenerationFailedError)


class TestGenerate:
    @pytest.mark.asyncio
    async def test_non_streaming_finishes_with_full_text(self):
        completions = FakeCompletions(reply="python, web")
        collector = Collector()

        await _generator(completions).generate(MESSAGES, collector.handlers, stream=False)

        assert collector.finished == ["python, web"]
        assert collector.errors == []
        assert completions.kwargs["model"] == "gpt-4o-mini"
        assert completions.kwargs["messages"][1] == {"role": "user", "content": "hi"}

    @pytest.mark.asyncio
    async def test_streaming_emits_chunks_then_finish(self):
        completions = FakeCompletions(chunks=["pyth", "on, ", None, "web"])
        collector = Collector()

        await _generator(completions).generate(MESSAGES, collector.handlers, stream=True)

        assert collector.chunks == ["pyth", "on, ", "web"]
        assert collector.finished == ["python, web"]

    @pytest.mark.asyncio
    async def test_sdk_error_goes_to_on_error(self):
        response = httpx.Response(429, request=REQUEST)
        completions = FakeCompletions(
            error=openai.RateLimitError("slow down", response=response, body=None)
        )
        collector = Collector()

        await _generator(completions).generate(MESSAGES, collector.handlers)

        assert collector.finished == []
        assert len(collector.errors) == 1
        assert isinstance(collector.errors[0], RateLimitedError)
