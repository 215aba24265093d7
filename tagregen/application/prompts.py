"""태그 생성 프롬프트."""

from __future__ import annotations

from tagregen.domain.entities import WorkItem
from tagregen.domain.services.remote_generator import ChatMessage

# 프롬프트에 넣을 기존 태그 최대 개수 (토큰 절약)
MAX_VOCABULARY_IN_PROMPT = 200

TAG_SYSTEM_PROMPT = """You are a bookmark tagging assistant.
Given a web page title and URL, reply with 3 to 5 short tags that describe the page topic.

Rules:
- Prefer tags from the existing tag list below when one fits; only invent a new tag when none does.
- Write tags in {language}.
- Reply with the tags only, separated by commas. No numbering, no explanations, no code blocks.

Existing tags:
{vocabulary}"""

TAG_USER_PROMPT = """Title: {title}
URL: {url}"""


def build_tag_messages(
    item: WorkItem,
    vocabulary: list[str],
    language: str = "English",
) -> list[ChatMessage]:
    known = ", ".join(vocabulary[:MAX_VOCABULARY_IN_PROMPT]) if vocabulary else "(none)"
    return [
        ChatMessage(
            role="system",
            content=TAG_SYSTEM_PROMPT.format(language=language, vocabulary=known),
        ),
        ChatMessage(
            role="user",
            content=TAG_USER_PROMPT.format(title=item.title or item.url, url=item.url),
        ),
    ]
