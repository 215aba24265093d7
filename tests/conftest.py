"""Shared in-memory fakes and fixtures.

Each fake stores real data and returns it, so tests verify behaviour
instead of "was method X called?". Test modules import the classes
directly::

    from tests.conftest import FakeFailureStore, FakeRemoteGenerator
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

import pytest

from tagregen.application.use_cases.generate_tags import ItemGenerator
from tagregen.application.use_cases.regenerate_tags import BulkRegenerationEngine
from tagregen.domain.entities import FailureRecord, GenerationConfig, ProgressSnapshot, WorkItem
from tagregen.domain.services.remote_generator import ChatMessage, StreamHandlers
from tagregen.domain.value_objects.backoff import BackoffPolicy

DEFAULT_TAGS_TEXT = "python, testing"


def make_items(count: int, prefix: str = "https://example.com/page") -> list[WorkItem]:
    return [WorkItem(id=str(i), title=f"Page {i}", url=f"{prefix}{i}") for i in range(1, count + 1)]


def make_failure(url: str, retry_count: int = 1, resource_id: str = "x") -> FailureRecord:
    return FailureRecord(
        url=url,
        resource_id=resource_id,
        reason="boom",
        first_failure_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        retry_count=retry_count,
    )


# ---------------------------------------------------------------------------
# Ports
# ---------------------------------------------------------------------------


class FakeResourceEnumerator:
    def __init__(self, items: list[WorkItem] | None = None, error: Exception | None = None):
        self.items = list(items or [])
        self.error = error

    async def list_taggable(self) -> list[WorkItem]:
        if self.error:
            raise self.error
        return [item for item in self.items if item.url]

    async def find_by_url(self, url: str) -> WorkItem | None:
        return next((item for item in self.items if item.url == url), None)


class FakeTagStore:
    def __init__(self, initial: dict[str, list[str]] | None = None):
        self.tags: dict[str, list[str]] = dict(initial or {})
        self.put_calls = 0
        self.fail_with: Exception | None = None

    async def batch_put(self, updates: list[tuple[str, list[str]]]) -> None:
        if self.fail_with:
            raise self.fail_with
        self.put_calls += 1
        for url, tags in updates:
            self.tags[url] = list(tags)

    async def get_vocabulary(self) -> list[str]:
        seen: dict[str, None] = {}
        for tags in self.tags.values():
            for tag in tags:
                seen.setdefault(tag, None)
        return list(seen)


class FakeFailureStore:
    def __init__(self, records: list[FailureRecord] | None = None):
        self.records: dict[str, FailureRecord] = {r.url: r for r in records or []}

    async def get(self, url: str) -> FailureRecord | None:
        return self.records.get(url)

    async def get_all(self) -> list[FailureRecord]:
        return list(self.records.values())

    async def put(self, record: FailureRecord) -> None:
        self.records[record.url] = record

    async def delete(self, url: str) -> None:
        self.records.pop(url, None)

    async def clear(self) -> int:
        count = len(self.records)
        self.records.clear()
        return count


class FakeRemoteGenerator:
    """Scripted remote generator.

    ``script`` maps a url to a list of responses consumed one per call;
    a response is either reply text (streamed chunk by chunk) or an
    Exception passed to ``on_error``. Urls without a script (or with an
    exhausted one) get ``default``.
    """

    def __init__(
        self,
        script: dict[str, list[Any]] | None = None,
        default: Any = DEFAULT_TAGS_TEXT,
    ):
        self.script = {url: list(responses) for url, responses in (script or {}).items()}
        self.default = default
        self.calls: dict[str, int] = defaultdict(int)
        self.messages: list[list[ChatMessage]] = []

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    async def generate(
        self,
        messages: list[ChatMessage],
        handlers: StreamHandlers,
        *,
        stream: bool = False,
    ) -> None:
        url = messages[-1].content.split("URL: ", 1)[1].strip()
        self.calls[url] += 1
        self.messages.append(messages)

        queue = self.script.get(url)
        response = queue.pop(0) if queue else self.default
        if isinstance(response, Exception):
            handlers.on_error(response)
            return
        for piece in response.split(","):
            handlers.on_chunk(piece + ",")
        handlers.on_finish(None)


class RecordingReporter:
    def __init__(self):
        self.snapshots: list[ProgressSnapshot] = []

    def __call__(self, snapshot: ProgressSnapshot) -> None:
        self.snapshots.append(snapshot)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tag_store() -> FakeTagStore:
    return FakeTagStore()


@pytest.fixture
def failure_store() -> FakeFailureStore:
    return FakeFailureStore()


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def no_backoff() -> BackoffPolicy:
    return BackoffPolicy(base_delay=0.0)


def build_engine(
    items: list[WorkItem],
    remote: FakeRemoteGenerator,
    tag_store: FakeTagStore,
    failure_store: FakeFailureStore,
    batch_size: int = 2,
    max_retries: int = 3,
    preview_mode: bool = False,
) -> BulkRegenerationEngine:
    return BulkRegenerationEngine(
        config=GenerationConfig(
            batch_size=batch_size,
            delay_between_batches=0,
            max_retries=max_retries,
            preview_mode=preview_mode,
        ),
        resources=FakeResourceEnumerator(items),
        tag_store=tag_store,
        failure_store=failure_store,
        generator=ItemGenerator(remote),
        backoff=BackoffPolicy(base_delay=0.0),
    )


# ---------------------------------------------------------------------------
# Minimal Firestore fake (collection / document / where / batch)
# ---------------------------------------------------------------------------


class FakeDocSnapshot:
    def __init__(self, reference: "FakeDocRef", data: dict | None):
        self.reference = reference
        self.id = reference.id
        self.exists = data is not None
        self._data = data

    def to_dict(self) -> dict | None:
        return dict(self._data) if self._data is not None else None


class FakeDocRef:
    def __init__(self, db: "FakeFirestore", collection: str, doc_id: str):
        self._db = db
        self._collection = collection
        self.id = doc_id

    def get(self) -> FakeDocSnapshot:
        return FakeDocSnapshot(self, self._db.data[self._collection].get(self.id))

    def set(self, data: dict) -> None:
        self._db.data[self._collection][self.id] = dict(data)

    def delete(self) -> None:
        self._db.data[self._collection].pop(self.id, None)


class FakeQuery:
    def __init__(self, db: "FakeFirestore", collection: str, filters=(), limit: int | None = None):
        self._db = db
        self._collection = collection
        self._filters = tuple(filters)
        self._limit = limit

    def where(self, field: str, op: str, value: Any) -> "FakeQuery":
        assert op == "=="
        return FakeQuery(self._db, self._collection, self._filters + ((field, value),), self._limit)

    def limit(self, count: int) -> "FakeQuery":
        return FakeQuery(self._db, self._collection, self._filters, count)

    def stream(self):
        docs = []
        for doc_id, data in list(self._db.data[self._collection].items()):
            if all(data.get(f) == v for f, v in self._filters):
                docs.append(FakeDocSnapshot(FakeDocRef(self._db, self._collection, doc_id), data))
        return iter(docs[: self._limit] if self._limit is not None else docs)


class FakeCollection(FakeQuery):
    def document(self, doc_id: str) -> FakeDocRef:
        return FakeDocRef(self._db, self._collection, doc_id)


class FakeBatch:
    def __init__(self, db: "FakeFirestore"):
        self._db = db
        self._ops: list[tuple[str, FakeDocRef, dict | None]] = []

    def set(self, ref: FakeDocRef, data: dict) -> None:
        self._ops.append(("set", ref, data))

    def delete(self, ref: FakeDocRef) -> None:
        self._ops.append(("delete", ref, None))

    def commit(self) -> None:
        for op, ref, data in self._ops:
            if op == "set":
                ref.set(data)
            else:
                ref.delete()
        self._db.commits += 1
        self._ops = []


class FakeFirestore:
    def __init__(self):
        self.data: dict[str, dict[str, dict]] = defaultdict(dict)
        self.commits = 0

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, name)

    def batch(self) -> FakeBatch:
        return FakeBatch(self)


@pytest.fixture
def firestore_db() -> FakeFirestore:
    return FakeFirestore()
