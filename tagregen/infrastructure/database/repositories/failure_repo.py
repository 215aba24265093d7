"""FailureStore — Firebase Firestore 구현.

Firestore 컬렉션: 'tag_generation_failures'
문서 ID: URL의 SHA-256 해시
"""

from __future__ import annotations

from typing import Any

from tagregen.domain.entities import FailureRecord
from tagregen.domain.value_objects.url_key import compute_url_key
from tagregen.infrastructure.database.firestore_call import BATCH_COMMIT_SIZE, run_blocking


def _failure_to_dict(record: FailureRecord) -> dict[str, Any]:
    return {
        "url": record.url,
        "resource_id": record.resource_id,
        "reason": record.reason,
        "first_failure_at": record.first_failure_at,
        "retry_count": record.retry_count,
        "last_retry_at": record.last_retry_at,
    }


def _failure_from_doc(doc) -> FailureRecord:
    d = doc.to_dict()
    return FailureRecord(
        url=d.get("url", ""),
        resource_id=d.get("resource_id", ""),
        reason=d.get("reason", ""),
        first_failure_at=d.get("first_failure_at"),
        retry_count=d.get("retry_count", 0),
        last_retry_at=d.get("last_retry_at"),
    )


class FirestoreFailureRepository:
    COLLECTION = "tag_generation_failures"

    def __init__(self, db):
        self._db = db

    def _col(self):
        return self._db.collection(self.COLLECTION)

    async def get(self, url: str) -> FailureRecord | None:
        def _get():
            doc = self._col().document(compute_url_key(url)).get()
            return _failure_from_doc(doc) if doc.exists else None

        return await run_blocking(_get)

    async def get_all(self) -> list[FailureRecord]:
        def _get_all():
            return [_failure_from_doc(d) for d in self._col().stream()]

        return await run_blocking(_get_all)

    async def put(self, record: FailureRecord) -> None:
        def _put():
            self._col().document(compute_url_key(record.url)).set(_failure_to_dict(record))

        await run_blocking(_put)

    async def delete(self, url: str) -> None:
        def _delete():
            # 없는 문서 삭제도 성공으로 처리됨
            self._col().document(compute_url_key(url)).delete()

        await run_blocking(_delete)

    async def clear(self) -> int:
        def _clear():
            batch = self._db.batch()
            deleted = 0
            for doc in self._col().stream():
                batch.delete(doc.reference)
                deleted += 1
                if deleted % BATCH_COMMIT_SIZE == 0:
                    batch.commit()
                    batch = self._db.batch()
            if deleted % BATCH_COMMIT_SIZE != 0:
                batch.commit()
            return deleted

        return await run_blocking(_clear)
