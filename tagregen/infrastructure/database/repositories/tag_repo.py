"""TagStore — Firebase Firestore 구현.

Firestore 컬렉션: 'bookmark_tags'
문서 ID: URL의 SHA-256 해시
"""

from __future__ import annotations

from datetime import datetime, timezone

from tagregen.domain.value_objects.url_key import compute_url_key
from tagregen.infrastructure.database.firestore_call import BATCH_COMMIT_SIZE, run_blocking


class FirestoreTagRepository:
    COLLECTION = "bookmark_tags"

    def __init__(self, db):
        self._db = db

    def _col(self):
        return self._db.collection(self.COLLECTION)

    async def batch_put(self, updates: list[tuple[str, list[str]]]) -> None:
        def _batch_put():
            now = datetime.now(timezone.utc)
            batch = self._db.batch()
            written = 0
            for url, tags in updates:
                doc_ref = self._col().document(compute_url_key(url))
                batch.set(doc_ref, {"url": url, "tags": list(tags), "updated_at": now})
                written += 1
                if written % BATCH_COMMIT_SIZE == 0:
                    batch.commit()
                    batch = self._db.batch()
            if written % BATCH_COMMIT_SIZE != 0:
                batch.commit()

        await run_blocking(_batch_put)

    async def get_vocabulary(self) -> list[str]:
        def _aggregate():
            seen: dict[str, None] = {}
            for doc in self._col().stream():
                for tag in doc.to_dict().get("tags", []):
                    if tag and tag not in seen:
                        seen[tag] = None
            return list(seen)

        return await run_blocking(_aggregate)
