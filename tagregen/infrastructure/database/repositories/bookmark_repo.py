"""ResourceEnumerator — Firebase Firestore 구현.

Firestore 컬렉션: 'bookmarks'
문서 ID: 북마크 ID
"""

from __future__ import annotations

from tagregen.domain.entities import WorkItem
from tagregen.infrastructure.database.firestore_call import run_blocking


def _item_from_doc(doc) -> WorkItem:
    d = doc.to_dict()
    return WorkItem(
        id=d.get("id", doc.id),
        title=d.get("title", ""),
        url=d.get("url") or "",
    )


class FirestoreBookmarkRepository:
    COLLECTION = "bookmarks"

    def __init__(self, db):
        self._db = db

    def _col(self):
        return self._db.collection(self.COLLECTION)

    async def list_taggable(self) -> list[WorkItem]:
        def _list():
            items = (_item_from_doc(d) for d in self._col().stream())
            # 폴더 등 URL 없는 문서는 제외
            return [item for item in items if item.is_taggable]

        return await run_blocking(_list)

    async def find_by_url(self, url: str) -> WorkItem | None:
        def _find():
            docs = list(self._col().where("url", "==", url).limit(1).stream())
            return _item_from_doc(docs[0]) if docs else None

        return await run_blocking(_find)
