# fled_notify/store/firestore.py
from typing import Any, Dict, List, Optional

from firebase_admin import firestore, firestore_async
from google.cloud.firestore_v1.base_query import FieldFilter

from fled_notify.store.base import (
    DELETE_FIELD,
    SERVER_TIMESTAMP,
    ArrayRemove,
    ArrayUnion,
    StoredDocument,
)


def _to_native(value: Any) -> Any:
    if value is DELETE_FIELD:
        return firestore.DELETE_FIELD
    if value is SERVER_TIMESTAMP:
        return firestore.SERVER_TIMESTAMP
    if isinstance(value, ArrayUnion):
        return firestore.ArrayUnion(list(value.values))
    if isinstance(value, ArrayRemove):
        return firestore.ArrayRemove(list(value.values))
    return value


def _translate(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: _to_native(v) for k, v in data.items()}


def _snapshot(snap) -> StoredDocument:
    return StoredDocument(path=snap.reference.path, data=snap.to_dict() or {})


class FirestoreStore:
    """DocumentStore backed by the firebase_admin async Firestore client."""

    def __init__(self, client=None, app=None):
        self._client = client or firestore_async.client(app)

    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        snap = await self._client.document(path).get()
        if not snap.exists:
            return None
        return snap.to_dict() or {}

    async def where(
        self,
        collection: str,
        field: str,
        value: Any,
        *,
        op: str = "==",
        limit: Optional[int] = None,
    ) -> List[StoredDocument]:
        query = self._client.collection(collection).where(filter=FieldFilter(field, op, value))
        if limit:
            query = query.limit(limit)
        return [_snapshot(s) async for s in query.stream()]

    async def collection_group_where(self, group: str, field: str, value: Any) -> List[StoredDocument]:
        query = self._client.collection_group(group).where(filter=FieldFilter(field, "==", value))
        return [_snapshot(s) async for s in query.stream()]

    async def stream(self, collection: str) -> List[StoredDocument]:
        return [_snapshot(s) async for s in self._client.collection(collection).stream()]

    async def set(self, path: str, data: Dict[str, Any], *, merge: bool = False) -> None:
        await self._client.document(path).set(_translate(data), merge=merge)

    async def update(self, path: str, data: Dict[str, Any]) -> None:
        await self._client.document(path).update(_translate(data))

    async def delete(self, path: str) -> None:
        await self._client.document(path).delete()
