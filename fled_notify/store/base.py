# fled_notify/store/base.py
"""
Document store contract.

Documents are addressed by slash-separated paths (``parents/abc``,
``users/u1/devices/d1``). Writes accept the sentinels below for the
field operations the managed store performs atomically, so callers
never read an array, mutate it, and write it back.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


class _Sentinel:
    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"<{self.name}>"


DELETE_FIELD = _Sentinel("DELETE_FIELD")
SERVER_TIMESTAMP = _Sentinel("SERVER_TIMESTAMP")


@dataclass(frozen=True)
class ArrayUnion:
    values: tuple

    def __init__(self, values):
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True)
class ArrayRemove:
    values: tuple

    def __init__(self, values):
        object.__setattr__(self, "values", tuple(values))


@dataclass
class StoredDocument:
    path: str
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]


def doc_path(collection: str, doc_id: str) -> str:
    return f"{collection}/{doc_id}"


@runtime_checkable
class DocumentStore(Protocol):
    async def get(self, path: str) -> Optional[Dict[str, Any]]:
        """Return the document fields, or None when it does not exist."""

    async def where(
        self,
        collection: str,
        field: str,
        value: Any,
        *,
        op: str = "==",
        limit: Optional[int] = None,
    ) -> List[StoredDocument]:
        """Equality (``==``) or ``array_contains`` query on one collection."""

    async def collection_group_where(self, group: str, field: str, value: Any) -> List[StoredDocument]:
        """Equality query across every subcollection named ``group``."""

    async def stream(self, collection: str) -> List[StoredDocument]:
        """Every document of a collection."""

    async def set(self, path: str, data: Dict[str, Any], *, merge: bool = False) -> None:
        ...

    async def update(self, path: str, data: Dict[str, Any]) -> None:
        """Update fields of an existing document; fails if it does not exist."""

    async def delete(self, path: str) -> None:
        ...
