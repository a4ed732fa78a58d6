"""Document store contract shared by the Supabase and in-memory backends.

Documents are plain dicts addressed by (collection, id). Returned documents
always carry their id under the ``"id"`` key.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)

Document = Dict[str, Any]
SnapshotCallback = Callable[[List[Document]], None]


class DocumentNotFoundError(LookupError):
    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"Document {collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


class FilterOp(str, Enum):
    EQ = "=="
    NEQ = "!="
    ARRAY_CONTAINS = "array_contains"
    IN = "in"


@dataclass
class Filter:
    field: str
    op: FilterOp
    value: Any

    def matches(self, document: Document) -> bool:
        actual = document.get(self.field)
        if self.op == FilterOp.EQ:
            return actual == self.value
        if self.op == FilterOp.NEQ:
            return actual != self.value
        if self.op == FilterOp.ARRAY_CONTAINS:
            return isinstance(actual, list) and self.value in actual
        if self.op == FilterOp.IN:
            return actual in self.value
        raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass
class Query:
    collection: str
    filters: List[Filter] = field(default_factory=list)
    order_by: Optional[str] = None
    descending: bool = False
    limit: Optional[int] = None

    def where(self, field_name: str, op: FilterOp, value: Any) -> "Query":
        self.filters.append(Filter(field_name, op, value))
        return self

    def matches(self, document: Document) -> bool:
        return all(f.matches(document) for f in self.filters)


class WriteOpType(str, Enum):
    SET = "set"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class WriteOp:
    op: WriteOpType
    collection: str
    doc_id: str
    data: Optional[Document] = None

    def to_payload(self) -> Document:
        return {
            "op": self.op.value,
            "collection": self.collection,
            "id": self.doc_id,
            "data": self.data,
        }


class WriteBatch:
    """Accumulates writes that the store applies all-or-nothing on commit."""

    def __init__(self):
        self.ops: List[WriteOp] = []

    def set(self, collection: str, doc_id: str, data: Document) -> "WriteBatch":
        payload = {k: v for k, v in data.items() if k != "id"}
        self.ops.append(WriteOp(WriteOpType.SET, collection, doc_id, payload))
        return self

    def update(self, collection: str, doc_id: str, patch: Document) -> "WriteBatch":
        self.ops.append(WriteOp(WriteOpType.UPDATE, collection, doc_id, dict(patch)))
        return self

    def delete(self, collection: str, doc_id: str) -> "WriteBatch":
        self.ops.append(WriteOp(WriteOpType.DELETE, collection, doc_id))
        return self

    def collections(self) -> set:
        return {op.collection for op in self.ops}

    def __len__(self) -> int:
        return len(self.ops)


class Subscription(ABC):
    """Handle for a live query. ``cancel`` releases it and is safe to repeat."""

    def __init__(self, query: Query, callback: SnapshotCallback):
        self.query = query
        self._callback = callback
        self._cancelled = False

    @property
    def active(self) -> bool:
        return not self._cancelled

    def deliver(self, documents: List[Document]) -> None:
        if self._cancelled:
            return
        try:
            self._callback(documents)
        except Exception:
            logger.exception(
                f"Snapshot callback failed for {self.query.collection} subscription"
            )

    async def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        await self._release()

    @abstractmethod
    async def _release(self) -> None: ...


class DocumentStore(ABC):
    @staticmethod
    def new_id() -> str:
        return uuid4().hex

    def batch(self) -> WriteBatch:
        return WriteBatch()

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]: ...

    @abstractmethod
    async def query(self, query: Query) -> List[Document]: ...

    @abstractmethod
    async def commit(self, batch: WriteBatch) -> None:
        """Apply every write in the batch, or none of them."""

    @abstractmethod
    async def subscribe(
        self, query: Query, callback: SnapshotCallback
    ) -> Subscription:
        """Deliver the full result set now and again after every change."""

    async def set(self, collection: str, doc_id: str, data: Document) -> None:
        await self.commit(self.batch().set(collection, doc_id, data))

    async def update(self, collection: str, doc_id: str, patch: Document) -> None:
        await self.commit(self.batch().update(collection, doc_id, patch))

    async def delete(self, collection: str, doc_id: str) -> None:
        await self.commit(self.batch().delete(collection, doc_id))

    async def add(self, collection: str, data: Document) -> str:
        doc_id = self.new_id()
        await self.set(collection, doc_id, data)
        return doc_id
