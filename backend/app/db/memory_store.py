import asyncio
import copy
import logging
from typing import Dict, List, Optional

from app.db.store import (
    Document,
    DocumentNotFoundError,
    DocumentStore,
    Query,
    SnapshotCallback,
    Subscription,
    WriteBatch,
    WriteOpType,
)

logger = logging.getLogger(__name__)


class MemorySubscription(Subscription):
    def __init__(self, store: "MemoryDocumentStore", query: Query, callback):
        super().__init__(query, callback)
        self._store = store

    async def _release(self) -> None:
        self._store._subscriptions.discard(self)


class MemoryDocumentStore(DocumentStore):
    """In-process document store with the same batch and snapshot semantics
    as the Supabase backend. Natural order is insertion order."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Document]] = {}
        self._subscriptions: set = set()
        self._lock = asyncio.Lock()

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        document = self._collections.get(collection, {}).get(doc_id)
        if document is None:
            return None
        return {"id": doc_id, **copy.deepcopy(document)}

    async def query(self, query: Query) -> List[Document]:
        return self._run_query(query)

    def _run_query(self, query: Query) -> List[Document]:
        documents = [
            {"id": doc_id, **copy.deepcopy(data)}
            for doc_id, data in self._collections.get(query.collection, {}).items()
        ]
        results = [d for d in documents if query.matches(d)]

        if query.order_by:
            results.sort(
                key=lambda d: (d.get(query.order_by) is None, d.get(query.order_by)),
                reverse=query.descending,
            )
        if query.limit is not None:
            results = results[: query.limit]
        return results

    async def commit(self, batch: WriteBatch) -> None:
        async with self._lock:
            # stage on a copy so a failing op leaves the live data untouched
            staged = {
                name: dict(docs)
                for name, docs in self._collections.items()
                if name in batch.collections()
            }
            for op in batch.ops:
                docs = staged.setdefault(op.collection, {})
                if op.op == WriteOpType.SET:
                    docs[op.doc_id] = copy.deepcopy(op.data)
                elif op.op == WriteOpType.UPDATE:
                    if op.doc_id not in docs:
                        raise DocumentNotFoundError(op.collection, op.doc_id)
                    docs[op.doc_id] = {**docs[op.doc_id], **copy.deepcopy(op.data)}
                elif op.op == WriteOpType.DELETE:
                    docs.pop(op.doc_id, None)

            self._collections.update(staged)

        logger.debug(f"Committed batch of {len(batch)} writes")
        self._notify(batch.collections())

    async def subscribe(
        self, query: Query, callback: SnapshotCallback
    ) -> Subscription:
        subscription = MemorySubscription(self, query, callback)
        self._subscriptions.add(subscription)
        subscription.deliver(self._run_query(query))
        return subscription

    def _notify(self, collections: set) -> None:
        for subscription in list(self._subscriptions):
            if subscription.query.collection in collections:
                subscription.deliver(self._run_query(subscription.query))

    def clear(self) -> None:
        self._collections.clear()
