import asyncio
import json
import logging
from typing import Any, Dict, List, Optional
from uuid import uuid4

from supabase import AsyncClient, PostgrestAPIError

from app.db.store import (
    Document,
    DocumentNotFoundError,
    DocumentStore,
    FilterOp,
    Query,
    SnapshotCallback,
    Subscription,
    WriteBatch,
)

logger = logging.getLogger(__name__)

DOCUMENTS_TABLE = "documents"
# raised by commit_batch() when an update targets a missing document
NO_DATA_FOUND = "P0002"


def _as_text(value: Any) -> str:
    # ->> extracts jsonb scalars as text
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class RealtimeSubscription(Subscription):
    def __init__(self, store: "SupabaseDocumentStore", query: Query, callback):
        super().__init__(query, callback)
        self._store = store
        self._channel = None
        self._pending: set = set()

    async def start(self) -> None:
        topic = f"{self.query.collection}-{uuid4().hex[:8]}"
        channel = self._store.client.channel(topic)
        channel.on_postgres_changes(
            event="*",
            schema="public",
            table=DOCUMENTS_TABLE,
            filter=f"collection=eq.{self.query.collection}",
            callback=self._on_change,
        )
        # Realtime ignores row filters on DELETE, so deletes arrive unfiltered
        channel.on_postgres_changes(
            event="DELETE",
            schema="public",
            table=DOCUMENTS_TABLE,
            callback=self._on_delete,
        )
        await channel.subscribe()
        self._channel = channel
        await self.refresh()

    async def refresh(self) -> None:
        if not self.active:
            return
        try:
            documents = await self._store.query(self.query)
        except Exception as e:
            logger.error(f"Failed to refresh {self.query.collection} snapshot: {e}")
            return
        self.deliver(documents)

    def _on_delete(self, payload: Dict[str, Any]) -> None:
        change = payload.get("data", payload)
        old_record = change.get("old_record") or {}
        if old_record.get("collection") == self.query.collection:
            self._on_change(payload)

    def _on_change(self, payload: Dict[str, Any]) -> None:
        # change payloads are partial, so re-read the full result set
        task = asyncio.ensure_future(self.refresh())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _release(self) -> None:
        for task in list(self._pending):
            task.cancel()
        if self._channel is not None:
            await self._store.client.remove_channel(self._channel)
            self._channel = None


class SupabaseDocumentStore(DocumentStore):
    """Document store over a single ``documents`` table.

    Batches go through the ``commit_batch`` Postgres function so every write
    in a batch commits in one transaction (see supabase/migrations).
    """

    def __init__(self, client: AsyncClient):
        self.client = client

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        rows = (
            await self.client.table(DOCUMENTS_TABLE)
            .select("id, data")
            .eq("collection", collection)
            .eq("id", doc_id)
            .limit(1)
            .execute()
        ).data
        if not rows:
            return None
        return {"id": rows[0]["id"], **rows[0]["data"]}

    async def query(self, query: Query) -> List[Document]:
        builder = (
            self.client.table(DOCUMENTS_TABLE)
            .select("id, data")
            .eq("collection", query.collection)
        )

        for f in query.filters:
            column = "id" if f.field == "id" else f"data->>{f.field}"
            if f.op == FilterOp.EQ:
                if f.value is None:
                    builder = builder.is_(column, "null")
                else:
                    builder = builder.eq(column, _as_text(f.value))
            elif f.op == FilterOp.NEQ:
                builder = builder.neq(column, _as_text(f.value))
            elif f.op == FilterOp.IN:
                builder = builder.in_(column, [_as_text(v) for v in f.value])
            elif f.op == FilterOp.ARRAY_CONTAINS:
                builder = builder.contains(f"data->{f.field}", json.dumps([f.value]))

        if query.order_by:
            builder = builder.order(f"data->>{query.order_by}", desc=query.descending)
        else:
            builder = builder.order("created_at")

        if query.limit is not None:
            builder = builder.limit(query.limit)

        rows = (await builder.execute()).data
        return [{"id": row["id"], **row["data"]} for row in rows]

    async def commit(self, batch: WriteBatch) -> None:
        if not batch.ops:
            return
        try:
            await self.client.rpc(
                "commit_batch", {"ops": [op.to_payload() for op in batch.ops]}
            ).execute()
        except PostgrestAPIError as e:
            if e.code == NO_DATA_FOUND:
                collection, _, doc_id = (e.details or "/").partition("/")
                raise DocumentNotFoundError(collection, doc_id) from e
            raise

    async def subscribe(
        self, query: Query, callback: SnapshotCallback
    ) -> Subscription:
        subscription = RealtimeSubscription(self, query, callback)
        await subscription.start()
        return subscription
