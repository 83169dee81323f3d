import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

import firebase_admin
from firebase_admin import firestore, firestore_async
from google.api_core.exceptions import GoogleAPIError
from google.cloud.firestore_v1.base_query import FieldFilter as FirestoreFieldFilter

from ...application.ports.remote_store import (
    SERVER_TIMESTAMP,
    BatchUpdate,
    Document,
    QuerySpec,
    RemoteDocumentStore,
    Snapshot,
    Subscription,
)
from ...exceptions import RemoteStoreError

logger = logging.getLogger(__name__)


def _to_firestore(value: Any) -> Any:
    if value is SERVER_TIMESTAMP:
        return firestore.SERVER_TIMESTAMP
    if isinstance(value, dict):
        return {k: _to_firestore(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_firestore(v) for v in value]
    return value


def _document(snapshot) -> Document:
    return Document(snapshot.id, snapshot.to_dict() or {})


class FirestoreDocumentStore(RemoteDocumentStore):
    """Cloud Firestore through firebase-admin.

    Reads and writes use the async client. Watches use the sync client's
    ``on_snapshot``, whose callbacks run on a Firestore thread and are
    handed to the event loop that opened the watch.
    """

    def __init__(self, app: Optional[firebase_admin.App] = None) -> None:
        self._client = firestore_async.client(app)
        self._watch_client = firestore.client(app)

    def _build_query(self, client, spec: QuerySpec):
        query = client.collection(spec.collection)
        for f in spec.filters:
            query = query.where(filter=FirestoreFieldFilter(f.field, f.op, f.value))
        if spec.order_by:
            direction = firestore.Query.DESCENDING if spec.descending else firestore.Query.ASCENDING
            query = query.order_by(spec.order_by, direction=direction)
        if spec.limit is not None:
            query = query.limit(spec.limit)
        return query

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        try:
            snapshot = await self._client.collection(collection).document(doc_id).get()
        except GoogleAPIError as e:
            raise RemoteStoreError(f"get {collection}/{doc_id} failed: {e}") from e
        return _document(snapshot) if snapshot.exists else None

    async def query(self, spec: QuerySpec) -> List[Document]:
        try:
            snapshots = await self._build_query(self._client, spec).get()
        except GoogleAPIError as e:
            raise RemoteStoreError(f"query {spec.collection} failed: {e}") from e
        return [_document(s) for s in snapshots]

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        try:
            _, ref = await self._client.collection(collection).add(_to_firestore(data))
        except GoogleAPIError as e:
            raise RemoteStoreError(f"add to {collection} failed: {e}") from e
        return ref.id

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        try:
            await self._client.collection(collection).document(doc_id).set(_to_firestore(data), merge=merge)
        except GoogleAPIError as e:
            raise RemoteStoreError(f"set {collection}/{doc_id} failed: {e}") from e

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        try:
            await self._client.collection(collection).document(doc_id).update(_to_firestore(fields))
        except GoogleAPIError as e:
            raise RemoteStoreError(f"update {collection}/{doc_id} failed: {e}") from e

    async def delete(self, collection: str, doc_id: str) -> None:
        try:
            await self._client.collection(collection).document(doc_id).delete()
        except GoogleAPIError as e:
            raise RemoteStoreError(f"delete {collection}/{doc_id} failed: {e}") from e

    async def commit_batch(self, updates: Sequence[BatchUpdate]) -> None:
        batch = self._client.batch()
        for u in updates:
            batch.update(self._client.collection(u.collection).document(u.doc_id), _to_firestore(u.fields))
        try:
            await batch.commit()
        except GoogleAPIError as e:
            raise RemoteStoreError(f"batch of {len(updates)} updates failed: {e}") from e

    def watch_query(self, spec: QuerySpec) -> Subscription:
        loop = asyncio.get_running_loop()
        subscription = Subscription()

        def on_snapshot(snapshots, changes, read_time):
            try:
                result = Snapshot(tuple(_document(s) for s in snapshots))
            except Exception as e:
                logger.error(f"Failed to read {spec.collection} snapshot: {e}")
                result = Snapshot(error=e)
            subscription.push_threadsafe(loop, result)

        watch = self._build_query(self._watch_client, spec).on_snapshot(on_snapshot)
        subscription.set_on_close(watch.unsubscribe)
        return subscription

    def watch_document(self, collection: str, doc_id: str) -> Subscription:
        loop = asyncio.get_running_loop()
        subscription = Subscription()

        def on_snapshot(snapshots, changes, read_time):
            try:
                present = [s for s in snapshots if s.exists]
                result = Snapshot(tuple(_document(s) for s in present))
            except Exception as e:
                logger.error(f"Failed to read {collection}/{doc_id} snapshot: {e}")
                result = Snapshot(error=e)
            subscription.push_threadsafe(loop, result)

        watch = self._watch_client.collection(collection).document(doc_id).on_snapshot(on_snapshot)
        subscription.set_on_close(watch.unsubscribe)
        return subscription
