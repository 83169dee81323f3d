import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ...application.ports.remote_store import (
    SERVER_TIMESTAMP,
    BatchUpdate,
    Document,
    FieldFilter,
    QuerySpec,
    RemoteDocumentStore,
    Snapshot,
    Subscription,
)
from ...exceptions import RemoteStoreError

logger = logging.getLogger(__name__)

_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    "<": lambda a, b: a is not None and a < b,
    "<=": lambda a, b: a is not None and a <= b,
    ">": lambda a, b: a is not None and a > b,
    ">=": lambda a, b: a is not None and a >= b,
    "in": lambda a, b: a in b,
    "array_contains": lambda a, b: isinstance(a, list) and b in a,
}


def _resolve_timestamps(value: Any, now: datetime) -> Any:
    if value is SERVER_TIMESTAMP:
        return now
    if isinstance(value, dict):
        return {k: _resolve_timestamps(v, now) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_timestamps(v, now) for v in value]
    return value


def _matches(data: Dict[str, Any], filters: Sequence[FieldFilter]) -> bool:
    for f in filters:
        op = _OPERATORS.get(f.op)
        if op is None:
            raise RemoteStoreError(f"Unsupported filter operator: {f.op}")
        if not op(data.get(f.field), f.value):
            return False
    return True


def _sort_key(field_name: str):
    def key(doc: Document):
        value = doc.data.get(field_name)
        # Missing values sort first, as in Firestore.
        return (value is not None, value if value is not None else 0)
    return key


class InMemoryDocumentStore(RemoteDocumentStore):
    """Process-local document store with the same watch semantics as Firestore.

    Every mutation re-emits the full matching result set to each affected
    watch. Used for local sessions and tests.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._query_watches: List[Tuple[QuerySpec, Subscription]] = []
        self._document_watches: List[Tuple[str, str, Subscription]] = []
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # Reads

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        data = self._collections.get(collection, {}).get(doc_id)
        return Document(doc_id, copy.deepcopy(data)) if data is not None else None

    async def query(self, spec: QuerySpec) -> List[Document]:
        return self._run_query(spec)

    def _run_query(self, spec: QuerySpec) -> List[Document]:
        rows = [
            Document(doc_id, copy.deepcopy(data))
            for doc_id, data in self._collections.get(spec.collection, {}).items()
            if _matches(data, spec.filters)
        ]
        if spec.order_by:
            rows.sort(key=_sort_key(spec.order_by), reverse=spec.descending)
        if spec.limit is not None:
            rows = rows[: spec.limit]
        return rows

    # Writes

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        self._write(collection, doc_id, data)
        self._notify(collection, doc_id)
        return doc_id

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        if merge:
            current = copy.deepcopy(self._collections.get(collection, {}).get(doc_id, {}))
            current.update(data)
            data = current
        self._write(collection, doc_id, data)
        self._notify(collection, doc_id)

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        self._apply_update(collection, doc_id, fields)
        self._notify(collection, doc_id)

    async def delete(self, collection: str, doc_id: str) -> None:
        self._collections.get(collection, {}).pop(doc_id, None)
        self._notify(collection, doc_id)

    async def commit_batch(self, updates: Sequence[BatchUpdate]) -> None:
        for u in updates:
            if u.doc_id not in self._collections.get(u.collection, {}):
                raise RemoteStoreError(f"No document to update: {u.collection}/{u.doc_id}")
        for u in updates:
            self._apply_update(u.collection, u.doc_id, u.fields)
        for collection in {u.collection for u in updates}:
            self._notify(collection, None)

    def _write(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        resolved = _resolve_timestamps(copy.deepcopy(data), self._clock())
        self._collections.setdefault(collection, {})[doc_id] = resolved

    def _apply_update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        current = self._collections.get(collection, {}).get(doc_id)
        if current is None:
            raise RemoteStoreError(f"No document to update: {collection}/{doc_id}")
        current.update(_resolve_timestamps(copy.deepcopy(fields), self._clock()))

    # Watches

    def watch_query(self, spec: QuerySpec) -> Subscription:
        subscription = Subscription()
        entry = (spec, subscription)
        self._query_watches.append(entry)
        subscription.set_on_close(lambda: self._query_watches.remove(entry))
        subscription.push(Snapshot(tuple(self._run_query(spec))))
        return subscription

    def watch_document(self, collection: str, doc_id: str) -> Subscription:
        subscription = Subscription()
        entry = (collection, doc_id, subscription)
        self._document_watches.append(entry)
        subscription.set_on_close(lambda: self._document_watches.remove(entry))
        subscription.push(self._document_snapshot(collection, doc_id))
        return subscription

    def emit_error(self, error: BaseException) -> None:
        """Deliver a listener error to every open watch."""
        for _, subscription in list(self._query_watches):
            subscription.push(Snapshot(error=error))
        for _, _, subscription in list(self._document_watches):
            subscription.push(Snapshot(error=error))

    @property
    def open_watch_count(self) -> int:
        return len(self._query_watches) + len(self._document_watches)

    def _document_snapshot(self, collection: str, doc_id: str) -> Snapshot:
        data = self._collections.get(collection, {}).get(doc_id)
        if data is None:
            return Snapshot()
        return Snapshot((Document(doc_id, copy.deepcopy(data)),))

    def _notify(self, collection: str, doc_id: Optional[str]) -> None:
        for spec, subscription in list(self._query_watches):
            if spec.collection == collection:
                subscription.push(Snapshot(tuple(self._run_query(spec))))
        for watched_collection, watched_id, subscription in list(self._document_watches):
            if watched_collection == collection and (doc_id is None or watched_id == doc_id):
                subscription.push(self._document_snapshot(watched_collection, watched_id))
