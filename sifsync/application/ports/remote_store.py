import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence, Tuple


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


# Placeholder resolved by the store to its own commit time.
SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class Document:
    id: str
    data: Dict[str, Any]


@dataclass(frozen=True)
class FieldFilter:
    field: str
    op: str
    value: Any


@dataclass(frozen=True)
class QuerySpec:
    collection: str
    filters: Tuple[FieldFilter, ...] = ()
    order_by: Optional[str] = None
    descending: bool = False
    limit: Optional[int] = None


@dataclass(frozen=True)
class BatchUpdate:
    collection: str
    doc_id: str
    fields: Dict[str, Any]


@dataclass(frozen=True)
class Snapshot:
    """Full result set of a watch at one point in time, or the error that interrupted it."""

    documents: Tuple[Document, ...] = ()
    error: Optional[BaseException] = None

    @property
    def exists(self) -> bool:
        return bool(self.documents)

    @property
    def document(self) -> Optional[Document]:
        return self.documents[0] if self.documents else None


_CLOSED = object()


class Subscription:
    """Cancellable async iterator of snapshots produced by a watch.

    Adapters push snapshots (from the loop, or from a watch thread via
    ``push_threadsafe``); the consumer iterates with ``async for`` until
    ``close()`` is called.
    """

    def __init__(self, on_close: Optional[Callable[[], None]] = None):
        self._queue: "asyncio.Queue[Any]" = asyncio.Queue()
        self._on_close = on_close
        self.closed = False

    def set_on_close(self, on_close: Callable[[], None]) -> None:
        self._on_close = on_close

    def push(self, snapshot: Snapshot) -> None:
        if not self.closed:
            self._queue.put_nowait(snapshot)

    def push_threadsafe(self, loop: asyncio.AbstractEventLoop, snapshot: Snapshot) -> None:
        if not self.closed and not loop.is_closed():
            loop.call_soon_threadsafe(self.push, snapshot)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._on_close is not None:
            self._on_close()
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Snapshot:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item


class RemoteDocumentStore(Protocol):
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        ...

    async def query(self, spec: QuerySpec) -> List[Document]:
        ...

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        ...

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        ...

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        ...

    async def delete(self, collection: str, doc_id: str) -> None:
        ...

    async def commit_batch(self, updates: Sequence[BatchUpdate]) -> None:
        ...

    def watch_query(self, spec: QuerySpec) -> Subscription:
        ...

    def watch_document(self, collection: str, doc_id: str) -> Subscription:
        ...
