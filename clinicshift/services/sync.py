"""
remote document store sync

the core only needs four things from a remote backend:
- get_all(collection)              one-shot read
- upsert(collection, id, doc)      create or replace one document
- delete(collection, id)
- subscribe(collection, callback)  push updates, returns an unsubscribe callable

local mutations are applied first. the store then drops a PendingWrite into
the SyncOutbox, and flush() sends those writes later (the API does it as a
background task). every write is tried exactly once. failures are logged
and dropped, the in-memory state keeps going.

push updates replace a whole collection. there is no conflict detection:
last write wins at the collection level, and a push can overwrite a local
change whose write has not been flushed yet.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol

from pydantic import BaseModel

from clinicshift.core.logging import get_logger
from clinicshift.data.catalog import default_clinic_days, default_flow_rates, sample_participants

if TYPE_CHECKING:
    from clinicshift.core.state import MissionStore

logger = get_logger(__name__)


# remote collection name -> MissionState attribute
COLLECTIONS: dict[str, str] = {
    "participants": "participants",
    "assignments": "assignments",
    "clinicDays": "clinic_days",
    "flowRates": "flow_rates",
    "shiftActuals": "shift_actuals",
    "patientRecords": "patient_records",
    "pharmacyItems": "pharmacy_items",
    "roleCapacities": "role_capacities",
}

Document = dict[str, Any]
Callback = Callable[[list[Document]], None]
Unsubscribe = Callable[[], None]


def document_id(entity: BaseModel) -> str:
    """Flow rates are keyed by role, capacity overrides by their triple, the rest by id."""
    key = getattr(entity, "key", None)
    if isinstance(key, str):
        return key
    if hasattr(entity, "id"):
        return str(entity.id)
    return str(entity.role_id)


def to_document(entity: BaseModel) -> Document:
    return entity.model_dump(mode="json", by_alias=True)


class DocumentStore(Protocol):
    def get_all(self, collection: str) -> list[Document]: ...

    def upsert(self, collection: str, doc_id: str, doc: Document) -> None: ...

    def delete(self, collection: str, doc_id: str) -> None: ...

    def subscribe(self, collection: str, callback: Callback) -> Unsubscribe: ...


class InMemoryDocumentStore:
    """
    Process-local backend.

    Behaves like a hosted document store from the core's point of view:
    subscribers get the full collection once on subscribe and again after
    every write to it.
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Document]] = {}
        self._subscribers: dict[str, list[Callback]] = {}

    def get_all(self, collection: str) -> list[Document]:
        return [dict(doc) for doc in self._data.get(collection, {}).values()]

    def upsert(self, collection: str, doc_id: str, doc: Document) -> None:
        self._data.setdefault(collection, {})[doc_id] = dict(doc)
        self._notify(collection)

    def delete(self, collection: str, doc_id: str) -> None:
        if self._data.get(collection, {}).pop(doc_id, None) is not None:
            self._notify(collection)

    def subscribe(self, collection: str, callback: Callback) -> Unsubscribe:
        callbacks = self._subscribers.setdefault(collection, [])
        callbacks.append(callback)
        callback(self.get_all(collection))

        def unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def _notify(self, collection: str) -> None:
        docs = self.get_all(collection)
        for callback in list(self._subscribers.get(collection, [])):
            callback(docs)


@dataclass(frozen=True)
class PendingWrite:
    collection: str
    doc_id: str
    # None means delete
    doc: Optional[Document] = None


@dataclass
class SyncOutbox:
    backend: DocumentStore
    pending: list[PendingWrite] = field(default_factory=list)

    def enqueue_upsert(self, collection: str, entity: BaseModel) -> None:
        self.pending.append(PendingWrite(collection, document_id(entity), to_document(entity)))

    def enqueue_delete(self, collection: str, doc_id: str) -> None:
        self.pending.append(PendingWrite(collection, doc_id))

    def flush(self) -> int:
        """
        Sends every queued write once, oldest first.

        Returns how many went through. Failed writes are logged and dropped.
        """
        batch, self.pending = self.pending, []
        sent = 0

        for write in batch:
            try:
                if write.doc is None:
                    self.backend.delete(write.collection, write.doc_id)
                else:
                    self.backend.upsert(write.collection, write.doc_id, write.doc)
                sent += 1
            except Exception:
                logger.exception("Remote write failed for %s/%s", write.collection, write.doc_id)

        return sent


class RemoteSync:
    """Startup hydration and live subscriptions between a store and a backend."""

    def __init__(self, store: MissionStore, backend: DocumentStore) -> None:
        self.store = store
        self.backend = backend
        self._unsubscribers: list[Unsubscribe] = []

    def seed_defaults(self) -> None:
        """Fills empty remote collections with the built-in starting data."""
        seeds: dict[str, list[BaseModel]] = {
            "participants": sample_participants(),
            "clinicDays": default_clinic_days(),
            "flowRates": default_flow_rates(),
        }
        for collection, entities in seeds.items():
            try:
                if self.backend.get_all(collection):
                    continue
                for entity in entities:
                    self.backend.upsert(collection, document_id(entity), to_document(entity))
            except Exception:
                logger.exception("Could not seed remote collection %s", collection)

    def publish_local(self) -> None:
        """
        Copies local collections into remote collections that are still empty.

        Run before subscribe_all() so the first push does not wipe
        what was loaded from the local snapshot.
        """
        for collection, attr in COLLECTIONS.items():
            try:
                if self.backend.get_all(collection):
                    continue
                for entity in getattr(self.store.state, attr):
                    self.backend.upsert(collection, document_id(entity), to_document(entity))
            except Exception:
                logger.exception("Could not publish local collection %s", collection)

    def hydrate(self) -> None:
        """
        One-shot load of every collection.

        Empty or unreadable collections leave the local copy alone.
        """
        for collection in COLLECTIONS:
            try:
                docs = self.backend.get_all(collection)
            except Exception:
                logger.exception("Could not load remote collection %s", collection)
                continue
            if docs:
                self.store.replace_collection(collection, docs)

    def subscribe_all(self) -> None:
        for collection in COLLECTIONS:
            self._unsubscribers.append(
                self.backend.subscribe(collection, self._on_push(collection))
            )

    def unsubscribe_all(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def _on_push(self, collection: str) -> Callback:
        def apply(docs: list[Document]) -> None:
            try:
                self.store.replace_collection(collection, docs)
            except ValueError:
                logger.exception("Ignoring malformed push for %s", collection)

        return apply
