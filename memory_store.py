"""
In-memory document store

Keeps every document in a dict keyed by path. Used by the test suite and for
running the API locally without MongoDB (STORE_BACKEND=memory).
"""

import operator
import threading
from typing import Any, Dict, List, Optional
from uuid import uuid4

from store import Aggregation, Count, Document, DocumentRef, DocumentStore, Query, Sum, WriteBatch

_COMPARE = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def _matches(data: Dict[str, Any], filters) -> bool:
    for field, op, value in filters:
        if field not in data:
            return False
        current = data[field]
        if op in ("==", "!="):
            if not _COMPARE[op](current, value):
                return False
            continue
        # range filters only compare values of the same kind
        try:
            if current is None or not _COMPARE[op](current, value):
                return False
        except TypeError:
            return False
    return True


class InMemoryDocumentStore(DocumentStore):
    def __init__(self):
        self._docs: Dict[str, Document] = {}
        self._lock = threading.Lock()

    def new_id(self) -> str:
        return uuid4().hex[:20]

    def get(self, ref: DocumentRef) -> Optional[Document]:
        with self._lock:
            doc = self._docs.get(ref.path)
        if doc is None:
            return None
        return Document(doc.ref, dict(doc.data))

    def _select(self, query: Query) -> List[Document]:
        with self._lock:
            docs = list(self._docs.values())
        selected = []
        for doc in docs:
            if doc.ref.collection != query.collection:
                continue
            if not query.collection_group and doc.ref.parent is not None:
                continue
            if _matches(doc.data, query.filters):
                selected.append(doc)
        selected.sort(key=lambda d: d.ref.path if query.collection_group else d.ref.id)
        if query.limit_to is not None:
            selected = selected[:query.limit_to]
        return selected

    def query(self, query: Query) -> List[Document]:
        return [Document(d.ref, dict(d.data)) for d in self._select(query)]

    def aggregate(self, query: Query, aggregations: Dict[str, Aggregation]) -> Dict[str, Any]:
        docs = self._select(query)
        result = {}
        for alias, aggregation in aggregations.items():
            if isinstance(aggregation, Count):
                result[alias] = len(docs)
            elif isinstance(aggregation, Sum):
                values = [d.data.get(aggregation.field) for d in docs]
                result[alias] = sum(v for v in values
                                    if isinstance(v, (int, float)) and not isinstance(v, bool))
            else:
                raise ValueError(f"Unsupported aggregation: {aggregation!r}")
        return result

    def _stage(self, staged: Dict[str, Document], ref: DocumentRef, data: Dict[str, Any],
               merge: bool = False) -> None:
        existing = staged.get(ref.path)
        if merge and existing is not None:
            data = {**existing.data, **data}
        staged[ref.path] = Document(ref, dict(data))

    def commit(self, batch: WriteBatch) -> None:
        with self._lock:
            staged = dict(self._docs)
            for ref, data, merge in batch.writes:
                self._stage(staged, ref, data, merge)
            self._docs = staged

    def ping(self) -> List[str]:
        with self._lock:
            return sorted({doc.ref.collection for doc in self._docs.values()})
