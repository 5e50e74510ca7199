"""
Document store interface

A small collection-oriented API shared by the MongoDB store and the in-memory
store used in tests:

- DocumentRef: pointer to a document, optionally nested under a parent
  document (sub-collection entry such as orders/<id>/items/<id>)
- Query: immutable filter over one collection, or over every sub-collection
  with a given name when collection_group is set
- Count / Sum: server-side aggregations
- WriteBatch: set of writes committed all-or-nothing
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple, Union

OPERATORS = ("==", "!=", "<", "<=", ">", ">=")


class DocumentRef:
    __slots__ = ("collection", "id", "parent")

    def __init__(self, collection: str, id: str, parent: Optional["DocumentRef"] = None):
        self.collection = collection
        self.id = id
        self.parent = parent

    @property
    def path(self) -> str:
        own = f"{self.collection}/{self.id}"
        return f"{self.parent.path}/{own}" if self.parent else own

    def __eq__(self, other):
        return isinstance(other, DocumentRef) and self.path == other.path

    def __hash__(self):
        return hash(self.path)

    def __repr__(self):
        return f"DocumentRef({self.path!r})"


class Document:
    """Snapshot of a stored document."""

    __slots__ = ("ref", "data")

    def __init__(self, ref: DocumentRef, data: Dict[str, Any]):
        self.ref = ref
        self.data = data

    @property
    def id(self) -> str:
        return self.ref.id

    def get(self, field: str, default: Any = None) -> Any:
        return self.data.get(field, default)


Filter = Tuple[str, str, Any]


class Query:
    def __init__(self, collection: str, filters: Tuple[Filter, ...] = (),
                 collection_group: bool = False, limit: Optional[int] = None):
        self.collection = collection
        self.filters = filters
        self.collection_group = collection_group
        self.limit_to = limit

    def where(self, field: str, op: str, value: Any) -> "Query":
        if op not in OPERATORS:
            raise ValueError(f"Unsupported operator: {op}")
        return Query(self.collection, self.filters + ((field, op, value),),
                     self.collection_group, self.limit_to)

    def limit(self, count: int) -> "Query":
        return Query(self.collection, self.filters, self.collection_group, count)


class Count:
    def __repr__(self):
        return "Count()"


class Sum:
    def __init__(self, field: str):
        self.field = field

    def __repr__(self):
        return f"Sum({self.field!r})"


Aggregation = Union[Count, Sum]


class WriteBatch:
    def __init__(self):
        self.writes: List[Tuple[DocumentRef, Dict[str, Any], bool]] = []

    def set(self, ref: DocumentRef, data: Dict[str, Any], merge: bool = False) -> "WriteBatch":
        """Replace the document at ref with data. With merge=True only the
        given fields are written and the rest of the document is kept."""
        self.writes.append((ref, dict(data), merge))
        return self

    def __len__(self):
        return len(self.writes)


class DocumentStore(ABC):
    """Base class for store backends."""

    def ref(self, collection: str, id: Optional[str] = None,
            parent: Optional[DocumentRef] = None) -> DocumentRef:
        """Reference to a document; a fresh id is generated when none is given."""
        return DocumentRef(collection, id or self.new_id(), parent)

    def collection_group(self, name: str) -> Query:
        return Query(name, collection_group=True)

    def collection(self, name: str) -> Query:
        return Query(name)

    @abstractmethod
    def new_id(self) -> str:
        ...

    @abstractmethod
    def get(self, ref: DocumentRef) -> Optional[Document]:
        ...

    @abstractmethod
    def query(self, query: Query) -> List[Document]:
        """Matching documents in ascending document id order."""

    @abstractmethod
    def aggregate(self, query: Query, aggregations: Dict[str, Aggregation]) -> Dict[str, Any]:
        """Count/sum over the documents matched by query. Empty matches give 0."""

    @abstractmethod
    def commit(self, batch: WriteBatch) -> None:
        """Apply every write in batch, or none of them."""

    @abstractmethod
    def ping(self) -> List[str]:
        """Names of the collections currently holding data."""
