"""
MongoDB document store

Layout:
- top-level collections map 1:1 to MongoDB collections
- sub-collection entries live in a MongoDB collection named after the
  sub-collection, with a `_parent` field holding the parent document path,
  so a collection-group query is a plain query on that collection
- references are stored as DBRefs

Batches run inside a multi-document transaction, which needs a replica set
(MongoDB Atlas or `mongod --replSet`).
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.dbref import DBRef
from pymongo import ASCENDING, MongoClient
from pymongo.errors import PyMongoError

from errors import Unavailable
from store import Aggregation, Count, Document, DocumentRef, DocumentStore, Query, Sum, WriteBatch

logger = logging.getLogger(__name__)

MONGO_OPERATORS = {
    "==": "$eq",
    "!=": "$ne",
    "<": "$lt",
    "<=": "$lte",
    ">": "$gt",
    ">=": "$gte",
}


def to_object_id(id_str: str):
    # ids that are not ObjectIds (e.g. seeded fixtures) are kept as strings
    return ObjectId(id_str) if ObjectId.is_valid(id_str) else id_str


def path_to_ref(path: str) -> DocumentRef:
    parts = path.split("/")
    if len(parts) % 2:
        raise ValueError(f"Not a document path: {path}")
    ref = None
    for i in range(0, len(parts), 2):
        ref = DocumentRef(parts[i], parts[i + 1], ref)
    return ref


def encode_value(value: Any) -> Any:
    if isinstance(value, DocumentRef):
        if value.parent is not None:
            return DBRef(value.collection, to_object_id(value.id), parent=value.parent.path)
        return DBRef(value.collection, to_object_id(value.id))
    return value


def decode_value(value: Any) -> Any:
    if isinstance(value, DBRef):
        parent_path = value.as_doc().get("parent")
        parent = path_to_ref(parent_path) if parent_path else None
        return DocumentRef(value.collection, str(value.id), parent)
    return value


@contextmanager
def store_errors(action: str):
    try:
        yield
    except PyMongoError as e:
        logger.exception(f"MongoDB {action} failed")
        raise Unavailable(f"Document store unavailable: {e}") from e


class MongoDocumentStore(DocumentStore):
    def __init__(self, client: MongoClient, database_name: str):
        self._client = client
        self._db = client[database_name]

    def new_id(self) -> str:
        return str(ObjectId())

    def _decode(self, collection: str, raw: Dict[str, Any]) -> Document:
        parent_path = raw.pop("_parent", None)
        parent = path_to_ref(parent_path) if parent_path else None
        ref = DocumentRef(collection, str(raw.pop("_id")), parent)
        return Document(ref, {k: decode_value(v) for k, v in raw.items()})

    def _match(self, query: Query) -> Dict[str, Any]:
        match: Dict[str, Any] = {}
        if not query.collection_group:
            match["_parent"] = None
        for field, op, value in query.filters:
            match.setdefault(field, {})[MONGO_OPERATORS[op]] = encode_value(value)
        return match

    def get(self, ref: DocumentRef) -> Optional[Document]:
        selector = {"_id": to_object_id(ref.id),
                    "_parent": ref.parent.path if ref.parent else None}
        with store_errors("read"):
            raw = self._db[ref.collection].find_one(selector)
        if raw is None:
            return None
        return self._decode(ref.collection, raw)

    def query(self, query: Query) -> List[Document]:
        with store_errors("query"):
            cursor = self._db[query.collection].find(self._match(query)).sort("_id", ASCENDING)
            if query.limit_to is not None:
                cursor = cursor.limit(query.limit_to)
            return [self._decode(query.collection, raw) for raw in cursor]

    def aggregate(self, query: Query, aggregations: Dict[str, Aggregation]) -> Dict[str, Any]:
        group: Dict[str, Any] = {"_id": None}
        for alias, aggregation in aggregations.items():
            if isinstance(aggregation, Count):
                group[alias] = {"$sum": 1}
            elif isinstance(aggregation, Sum):
                group[alias] = {"$sum": f"${aggregation.field}"}
            else:
                raise ValueError(f"Unsupported aggregation: {aggregation!r}")
        pipeline = [{"$match": self._match(query)}, {"$group": group}]
        with store_errors("aggregation"):
            rows = list(self._db[query.collection].aggregate(pipeline))
        if not rows:
            return {alias: 0 for alias in aggregations}
        return {alias: rows[0].get(alias, 0) for alias in aggregations}

    def commit(self, batch: WriteBatch) -> None:
        def apply(session):
            for ref, data, merge in batch.writes:
                doc = {k: encode_value(v) for k, v in data.items()}
                doc["_parent"] = ref.parent.path if ref.parent else None
                selector = {"_id": to_object_id(ref.id)}
                collection = self._db[ref.collection]
                if merge:
                    collection.update_one(selector, {"$set": doc}, upsert=True, session=session)
                else:
                    collection.replace_one(selector, doc, upsert=True, session=session)

        with store_errors("transaction"):
            with self._client.start_session() as session:
                session.with_transaction(apply)

    def ping(self) -> List[str]:
        with store_errors("ping"):
            return self._db.list_collection_names()
