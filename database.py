"""
Database connection

Reads DATABASE_URL / DATABASE_NAME from the environment (or a local .env file)
and builds the document store the API hands to each service.

STORE_BACKEND=memory runs against an in-process store instead of MongoDB.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import HTTPException
from pymongo import MongoClient

from memory_store import InMemoryDocumentStore
from mongo_store import MongoDocumentStore
from store import DocumentStore

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")
STORE_BACKEND = os.getenv("STORE_BACKEND", "mongo").lower()

_client: Optional[MongoClient] = None
store: Optional[DocumentStore] = None

if STORE_BACKEND == "memory":
    store = InMemoryDocumentStore()
    logger.warning("Using in-memory document store; data is lost on restart")
elif DATABASE_URL and DATABASE_NAME:
    # MongoClient connects lazily, so this never blocks import
    _client = MongoClient(DATABASE_URL, tz_aware=True)
    store = MongoDocumentStore(_client, DATABASE_NAME)


def get_store() -> DocumentStore:
    """FastAPI dependency returning the configured store."""
    if store is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return store
