from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from memory_store import InMemoryDocumentStore
from schemas import ORDER_ITEMS, ORDERS, RESTAURANTS, USERS
from store import WriteBatch

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def seed(store, collection, data, id=None, parent=None):
    ref = store.ref(collection, id, parent)
    store.commit(WriteBatch().set(ref, data))
    return ref


def count_orders(store):
    return len(store.query(store.collection(ORDERS)))


def count_items(store):
    return len(store.query(store.collection_group(ORDER_ITEMS)))


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def owner(store):
    """Business user owning the restaurant 'bagels' ($5 bags)."""
    user_ref = seed(store, USERS, {"name": "Owner", "account_type": "business"}, id="owner-1")
    restaurant_ref = seed(store, RESTAURANTS, {
        "name": "Bagels",
        "address": "1 University Ave",
        "bag_price": 5.0,
        "bags_available": 10,
        "owner": user_ref,
    }, id="bagels")
    seed(store, USERS, {"name": "Owner", "account_type": "business", "restaurant": restaurant_ref},
         id="owner-1")
    return user_ref


@pytest.fixture
def student(store):
    return seed(store, USERS, {"name": "Student", "account_type": "individual"}, id="student-1")


@pytest.fixture
def client(store):
    from database import get_store
    from main import app

    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
