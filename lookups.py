from typing import Optional

from pydantic import ValidationError

from errors import NotFound
from schemas import RESTAURANTS, USERS, Restaurant, User
from store import Document, DocumentRef, DocumentStore


def restaurant_from_document(doc: Document) -> Restaurant:
    try:
        return Restaurant.model_validate(doc.data)
    except ValidationError as e:
        raise NotFound(f"Restaurant with id {doc.id} has malformed data.") from e


def user_from_document(doc: Document) -> User:
    # user documents are written by the signup flow, outside this service
    try:
        return User.model_validate(doc.data)
    except ValidationError as e:
        raise NotFound(f"User with id {doc.id} has malformed data.") from e


def get_restaurant_by_id(store: DocumentStore, restaurant_id: str) -> Restaurant:
    doc = store.get(store.ref(RESTAURANTS, restaurant_id))
    if doc is None:
        raise NotFound(f"Restaurant with id {restaurant_id} does not exist.")
    return restaurant_from_document(doc)


def get_user_by_id(store: DocumentStore, user_id: str) -> User:
    doc = store.get(store.ref(USERS, user_id))
    if doc is None:
        raise NotFound(f"User with id {user_id} does not exist.")
    return user_from_document(doc)


def find_owned_restaurant(store: DocumentStore, owner: DocumentRef) -> Optional[DocumentRef]:
    """First restaurant owned by `owner`, in the store's default (id) order."""
    docs = store.query(store.collection(RESTAURANTS).where("owner", "==", owner).limit(1))
    return docs[0].ref if docs else None
