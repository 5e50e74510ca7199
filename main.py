import logging
import os
from typing import Any, Dict, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field

from auth import create_jwt, get_caller
from campus import GeoPoint, is_campus_id_properly_formatted, is_point_within_bounds
from dashboard import DashboardService
from database import get_store
from errors import PermissionDenied, ServiceError, Unauthenticated
from lookups import (
    find_owned_restaurant,
    get_restaurant_by_id,
    get_user_by_id,
    restaurant_from_document,
    user_from_document,
)
from orders import OrderService
from schemas import (
    RESTAURANTS,
    USERS,
    Caller,
    DashboardResponse,
    PlaceOrderBody,
    PlaceOrderResponse,
    Restaurant,
    User,
)
from store import Document, DocumentStore, WriteBatch

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Campus Food Rescue API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ---------------------- Helpers ----------------------
def restaurant_out(doc: Document) -> Dict[str, Any]:
    restaurant = restaurant_from_document(doc)
    out = restaurant.model_dump(exclude={"owner"})
    out["id"] = doc.id
    out["owner_id"] = restaurant.owner.id if restaurant.owner else None
    return out


def require_business_user(store: DocumentStore, caller: Optional[Caller]) -> User:
    if caller is None:
        raise Unauthenticated("User is not authenticated.")
    user = get_user_by_id(store, caller.uid)
    if user.account_type != "business":
        raise PermissionDenied(f"User with id {caller.uid} is not a business account.")
    return user


# ---------------------- Auth ----------------------
class DemoAuthBody(BaseModel):
    email: EmailStr
    name: str = Field(...)
    account_type: Literal['individual', 'business'] = 'individual'


@app.post("/auth/demo")
def demo_auth(body: DemoAuthBody, store: DocumentStore = Depends(get_store)):
    """Simple, working auth for demo. Creates/returns a user and a JWT."""
    found = store.query(store.collection(USERS).where("email", "==", body.email).limit(1))
    batch = WriteBatch()
    if found:
        user_ref, user = found[0].ref, user_from_document(found[0])
    else:
        user_ref = store.ref(USERS)
        user = User(name=body.name, email=body.email, account_type=body.account_type)
        batch.set(user_ref, user.model_dump())

    # business accounts get a restaurant to manage (simple single-restaurant setup)
    if user.account_type == 'business' and find_owned_restaurant(store, user_ref) is None:
        restaurant_ref = store.ref(RESTAURANTS)
        batch.set(restaurant_ref, Restaurant(name=f"{user.name}'s Kitchen", owner=user_ref).model_dump())
        batch.set(user_ref, {"restaurant": restaurant_ref}, merge=True)
    if len(batch):
        store.commit(batch)
        logger.info(f"Registered {user.account_type} user {user_ref.id}")

    token = create_jwt({
        "sub": user_ref.id,
        "email": user.email,
        "name": user.name,
        "account_type": user.account_type,
    })
    return {"token": token, "user": {"id": user_ref.id, "email": user.email, "name": user.name,
                                     "account_type": user.account_type}}


# ---------------------- Restaurants ----------------------
class UpsertRestaurant(BaseModel):
    name: str
    address: Optional[str] = None
    bag_price: Optional[float] = Field(None, gt=0)
    bags_available: int = Field(0, ge=0)


@app.get("/restaurants")
def list_restaurants(store: DocumentStore = Depends(get_store)):
    return [restaurant_out(doc) for doc in store.query(store.collection(RESTAURANTS))]


@app.get("/restaurants/{restaurant_id}")
def get_restaurant(restaurant_id: str, store: DocumentStore = Depends(get_store)):
    restaurant = get_restaurant_by_id(store, restaurant_id)
    return {"id": restaurant_id, "address": restaurant.address, "bag_price": restaurant.bag_price}


@app.post("/restaurants")
def upsert_restaurant(body: UpsertRestaurant, caller: Optional[Caller] = Depends(get_caller),
                      store: DocumentStore = Depends(get_store)):
    """Create the caller's restaurant, or update it if they already have one."""
    user = require_business_user(store, caller)
    user_ref = store.ref(USERS, caller.uid)
    restaurant_ref = find_owned_restaurant(store, user_ref)

    batch = WriteBatch()
    if restaurant_ref is None:
        restaurant_ref = store.ref(RESTAURANTS)
        batch.set(restaurant_ref, Restaurant(owner=user_ref, **body.model_dump()).model_dump())
    else:
        # only the fields sent in the request change
        batch.set(restaurant_ref, body.model_dump(exclude_unset=True), merge=True)
    if user.restaurant != restaurant_ref:
        batch.set(user_ref, {"restaurant": restaurant_ref}, merge=True)
    store.commit(batch)
    return {"id": restaurant_ref.id}


# ---------------------- Orders & dashboard ----------------------
@app.post("/orders", response_model=PlaceOrderResponse)
def place_order(body: PlaceOrderBody, caller: Optional[Caller] = Depends(get_caller),
                store: DocumentStore = Depends(get_store)):
    return OrderService(store).place_order(caller, body.items)


@app.get("/dashboard", response_model=DashboardResponse, response_model_exclude_none=True)
def get_dashboard(caller: Optional[Caller] = Depends(get_caller),
                  store: DocumentStore = Depends(get_store)):
    return DashboardService(store).get_dashboard(caller)


# ---------------------- Campus ----------------------
@app.get("/campus/verify-id")
def verify_campus_id(barcode: Optional[str] = None):
    if not barcode:
        raise HTTPException(status_code=400, detail="Barcode field is required.")
    return is_campus_id_properly_formatted(barcode)


@app.post("/campus/contains")
def campus_contains(point: GeoPoint):
    if is_point_within_bounds(point):
        return {"isValid": True}
    return {"isValid": False, "reason": "Location is not within the UW-Madison campus."}


# ---------------------- Misc ----------------------
@app.get("/")
def read_root():
    return {"message": "Campus Food Rescue API"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "collections": []
    }
    try:
        store = get_store()
    except HTTPException:
        return response
    response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
    response["database_name"] = os.getenv("DATABASE_NAME") or "❌ Not Set"
    try:
        response["collections"] = store.ping()[:10]
        response["database"] = "✅ Connected & Working"
    except ServiceError as e:
        response["database"] = f"⚠️ Connected but Error: {e.message[:80]}"
    return response


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
