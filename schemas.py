"""
Database Schemas for the Campus Food-Rescue Marketplace

Each Pydantic model maps to a document collection:
- User -> users
- Restaurant -> restaurants
- Order -> orders
- OrderItem -> orders/{order_id}/items (sub-collection)

Field names match the stored documents, which is why some are camelCase.
References to other documents are store.DocumentRef values.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from store import DocumentRef

USERS = "users"
RESTAURANTS = "restaurants"
ORDERS = "orders"
ORDER_ITEMS = "items"


class StoredModel(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)


class User(StoredModel):
    """Student (individual) or restaurant owner (business) account"""
    name: Optional[str] = Field(None, description="Display name")
    email: Optional[EmailStr] = Field(None, description="Email address")
    account_type: Literal['individual', 'business'] = 'individual'
    restaurant: Optional[DocumentRef] = Field(None, description="Owned restaurant (business accounts)")


class Restaurant(StoredModel):
    name: Optional[str] = None
    address: Optional[str] = None
    bag_price: Optional[float] = Field(None, description="Price of one surprise bag; required for ordering")
    bags_available: int = 0
    owner: Optional[DocumentRef] = Field(None, description="Links to users/<id> (business account)")


class Order(StoredModel):
    for_: DocumentRef = Field(..., alias="for", description="User who placed the order")
    totalPrice: float
    createdAt: datetime
    fulfilled: bool = False


class OrderItem(StoredModel):
    """One line of an order. price is frozen at placement time."""
    restaurant: DocumentRef
    quantity: int = Field(..., ge=1)
    price: float
    createdAt: datetime


# ---------------------- Request / response bodies ----------------------
class Caller(BaseModel):
    """Authenticated identity taken from a verified bearer token"""
    uid: str
    email: Optional[str] = None
    name: Optional[str] = None
    account_type: Optional[str] = None


class OrderLine(BaseModel):
    restaurantId: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0, strict=True)


class PlaceOrderBody(BaseModel):
    items: List[OrderLine] = Field(..., min_length=1)


class PlaceOrderResponse(BaseModel):
    success: bool = True


class DashboardResponse(BaseModel):
    success: bool
    ordersLast24Hours: Optional[int] = None
    earningsLast24Hours: Optional[float] = None
    ordersAllTime: Optional[int] = None
    earningsAllTime: Optional[float] = None
    reason: Optional[str] = None
