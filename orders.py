"""
Order placement

Prices each requested line from the restaurant catalog, then writes the order
and all of its items in a single atomic batch. Clients only supply restaurant
ids and quantities; prices and the total are always computed here.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from errors import InvalidArgument, NotFound, Unauthenticated
from lookups import get_restaurant_by_id
from schemas import ORDER_ITEMS, ORDERS, RESTAURANTS, USERS, Caller, Order, OrderItem, OrderLine, Restaurant
from store import DocumentStore, WriteBatch

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OrderService:
    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def _price_lines(self, lines: Sequence[OrderLine]) -> List[OrderItem]:
        now = self.clock()
        catalog: Dict[str, Restaurant] = {}
        items = []
        for line in lines:
            if not isinstance(line.quantity, int) or isinstance(line.quantity, bool) or line.quantity < 1:
                raise InvalidArgument(f"Quantity must be a positive integer, got {line.quantity!r}.")
            restaurant = catalog.get(line.restaurantId)
            if restaurant is None:
                restaurant = get_restaurant_by_id(self.store, line.restaurantId)
                catalog[line.restaurantId] = restaurant
            if restaurant.bag_price is None:
                raise NotFound(f"Restaurant with id {line.restaurantId} does not have a bag price.")
            items.append(OrderItem(
                restaurant=self.store.ref(RESTAURANTS, line.restaurantId),
                quantity=line.quantity,
                price=restaurant.bag_price * line.quantity,
                # duplicated from the order so items can be filtered by time directly
                createdAt=now,
            ))
        return items

    def place_order(self, caller: Optional[Caller], lines: Sequence[OrderLine]) -> Dict[str, bool]:
        """Record an order for `caller`. Raises a ServiceError on any failure,
        in which case nothing has been written."""
        if caller is None:
            raise Unauthenticated("User is not authenticated.")
        if not lines:
            raise InvalidArgument("An order must contain at least one item.")

        items = self._price_lines(lines)
        total_price = 0
        for item in items:
            total_price += item.price

        order_ref = self.store.ref(ORDERS)
        order = Order(
            for_=self.store.ref(USERS, caller.uid),
            totalPrice=total_price,
            createdAt=items[0].createdAt,
            fulfilled=False,
        )
        batch = WriteBatch().set(order_ref, order.model_dump(by_alias=True))
        for item in items:
            batch.set(self.store.ref(ORDER_ITEMS, parent=order_ref), item.model_dump())
        self.store.commit(batch)

        logger.info(f"Placed order {order_ref.id} for user {caller.uid} with {len(items)} item(s), total {total_price}")
        return {"success": True}
