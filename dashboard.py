"""
Restaurant owner dashboard

Order counts and earnings for the caller's restaurant, all-time and over the
last 24 hours. "Orders" are counted per order item, not per distinct order.

Failures come back as {"success": False, "reason": ...} instead of raising.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from errors import NotFound, PermissionDenied, ServiceError, Unauthenticated
from lookups import find_owned_restaurant, get_user_by_id
from orders import utc_now
from schemas import ORDER_ITEMS, USERS, Caller
from store import Count, DocumentRef, DocumentStore, Sum

logger = logging.getLogger(__name__)

ROLLING_WINDOW = timedelta(seconds=86400)


class DashboardService:
    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def _resolve_restaurant(self, caller: Optional[Caller]) -> DocumentRef:
        if caller is None:
            raise Unauthenticated("User is not authenticated.")
        user = get_user_by_id(self.store, caller.uid)
        if user.account_type != "business":
            raise PermissionDenied(f"User with id {caller.uid} is not a business account.")
        restaurant = find_owned_restaurant(self.store, self.store.ref(USERS, caller.uid))
        if restaurant is None:
            raise NotFound(f"User with id {caller.uid} has no associated restaurant.")
        return restaurant

    def _aggregate(self, restaurant: DocumentRef) -> Dict[str, Any]:
        items = self.store.collection_group(ORDER_ITEMS).where("restaurant", "==", restaurant)
        recent = items.where("createdAt", ">=", self.clock() - ROLLING_WINDOW)

        with ThreadPoolExecutor(max_workers=2) as pool:
            last_day = pool.submit(self.store.aggregate, recent, {
                "ordersLast24Hours": Count(),
                "earningsLast24Hours": Sum("price"),
            })
            all_time = pool.submit(self.store.aggregate, items, {
                "ordersAllTime": Count(),
                "earningsAllTime": Sum("price"),
            })
            return {**last_day.result(), **all_time.result()}

    def get_dashboard(self, caller: Optional[Caller]) -> Dict[str, Any]:
        try:
            restaurant = self._resolve_restaurant(caller)
            stats = self._aggregate(restaurant)
        except ServiceError as e:
            logger.info(f"Dashboard unavailable: {e.message}")
            return {"success": False, "reason": e.message}
        return {"success": True, **stats}
