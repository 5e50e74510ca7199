"""
Tests for the restaurant owner dashboard.
"""

from datetime import timedelta

import pytest

from conftest import NOW, seed
from dashboard import DashboardService
from errors import Unavailable
from orders import OrderService
from schemas import RESTAURANTS, USERS, Caller, OrderLine

OWNER = Caller(uid="owner-1")


def place(store, when, restaurant_id, quantity=1, uid="student-1"):
    OrderService(store, clock=lambda: when).place_order(
        Caller(uid=uid), [OrderLine(restaurantId=restaurant_id, quantity=quantity)]
    )


def set_price(store, restaurant_id, price):
    doc = store.get(store.ref(RESTAURANTS, restaurant_id))
    seed(store, RESTAURANTS, {**doc.data, "bag_price": price}, id=restaurant_id)


class TestDashboard:

    def test_rolling_and_all_time_totals(self, store, clock, owner, student):
        set_price(store, "bagels", 5.0)
        place(store, NOW - timedelta(hours=25), "bagels")
        set_price(store, "bagels", 7.0)
        place(store, NOW - timedelta(hours=1), "bagels")
        set_price(store, "bagels", 3.0)
        place(store, NOW - timedelta(minutes=30), "bagels")

        result = DashboardService(store, clock).get_dashboard(OWNER)

        assert result == {
            "success": True,
            "ordersLast24Hours": 2,
            "earningsLast24Hours": 10.0,
            "ordersAllTime": 3,
            "earningsAllTime": 15.0,
        }

    def test_counts_items_not_orders(self, store, clock, owner, student):
        OrderService(store, clock).place_order(Caller(uid="student-1"), [
            OrderLine(restaurantId="bagels", quantity=1),
            OrderLine(restaurantId="bagels", quantity=2),
        ])
        result = DashboardService(store, clock).get_dashboard(OWNER)
        assert result["ordersAllTime"] == 2
        assert result["earningsAllTime"] == 15.0

    def test_item_exactly_one_day_old_is_in_window(self, store, clock, owner, student):
        place(store, NOW - timedelta(seconds=86400), "bagels")
        result = DashboardService(store, clock).get_dashboard(OWNER)
        assert result["ordersLast24Hours"] == 1

    def test_other_restaurants_are_excluded(self, store, clock, owner, student):
        seed(store, RESTAURANTS, {"name": "Tacos", "bag_price": 8.0}, id="tacos")
        place(store, NOW, "tacos", quantity=4)
        place(store, NOW, "bagels")

        result = DashboardService(store, clock).get_dashboard(OWNER)
        assert result["ordersAllTime"] == 1
        assert result["earningsAllTime"] == 5.0

    def test_no_orders_gives_zeros(self, store, clock, owner):
        result = DashboardService(store, clock).get_dashboard(OWNER)
        assert result == {
            "success": True,
            "ordersLast24Hours": 0,
            "earningsLast24Hours": 0,
            "ordersAllTime": 0,
            "earningsAllTime": 0,
        }

    def test_repeated_calls_are_identical(self, store, clock, owner, student):
        place(store, NOW - timedelta(hours=2), "bagels", quantity=3)
        service = DashboardService(store, clock)
        assert service.get_dashboard(OWNER) == service.get_dashboard(OWNER)

    def test_price_change_does_not_rewrite_history(self, store, clock, owner, student):
        place(store, NOW, "bagels", quantity=2)
        before = DashboardService(store, clock).get_dashboard(OWNER)
        set_price(store, "bagels", 99.0)
        after = DashboardService(store, clock).get_dashboard(OWNER)
        assert before == after
        assert after["earningsAllTime"] == 10.0

    def test_unauthenticated(self, store, clock):
        result = DashboardService(store, clock).get_dashboard(None)
        assert result["success"] is False
        assert "not authenticated" in result["reason"]

    def test_individual_account_runs_no_aggregation(self, store, clock, student, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("aggregate should not be called")

        monkeypatch.setattr(store, "aggregate", fail)
        result = DashboardService(store, clock).get_dashboard(Caller(uid="student-1"))
        assert result == {
            "success": False,
            "reason": "User with id student-1 is not a business account.",
        }

    def test_unknown_user(self, store, clock):
        result = DashboardService(store, clock).get_dashboard(Caller(uid="ghost"))
        assert result["success"] is False
        assert "ghost" in result["reason"]

    @pytest.mark.parametrize("data", [
        {"account_type": "business", "email": "owner@campus"},
        {"account_type": "admin"},
    ])
    def test_malformed_user_document_fails_soft(self, store, clock, data):
        seed(store, USERS, data, id="odd-1")
        result = DashboardService(store, clock).get_dashboard(Caller(uid="odd-1"))
        assert result == {
            "success": False,
            "reason": "User with id odd-1 has malformed data.",
        }

    def test_business_without_restaurant(self, store, clock):
        seed(store, USERS, {"name": "New owner", "account_type": "business"}, id="owner-2")
        result = DashboardService(store, clock).get_dashboard(Caller(uid="owner-2"))
        assert result == {
            "success": False,
            "reason": "User with id owner-2 has no associated restaurant.",
        }

    def test_multiple_restaurants_uses_first_by_id(self, store, clock, owner, student):
        seed(store, RESTAURANTS, {"name": "Another", "bag_price": 2.0, "owner": owner}, id="aaa")
        place(store, NOW, "bagels")
        place(store, NOW, "aaa")
        result = DashboardService(store, clock).get_dashboard(OWNER)
        assert result["earningsAllTime"] == 2.0

    def test_store_failure_is_reported_not_raised(self, store, clock, owner, monkeypatch):
        def unavailable(*args, **kwargs):
            raise Unavailable("Document store unavailable: timed out")

        monkeypatch.setattr(store, "aggregate", unavailable)
        result = DashboardService(store, clock).get_dashboard(OWNER)
        assert result["success"] is False
        assert "unavailable" in result["reason"]


@pytest.mark.parametrize("hours_ago,expected", [(23, 1), (25, 0)])
def test_window_boundary(store, clock, owner, student, hours_ago, expected):
    place(store, NOW - timedelta(hours=hours_ago), "bagels")
    assert DashboardService(store, clock).get_dashboard(OWNER)["ordersLast24Hours"] == expected
