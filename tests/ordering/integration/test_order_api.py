"""Integration tests for checkout, customer order and admin order endpoints via TestClient."""

import pytest

CHECKOUT = {
    "country": "RW",
    "recipient_name": "Aline Uwase",
    "recipient_email": "aline@example.com",
    "recipient_phone": "+250788000000",
    "shipping_address": "KG 11 Ave",
    "shipping_city": "Kigali",
}


def _checkout(client, headers=None, items=None, **overrides):
    body = dict(CHECKOUT, **overrides)
    if items is not None:
        body["items"] = items
    return client.post("/checkout", json=body, headers=headers or {})


@pytest.fixture()
def placed(client, shopper, make_product):
    make_product("prod-001", price=10.0, stock=10, currency="RWF")
    response = _checkout(client, shopper, items=[{"product_id": "prod-001", "quantity": 2}])
    assert response.status_code == 201
    return response.json()


class TestCheckout:
    def test_checkout_returns_priced_order(self, client, shopper, make_product):
        make_product("prod-001", price=10.0, stock=5)
        response = _checkout(
            client,
            shopper,
            items=[{"product_id": "prod-001", "quantity": 2}],
            discount={"kind": "percentage", "value": 10},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["total_amount"] == 21.24
        assert body["delivery_status"] == "PENDING"
        assert body["payment_status"] == "PENDING"
        assert body["order_number"].startswith("RW")
        assert len(body["status_history"]) == 1

    def test_checkout_from_cart(self, client, shopper, make_product):
        make_product("prod-001", stock=5)
        client.post("/cart/items", json={"product_id": "prod-001", "quantity": 2}, headers=shopper)

        response = _checkout(client, shopper)
        assert response.status_code == 201
        assert response.json()["items"][0]["quantity"] == 2
        assert client.get("/cart", headers=shopper).json()["items"] == []

    def test_guest_checkout(self, client, make_product):
        make_product("prod-001")
        response = _checkout(client, items=[{"product_id": "prod-001", "quantity": 1}])
        assert response.status_code == 201
        assert response.json()["user_id"] is None

    def test_out_of_stock_is_400(self, client, shopper, make_product):
        make_product("prod-001", stock=1)
        response = _checkout(client, shopper, items=[{"product_id": "prod-001", "quantity": 2}])
        assert response.status_code == 400
        assert "stock" in response.text


class TestCustomerOrders:
    def test_list_my_orders(self, client, shopper, placed):
        response = client.get("/orders", headers=shopper)
        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [placed["id"]]

    def test_get_my_order(self, client, shopper, placed):
        assert client.get(f"/orders/{placed['id']}", headers=shopper).status_code == 200
        response = client.get(f"/orders/number/{placed['order_number']}", headers=shopper)
        assert response.json()["id"] == placed["id"]

    def test_other_users_order_is_404(self, client, placed):
        response = client.get(f"/orders/{placed['id']}", headers={"X-User-Id": "user-999"})
        assert response.status_code == 404

    def test_orders_require_user(self, client):
        assert client.get("/orders").status_code == 401

    def test_timeline(self, client, shopper, placed):
        response = client.get(f"/orders/{placed['id']}/timeline", headers=shopper)
        assert response.status_code == 200
        body = response.json()
        assert body["current_status"] == "PENDING"
        assert len(body["steps"]) == 6
        assert body["steps"][0]["is_current"]


class TestTracking:
    def test_track_with_email(self, client, placed):
        response = client.get(
            "/orders/track", params={"order_number": placed["order_number"], "email": "aline@example.com"}
        )
        assert response.status_code == 200
        assert response.json()["id"] == placed["id"]

    def test_track_with_wrong_phone_is_404(self, client, placed):
        response = client.get("/orders/track", params={"order_number": placed["order_number"], "phone": "000"})
        assert response.status_code == 404

    def test_track_without_contact_is_400(self, client, placed):
        response = client.get("/orders/track", params={"order_number": placed["order_number"]})
        assert response.status_code == 400


class TestAdminOrders:
    def test_delivery_status_change_records_actor(self, client, admin, placed):
        response = client.put(
            f"/admin/orders/{placed['id']}/delivery-status",
            json={"status": "SHIPPED", "tracking_number": "TRK-1", "carrier": "DHL"},
            headers=admin,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["delivery_status"] == "SHIPPED"
        assert body["tracking_number"] == "TRK-1"
        assert body["status_history"][-1]["updated_by"] == "admin-001"

    def test_invalid_transition_is_400(self, client, admin, placed):
        url = f"/admin/orders/{placed['id']}/delivery-status"
        client.put(url, json={"status": "CANCELLED"}, headers=admin)
        response = client.put(url, json={"status": "PROCESSING"}, headers=admin)
        assert response.status_code == 400

        order = client.get(f"/admin/orders/{placed['id']}").json()
        assert order["delivery_status"] == "CANCELLED"
        assert len(order["status_history"]) == 2

    def test_unknown_order_is_404(self, client, admin):
        response = client.put("/admin/orders/missing/delivery-status", json={"status": "SHIPPED"}, headers=admin)
        assert response.status_code == 404

    def test_filter_by_status(self, client, placed):
        response = client.get("/admin/orders", params={"delivery_status": "PENDING"})
        assert [o["id"] for o in response.json()] == [placed["id"]]
        assert client.get("/admin/orders").status_code == 400

    def test_filter_by_user(self, client, placed):
        response = client.get("/admin/orders", params={"user_id": "user-001"})
        assert len(response.json()) == 1

    def test_notes(self, client, placed):
        response = client.put(f"/admin/orders/{placed['id']}/notes", json={"notes": "Fragile"})
        assert response.status_code == 200
        assert response.json()["delivery_notes"] == "Fragile"

    def test_payment_flow(self, client, placed):
        base = f"/admin/orders/{placed['id']}/payment"
        response = client.put(base, json={"payment_method": "CASH"})
        assert response.status_code == 200
        assert response.json()["payment_status"] == "PAID"

        assert client.put(base, json={"payment_method": "CASH"}).status_code == 400

        response = client.put(f"{base}/refund", json={"reason": "Damaged"})
        assert response.json()["payment_status"] == "REFUNDED"

    def test_admin_timeline_for_cancelled_order(self, client, admin, placed):
        client.put(f"/admin/orders/{placed['id']}/delivery-status", json={"status": "CANCELLED"}, headers=admin)
        steps = client.get(f"/admin/orders/{placed['id']}/timeline").json()["steps"]
        assert len(steps) == 7
        assert steps[-1]["status"] == "CANCELLED"
