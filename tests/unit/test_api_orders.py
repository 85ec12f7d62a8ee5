"""Tests for order API endpoints."""

import pytest

from tests.helpers.orders import order_payload


@pytest.fixture
def profile(make_api_profile):
    return make_api_profile(color="#112233", template="classic")


@pytest.fixture
def place_order(client, auth_headers):
    def _place(profile_id, headers=None, **overrides):
        response = client.post("/api/orders", json=order_payload(profile_id, **overrides), headers=headers or auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _place


@pytest.mark.unit
class TestCreateOrder:
    def test_order_copies_profile_design(self, client, auth_headers, user_id, profile):
        response = client.post("/api/orders", json=order_payload(profile["id"]), headers=auth_headers)

        assert response.status_code == 201
        assert response.json()["message"] == "Order created successfully"
        data = response.json()["data"]
        assert data["orderNumber"].startswith("ORD-")
        assert data["userId"] == str(user_id)
        assert data["profileId"] == profile["id"]
        assert data["cardType"] == "personal"
        assert data["cardColor"] == "#112233"
        assert data["cardTemplate"] == "classic"
        assert data["designMode"] == "manual"
        assert data["customerFirstName"] == "Jane"
        assert data["shippingCity"] == "Amman"
        assert data["shippingCountry"] == "Jordan"
        assert data["paymentMethod"] == "cash_on_delivery"
        assert data["status"] == "pending"
        assert float(data["totalAmount"]) == 25.0
        assert data["shippedAt"] is None

    def test_design_override(self, place_order, profile):
        data = place_order(
            profile["id"],
            cardDesign={"color": "#000000", "designMode": "custom", "customDesignUrl": "http://testserver/assets/d.png"},
            paymentMethod="online",
        )

        assert data["cardColor"] == "#000000"
        assert data["cardTemplate"] == "classic"
        assert data["designMode"] == "custom"
        assert data["customDesignUrl"] == "http://testserver/assets/d.png"
        assert data["paymentMethod"] == "online"

    def test_card_type_follows_profile(self, place_order, make_api_profile):
        business = make_api_profile(name="Acme Corp", profile_type="business")

        assert place_order(business["id"])["cardType"] == "business"

    def test_order_numbers_are_unique(self, place_order, profile):
        numbers = {place_order(profile["id"])["orderNumber"] for _ in range(5)}

        assert len(numbers) == 5

    def test_foreign_profile(self, client, other_headers, profile):
        response = client.post("/api/orders", json=order_payload(profile["id"]), headers=other_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "Profile not found or does not belong to you"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"customerInfo": {"firstName": "Jane", "lastName": "Doe", "phone": "+962790000000"}},
            {"shippingInfo": {"address": "", "city": "Amman"}},
            {"totalAmount": -5},
            {"paymentMethod": "barter"},
        ],
    )
    def test_invalid_order(self, client, auth_headers, profile, overrides):
        response = client.post("/api/orders", json=order_payload(profile["id"], **overrides), headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"


@pytest.mark.unit
class TestOwnerOrders:
    def test_my_orders_newest_first(self, client, auth_headers, other_headers, place_order, profile, make_api_profile):
        first = place_order(profile["id"])
        second = place_order(profile["id"])
        foreign_profile = make_api_profile(name="John Roe", headers=other_headers)
        place_order(foreign_profile["id"], headers=other_headers)

        data = client.get("/api/orders/my-orders", headers=auth_headers).json()["data"]

        assert [order["id"] for order in data] == [second["id"], first["id"]]

    def test_get_order(self, client, auth_headers, other_headers, place_order, profile):
        order = place_order(profile["id"])

        assert client.get(f"/api/orders/{order['id']}", headers=auth_headers).json()["data"]["id"] == order["id"]
        response = client.get(f"/api/orders/{order['id']}", headers=other_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Order not found"


@pytest.mark.unit
class TestAdminOrders:
    def test_non_admin_is_forbidden(self, client, auth_headers):
        for method, url in [
            ("GET", "/api/orders/admin/all"),
            ("GET", "/api/orders/admin/statistics"),
            ("PATCH", "/api/orders/admin/1/status"),
            ("DELETE", "/api/orders/admin/1"),
        ]:
            kwargs = {"json": {"status": "shipped"}} if method == "PATCH" else {}
            response = client.request(method, url, headers=auth_headers, **kwargs)
            assert response.status_code == 403
            assert response.json()["message"] == "Access denied. Admin only."

    def test_list_all_with_filter_and_paging(self, client, admin_headers, place_order, profile):
        orders = [place_order(profile["id"]) for _ in range(3)]
        client.patch(
            f"/api/orders/admin/{orders[0]['id']}/status", json={"status": "confirmed"}, headers=admin_headers
        )

        page = client.get("/api/orders/admin/all?limit=2", headers=admin_headers).json()["data"]
        assert page["total"] == 3
        assert page["limit"] == 2
        assert page["offset"] == 0
        assert [order["id"] for order in page["orders"]] == [orders[2]["id"], orders[1]["id"]]
        assert page["orders"][0]["user"]["email"] == "owner@example.com"

        pending = client.get("/api/orders/admin/all?status=pending", headers=admin_headers).json()["data"]
        assert pending["total"] == 2

        assert client.get("/api/orders/admin/all?status=lost", headers=admin_headers).status_code == 400

    def test_status_timestamps(self, client, admin_headers, place_order, profile):
        order = place_order(profile["id"])
        url = f"/api/orders/admin/{order['id']}/status"

        shipped = client.patch(url, json={"status": "shipped"}, headers=admin_headers).json()["data"]
        assert shipped["status"] == "shipped"
        assert shipped["shippedAt"] is not None
        assert shipped["deliveredAt"] is None

        delivered = client.patch(url, json={"status": "delivered"}, headers=admin_headers).json()["data"]
        assert delivered["deliveredAt"] is not None
        assert delivered["shippedAt"] == shipped["shippedAt"]

    def test_any_transition_is_accepted(self, client, admin_headers, place_order, profile):
        order = place_order(profile["id"])
        url = f"/api/orders/admin/{order['id']}/status"

        client.patch(url, json={"status": "delivered"}, headers=admin_headers)
        response = client.patch(url, json={"status": "pending"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "pending"

    def test_admin_notes_only_change_when_sent(self, client, admin_headers, place_order, profile):
        order = place_order(profile["id"])
        url = f"/api/orders/admin/{order['id']}/status"

        client.patch(url, json={"status": "confirmed", "adminNotes": "Call first"}, headers=admin_headers)
        kept = client.patch(url, json={"status": "processing"}, headers=admin_headers).json()["data"]
        assert kept["adminNotes"] == "Call first"

        cleared = client.patch(url, json={"status": "processing", "adminNotes": None}, headers=admin_headers)
        assert cleared.json()["data"]["adminNotes"] is None

    def test_invalid_status(self, client, admin_headers, place_order, profile):
        order = place_order(profile["id"])

        response = client.patch(
            f"/api/orders/admin/{order['id']}/status", json={"status": "lost"}, headers=admin_headers
        )

        assert response.status_code == 400

    def test_unknown_order(self, client, admin_headers):
        response = client.patch("/api/orders/admin/999999/status", json={"status": "shipped"}, headers=admin_headers)

        assert response.status_code == 404

    def test_statistics(self, client, admin_headers, place_order, profile):
        orders = [place_order(profile["id"], totalAmount=amount) for amount in (10, 15.5, 40)]
        for order in orders[:2]:
            client.patch(f"/api/orders/admin/{order['id']}/status", json={"status": "delivered"}, headers=admin_headers)

        data = client.get("/api/orders/admin/statistics", headers=admin_headers).json()["data"]

        assert {row["status"]: row["count"] for row in data["ordersByStatus"]} == {"delivered": 2, "pending": 1}
        assert float(data["totalRevenue"]) == 25.5
        assert data["ordersThisMonth"] == 3
        assert len(data["recentOrders"]) == 3

    def test_delete_order_unblocks_profile_delete(self, client, auth_headers, admin_headers, place_order, profile):
        order = place_order(profile["id"])
        assert client.delete(f"/api/profiles/{profile['id']}", headers=auth_headers).status_code == 400

        response = client.delete(f"/api/orders/admin/{order['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Order deleted successfully"

        assert client.delete(f"/api/profiles/{profile['id']}", headers=auth_headers).status_code == 200
