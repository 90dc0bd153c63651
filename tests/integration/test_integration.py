"""
Integration Test Suite for the Palma marketplace API
Drives the FastAPI app end to end over an in-memory database
"""

import pytest
from conftest import BROKER_ID, MERCHANT_ID, auth_headers

SHIPPING = {
    "full_name": "Ahmed Customer",
    "phone": "0599333333",
    "email": "customer@palma.com",
    "address": "Main Street 5",
    "city_id": 1,
    "village_id": 102,
    "region_id": 1,
}

class TestPlatformIntegration:
    """Integration tests for the marketplace platform"""

    @pytest.fixture(autouse=True)
    def _setup(self, client, seeded, customer_headers, merchant_headers, broker_headers, admin_headers):
        self.client = client
        self.customer = customer_headers
        self.merchant = merchant_headers
        self.broker = broker_headers
        self.admin = admin_headers

    def test_health_endpoints(self):
        """Test health check endpoints"""
        for endpoint in ["/health", "/health/live", "/health/ready", "/health/startup"]:
            response = self.client.get(endpoint)
            assert response.status_code in [200, 503]
            assert "status" in response.json()

        checks = self.client.get("/health/ready").json()["checks"]
        assert checks["shipments:gateway"]["observedValue"] == "mock"

    def test_metrics_endpoint(self):
        """Test metrics endpoint"""
        response = self.client.get("/metrics")
        assert response.status_code == 200
        data = response.json()
        assert "service" in data
        assert "uptime_seconds" in data

    def test_register_and_login(self):
        """Register a customer and log in with the same credentials"""
        response = self.client.post("/auth/register", json={
            "email": "new@palma.com", "name": "New Buyer", "password": "s3cret!", "role": "CUSTOMER",
        })
        assert response.status_code == 201
        assert response.json()["status"] == "APPROVED"

        again = self.client.post("/auth/register", json={
            "email": "new@palma.com", "name": "Twin", "password": "x", "role": "CUSTOMER",
        })
        assert again.status_code == 409

        response = self.client.post("/auth/login", json={"email": "new@palma.com", "password": "s3cret!"})
        assert response.status_code == 200
        token = response.json()["access_token"]
        me = self.client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["email"] == "new@palma.com"

        bad = self.client.post("/auth/login", json={"email": "new@palma.com", "password": "wrong"})
        assert bad.status_code == 401

    def test_missing_token(self):
        assert self.client.get("/orders/").status_code == 401
        assert self.client.get("/orders/", headers={"Authorization": "Bearer junk"}).status_code == 401

    def test_products_catalog(self):
        """Browse, filter and manage products"""
        response = self.client.get("/products/", params={"sort_by": "price_asc"})
        assert response.status_code == 200
        prices = [p["price"] for p in response.json()]
        assert prices == sorted(prices)
        assert response.json()[0]["merchant_name"] == "Palma Fashion"

        response = self.client.get("/products/", params={"min_price": 200, "max_price": 330})
        assert {p["id"] for p in response.json()} == {"p1", "p3"}

        assert self.client.get("/products/categories").json() == ["electronics", "fashion"]
        assert self.client.get("/products/missing").status_code == 404

        created = self.client.post("/products/", json={"name": "Olive Soap", "price": 12, "category": "home"},
                                   headers=self.merchant)
        assert created.status_code == 201
        product_id = created.json()["id"]

        updated = self.client.put(f"/products/{product_id}", json={"price": 14}, headers=self.merchant)
        assert updated.json()["price"] == 14

        forbidden = self.client.post("/products/", json={"name": "X"}, headers=self.customer)
        assert forbidden.status_code == 403

        assert self.client.delete(f"/products/{product_id}", headers=self.merchant).status_code == 204

    def test_reviews(self):
        response = self.client.post("/products/p2/reviews", json={"rating": 4, "comment": "Comfy"},
                                    headers=self.customer)
        assert response.status_code == 201
        assert response.json() == {"average": 4.0, "count": 1}
        duplicate = self.client.post("/products/p2/reviews", json={"rating": 5}, headers=self.customer)
        assert duplicate.status_code == 409
        assert self.client.post("/products/p2/reviews", json={"rating": 9}, headers=self.customer).status_code == 422

    def test_order_workflow(self):
        """Place, ship, track and cancel an order"""
        response = self.client.post("/orders/", json={"product_id": "p1", "shipping": SHIPPING},
                                    headers=self.customer)
        assert response.status_code == 201
        order = response.json()
        assert order["total_amount"] == 250
        assert order["items"][0]["quantity"] == 1

        missing = self.client.post("/orders/", json={"product_id": "ghost", "shipping": SHIPPING},
                                   headers=self.customer)
        assert missing.status_code == 404
        assert missing.json()["detail"] == "Product not found"

        shipment = self.client.post(f"/shipments/orders/{order['id']}", headers=self.merchant)
        assert shipment.status_code == 201
        shipment_id = shipment.json()["shipment_id"]

        status = self.client.get(f"/shipments/{shipment_id}/status", headers=self.customer).json()
        assert status["status"] == "IN_TRANSIT"
        assert status["label"] == "قيد التوصيل"

        synced = self.client.post("/orders/sync", headers=self.customer).json()
        assert [o["delivery_status"] for o in synced] == ["IN_TRANSIT"]

        mine = self.client.get("/orders/", headers=self.customer).json()
        assert [o["id"] for o in mine] == [order["id"]]
        assert self.client.get("/orders/", headers=self.merchant).json()[0]["status"] == "SHIPPED"

        cancelled = self.client.post(f"/orders/{order['id']}/cancel",
                                     json={"email": "customer@palma.com", "password": "password"},
                                     headers=self.customer)
        assert cancelled.status_code == 200
        assert cancelled.json()["status"] == "CANCELLED"

        final = self.client.put(f"/orders/{order['id']}/status", json={"status": "COMPLETED"},
                                headers=self.merchant)
        assert final.status_code == 409

    def test_checkout_with_referral(self):
        """Checkout a two-line cart through a broker link"""
        cart = [
            {"id": "p1", "name": "Jacket", "price": 250, "quantity": 1, "merchant_id": MERCHANT_ID},
            {"id": "p4", "name": "Headphones", "price": 450, "quantity": 1, "merchant_id": MERCHANT_ID},
        ]
        response = self.client.post("/orders/checkout", json={
            "cart": cart, "payment_method": "COD", "shipping": SHIPPING, "referrer_id": BROKER_ID,
        }, headers=self.customer)
        assert response.status_code == 200
        result = response.json()
        assert result["success"]
        assert len(result["lines"]) == 2

        commissions = self.client.get("/brokers/commissions", headers=self.broker).json()
        assert sorted(c["amount"] for c in commissions) == [5.0, 9.0]

        empty = self.client.post("/orders/checkout", json={"cart": [], "shipping": SHIPPING},
                                 headers=self.customer)
        assert empty.status_code == 400

        zero = dict(cart[0], quantity=0)
        invalid = self.client.post("/orders/checkout", json={"cart": [zero], "shipping": SHIPPING},
                                   headers=self.customer)
        assert invalid.status_code == 422

    def test_cart_summary(self):
        response = self.client.post("/cart/summary", json=[
            {"id": "a", "price": 10, "quantity": 2},
            {"id": "b", "price": 5, "quantity": 1},
        ])
        assert response.json() == {"total": 25, "count": 3}

    def test_locations(self):
        cities = self.client.get("/locations/cities", params={"lang": "en"}).json()
        assert cities[0]["name"] == "Ramallah"
        villages = self.client.get("/locations/cities/2/villages", params={"lang": "en"}).json()
        assert villages[1]["name"] == "Rafidia"
        assert self.client.get("/locations/cities/42/villages").status_code == 404
        resolved = self.client.get("/locations/resolve", params={"id": 102, "kind": "village"}).json()
        assert resolved["name"] == "البيرة"

    def test_approval_gate(self):
        """Admin moves a merchant to review; merchant endpoints close for them"""
        response = self.client.put(f"/users/{MERCHANT_ID}/status", json={"status": "PENDING"},
                                   headers=self.admin)
        assert response.status_code == 200

        blocked = self.client.post("/products/", json={"name": "X"}, headers=self.merchant)
        assert blocked.status_code == 403
        assert blocked.json()["detail"] == "Account pending review"

        self.client.put(f"/users/{MERCHANT_ID}/status", json={"status": "REJECTED"}, headers=self.admin)
        login = self.client.post("/auth/login", json={"email": "merchant@store.com", "password": "password"})
        assert login.status_code == 403

        assert self.client.get("/users/", headers=self.customer).status_code == 403

    def test_broker_withdrawal(self):
        """Broker asks for a payout and the admin approves it"""
        response = self.client.post("/brokers/withdrawals", json={"amount": 300}, headers=self.broker)
        assert response.status_code == 201
        withdrawal_id = response.json()["id"]

        approved = self.client.put(f"/brokers/withdrawals/{withdrawal_id}", json={"status": "APPROVED"},
                                   headers=self.admin)
        assert approved.json()["status"] == "APPROVED"
        broker = self.client.get(f"/users/{BROKER_ID}", headers=self.admin).json()
        assert broker["balance"] == 1200

        clicks = self.client.post(f"/brokers/{BROKER_ID}/clicks").json()
        assert clicks["clicks"] == 1

    def test_root_and_info(self):
        assert self.client.get("/").json()["status"] == "running"
        info = self.client.get("/info").json()
        assert info["currency"] == "ILS"
        assert info["shipments"] == "mock"

def test_token_for_unknown_user_is_rejected(client, seeded):
    other = auth_headers("someone-else", "CUSTOMER")
    assert client.get("/orders/ORD-nope", headers=other).status_code == 401
