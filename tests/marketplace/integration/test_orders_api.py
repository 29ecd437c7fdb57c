"""Integration tests for the Orders API endpoints."""

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from marketplace.api import register_error_handlers, router
from marketplace.domain import marketplace


@pytest.fixture()
def client():
    app = FastAPI()

    @app.middleware("http")
    async def domain_context(request: Request, call_next):
        with marketplace.domain_context():
            return await call_next(request)

    register_error_handlers(app)
    app.include_router(router)
    return TestClient(app)


def _as(account):
    return {"X-Account-Id": str(account.id)}


@pytest.fixture()
def product(enterprise, seed_product):
    return seed_product(str(enterprise.id), name="Product A", price=10.0, warehouses={"W1": 5})


@pytest.fixture()
def placed(client, buyer, product):
    response = client.post(
        "/orders",
        json={"items": [{"product_id": str(product.id), "quantity": 3}], "total_amount": 30},
        headers=_as(buyer),
    )
    assert response.status_code == 201
    return response.json()


class TestAuthentication:
    def test_missing_header(self, client):
        assert client.get("/orders/my-orders").status_code == 401

    def test_unknown_account(self, client):
        response = client.get("/orders/my-orders", headers={"X-Account-Id": "nobody"})
        assert response.status_code == 401

    def test_blocked_account_is_refused_before_role_check(self, client, seed_account):
        blocked = seed_account("buyer", name="Blocked Buyer", is_blocked=True)
        response = client.get("/orders/enterprise-orders", headers=_as(blocked))
        assert response.status_code == 403
        assert response.json()["error_type"] == "AccountBlocked"


class TestPlaceOrderEndpoint:
    def test_returns_pending_order(self, placed, enterprise, product):
        assert placed["status"] == "pending"
        assert placed["total_amount"] == 30
        assert placed["enterprise_id"] == str(enterprise.id)
        assert placed["items"][0]["product_id"] == str(product.id)
        assert placed["items"][0]["assigned_warehouse"] is None

    def test_total_mismatch_is_400(self, client, buyer, product):
        response = client.post(
            "/orders",
            json={"items": [{"product_id": str(product.id), "quantity": 3}], "total_amount": 20},
            headers=_as(buyer),
        )
        assert response.status_code == 400
        assert response.json()["error_type"] == "TotalMismatch"

    def test_empty_cart_is_400(self, client, buyer):
        response = client.post("/orders", json={"items": [], "total_amount": 0}, headers=_as(buyer))
        assert response.status_code == 400
        assert response.json()["detail"] == "No order items"

    def test_unknown_product_is_404(self, client, buyer):
        response = client.post(
            "/orders",
            json={"items": [{"product_id": "ghost", "quantity": 1}], "total_amount": 1},
            headers=_as(buyer),
        )
        assert response.status_code == 404

    def test_mixed_enterprises_is_409(self, client, buyer, product, other_enterprise, seed_product):
        other = seed_product(str(other_enterprise.id), price=5.0)
        response = client.post(
            "/orders",
            json={
                "items": [
                    {"product_id": str(product.id), "quantity": 1},
                    {"product_id": str(other.id), "quantity": 1},
                ],
                "total_amount": 15,
            },
            headers=_as(buyer),
        )
        assert response.status_code == 409
        assert response.json()["error_type"] == "MixedEnterpriseOrder"

    def test_orphan_product_is_opaque_500(self, client, buyer, seed_product):
        orphan = seed_product(None, name="Orphan")
        response = client.post(
            "/orders",
            json={"items": [{"product_id": str(orphan.id), "quantity": 1}], "total_amount": 10},
            headers=_as(buyer),
        )
        assert response.status_code == 500
        assert response.json() == {
            "error_type": "MissingEnterpriseLink",
            "detail": "Internal error processing the request",
        }

    def test_enterprise_cannot_place(self, client, enterprise, product):
        response = client.post(
            "/orders",
            json={"items": [{"product_id": str(product.id), "quantity": 1}], "total_amount": 10},
            headers=_as(enterprise),
        )
        assert response.status_code == 403


class TestListingEndpoints:
    def test_my_orders(self, client, buyer, placed):
        response = client.get("/orders/my-orders", headers=_as(buyer))
        assert response.status_code == 200
        assert [o["id"] for o in response.json()] == [placed["id"]]

    def test_enterprise_orders(self, client, enterprise, placed):
        response = client.get("/orders/enterprise-orders", headers=_as(enterprise))
        assert [o["id"] for o in response.json()] == [placed["id"]]

    def test_orders_carry_buyer_and_enterprise_summaries(self, client, admin, buyer, enterprise, placed):
        expected_buyer = {"id": str(buyer.id), "name": "Bea Buyer", "email": "buyer@example.com"}
        expected_enterprise = {"id": str(enterprise.id), "name": "Acme Tools"}
        assert placed["buyer"] == expected_buyer
        assert placed["enterprise"] == expected_enterprise

        for path, caller in [
            ("/orders/my-orders", buyer),
            ("/orders/enterprise-orders", enterprise),
            ("/orders/all", admin),
        ]:
            (order,) = client.get(path, headers=_as(caller)).json()
            assert order["buyer"] == expected_buyer
            assert order["enterprise"] == expected_enterprise

    def test_all_orders_with_filters(self, client, admin, buyer, placed):
        response = client.get("/orders/all", params={"buyerId": str(buyer.id)}, headers=_as(admin))
        assert [o["id"] for o in response.json()] == [placed["id"]]

        response = client.get("/orders/all", params={"enterpriseId": "someone-else"}, headers=_as(admin))
        assert response.json() == []

    def test_all_orders_is_admin_only(self, client, buyer, placed):
        assert client.get("/orders/all", headers=_as(buyer)).status_code == 403

    def test_enterprise_orders_rejects_buyers(self, client, buyer):
        assert client.get("/orders/enterprise-orders", headers=_as(buyer)).status_code == 403


class TestStatusEndpoint:
    def _approve(self, client, enterprise, placed, warehouse="W1"):
        return client.put(
            f"/orders/{placed['id']}/status",
            json={
                "status": "approved",
                "items": [{"item_id": i["id"], "assigned_warehouse": warehouse} for i in placed["items"]],
            },
            headers=_as(enterprise),
        )

    def test_approve(self, client, enterprise, placed, product, stock_of):
        response = self._approve(client, enterprise, placed)

        assert response.status_code == 200
        assert response.json()["status"] == "approved"
        assert response.json()["items"][0]["assigned_warehouse"] == "W1"
        assert stock_of(product.id, "W1") == 2

    def test_insufficient_stock_is_409(self, client, enterprise, placed, product, stock_of):
        from marketplace.product.product import Product
        from protean.utils.globals import current_domain

        repo = current_domain.repository_for(Product)
        stored = repo.get(str(product.id))
        stored.warehouse_named("W1").stock_level = 2
        repo.add(stored)

        response = self._approve(client, enterprise, placed)

        body = response.json()
        assert response.status_code == 409
        assert body["error_type"] == "InsufficientStock"
        assert (body["available"], body["needed"]) == (2, 3)
        assert stock_of(product.id, "W1") == 2

    def test_missing_assignments_is_400(self, client, enterprise, placed):
        response = client.put(f"/orders/{placed['id']}/status", json={"status": "approved"}, headers=_as(enterprise))
        assert response.status_code == 400

    def test_other_enterprise_is_403(self, client, other_enterprise, placed):
        response = client.put(
            f"/orders/{placed['id']}/status", json={"status": "rejected"}, headers=_as(other_enterprise)
        )
        assert response.status_code == 403

    def test_unknown_order_is_404(self, client, admin):
        response = client.put("/orders/ghost/status", json={"status": "shipped"}, headers=_as(admin))
        assert response.status_code == 404

    def test_unknown_status_is_400(self, client, admin, placed):
        response = client.put(f"/orders/{placed['id']}/status", json={"status": "misplaced"}, headers=_as(admin))
        assert response.status_code == 400

    def test_reapproval_is_409(self, client, enterprise, placed):
        self._approve(client, enterprise, placed)
        assert self._approve(client, enterprise, placed).status_code == 409

    def test_admin_ships(self, client, admin, enterprise, placed):
        self._approve(client, enterprise, placed)
        response = client.put(f"/orders/{placed['id']}/status", json={"status": "shipped"}, headers=_as(admin))
        assert response.status_code == 200
        assert response.json()["status"] == "shipped"
