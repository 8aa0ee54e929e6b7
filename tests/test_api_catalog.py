"""
Accounts, products and company settings over HTTP.
"""


class TestAccounts:
    def test_create_and_filter_by_type(self, client):
        client.post("/api/accounts", json={"name": "Acme", "type": "customer"})
        client.post("/api/accounts", json={"name": "Parts Ltd", "type": "supplier", "phone": "555"})

        suppliers = client.get("/api/accounts?type=supplier").json()
        assert [a["name"] for a in suppliers] == ["Parts Ltd"]
        assert len(client.get("/api/accounts").json()) == 2

    def test_unknown_type_filter_rejected(self, client):
        client.post("/api/accounts", json={"name": "Acme", "type": "customer"})
        response = client.get("/api/accounts?type=vendor")
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid account type 'vendor'"}

    def test_missing_type_rejected(self, client):
        response = client.post("/api/accounts", json={"name": "Nobody"})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid or missing account type."}

    def test_update_partial(self, client):
        account = client.post("/api/accounts", json={"name": "Acme", "type": "customer"}).json()
        response = client.put(f"/api/accounts/{account['id']}", json={"status": "inactive"})
        assert response.status_code == 200
        assert response.json()["status"] == "inactive"
        assert response.json()["name"] == "Acme"

    def test_invalid_status_rejected(self, client):
        account = client.post("/api/accounts", json={"name": "Acme", "type": "customer"}).json()
        response = client.put(f"/api/accounts/{account['id']}", json={"status": "dormant"})
        assert response.status_code == 400

    def test_delete_unused_account(self, client):
        account = client.post("/api/accounts", json={"name": "Acme", "type": "customer"}).json()
        response = client.delete(f"/api/accounts/{account['id']}")
        assert response.json() == {"message": "Account deleted successfully"}
        assert client.get(f"/api/accounts/{account['id']}").status_code == 404

    def test_delete_account_with_orders_conflicts(self, client):
        account = client.post("/api/accounts", json={"name": "Acme", "type": "supplier"}).json()
        product = client.post("/api/products", json={"name": "Bolt"}).json()
        client.post(
            "/api/orders",
            json={
                "account_id": account["id"],
                "type": "purchase",
                "items": [{"product_id": product["id"], "quantity": 5, "price": 1}],
            },
        )

        response = client.delete(f"/api/accounts/{account['id']}")
        assert response.status_code == 409
        assert "inactive" in response.json()["error"]

    def test_accounts_are_tenant_scoped(self, client, other_client):
        account = client.post("/api/accounts", json={"name": "Acme", "type": "customer"}).json()
        assert other_client.get(f"/api/accounts/{account['id']}").status_code == 404
        assert other_client.delete(f"/api/accounts/{account['id']}").status_code == 404
        assert client.get(f"/api/accounts/{account['id']}").status_code == 200


class TestProducts:
    def test_create_with_opening_stock(self, client):
        response = client.post(
            "/api/products",
            json={"name": "Almonds", "unit": "kg", "price": 1200, "cost_price": 1000, "in_stock": 50},
        )
        assert response.status_code == 201
        product = response.json()
        assert product["in_stock"] == 50
        assert product["unit"] == "kg"

        movements = client.get(f"/api/products/{product['id']}/movements").json()
        assert [(m["type"], m["quantity"]) for m in movements] == [("adjustment", 50)]

    def test_update_ignores_stock(self, client):
        product = client.post("/api/products", json={"name": "Bolt", "in_stock": 5}).json()
        response = client.put(
            f"/api/products/{product['id']}", json={"price": 3, "in_stock": 999}
        )
        assert response.status_code == 200
        assert response.json()["price"] == 3
        assert response.json()["in_stock"] == 5

    def test_negative_price_rejected(self, client):
        response = client.post("/api/products", json={"name": "Bolt", "price": -1})
        assert response.status_code == 400

    def test_delete_unused_product(self, client):
        product = client.post("/api/products", json={"name": "Bolt", "in_stock": 5}).json()
        response = client.delete(f"/api/products/{product['id']}")
        assert response.json() == {"message": "Product deleted successfully"}
        assert client.get(f"/api/products/{product['id']}").status_code == 404

    def test_delete_product_on_order_conflicts(self, client):
        account = client.post("/api/accounts", json={"name": "Acme", "type": "supplier"}).json()
        product = client.post("/api/products", json={"name": "Bolt"}).json()
        client.post(
            "/api/orders",
            json={
                "account_id": account["id"],
                "type": "purchase",
                "items": [{"product_id": product["id"], "quantity": 5, "price": 1}],
            },
        )
        response = client.delete(f"/api/products/{product['id']}")
        assert response.status_code == 409
        assert response.json() == {"error": "Cannot delete: product is associated with existing orders."}

    def test_products_listed_by_name(self, client):
        for name in ("Cashews", "Almonds", "Raisins"):
            client.post("/api/products", json={"name": name})
        assert [p["name"] for p in client.get("/api/products").json()] == ["Almonds", "Cashews", "Raisins"]


class TestSettings:
    def test_missing_settings_is_404(self, client):
        response = client.get("/api/settings")
        assert response.status_code == 404
        assert response.json() == {"error": "Company settings not found"}

    def test_save_is_an_upsert(self, client):
        client.post("/api/settings", json={"name": "Nut House", "currency": "PKR"})
        client.post("/api/settings", json={"name": "Nut House Ltd", "currency": "PKR", "phone": "123"})

        settings = client.get("/api/settings").json()
        assert settings["name"] == "Nut House Ltd"
        assert settings["phone"] == "123"

    def test_settings_are_per_tenant(self, client, other_client):
        client.post("/api/settings", json={"name": "Nut House"})
        assert other_client.get("/api/settings").status_code == 404


def test_unknown_route_uses_error_body(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert "error" in response.json()
