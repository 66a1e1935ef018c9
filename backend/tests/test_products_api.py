"""End-to-end tests for the /api/products endpoints."""

import pytest
from fastapi.testclient import TestClient

from pos_api.db.errors import StoreError, StoreErrorKind
from pos_api.main import app
from pos_api.services import products as product_service
from tests.factories import add_product, add_purchase, add_sale, load_product

WIDGET = {"name": "Widget", "categoryId": "cat1", "price": 10, "stock": 5}


@pytest.fixture(autouse=True)
def _seed_categories(categories):
    return categories


class TestListProducts:

    def test_lists_only_active_products(self, client):
        add_product("Kopi")
        add_product("Teh", active=False)

        response = client.get("/api/products/")

        assert response.status_code == 200
        names = [p["name"] for p in response.json()]
        assert names == ["Kopi"]

    def test_projects_fields_and_nested_category(self, client):
        add_product("Kopi", barcode="899123")

        item = client.get("/api/products/").json()[0]

        assert set(item) == {
            "id", "name", "price", "stock", "barcode",
            "createdAt", "updatedAt", "category",
        }
        assert item["category"] == {"id": "cat1", "name": "Minuman"}
        assert item["barcode"] == "899123"

    def test_include_categories_returns_catalog(self, client):
        add_product("Kopi")

        body = client.get("/api/products/", params={"include_categories": "true"}).json()

        assert [p["name"] for p in body["products"]] == ["Kopi"]
        assert sorted(c["id"] for c in body["categories"]) == ["cat1", "cat2"]


class TestGetProduct:

    def test_returns_product_with_active_flag(self, client):
        product_id = add_product("Kopi", active=False)

        response = client.get(f"/api/products/{product_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == product_id
        assert body["active"] is False
        assert body["category"]["name"] == "Minuman"

    def test_unknown_id_is_not_found(self, client):
        response = client.get("/api/products/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "Produk tidak ditemukan"}


class TestCreateProduct:

    def test_creates_product(self, client):
        response = client.post("/api/products/", json={**WIDGET, "barcode": "123"})

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Widget"
        assert body["categoryId"] == "cat1"
        assert body["price"] == 10
        assert body["stock"] == 5
        assert body["barcode"] == "123"
        assert body["active"] is True
        assert body["id"]

    def test_duplicate_of_active_product_is_rejected(self, client):
        assert client.post("/api/products/", json=WIDGET).status_code == 201

        response = client.post("/api/products/", json=WIDGET)

        assert response.status_code == 400
        assert response.json() == {"error": "Produk sudah ada"}

    def test_same_name_as_inactive_product_reactivates_it(self, client):
        product_id = add_product("Widget", price=3, stock=1, active=False)

        response = client.post(
            "/api/products/", json={**WIDGET, "categoryId": "cat2"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["id"] == product_id
        assert body["active"] is True
        assert body["price"] == 10
        assert body["stock"] == 5
        assert body["categoryId"] == "cat2"

    @pytest.mark.parametrize("missing", ["name", "categoryId", "price", "stock"])
    def test_missing_required_field(self, client, missing):
        payload = {k: v for k, v in WIDGET.items() if k != missing}

        response = client.post("/api/products/", json=payload)

        assert response.status_code == 400
        assert response.json() == {
            "error": "Nama, Kategori, Harga, dan Stok diperlukan!"
        }

    def test_zero_stock_counts_as_missing(self, client):
        response = client.post("/api/products/", json={**WIDGET, "stock": 0})

        assert response.status_code == 400
        assert "diperlukan" in response.json()["error"]

    @pytest.mark.parametrize(
        "override",
        [{"price": -1}, {"stock": -3}, {"price": "10"}, {"name": 42}, {"barcode": 7}],
    )
    def test_schema_violation_is_invalid_data(self, client, override):
        response = client.post("/api/products/", json={**WIDGET, **override})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Data tidak valid")

    def test_name_clash_wins_over_unknown_category(self, client):
        add_product("Widget")

        response = client.post("/api/products/", json={**WIDGET, "categoryId": "nope"})

        assert response.status_code == 400
        assert response.json() == {"error": "Produk sudah ada"}

    def test_unknown_category_is_rejected(self, client):
        response = client.post("/api/products/", json={**WIDGET, "categoryId": "nope"})

        assert response.status_code == 400
        assert response.json() == {"error": "Kategori tidak ditemukan"}

    def test_non_object_body_is_invalid_data(self, client):
        response = client.post("/api/products/", json=["Widget"])

        assert response.status_code == 400
        assert response.json() == {"error": "Data tidak valid"}


class TestUpdateProduct:

    def test_partial_update(self, client):
        product_id = add_product("Kopi", price=10)

        response = client.put(
            f"/api/products/{product_id}", json={"price": 12.5, "barcode": "555"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["price"] == 12.5
        assert body["barcode"] == "555"
        assert body["name"] == "Kopi"

    def test_empty_body_changes_nothing(self, client):
        product_id = add_product("Kopi", price=10, stock=5, barcode="1")

        response = client.put(f"/api/products/{product_id}", json={})

        assert response.status_code == 200
        body = response.json()
        assert (body["name"], body["price"], body["stock"], body["barcode"]) == (
            "Kopi", 10, 5, "1",
        )
        assert body["active"] is True

    def test_stock_is_not_updatable(self, client):
        product_id = add_product("Kopi", stock=5)

        response = client.put(
            f"/api/products/{product_id}", json={"stock": 99, "name": "Kopi Susu"}
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Kopi Susu"
        assert load_product(product_id).stock == 5

    def test_active_flag_can_be_toggled(self, client):
        product_id = add_product("Kopi")

        client.put(f"/api/products/{product_id}", json={"active": False})
        assert load_product(product_id).active is False

        client.put(f"/api/products/{product_id}", json={"active": True})
        assert load_product(product_id).active is True

    def test_invalid_payload(self, client):
        product_id = add_product("Kopi")

        response = client.put(f"/api/products/{product_id}", json={"price": 0})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Data tidak valid")

    def test_unknown_product(self, client):
        response = client.put("/api/products/missing", json={"name": "X"})

        assert response.status_code == 404
        assert response.json() == {"error": "Produk tidak ditemukan"}

    def test_unknown_category(self, client):
        product_id = add_product("Kopi")

        response = client.put(
            f"/api/products/{product_id}", json={"categoryId": "nope"}
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Kategori tidak ditemukan"}
        assert load_product(product_id).category_id == "cat1"

    def test_rename_to_existing_name_is_duplicate(self, client):
        add_product("Kopi")
        product_id = add_product("Teh")

        response = client.put(f"/api/products/{product_id}", json={"name": "Kopi"})

        assert response.status_code == 400
        assert response.json() == {"error": "Produk sudah ada"}


class TestDeleteProduct:

    def test_product_without_history_is_removed(self, client):
        product_id = add_product("Kopi")

        response = client.delete(f"/api/products/{product_id}")

        assert response.status_code == 200
        assert response.json() == {"message": "Produk dihapus"}
        assert client.get(f"/api/products/{product_id}").status_code == 404

    @pytest.mark.parametrize("record_history", [add_purchase, add_sale])
    def test_product_with_history_is_deactivated(self, client, record_history):
        product_id = add_product("Kopi")
        record_history(product_id)

        response = client.delete(f"/api/products/{product_id}")

        assert response.status_code == 200
        assert response.json() == {"message": "Produk dinonaktifkan"}
        body = client.get(f"/api/products/{product_id}").json()
        assert body["active"] is False
        assert client.get("/api/products/").json() == []

    def test_unknown_product(self, client):
        response = client.delete("/api/products/missing")

        assert response.status_code == 404
        assert response.json() == {"error": "Produk tidak ditemukan"}

    def test_create_delete_roundtrip(self, client):
        created = client.post("/api/products/", json=WIDGET)
        assert created.status_code == 201
        assert client.post("/api/products/", json=WIDGET).status_code == 400

        product_id = created.json()["id"]
        deleted = client.delete(f"/api/products/{product_id}")

        assert deleted.json() == {"message": "Produk dihapus"}
        assert client.get(f"/api/products/{product_id}").status_code == 404


class TestBulkDelete:

    def test_reports_each_outcome(self, client):
        plain = add_product("Kopi")
        sold = add_product("Teh")
        add_sale(sold)

        response = client.post(
            "/api/products/bulk-delete", json={"ids": [plain, sold, "ghost"]}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Produk dihapus"
        assert body["results"] == [
            {"id": plain, "outcome": "deleted", "error": None},
            {"id": sold, "outcome": "deactivated", "error": None},
            {"id": "ghost", "outcome": "not_found", "error": None},
        ]
        assert load_product(plain) is None
        assert load_product(sold).active is False

    def test_delete_method_with_body(self, client):
        product_id = add_product("Kopi")

        response = client.request(
            "DELETE", "/api/products/", json={"ids": [product_id]}
        )

        assert response.status_code == 200
        assert response.json()["results"][0]["outcome"] == "deleted"

    def test_duplicate_ids_are_processed_once(self, client):
        product_id = add_product("Kopi")

        body = client.post(
            "/api/products/bulk-delete", json={"ids": [product_id, product_id]}
        ).json()

        assert len(body["results"]) == 1

    def test_missing_ids(self, client):
        response = client.post("/api/products/bulk-delete", json={})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Data tidak valid")


class TestInternalErrors:

    @pytest.mark.parametrize(
        "service_function, method, url, payload",
        [
            ("list_active_products", "GET", "/api/products/", None),
            ("get_product", "GET", "/api/products/p1", None),
            ("create_or_reactivate", "POST", "/api/products/", WIDGET),
            ("update_product", "PUT", "/api/products/p1", {"name": "Kopi"}),
            ("delete_product", "DELETE", "/api/products/p1", None),
            ("bulk_delete", "POST", "/api/products/bulk-delete", {"ids": ["p1"]}),
        ],
    )
    def test_store_failure_returns_raw_message(
        self, client, monkeypatch, service_function, method, url, payload
    ):
        def broken(*args, **kwargs):
            raise StoreError(StoreErrorKind.UNKNOWN, "connection lost")

        monkeypatch.setattr(product_service, service_function, broken)

        response = client.request(method, url, json=payload)

        assert response.status_code == 500
        assert response.json() == {"error": "connection lost"}

    def test_unexpected_error_keeps_json_body(self, monkeypatch):
        def broken(db):
            raise RuntimeError("boom")

        monkeypatch.setattr(product_service, "list_active_products", broken)

        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.get("/api/products/")

        assert response.status_code == 500
        assert response.json() == {"error": "boom"}
