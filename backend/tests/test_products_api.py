import io

import pytest
from openpyxl import load_workbook

from arbati.models.user import UserRole


def test_product_crud(client, admin_headers):
    created = client.post("/products", json={
        "name": "Brake Pad", "sku": "BP-01", "mufrad_price": 12000, "jumla_price": 10000, "stock_quantity": 40,
    }, headers=admin_headers)
    assert created.status_code == 201
    product_id = created.json()["id"]

    assert client.post("/products", json={"name": "Copy", "sku": "BP-01"}, headers=admin_headers).status_code == 409

    updated = client.put(f"/products/{product_id}", json={"mufrad_price": 12500}, headers=admin_headers)
    assert updated.json()["mufradPrice"] == 12500

    listed = client.get("/products", params={"search": "brake"}, headers=admin_headers).json()
    assert listed["pagination"]["total"] == 1

    assert client.delete(f"/products/{product_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/products/{product_id}", headers=admin_headers).status_code == 404


def test_product_on_invoice_cannot_be_deleted(client, admin_headers, product):
    client.post("/invoices", json={"items": [{"product_id": product.id, "quantity": 1}]}, headers=admin_headers)
    assert client.delete(f"/products/{product.id}", headers=admin_headers).status_code == 400


def test_employee_cannot_edit_products(client, headers_for, product):
    response = client.put(f"/products/{product.id}", json={"mufrad_price": 1}, headers=headers_for(UserRole.EMPLOYEE))
    assert response.status_code == 403


def test_motorcycle_crud_tracks_status(client, admin_headers):
    created = client.post("/motorcycles", json={
        "name": "Honda Wave", "sku": "MC-WAVE", "usd_retail_price": 1100, "usd_wholesale_price": 980,
    }, headers=admin_headers).json()
    assert created["status"] == "OUT_OF_STOCK"

    updated = client.put(f"/motorcycles/{created['id']}", json={"stock_quantity": 5}, headers=admin_headers).json()
    assert updated["status"] == "IN_STOCK"

    in_stock = client.get("/motorcycles", params={"status": "IN_STOCK"}, headers=admin_headers).json()
    assert [m["sku"] for m in in_stock["motorcycles"]] == ["MC-WAVE"]


def test_export_print_html(client, admin_headers, product):
    response = client.post("/products/export", json={
        "format": "html", "columns": ["name", "sku"], "options": {"language": "ku"},
    }, headers=admin_headers)
    assert response.status_code == 200
    assert "window.print()" in response.text
    assert 'dir="rtl"' in response.text
    assert "شەمعە" in response.text
    assert response.headers["content-security-policy"].startswith("default-src 'none'")


def test_export_xlsx_current_page(client, admin_headers, db, product):
    other = client.post("/products", json={"name": "Chain", "sku": "CH-01", "mufrad_price": 7000},
                        headers=admin_headers).json()
    response = client.post("/products/export", json={
        "format": "xlsx", "scope": "current", "ids": [other["id"], product.id],
        "columns": ["sku", "mufrad_price"], "options": {"language": "en"},
    }, headers=admin_headers)
    assert response.status_code == 200
    assert "products-" in response.headers["content-disposition"]

    ws = load_workbook(io.BytesIO(response.content))["Products"]
    rows = [[c.value for c in row] for row in ws.iter_rows()]
    assert rows[0] == ["SKU", "Retail Price (IQD)"]
    assert rows[1:] == [["CH-01", 7000], ["SP-001", 5000]]


def test_export_pdf(client, admin_headers, product):
    response = client.post("/products/export", json={"format": "pdf", "options": {"language": "en"}},
                           headers=admin_headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_export_unknown_column(client, admin_headers):
    response = client.post("/products/export", json={"format": "xlsx", "columns": ["secret"]}, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.parametrize("fmt", ["html", "pdf", "xlsx"])
def test_export_with_no_columns_is_rejected(client, admin_headers, product, fmt):
    response = client.post("/products/export", json={"format": fmt, "columns": []}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Select at least one column"


def test_export_needs_export_permission(client, headers_for):
    response = client.post("/products/export", json={"format": "xlsx"}, headers=headers_for(UserRole.CASHIER))
    assert response.status_code == 403


def test_ui_settings(client, admin_headers):
    body = client.get("/settings/ui", headers=admin_headers).json()
    assert body["defaultLocale"] == "ku"
    assert body["rtlLocales"] == ["ar", "ku"]
    assert body["fontSize"] == 90
