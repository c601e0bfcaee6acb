import pytest

from arbati.models.customer import Customer
from arbati.models.invoice import Currency, Invoice, InvoiceKind
from arbati.models.motorcycle import Motorcycle, MotorcycleStatus
from arbati.models.product import Product
from arbati.services.invoice_service import calculate_line_total, generate_invoice_number


def _invoice(client, headers, **payload):
    return client.post("/invoices", json=payload, headers=headers)


def test_retail_product_invoice(client, admin_headers, db, product):
    response = _invoice(client, admin_headers, items=[{"product_id": product.id, "quantity": 2}], amount_paid=10000)
    assert response.status_code == 201
    body = response.json()
    assert body["type"] == "retail-product"
    assert body["currency"] == "IQD"
    assert body["status"] == "PAID"
    assert body["total"] == 10000
    assert body["invoiceNumber"].startswith("INVOICE-")

    db.expire_all()
    assert db.get(Product, product.id).stock_quantity == 98
    stored = db.get(Invoice, body["id"])
    assert stored.kind == InvoiceKind.RETAIL_PRODUCT
    assert stored.currency == Currency.IQD


def test_wholesale_product_uses_jumla_price(client, admin_headers, customer, product):
    body = _invoice(
        client, admin_headers,
        sale_type="JUMLA", customer_id=customer.id,
        items=[{"product_id": product.id, "quantity": 10}],
        amount_paid=15000,
    ).json()
    assert body["type"] == "wholesale-product"
    assert body["total"] == 40000
    assert body["amountDue"] == 25000
    assert body["status"] == "PARTIALLY_PAID"
    assert body["saleType"] == "JUMLA"


def test_motorcycle_invoice_is_usd_and_adds_usd_debt(client, admin_headers, db, customer, motorcycle):
    body = _invoice(
        client, admin_headers,
        sale_type="JUMLA", customer_id=customer.id,
        items=[{"motorcycle_id": motorcycle.id, "quantity": 1}],
        amount_paid=300,
    ).json()
    assert body["type"] == "wholesale-motorcycle"
    assert body["currency"] == "USD"
    assert body["total"] == 1300
    assert body["items"][0]["notes"] == f"MOTORCYCLE:{motorcycle.id}"

    db.expire_all()
    c = db.get(Customer, customer.id)
    assert float(c.debt_usd) == 1000
    assert float(c.debt_iqd) == 0
    assert float(c.current_balance) == 0
    assert db.get(Motorcycle, motorcycle.id).stock_quantity == 2


def test_selling_last_motorcycle_marks_it_out_of_stock(client, admin_headers, db, motorcycle):
    body = _invoice(client, admin_headers, items=[{"motorcycle_id": motorcycle.id, "quantity": 3}]).json()
    assert body["type"] == "retail-motorcycle"
    db.expire_all()
    assert db.get(Motorcycle, motorcycle.id).status == MotorcycleStatus.OUT_OF_STOCK


def test_line_discount_and_tax(client, admin_headers, product):
    body = _invoice(
        client, admin_headers,
        items=[{"product_id": product.id, "quantity": 2, "unit_price": 1000, "discount": 10, "tax_rate": 5}],
        discount=90,
    ).json()
    assert body["subtotal"] == 1800
    assert body["taxAmount"] == 90
    assert body["discount"] == 90
    assert body["total"] == 1800
    assert body["items"][0]["lineTotal"] == 1890


def test_wholesale_requires_customer(client, admin_headers, product):
    response = _invoice(client, admin_headers, sale_type="JUMLA", items=[{"product_id": product.id, "quantity": 1}])
    assert response.status_code == 400


def test_insufficient_stock(client, admin_headers, db, product):
    response = _invoice(client, admin_headers, items=[{"product_id": product.id, "quantity": 101}])
    assert response.status_code == 400
    db.expire_all()
    assert db.query(Invoice).count() == 0
    assert db.get(Product, product.id).stock_quantity == 100


def test_unknown_product_is_404(client, admin_headers):
    response = _invoice(client, admin_headers, items=[{"product_id": 999, "quantity": 1}])
    assert response.status_code == 404


def test_item_needs_exactly_one_reference(client, admin_headers, product, motorcycle):
    response = _invoice(client, admin_headers, items=[
        {"product_id": product.id, "motorcycle_id": motorcycle.id, "quantity": 1},
    ])
    assert response.status_code == 422


def test_filter_by_type_and_status(client, admin_headers, customer, product, motorcycle):
    _invoice(client, admin_headers, items=[{"product_id": product.id, "quantity": 1}], amount_paid=5000)
    _invoice(client, admin_headers, sale_type="JUMLA", customer_id=customer.id,
             items=[{"motorcycle_id": motorcycle.id, "quantity": 1}])

    moto = client.get("/invoices", params={"type": "wholesale-motorcycle"}, headers=admin_headers).json()
    assert [i["type"] for i in moto["invoices"]] == ["wholesale-motorcycle"]

    paid = client.get("/invoices", params={"status": "PAID"}, headers=admin_headers).json()
    assert [i["type"] for i in paid["invoices"]] == ["retail-product"]

    by_customer = client.get("/invoices", params={"customerId": customer.id}, headers=admin_headers).json()
    assert by_customer["pagination"]["total"] == 1


def test_unknown_type_filter_is_rejected(client, admin_headers):
    response = client.get("/invoices", params={"type": "scooter"}, headers=admin_headers)
    assert response.status_code == 400


def test_cancel_restocks_and_reverses_debt(client, admin_headers, db, customer, product):
    created = _invoice(
        client, admin_headers,
        customer_id=customer.id,
        items=[{"product_id": product.id, "quantity": 4}],
        amount_paid=5000,
    ).json()

    response = client.post(f"/invoices/{created['id']}/cancel", json={"reason": "Wrong items"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"
    assert response.json()["cancellationReason"] == "Wrong items"

    db.expire_all()
    assert db.get(Product, product.id).stock_quantity == 100
    c = db.get(Customer, customer.id)
    assert float(c.debt_iqd) == 0
    assert float(c.current_balance) == 0

    again = client.post(f"/invoices/{created['id']}/cancel", headers=admin_headers)
    assert again.status_code == 400


def test_invoice_pdf_download(client, admin_headers, customer, product):
    created = _invoice(client, admin_headers, customer_id=customer.id,
                       items=[{"product_id": product.id, "quantity": 1}]).json()

    response = client.get(f"/invoices/{created['id']}/pdf", headers=admin_headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert "filename*=UTF-8''invoice-Karwan%20Motors-" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


def test_missing_invoice_is_404(client, admin_headers):
    assert client.get("/invoices/404", headers=admin_headers).status_code == 404


def test_invoice_number_format():
    from datetime import datetime

    number = generate_invoice_number("Karwan Motors", datetime(2026, 3, 9))
    prefix, _, suffix = number.rpartition("-")
    assert prefix == "Karwan Motors-2026-03-09"
    assert len(suffix) == 6 and suffix.isalnum()
    assert generate_invoice_number(None, datetime(2026, 3, 9)).startswith("INVOICE-2026-03-09-")


@pytest.mark.parametrize("qty,price,discount,tax,expected", [
    (1, 5000, 0, 0, "5000.00"),
    (3, "19.99", 0, 0, "59.97"),
    (2, 1000, 10, 0, "1800.00"),
    (2, 1000, 10, 5, "1890.00"),
])
def test_calculate_line_total(qty, price, discount, tax, expected):
    assert str(calculate_line_total(qty, price, discount, tax)) == expected


def test_cancel_after_payment_keeps_debt_and_balance_in_step(client, admin_headers, db, customer, product):
    sale = dict(customer_id=customer.id, items=[{"product_id": product.id, "quantity": 8}], amount_paid=0)
    first = _invoice(client, admin_headers, **sale).json()
    paid = client.post(f"/customers/{customer.id}/payments", json={"amount_iqd": 40000}, headers=admin_headers)
    assert paid.status_code == 201

    assert client.post(f"/invoices/{first['id']}/cancel", headers=admin_headers).status_code == 200
    db.expire_all()
    c = db.get(Customer, customer.id)
    assert float(c.debt_iqd) == 0
    assert float(c.current_balance) == 0

    _invoice(client, admin_headers, **sale)
    db.expire_all()
    c = db.get(Customer, customer.id)
    assert float(c.debt_iqd) == 40000
    assert float(c.current_balance) == 40000

    response = client.post(f"/customers/{customer.id}/payments", json={"amount_iqd": 40000}, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["customer"]["debtIqd"] == 0
    assert response.json()["customer"]["currentBalance"] == 0


def test_cancel_after_usd_payment_floors_usd_debt(client, admin_headers, db, customer, motorcycle):
    created = _invoice(
        client, admin_headers,
        sale_type="JUMLA", customer_id=customer.id,
        items=[{"motorcycle_id": motorcycle.id, "quantity": 1}],
    ).json()
    client.post(f"/customers/{customer.id}/payments", json={"amount_usd": 1000}, headers=admin_headers)

    assert client.post(f"/invoices/{created['id']}/cancel", headers=admin_headers).status_code == 200
    db.expire_all()
    assert float(db.get(Customer, customer.id).debt_usd) == 0


def test_payment_invoice_cannot_be_cancelled(client, admin_headers, db, customer, product):
    _invoice(client, admin_headers, customer_id=customer.id, items=[{"product_id": product.id, "quantity": 2}])
    payment = client.post(f"/customers/{customer.id}/payments", json={"amount_iqd": 4000},
                          headers=admin_headers).json()["payment"]

    response = client.post(f"/invoices/{payment['invoiceId']}/cancel", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Payment invoices cannot be cancelled"

    db.expire_all()
    assert db.get(Invoice, payment["invoiceId"]).status.value == "PAID"
    assert float(db.get(Customer, customer.id).debt_iqd) == 6000


def test_product_invoice_history(client, admin_headers, customer, product):
    first = _invoice(client, admin_headers, items=[{"product_id": product.id, "quantity": 1}]).json()
    second = _invoice(client, admin_headers, customer_id=customer.id,
                      items=[{"product_id": product.id, "quantity": 3}]).json()

    history = client.get(f"/products/{product.id}/invoices", headers=admin_headers).json()["invoices"]
    assert {h["invoiceId"] for h in history} == {first["id"], second["id"]}
    line = next(h for h in history if h["invoiceId"] == second["id"])
    assert line["quantity"] == 3
    assert line["customerName"] == "Karwan Motors"
    assert line["lineTotal"] == 15000

    assert client.get("/products/9999/invoices", headers=admin_headers).status_code == 404


def test_motorcycle_invoice_history(client, admin_headers, motorcycle, product):
    _invoice(client, admin_headers, items=[{"product_id": product.id, "quantity": 1}])
    sold = _invoice(client, admin_headers, items=[{"motorcycle_id": motorcycle.id, "quantity": 1}]).json()

    history = client.get(f"/motorcycles/{motorcycle.id}/invoices", headers=admin_headers).json()["invoices"]
    assert [h["invoiceNumber"] for h in history] == [sold["invoiceNumber"]]
    assert history[0]["currency"] == "USD"
