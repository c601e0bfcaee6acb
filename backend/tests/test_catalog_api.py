from arbati.models.user import UserRole


def test_category_crud(client, admin_headers):
    created = client.post("/categories", json={"name": "Tyres", "name_ku": "تایە"}, headers=admin_headers)
    assert created.status_code == 201
    category_id = created.json()["id"]
    client.post("/categories", json={"name": "Brakes"}, headers=admin_headers)

    names = [c["name"] for c in client.get("/categories", headers=admin_headers).json()["categories"]]
    assert names == ["Brakes", "Tyres"]

    updated = client.put(f"/categories/{category_id}", json={"name_ar": "إطارات"}, headers=admin_headers)
    assert updated.json()["nameAr"] == "إطارات"
    assert updated.json()["nameKu"] == "تایە"

    assert client.delete(f"/categories/{category_id}", headers=admin_headers).status_code == 200
    assert client.put(f"/categories/{category_id}", json={"name": "X"}, headers=admin_headers).status_code == 404


def test_duplicate_category_name(client, admin_headers):
    client.post("/categories", json={"name": "Tyres"}, headers=admin_headers)
    other = client.post("/categories", json={"name": "Oils"}, headers=admin_headers).json()
    assert client.post("/categories", json={"name": "Tyres"}, headers=admin_headers).status_code == 409
    assert client.put(f"/categories/{other['id']}", json={"name": "Tyres"}, headers=admin_headers).status_code == 409


def test_category_with_products_cannot_be_deleted(client, admin_headers, product):
    response = client.delete(f"/categories/{product.category_id}", headers=admin_headers)
    assert response.status_code == 400


def test_new_category_can_be_assigned_to_a_product(client, admin_headers, product):
    category = client.post("/categories", json={"name": "Filters"}, headers=admin_headers).json()
    body = client.put(f"/products/{product.id}", json={"category_id": category["id"]}, headers=admin_headers).json()
    assert body["category"] == "Filters"


def test_categories_need_product_edit_to_change(client, headers_for):
    employee = headers_for(UserRole.EMPLOYEE)
    assert client.get("/categories", headers=employee).status_code == 200
    assert client.post("/categories", json={"name": "Tyres"}, headers=employee).status_code == 403


def test_address_crud(client, admin_headers):
    created = client.post("/addresses", json={"name": "Erbil", "description": "100m road"}, headers=admin_headers)
    assert created.status_code == 201
    address_id = created.json()["id"]
    client.post("/addresses", json={"name": "Duhok"}, headers=admin_headers)

    addresses = client.get("/addresses", headers=admin_headers).json()["addresses"]
    assert [a["name"] for a in addresses] == ["Duhok", "Erbil"]

    updated = client.put(f"/addresses/{address_id}", json={"description": "Industrial area"}, headers=admin_headers)
    assert updated.json() == {"id": address_id, "name": "Erbil", "description": "Industrial area"}

    assert client.post("/addresses", json={"name": "Duhok"}, headers=admin_headers).status_code == 409
    assert client.delete(f"/addresses/{address_id}", headers=admin_headers).status_code == 200
    assert client.delete(f"/addresses/{address_id}", headers=admin_headers).status_code == 404


def test_address_used_by_customer_cannot_be_deleted(client, admin_headers):
    address = client.post("/addresses", json={"name": "Sulaymaniyah"}, headers=admin_headers).json()
    customer = client.post("/customers", json={"name": "Zagros Moto", "sku": "C-0300", "address_id": address["id"]},
                           headers=admin_headers)
    assert customer.json()["addressId"] == address["id"]

    assert client.delete(f"/addresses/{address['id']}", headers=admin_headers).status_code == 400


def test_viewer_cannot_change_addresses(client, headers_for):
    viewer = headers_for(UserRole.VIEWER)
    assert client.get("/addresses", headers=viewer).status_code == 200
    assert client.post("/addresses", json={"name": "Erbil"}, headers=viewer).status_code == 403
