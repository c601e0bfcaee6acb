from arbati.models.user import User, UserRole, UserStatus


def _employee(**fields):
    payload = {"email": "shvan@test.com", "password": "longenough1", "name": "Shvan", "role": "CASHIER"}
    payload.update(fields)
    return payload


def test_admin_creates_and_lists_employees(client, admin_headers):
    response = client.post("/employees", json=_employee(), headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["role"] == "CASHIER"
    assert "hashed_password" not in response.json()

    body = client.get("/employees", params={"search": "shvan"}, headers=admin_headers).json()
    assert [e["email"] for e in body["employees"]] == ["shvan@test.com"]


def test_duplicate_email_conflicts(client, admin_headers):
    client.post("/employees", json=_employee(), headers=admin_headers)
    assert client.post("/employees", json=_employee(), headers=admin_headers).status_code == 409


def test_only_developers_grant_developer(client, admin_headers, headers_for):
    assert client.post("/employees", json=_employee(role="DEVELOPER"), headers=admin_headers).status_code == 403
    developer = headers_for(UserRole.DEVELOPER)
    assert client.post("/employees", json=_employee(role="DEVELOPER"), headers=developer).status_code == 201


def test_update_changes_role_and_password(client, admin_headers):
    employee = client.post("/employees", json=_employee(), headers=admin_headers).json()
    response = client.put(
        f"/employees/{employee['id']}",
        json={"role": "EMPLOYEE", "password": "another-secret"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["role"] == "EMPLOYEE"

    login = client.post("/auth/login", json={"email": "shvan@test.com", "password": "another-secret"})
    assert login.status_code == 200


def test_delete_is_soft(client, admin_headers, db):
    employee = client.post("/employees", json=_employee(), headers=admin_headers).json()
    assert client.delete(f"/employees/{employee['id']}", headers=admin_headers).status_code == 200

    db.expire_all()
    assert db.get(User, employee["id"]).status == UserStatus.DELETED
    listed = client.get("/employees", headers=admin_headers).json()["employees"]
    assert employee["id"] not in [e["id"] for e in listed]
    assert client.post("/auth/login", json={"email": "shvan@test.com", "password": "longenough1"}).status_code == 401


def test_cashier_cannot_manage_employees(client, headers_for):
    response = client.post("/employees", json=_employee(), headers=headers_for(UserRole.CASHIER))
    assert response.status_code == 403


def test_role_change_is_audited(client, admin_headers, caplog):
    employee = client.post("/employees", json=_employee(), headers=admin_headers).json()
    with caplog.at_level("INFO", logger="audit"):
        client.put(f"/employees/{employee['id']}", json={"role": "VIEWER"}, headers=admin_headers)
    events = [r.getMessage() for r in caplog.records if r.name == "audit"]
    assert any('"event_type": "employee.role_changed"' in e and '"new_role": "VIEWER"' in e for e in events)
    assert not any("longenough1" in e for e in events)
