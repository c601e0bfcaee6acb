from conftest import PASSWORD

from arbati.core.permissions import (
    CUSTOMERS_DELETE, INVOICES_CREATE, INVOICES_VIEW, WILDCARD,
    has_permission, permissions_for_role,
)
from arbati.core.security import create_access_token, decode_access_token
from arbati.models.user import UserRole, UserStatus


def test_login_sets_cookie_and_me_works(client, make_user):
    user = make_user(UserRole.CASHIER)
    response = client.post("/auth/login", json={"email": user.email, "password": PASSWORD})
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"
    assert "arbati_token" in response.cookies

    # the cookie alone authenticates
    me = client.get("/auth/me")
    assert me.status_code == 200
    assert me.json()["email"] == user.email
    assert me.json()["role"] == "CASHIER"
    assert INVOICES_CREATE in me.json()["permissions"]


def test_bearer_token_authenticates(client, make_user):
    user = make_user(UserRole.VIEWER)
    token = client.post("/auth/login", json={"email": user.email, "password": PASSWORD}).json()["access_token"]
    client.cookies.clear()
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


def test_wrong_password_and_unknown_user_look_the_same(client, make_user):
    user = make_user()
    wrong = client.post("/auth/login", json={"email": user.email, "password": "nope-nope"})
    unknown = client.post("/auth/login", json={"email": "ghost@test.com", "password": PASSWORD})
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json()


def test_inactive_accounts_cannot_log_in(client, make_user):
    for status in (UserStatus.PENDING, UserStatus.SUSPENDED, UserStatus.DELETED):
        user = make_user(status=status)
        response = client.post("/auth/login", json={"email": user.email, "password": PASSWORD})
        assert response.status_code == 401


def test_suspended_user_token_stops_working(client, make_user, db):
    user = make_user()
    headers = {"Authorization": f"Bearer {create_access_token(str(user.id))}"}
    assert client.get("/auth/me", headers=headers).status_code == 200

    user.status = UserStatus.SUSPENDED
    db.commit()
    assert client.get("/auth/me", headers=headers).status_code == 401


def test_logout_clears_cookie(client, make_user):
    user = make_user()
    client.post("/auth/login", json={"email": user.email, "password": PASSWORD})
    assert client.post("/auth/logout").status_code == 200
    assert "arbati_token" not in client.cookies


def test_missing_or_bad_token_is_401(client):
    assert client.get("/customers").status_code == 401
    assert client.get("/customers", headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401


def test_viewer_cannot_create_invoices(client, headers_for, product):
    response = client.post(
        "/invoices",
        json={"items": [{"product_id": product.id, "quantity": 1}]},
        headers=headers_for(UserRole.VIEWER),
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied"


def test_viewer_can_list_invoices(client, headers_for):
    assert client.get("/invoices", headers=headers_for(UserRole.VIEWER)).status_code == 200


def test_role_permission_sets():
    assert has_permission(permissions_for_role(UserRole.DEVELOPER), CUSTOMERS_DELETE)
    assert permissions_for_role(UserRole.DEVELOPER) == frozenset({WILDCARD})
    assert has_permission(permissions_for_role(UserRole.ADMIN), CUSTOMERS_DELETE)
    assert not has_permission(permissions_for_role(UserRole.EMPLOYEE), CUSTOMERS_DELETE)
    assert has_permission(permissions_for_role(UserRole.VIEWER), INVOICES_VIEW)
    assert not has_permission(permissions_for_role(UserRole.VIEWER), INVOICES_CREATE)


def test_token_round_trip():
    assert decode_access_token(create_access_token("42")) == "42"
    assert decode_access_token(create_access_token("42", expires_minutes=-1)) is None
    assert decode_access_token("garbage") is None


def test_security_headers(client):
    response = client.get("/health")
    assert response.json() == {"status": "ok"}
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "DENY"
    assert "default-src 'self'" in response.headers["content-security-policy"]


def test_untrusted_host_is_rejected(client):
    assert client.get("/health", headers={"Host": "evil.example"}).status_code == 400
