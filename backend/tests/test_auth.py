from app.models.identity import Identity

from conftest import bearer


def login(client, national_id="12345678", pin="1234"):
    return client.post("/api/auth/login", json={"national_id": national_id, "pin": pin})


def test_login_returns_session_token(client, register_user):
    register_user()

    response = login(client)

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["national_id"] == "12345678"
    me = client.get("/api/users/me", headers=bearer(body["token"]))
    assert me.status_code == 200


def test_wrong_pin_and_unknown_handle_look_the_same(client, register_user):
    register_user()

    wrong_pin = login(client, pin="9999")
    unknown = login(client, national_id="11111111")

    assert wrong_pin.status_code == unknown.status_code == 401
    assert wrong_pin.json()["detail"] == unknown.json()["detail"] == "Invalid credentials"


def test_incomplete_registration_is_told_to_resume(client, start_registration):
    start_registration(national_id="12345678")

    response = login(client)

    assert response.status_code == 400
    assert response.json()["error_code"] == "incomplete_registration"


def test_missing_credentials(client):
    response = client.post("/api/auth/login", json={"national_id": "12345678"})

    assert response.status_code == 400
    assert response.json()["error_code"] == "validation_error"


def test_disabled_identity_cannot_log_in(client, register_user, db):
    register_user()
    identity = db.query(Identity).filter(Identity.national_id == "12345678").one()
    identity.is_active = False
    db.commit()

    response = login(client)

    assert response.status_code == 403


def test_login_is_rate_limited(client):
    statuses = [login(client, national_id="11111111").status_code for _ in range(11)]

    assert statuses[:10] == [401] * 10
    assert statuses[10] == 429


def test_change_pin(client, register_user):
    token = register_user(pin="1234")

    response = client.post(
        "/api/auth/change-pin",
        json={"current_pin": "1234", "new_pin": "4321", "confirm_pin": "4321"},
        headers=bearer(token),
    )

    assert response.status_code == 200
    assert login(client, pin="1234").status_code == 401
    assert login(client, pin="4321").status_code == 200


def test_change_pin_rejections(client, register_user):
    token = register_user(pin="1234")

    def change(current, new, confirm):
        return client.post(
            "/api/auth/change-pin",
            json={"current_pin": current, "new_pin": new, "confirm_pin": confirm},
            headers=bearer(token),
        )

    assert change("0000", "4321", "4321").status_code == 401
    assert change("1234", "4321", "4322").status_code == 400
    assert change("1234", "12", "12").status_code == 400
    assert change("1234", "1234", "1234").status_code == 400


def test_change_pin_requires_session(client):
    response = client.post("/api/auth/change-pin", json={"current_pin": "1234", "new_pin": "4321", "confirm_pin": "4321"})

    assert response.status_code == 401
