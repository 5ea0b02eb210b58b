import os

from app.models.identity import Identity
from app.models.otp import OtpChallenge

from conftest import bearer, images


def test_admin_routes_require_admin_role(client, register_user):
    token = register_user()

    assert client.delete("/api/admin/cleanup-incomplete", headers=bearer(token)).status_code == 403
    assert client.get("/api/admin/verifications/pending", headers=bearer(token)).status_code == 403


def test_manual_review_approves_and_corrects_identity(client, admin_token, ocr, db):
    ocr.error = "AI OCR is not available"
    started = client.post("/api/auth/register-with-id", files=images()).json()

    pending = client.get("/api/admin/verifications/pending", headers=bearer(admin_token)).json()
    assert [p["id"] for p in pending] == [started["user_id"]]

    response = client.patch(
        f"/api/admin/verification/{started['user_id']}",
        json={"status": "approved", "display_name": "Mary Njeri", "national_id": "34567890"},
        headers=bearer(admin_token),
    )

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["id_verified"] is True
    assert user["verification_status"] == "approved"
    assert user["display_name"] == "MARY NJERI"
    assert user["national_id"] == "34567890"
    record = db.get(Identity, started["user_id"]).identity_verification
    assert record["reviewed_by"] == "admin-0001"
    assert client.get("/api/admin/verifications/pending", headers=bearer(admin_token)).json() == []


def test_manual_review_rejects_duplicate_national_id(client, admin_token, ocr):
    ocr.error = "AI OCR is not available"
    started = client.post("/api/auth/register-with-id", files=images()).json()

    response = client.patch(
        f"/api/admin/verification/{started['user_id']}",
        json={"status": "approved", "national_id": "99999999"},
        headers=bearer(admin_token),
    )

    assert response.status_code == 409


def test_manual_review_rejection_keeps_reason(client, admin_token, start_registration, db):
    started = start_registration()

    response = client.patch(
        f"/api/admin/verification/{started['user_id']}",
        json={"status": "rejected", "reason": "Photo does not match"},
        headers=bearer(admin_token),
    )

    assert response.status_code == 200
    identity = db.get(Identity, started["user_id"])
    assert identity.id_verified is False
    assert identity.identity_verification["rejection_reason"] == "Photo does not match"


def test_manual_review_validation(client, admin_token, start_registration):
    started = start_registration()

    bad_status = client.patch(
        f"/api/admin/verification/{started['user_id']}", json={"status": "maybe"}, headers=bearer(admin_token),
    )
    unknown = client.patch("/api/admin/verification/nobody", json={"status": "approved"}, headers=bearer(admin_token))

    assert bad_status.status_code == 400
    assert unknown.status_code == 404


def test_cleanup_removes_only_incomplete_identities(client, admin_token, start_registration, otp_required, settings, db):
    # One applicant stopped at the OTP step, the other before binding a phone
    half_done = start_registration(national_id="23456789")
    client.post("/api/auth/add-phone", json={"phone_number": "0723456789"}, headers=bearer(half_done["token"]))
    no_phone = start_registration(national_id="34567890")
    assert db.query(OtpChallenge).count() == 1
    stored_image = db.get(Identity, no_phone["user_id"]).identity_verification["id_image_ref"]

    response = client.delete("/api/admin/cleanup-incomplete", headers=bearer(admin_token))

    assert response.status_code == 200
    assert response.json()["deleted_count"] == 2
    db.expire_all()
    assert db.get(Identity, half_done["user_id"]) is None
    assert db.get(Identity, no_phone["user_id"]) is None
    assert db.get(Identity, "admin-0001") is not None
    assert db.query(OtpChallenge).count() == 0
    assert not os.path.exists(os.path.join(settings.UPLOAD_DIR, stored_image))
