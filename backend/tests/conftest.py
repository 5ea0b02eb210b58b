import os
import re
import tempfile

# Settings are read once at import time, so the environment is prepared first.
_TMP = tempfile.mkdtemp(prefix="gkash-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["LOG_DIR"] = os.path.join(_TMP, "logs")
os.environ["GEMINI_API_KEY"] = ""
os.environ["SECRET_KEY"] = "gkash-test-signing-key-0123456789abcdef"
os.environ["REQUIRE_PHONE_OTP"] = "false"

import pytest
from fastapi.testclient import TestClient

from app.config import get_settings
from app.database import Base, SessionLocal, engine, init_db
from app.errors import UpstreamServiceError
from app.main import app
from app.models.identity import Identity
from app.services.notification_service import NotificationService
from app.services.ocr_service import DocumentExtraction, ExtractedField, OCRService
from app.services.token_service import TokenService
from app.utils.hashing import hash_pin
from app.utils.rate_limiter import reset_rate_limits

ID_TEXT = "REPUBLIC OF KENYA NATIONAL IDENTITY CARD {name} ID NO {national_id} DATE OF BIRTH {dob}"


def make_extraction(name="JOHN DOE KAMAU", national_id="12345678", dob="01-01-1990", face=True, raw_text=None):
    if raw_text is None:
        raw_text = ID_TEXT.format(name=name or "", national_id=national_id or "", dob=dob or "")
    return DocumentExtraction(
        raw_text=raw_text,
        name=ExtractedField.of(name),
        national_id=ExtractedField.of(national_id),
        date_of_birth=ExtractedField.of(dob),
        face_detected=face,
    )


def images(id_type="image/jpeg", selfie_type="image/jpeg"):
    return {
        "idImage": ("id.jpg", b"\xff\xd8fake-id-image", id_type),
        "selfie": ("selfie.jpg", b"\xff\xd8fake-selfie", selfie_type),
    }


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


class FakeOCR:
    """Stands in for the Gemini document reader and face detector."""

    def __init__(self):
        self.extraction = make_extraction()
        self.selfie_face = True
        self.error = None

    def read_document(self, file_contents, content_type):
        if self.error:
            raise UpstreamServiceError(self.error)
        return self.extraction

    def detect_face(self, file_contents, content_type):
        return self.selfie_face


class FakeSMS:
    def __init__(self):
        self.sent = []

    def send_sms(self, phone, message):
        self.sent.append((phone, message))
        return {"success": True}

    @property
    def last_code(self):
        return re.search(r"code is (\d+)", self.sent[-1][1]).group(1)


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    init_db()
    reset_rate_limits()
    yield


@pytest.fixture(autouse=True)
def ocr(monkeypatch):
    fake = FakeOCR()
    monkeypatch.setattr(OCRService, "read_document", fake.read_document)
    monkeypatch.setattr(OCRService, "detect_face", fake.detect_face)
    return fake


@pytest.fixture(autouse=True)
def sms(monkeypatch):
    fake = FakeSMS()
    monkeypatch.setattr(NotificationService, "send_sms", fake.send_sms)
    return fake


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def otp_required(monkeypatch, settings):
    monkeypatch.setattr(settings, "REQUIRE_PHONE_OTP", True)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def start_registration(client, ocr):
    """Run the document step; returns the response JSON."""
    def start(national_id="12345678", name="JOHN DOE KAMAU"):
        ocr.extraction = make_extraction(name=name, national_id=national_id)
        response = client.post("/api/auth/register-with-id", files=images())
        assert response.status_code == 201, response.text
        return response.json()
    return start


@pytest.fixture
def register_user(client, start_registration):
    """Run every registration step without the OTP gate; returns the session token."""
    def register(national_id="12345678", phone="0712345678", pin="1234", name="JOHN DOE KAMAU"):
        started = start_registration(national_id=national_id, name=name)
        phone_response = client.post(
            "/api/auth/add-phone", json={"phone_number": phone}, headers=bearer(started["token"]),
        )
        assert phone_response.status_code == 200, phone_response.text
        pin_response = client.post(
            "/api/auth/create-pin", json={"pin": pin}, headers=bearer(phone_response.json()["token"]),
        )
        assert pin_response.status_code == 201, pin_response.text
        return pin_response.json()["token"]
    return register


@pytest.fixture
def admin_token(db):
    admin = Identity(
        id="admin-0001",
        display_name="GKASH ADMIN",
        national_id="99999999",
        phone_number="0799999999",
        phone_verified=True,
        pin_hash=hash_pin("9999"),
        pin_set=True,
        registration_complete=True,
        role="admin",
    )
    db.add(admin)
    db.commit()
    return TokenService.issue_session(admin.id)
