"""
OCR Service — Google Gemini document extraction and face presence checks.
Handles ID document scanning, field extraction and selfie face detection.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import google.generativeai as genai

from app.config import get_settings
from app.errors import UpstreamServiceError
from app.utils.validators import sanitize_name, validate_national_id

settings = get_settings()
logger = logging.getLogger(__name__)

# Configure Gemini lazily
_model = None


def get_ocr_model():
    """Lazily initialize the Gemini model."""
    global _model
    if _model is None and settings.GEMINI_API_KEY:
        genai.configure(api_key=settings.GEMINI_API_KEY)
        _model = genai.GenerativeModel(
            model_name=settings.GEMINI_MODEL,
            generation_config={
                "temperature": 0,
                "top_p": 1,
                "top_k": 32,
                "max_output_tokens": 2048,
            },
        )
    return _model


# Deterministic extraction prompt
OCR_PROMPT = """You are a deterministic OCR extractor for Kenyan national identity cards.

STRICT RULES:
1. Extract text EXACTLY as written on the document.
2. If a field is not clearly visible, return null for that field.
3. DO NOT guess, infer, or hallucinate any data.
4. Return ONLY raw JSON — no markdown, no explanation.

REQUIRED FIELDS:
- raw_text (string): All text visible on the document, line by line
- full_name (string): Full name as printed
- id_number (string): National ID number
- dob (string): Date of birth exactly as printed
- face_detected (boolean): true if the document carries a photo of a human face

Return ONLY the JSON object."""

FACE_PROMPT = """Does this image clearly show a real human face?
Return ONLY raw JSON of the form {"face_detected": true} or {"face_detected": false}."""

# ID number: Kenyan format is typically 7-8 digits
ID_NUMBER_PATTERNS = [
    re.compile(r"(?:ID|NO|NUMBER)[\s:.]*(\d{7,8})\b", re.IGNORECASE),
    re.compile(r"\b(\d{7,8})\b"),
]

DOB_PATTERNS = [
    re.compile(r"\d{2}[-/.]\d{2}[-/.]\d{4}"),       # DD-MM-YYYY
    re.compile(r"\d{4}[-/.]\d{2}[-/.]\d{2}"),       # YYYY-MM-DD
    re.compile(r"\d{2}\s+[A-Za-z]{3}\s+\d{4}"),     # DD Mon YYYY
    re.compile(r"\d{1,2}/\d{1,2}/\d{4}"),
]


class ExtractionStatus(str, Enum):
    EXTRACTED = "extracted"
    NOT_EXTRACTED = "not_extracted"
    FAILED = "extraction_failed"


@dataclass(frozen=True)
class ExtractedField:
    status: ExtractionStatus
    value: Optional[str] = None

    @classmethod
    def of(cls, value: Optional[str]) -> "ExtractedField":
        value = (value or "").strip() if isinstance(value, str) else None
        if value:
            return cls(ExtractionStatus.EXTRACTED, value)
        return cls(ExtractionStatus.NOT_EXTRACTED)

    @property
    def extracted(self) -> bool:
        return self.status == ExtractionStatus.EXTRACTED

    def to_dict(self) -> dict:
        return {"status": self.status.value, "value": self.value}


_FAILED = ExtractedField(ExtractionStatus.FAILED)


@dataclass(frozen=True)
class DocumentExtraction:
    """Result of reading an identity document."""
    raw_text: str = ""
    name: ExtractedField = _FAILED
    national_id: ExtractedField = _FAILED
    date_of_birth: ExtractedField = _FAILED
    face_detected: bool = False
    error: Optional[str] = field(default=None, compare=False)

    @classmethod
    def failed(cls, error: str) -> "DocumentExtraction":
        """Extraction could not run at all; every field is marked failed."""
        return cls(error=error)

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def fields_dict(self) -> dict:
        return {
            "name": self.name.to_dict(),
            "national_id": self.national_id.to_dict(),
            "date_of_birth": self.date_of_birth.to_dict(),
        }


def parse_identity_text(text: str) -> dict:
    """Regex fallback: find an ID number and date of birth in raw OCR text."""
    national_id = None
    for pattern in ID_NUMBER_PATTERNS:
        match = pattern.search(text or "")
        if match:
            national_id = match.group(1)
            break

    dob = None
    for pattern in DOB_PATTERNS:
        match = pattern.search(text or "")
        if match:
            dob = match.group(0)
            break

    return {"id_number": national_id, "dob": dob}


def find_document_keywords(text: str) -> bool:
    """True if the text contains any known identity-document keyword."""
    lowered = (text or "").lower()
    return any(keyword in lowered for keyword in settings.DOCUMENT_KEYWORDS)


def _parse_json_response(response) -> dict:
    """Pull the JSON object out of a Gemini response."""
    try:
        raw_text = response.text
    except Exception:
        logger.warning("response.text failed. Candidates: %s", getattr(response, "candidates", None))
        raise UpstreamServiceError(
            "AI failed to generate readable text. "
            "The image might be too blurry or contain blocked content."
        )

    if not raw_text or not raw_text.strip():
        raise UpstreamServiceError("AI returned an empty response.")

    cleaned = raw_text.strip()
    if "```json" in cleaned:
        cleaned = cleaned.split("```json")[1].split("```")[0].strip()
    elif "```" in cleaned:
        cleaned = cleaned.split("```")[1].split("```")[0].strip()

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("JSON parse failed: %s", cleaned[:200])
        raise UpstreamServiceError("AI returned invalid format. Please try a clearer photo.")
    if not isinstance(parsed, dict):
        raise UpstreamServiceError("AI returned invalid format. Please try a clearer photo.")
    return parsed


def _generate(parts: list) -> dict:
    model = get_ocr_model()
    if not model:
        raise UpstreamServiceError(
            "AI OCR is not available — GEMINI_API_KEY is not configured."
        )
    try:
        response = model.generate_content(contents=parts)
    except Exception as e:
        logger.error("Gemini API call failed: %s", e)
        raise UpstreamServiceError(f"AI processing failed: {e}")
    return _parse_json_response(response)


class OCRService:
    """AI-powered document scanning and face detection."""

    @staticmethod
    def read_document(file_contents: bytes, content_type: str) -> DocumentExtraction:
        """Scan an ID document image and extract identity fields.

        Raises:
            UpstreamServiceError: If the model is unavailable or returns unusable data.
        """
        extracted = _generate([OCR_PROMPT, {"mime_type": content_type, "data": file_contents}])

        raw_text = extracted.get("raw_text") or ""
        fallback = parse_identity_text(raw_text)

        name = sanitize_name(extracted.get("full_name")) or None
        national_id = extracted.get("id_number") or fallback["id_number"]
        if national_id:
            national_id = re.sub(r"\s", "", str(national_id))
            if not validate_national_id(national_id):
                national_id = None
        dob = extracted.get("dob") or fallback["dob"]

        logger.info(
            "Document read: name=%s id=%s dob=%s face=%s",
            bool(name), bool(national_id), bool(dob), bool(extracted.get("face_detected")),
        )

        return DocumentExtraction(
            raw_text=raw_text,
            name=ExtractedField.of(name),
            national_id=ExtractedField.of(national_id),
            date_of_birth=ExtractedField.of(dob),
            face_detected=bool(extracted.get("face_detected", False)),
        )

    @staticmethod
    def detect_face(file_contents: bytes, content_type: str) -> bool:
        """Check whether an image shows a human face.

        Raises:
            UpstreamServiceError: If the model is unavailable or returns unusable data.
        """
        result = _generate([FACE_PROMPT, {"mime_type": content_type, "data": file_contents}])
        return bool(result.get("face_detected", False))
