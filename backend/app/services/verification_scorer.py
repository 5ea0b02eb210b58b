"""
Verification Scorer — Turns document checks and face signals into a score
and an approve/reject decision.

Pure and deterministic: no I/O, no database.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping

from app.config import get_settings

settings = get_settings()


class CheckKind(str, Enum):
    """The fixed set of document checks. The score denominator is len(CheckKind)."""
    HAS_NAME = "has_name"
    HAS_ID_NUMBER = "has_id_number"
    HAS_DATE_OF_BIRTH = "has_date_of_birth"
    HAS_DOCUMENT_KEYWORDS = "has_document_keywords"


DECISION_APPROVED = "approved"
DECISION_REJECTED = "rejected"


@dataclass(frozen=True)
class VerificationResult:
    score: int
    decision: str
    checks: Dict[str, bool] = field(default_factory=dict)
    has_face_in_document: bool = False
    has_face_in_selfie: bool = False

    @property
    def approved(self) -> bool:
        return self.decision == DECISION_APPROVED


def normalize_checks(checks: Mapping) -> Dict[CheckKind, bool]:
    """Map check names (or CheckKind members) to booleans; missing checks are False.

    Raises:
        ValueError: If a key is not a known check kind.
    """
    normalized = {kind: False for kind in CheckKind}
    for key, value in checks.items():
        normalized[CheckKind(key)] = bool(value)
    return normalized


def score(checks: Mapping, face_in_document: bool, face_in_selfie: bool) -> VerificationResult:
    """Score a document submission.

    score = passed / total * 100, plus FACE_BONUS per detected face, capped at 100.
    Approved only when score >= VERIFICATION_PASS_SCORE and both faces are present;
    the face signals are hard gates regardless of the score.
    """
    normalized = normalize_checks(checks)
    passed = sum(1 for ok in normalized.values() if ok)

    raw = passed / len(CheckKind) * 100
    if face_in_document:
        raw += settings.FACE_BONUS
    if face_in_selfie:
        raw += settings.FACE_BONUS
    final = int(round(min(raw, 100)))

    approved = final >= settings.VERIFICATION_PASS_SCORE and face_in_document and face_in_selfie

    return VerificationResult(
        score=final,
        decision=DECISION_APPROVED if approved else DECISION_REJECTED,
        checks={kind.value: ok for kind, ok in normalized.items()},
        has_face_in_document=bool(face_in_document),
        has_face_in_selfie=bool(face_in_selfie),
    )
