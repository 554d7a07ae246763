"""
Display validation for stored email content.

Flags content that would render badly in the CRM message view: undecoded
base64 or quoted-printable, leftover HTML or MIME headers, garbled
characters, and the no-content marker.
"""

from __future__ import annotations

from typing import Any, List

from core.extractors.email.config import (
    CONTENT_ISSUE_PATTERNS,
    CONTENT_MAX_LENGTH,
    CONTENT_MIN_LENGTH,
    FROM_ADDRESS_RE,
    PREVIEW_CHARS,
    SUBJECT_MAX_LENGTH,
)
from core.ir import (
    NO_CONTENT_SENTINEL,
    ContentValidation,
    MessageRecord,
    MessageValidation,
)
from core.logger import get_logger

logger = get_logger(__name__)

_HIGH_SEVERITY = {
    "CONTENT_MISSING_OR_INVALID_TYPE",
    "NO_CONTENT_AVAILABLE",
    "GARBLED_CHARACTERS_ENCODING_ISSUE",
}
_MEDIUM_SEVERITY = {
    "BASE64_CONTENT_NOT_DECODED",
    "QUOTED_PRINTABLE_NOT_DECODED",
    "HTML_TAGS_NOT_STRIPPED",
}


def is_sentinel(text: Any) -> bool:
    """True when *text* is the no-content marker rather than real content."""
    return isinstance(text, str) and text.strip() == NO_CONTENT_SENTINEL


class ContentValidator:
    """Stateless checks run before serving email content to the UI."""

    @staticmethod
    def validate_content(content: Any) -> ContentValidation:
        if not isinstance(content, str) or not content:
            return ContentValidation(
                is_valid=False,
                issues=["CONTENT_MISSING_OR_INVALID_TYPE"],
                severity="HIGH",
            )

        issues: List[str] = []
        if len(content) < CONTENT_MIN_LENGTH:
            issues.append("CONTENT_TOO_SHORT")
        if len(content) > CONTENT_MAX_LENGTH:
            issues.append("CONTENT_TOO_LONG")

        for pattern, issue in CONTENT_ISSUE_PATTERNS:
            if pattern.search(content):
                issues.append(issue)

        if is_sentinel(content) or not content.strip():
            issues.append("NO_CONTENT_AVAILABLE")

        severity = "LOW"
        if _HIGH_SEVERITY.intersection(issues):
            severity = "HIGH"
        elif _MEDIUM_SEVERITY.intersection(issues):
            severity = "MEDIUM"

        return ContentValidation(
            is_valid=not issues,
            issues=issues,
            severity=severity,
            content_length=len(content),
            preview=content[:PREVIEW_CHARS],
        )

    @classmethod
    def validate_message(cls, record: MessageRecord) -> MessageValidation:
        """Validate content, subject, sender address and timestamp of *record*.

        Severity follows the last failing check, as the message view does.
        """
        validation = MessageValidation(
            message_id=record.id,
            subject=record.subject,
            from_address=record.recipient_email,
            timestamp=record.created_at,
        )

        if record.content:
            content_validation = cls.validate_content(record.content)
            validation.content_validation = content_validation
            if not content_validation.is_valid:
                validation.is_valid = False
                validation.issues.extend(content_validation.issues)
                validation.severity = content_validation.severity
        else:
            validation.is_valid = False
            validation.issues.append("CONTENT_MISSING")
            validation.severity = "HIGH"

        if not record.subject or not record.subject.strip():
            validation.is_valid = False
            validation.issues.append("SUBJECT_MISSING")
            validation.severity = "HIGH"
        elif len(record.subject) > SUBJECT_MAX_LENGTH:
            validation.is_valid = False
            validation.issues.append("SUBJECT_TOO_LONG")
            validation.severity = "MEDIUM"

        if not record.recipient_email or not FROM_ADDRESS_RE.match(record.recipient_email):
            validation.is_valid = False
            validation.issues.append("FROM_ADDRESS_INVALID")
            validation.severity = "HIGH"

        if record.created_datetime() is None:
            validation.is_valid = False
            validation.issues.append("TIMESTAMP_INVALID")
            validation.severity = "MEDIUM"

        return validation

    @staticmethod
    def log_validation(validation: MessageValidation) -> None:
        if validation.is_valid:
            logger.info("Email display validation passed: %s", validation.message_id)
            return
        logger.warning(
            "Email display validation failed: id=%s severity=%s issues=%s subject=%r",
            validation.message_id,
            validation.severity,
            ", ".join(validation.issues),
            validation.subject,
        )
        if validation.content_validation:
            logger.warning("  content preview: %s", validation.content_validation.preview)
